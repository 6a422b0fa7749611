from supabase import Client
from stack_api.modules.follows.schemas import FollowResponse
from stack_api.core.exceptions import InvalidDataError, classify_backend_error
from typing import List
from datetime import datetime, timezone
from fastapi import HTTPException
import logging

logger = logging.getLogger(__name__)


class FollowService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def _find(self, follower_id: str, followee_id: str) -> List[dict]:
        result = self.supabase.table("user_follows")\
            .select("*")\
            .eq("follower_id", follower_id)\
            .eq("followee_id", followee_id)\
            .limit(1)\
            .execute()
        return result.data or []

    def follow(self, follower_id: str, followee_id: str) -> FollowResponse:
        """Follow a user; following someone twice returns the existing row"""
        if follower_id == followee_id:
            raise InvalidDataError("You cannot follow yourself")
        try:
            existing = self._find(follower_id, followee_id)
            if existing:
                return FollowResponse(**existing[0])

            result = self.supabase.table("user_follows").insert({
                "follower_id": follower_id,
                "followee_id": followee_id,
                "post_notifications": False,
                "created_at": datetime.now(timezone.utc).isoformat()
            }).execute()

            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to follow user")

            logger.info(f"{follower_id} followed {followee_id}")
            return FollowResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise classify_backend_error(e)

    def unfollow(self, follower_id: str, followee_id: str) -> bool:
        """Remove every follow row between the pair"""
        try:
            result = self.supabase.table("user_follows")\
                .delete()\
                .eq("follower_id", follower_id)\
                .eq("followee_id", followee_id)\
                .execute()
            return len(result.data or []) > 0
        except Exception as e:
            raise classify_backend_error(e)

    def is_following(self, follower_id: str, followee_id: str) -> bool:
        try:
            return bool(self._find(follower_id, followee_id))
        except Exception as e:
            raise classify_backend_error(e)

    def get_post_notifications(self, follower_id: str, followee_id: str) -> bool:
        try:
            rows = self._find(follower_id, followee_id)
            return bool(rows and rows[0].get("post_notifications"))
        except Exception as e:
            raise classify_backend_error(e)

    def set_post_notifications(self, follower_id: str, followee_id: str, enabled: bool) -> FollowResponse:
        try:
            result = self.supabase.table("user_follows")\
                .update({"post_notifications": enabled})\
                .eq("follower_id", follower_id)\
                .eq("followee_id", followee_id)\
                .execute()
            if not result.data:
                raise HTTPException(status_code=404, detail="You are not following this user")
            return FollowResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise classify_backend_error(e)

    def get_follower_ids(self, user_id: str) -> List[str]:
        try:
            result = self.supabase.table("user_follows")\
                .select("follower_id")\
                .eq("followee_id", user_id)\
                .execute()
            return [row["follower_id"] for row in result.data or []]
        except Exception as e:
            raise classify_backend_error(e)

    def get_following_ids(self, user_id: str) -> List[str]:
        try:
            result = self.supabase.table("user_follows")\
                .select("followee_id")\
                .eq("follower_id", user_id)\
                .execute()
            return [row["followee_id"] for row in result.data or []]
        except Exception as e:
            raise classify_backend_error(e)

    def get_notification_subscriber_ids(self, user_id: str) -> List[str]:
        """Followers who asked to be notified about this user's posts"""
        try:
            result = self.supabase.table("user_follows")\
                .select("follower_id")\
                .eq("followee_id", user_id)\
                .eq("post_notifications", True)\
                .execute()
            return [row["follower_id"] for row in result.data or []]
        except Exception as e:
            raise classify_backend_error(e)

    def count_followers(self, user_id: str) -> int:
        try:
            result = self.supabase.table("user_follows")\
                .select("id", count="exact")\
                .eq("followee_id", user_id)\
                .execute()
            return result.count or 0
        except Exception as e:
            raise classify_backend_error(e)

    def count_following(self, user_id: str) -> int:
        try:
            result = self.supabase.table("user_follows")\
                .select("id", count="exact")\
                .eq("follower_id", user_id)\
                .execute()
            return result.count or 0
        except Exception as e:
            raise classify_backend_error(e)

    def remove_all_for_user(self, user_id: str) -> None:
        try:
            self.supabase.table("user_follows").delete().eq("follower_id", user_id).execute()
            self.supabase.table("user_follows").delete().eq("followee_id", user_id).execute()
        except Exception as e:
            raise classify_backend_error(e)
