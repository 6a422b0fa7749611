import re
import logging
from supabase import Client
from stack_api.modules.users.schemas import (
    ProfileCreate, ProfileUpdate, UserProfileResponse, UsernameAvailability
)
from stack_api.modules.users.avatar_storage import AvatarStorage
from stack_api.modules.follows.service import FollowService
from stack_api.core.exceptions import (
    ProfileNotFoundError, ConflictError, InvalidDataError, classify_backend_error
)
from stack_api.config.settings import settings
from typing import List, Optional
from datetime import datetime, timezone
from fastapi import HTTPException

logger = logging.getLogger(__name__)

MIN_USERNAME_LENGTH = 3
USERNAME_CHARS = re.compile(r"^[a-z0-9_.]+$")
# Keeps in_() filters well under URL length limits
ID_CHUNK_SIZE = 100


def escape_like(value: str) -> str:
    """Escape LIKE wildcards so user input matches literally"""
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def normalize_username(username: str) -> str:
    return (username or "").strip().lower()


def validate_username(username: str) -> Optional[str]:
    """Return the reason a username is unusable, or None"""
    if not username:
        return "Username is required"
    if len(username) < MIN_USERNAME_LENGTH:
        return f"Username must be at least {MIN_USERNAME_LENGTH} characters"
    if len(username) > settings.max_username_length:
        return f"Username must be at most {settings.max_username_length} characters"
    if not USERNAME_CHARS.match(username):
        return "Username may only contain letters, numbers, underscores and periods"
    return None


class UserService:
    def __init__(self, supabase: Client, storage: Optional[AvatarStorage] = None):
        self.supabase = supabase
        self.follows = FollowService(supabase)
        self._storage = storage

    @property
    def storage(self) -> AvatarStorage:
        if self._storage is None:
            self._storage = AvatarStorage()
        return self._storage

    def _with_counts(self, row: dict) -> UserProfileResponse:
        profile = UserProfileResponse(**row)
        profile.followers_count = self.follows.count_followers(profile.id)
        profile.following_count = self.follows.count_following(profile.id)
        return profile

    def profile_exists(self, user_id: str) -> bool:
        try:
            result = self.supabase.table("user_profiles")\
                .select("id")\
                .eq("id", user_id)\
                .limit(1)\
                .execute()
            return bool(result.data)
        except Exception as e:
            raise classify_backend_error(e)

    def get_profile(self, user_id: str) -> UserProfileResponse:
        """Profile with follower/following counts; ProfileNotFoundError when missing"""
        try:
            result = self.supabase.table("user_profiles")\
                .select("*")\
                .eq("id", user_id)\
                .limit(1)\
                .execute()

            if not result.data:
                raise ProfileNotFoundError()

            return self._with_counts(result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise classify_backend_error(e, not_found_detail="User profile not found")

    def get_profile_by_username(self, username: str) -> UserProfileResponse:
        try:
            result = self.supabase.table("user_profiles")\
                .select("*")\
                .eq("username", normalize_username(username))\
                .limit(1)\
                .execute()
            if not result.data:
                raise ProfileNotFoundError(f"No user named {username}")
            return UserProfileResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise classify_backend_error(e)

    def check_username(self, username: str, exclude_user_id: Optional[str] = None) -> UsernameAvailability:
        username = normalize_username(username)
        reason = validate_username(username)
        if reason:
            return UsernameAvailability(username=username, available=False, reason=reason)
        try:
            result = self.supabase.table("user_profiles")\
                .select("id")\
                .eq("username", username)\
                .execute()
        except Exception as e:
            raise classify_backend_error(e)
        taken = [row for row in result.data or [] if row["id"] != exclude_user_id]
        if taken:
            return UsernameAvailability(username=username, available=False, reason="Username is already taken")
        return UsernameAvailability(username=username, available=True)

    def create_profile(self, user_id: str, profile_data: ProfileCreate) -> UserProfileResponse:
        """Create the app profile for a signed-in principal"""
        availability = self.check_username(profile_data.username)
        if not availability.available:
            if availability.reason == "Username is already taken":
                raise ConflictError(availability.reason)
            raise InvalidDataError(availability.reason)
        if self.profile_exists(user_id):
            raise ConflictError("Profile already exists")
        try:
            result = self.supabase.table("user_profiles").insert({
                "id": user_id,
                "username": availability.username,
                "display_name": profile_data.display_name,
                "bio": profile_data.bio,
                "location": profile_data.location,
                "favorite_game": profile_data.favorite_game,
                "favorite_games": profile_data.favorite_games,
                "created_at": datetime.now(timezone.utc).isoformat()
            }).execute()

            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to create profile")

            logger.info(f"Created profile {availability.username} for {user_id}")
            return UserProfileResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise classify_backend_error(e)

    def update_profile(self, user_id: str, profile_data: ProfileUpdate) -> UserProfileResponse:
        update_data = {"updated_at": datetime.now(timezone.utc).isoformat()}
        if profile_data.username is not None:
            availability = self.check_username(profile_data.username, exclude_user_id=user_id)
            if not availability.available:
                raise ConflictError(availability.reason)
            update_data["username"] = availability.username
        for field in ("display_name", "bio", "location", "favorite_game", "favorite_games"):
            value = getattr(profile_data, field)
            if value is not None:
                update_data[field] = value
        try:
            result = self.supabase.table("user_profiles")\
                .update(update_data)\
                .eq("id", user_id)\
                .execute()

            if not result.data:
                raise ProfileNotFoundError()

            return self._with_counts(result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise classify_backend_error(e)

    def search_users(self, query: str, current_user_id: Optional[str] = None, limit: Optional[int] = None) -> List[UserProfileResponse]:
        """Prefix search over username and display name; exact matches first"""
        query = (query or "").strip().lower()
        if not query:
            return []
        limit = limit or settings.username_search_limit
        pattern = f"{escape_like(query)}%"
        try:
            by_username = self.supabase.table("user_profiles")\
                .select("*")\
                .ilike("username", pattern)\
                .limit(limit)\
                .execute()
            by_display_name = self.supabase.table("user_profiles")\
                .select("*")\
                .ilike("display_name", pattern)\
                .limit(limit)\
                .execute()
        except Exception as e:
            raise classify_backend_error(e)

        found = {}
        for row in (by_username.data or []) + (by_display_name.data or []):
            if row["id"] != current_user_id:
                found[row["id"]] = UserProfileResponse(**row)

        def rank(user: UserProfileResponse):
            username = user.username.lower()
            display_name = (user.display_name or "").lower()
            return (username != query, display_name != query, username)

        return sorted(found.values(), key=rank)[:limit]

    def get_profiles_by_ids(self, user_ids: List[str]) -> List[UserProfileResponse]:
        unique_ids = list(dict.fromkeys(user_ids))
        profiles = []
        try:
            for start in range(0, len(unique_ids), ID_CHUNK_SIZE):
                chunk = unique_ids[start:start + ID_CHUNK_SIZE]
                result = self.supabase.table("user_profiles")\
                    .select("*")\
                    .in_("id", chunk)\
                    .execute()
                profiles.extend(UserProfileResponse(**row) for row in result.data or [])
        except Exception as e:
            raise classify_backend_error(e)
        return profiles

    def upload_avatar(self, user_id: str, content: bytes, content_type: str = "image/jpeg") -> UserProfileResponse:
        if not content:
            raise InvalidDataError("Image is empty")
        url = self.storage.upload_avatar(user_id, content, content_type)
        try:
            result = self.supabase.table("user_profiles")\
                .update({"avatar_url": url, "updated_at": datetime.now(timezone.utc).isoformat()})\
                .eq("id", user_id)\
                .execute()
            if not result.data:
                raise ProfileNotFoundError()
            return UserProfileResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise classify_backend_error(e)

    def delete_avatar(self, user_id: str) -> bool:
        self.storage.delete_avatar(user_id)
        try:
            self.supabase.table("user_profiles")\
                .update({"avatar_url": None})\
                .eq("id", user_id)\
                .execute()
            return True
        except Exception as e:
            raise classify_backend_error(e)

    def delete_profile(self, user_id: str) -> bool:
        """Delete the profile row and every follow edge touching it"""
        try:
            self.follows.remove_all_for_user(user_id)
            result = self.supabase.table("user_profiles")\
                .delete()\
                .eq("id", user_id)\
                .execute()
            logger.info(f"Deleted profile {user_id}")
            return len(result.data or []) > 0
        except HTTPException:
            raise
        except Exception as e:
            raise classify_backend_error(e)
