from supabase import Client
from stack_api.modules.hands.schemas import HandCreate, SavedHandResponse
from stack_api.modules.challenges.service import ChallengeService
from stack_api.core.exceptions import NotFoundError, PermissionDeniedError, classify_backend_error
from typing import List, Optional, Dict, Any
from datetime import datetime, timezone
from fastapi import HTTPException
import logging

logger = logging.getLogger(__name__)


def hero_pnl_from_hand(hand: Dict[str, Any]) -> float:
    pot = hand.get("pot") or {}
    try:
        return float(pot.get("hero_pnl") or 0)
    except (TypeError, ValueError):
        return 0.0


class HandService:
    def __init__(self, supabase: Client):
        self.supabase = supabase
        self.challenges = ChallengeService(supabase)

    def save_hand(self, user_id: str, hand_data: HandCreate) -> SavedHandResponse:
        """Store a parsed hand and count it toward active hand challenges"""
        hero_pnl = hand_data.hero_pnl if hand_data.hero_pnl is not None else hero_pnl_from_hand(hand_data.hand)
        try:
            result = self.supabase.table("saved_hands").insert({
                "user_id": user_id,
                "hand": hand_data.hand,
                "session_id": hand_data.session_id,
                "hero_pnl": hero_pnl,
                "timestamp": datetime.now(timezone.utc).isoformat()
            }).execute()
            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to save hand")
        except HTTPException:
            raise
        except Exception as e:
            raise classify_backend_error(e)

        saved = SavedHandResponse(**result.data[0])
        try:
            self.challenges.apply_hand_logged(user_id, saved.id)
        except HTTPException as e:
            logger.error(f"Failed to update hand challenges for {user_id}: {e.detail}")
        return saved

    def list_hands(self, user_id: str, limit: Optional[int] = None) -> List[SavedHandResponse]:
        try:
            query = self.supabase.table("saved_hands")\
                .select("*")\
                .eq("user_id", user_id)\
                .order("timestamp", desc=True)
            if limit:
                query = query.limit(limit)
            result = query.execute()
            return [SavedHandResponse(**row) for row in result.data or []]
        except Exception as e:
            raise classify_backend_error(e)

    def get_hand(self, hand_id: str, owner_user_id: Optional[str] = None) -> SavedHandResponse:
        """Any user may open a shared hand; ``owner_user_id`` narrows the lookup"""
        try:
            query = self.supabase.table("saved_hands")\
                .select("*")\
                .eq("id", hand_id)
            if owner_user_id:
                query = query.eq("user_id", owner_user_id)
            result = query.limit(1).execute()
        except Exception as e:
            raise classify_backend_error(e)
        if not result.data:
            raise NotFoundError("Hand not found")
        return SavedHandResponse(**result.data[0])

    def hands_for_session(self, session_id: str, user_id: str) -> List[SavedHandResponse]:
        try:
            result = self.supabase.table("saved_hands")\
                .select("*")\
                .eq("session_id", session_id)\
                .eq("user_id", user_id)\
                .order("timestamp", desc=True)\
                .execute()
            return [SavedHandResponse(**row) for row in result.data or []]
        except Exception as e:
            raise classify_backend_error(e)

    def delete_hand(self, hand_id: str, user_id: str) -> bool:
        hand = self.get_hand(hand_id)
        if hand.user_id != user_id:
            raise PermissionDeniedError("You can only delete your own hands")
        try:
            result = self.supabase.table("saved_hands")\
                .delete()\
                .eq("id", hand_id)\
                .execute()
            return len(result.data or []) > 0
        except Exception as e:
            raise classify_backend_error(e)
