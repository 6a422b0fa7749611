from supabase import Client
from stack_api.modules.challenges.schemas import (
    ChallengeCreate, ChallengeResponse, ChallengeProgressUpdate, ChallengeProgressResponse,
    ChallengeType, ChallengeStatus
)
from stack_api.core.exceptions import NotFoundError, PermissionDeniedError, ConflictError, classify_backend_error
from stack_api.database.supabase_client import fetch_all
from typing import List, Optional, Any
from datetime import datetime, timezone
from fastapi import HTTPException
import logging

logger = logging.getLogger(__name__)


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def reached_target(challenge: ChallengeResponse, value: float) -> bool:
    """Whether a new current value completes the challenge"""
    if challenge.type == ChallengeType.BANKROLL:
        starting = challenge.starting_bankroll or 0.0
        # Creating a challenge at or above the target is not progress
        return value >= challenge.target_value and value > starting
    if challenge.type == ChallengeType.HANDS:
        return value >= (challenge.target_hand_count or challenge.target_value)
    if challenge.target_hours:
        return challenge.total_hours_played >= challenge.target_hours
    return challenge.valid_sessions_count >= (challenge.target_session_count or challenge.target_value)


def fold_session(challenge: ChallengeResponse, session: Any) -> Optional[dict]:
    """Fold a finished session into a session challenge; None when it does not count"""
    if challenge.type != ChallengeType.SESSION or challenge.status != ChallengeStatus.ACTIVE:
        return None
    if _as_utc(session.start_date) < _as_utc(challenge.start_date):
        return None
    if session.id in challenge.counted_session_ids:
        return None

    hours = session.hours_played or 0.0
    qualifies = challenge.min_hours_per_session is None or hours >= challenge.min_hours_per_session
    challenge.counted_session_ids = challenge.counted_session_ids + [session.id]
    challenge.current_session_count += 1
    challenge.total_hours_played += hours
    if qualifies:
        challenge.valid_sessions_count += 1
    challenge.current_value = challenge.total_hours_played if challenge.target_hours else challenge.valid_sessions_count

    update = {
        "counted_session_ids": challenge.counted_session_ids,
        "current_session_count": challenge.current_session_count,
        "total_hours_played": challenge.total_hours_played,
        "valid_sessions_count": challenge.valid_sessions_count,
        "current_value": challenge.current_value,
    }
    if reached_target(challenge, challenge.current_value):
        update["status"] = ChallengeStatus.COMPLETED.value
        update["completed_at"] = datetime.now(timezone.utc).isoformat()
    return update


class ChallengeService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def _get_owned(self, challenge_id: str, user_id: str) -> ChallengeResponse:
        try:
            result = self.supabase.table("challenges")\
                .select("*")\
                .eq("id", challenge_id)\
                .limit(1)\
                .execute()
        except Exception as e:
            raise classify_backend_error(e)
        if not result.data:
            raise NotFoundError("Challenge not found")
        challenge = ChallengeResponse(**result.data[0])
        if challenge.user_id != user_id:
            raise PermissionDeniedError("You can only change your own challenges")
        return challenge

    def _save(self, challenge_id: str, update_data: dict) -> ChallengeResponse:
        update_data["last_updated"] = datetime.now(timezone.utc).isoformat()
        result = self.supabase.table("challenges")\
            .update(update_data)\
            .eq("id", challenge_id)\
            .execute()
        if not result.data:
            raise NotFoundError("Challenge not found")
        return ChallengeResponse(**result.data[0])

    def _log_progress(self, challenge: ChallengeResponse, value: float, trigger_event: str, related_entity_id: Optional[str] = None) -> None:
        self.supabase.table("challenge_progress").insert({
            "challenge_id": challenge.id,
            "user_id": challenge.user_id,
            "progress_value": value,
            "trigger_event": trigger_event,
            "related_entity_id": related_entity_id,
            "timestamp": datetime.now(timezone.utc).isoformat()
        }).execute()

    def create_challenge(self, user_id: str, challenge_data: ChallengeCreate) -> ChallengeResponse:
        now = datetime.now(timezone.utc).isoformat()
        data = challenge_data.model_dump(mode="json")
        data.update({
            "user_id": user_id,
            "current_value": challenge_data.starting_bankroll if challenge_data.type == ChallengeType.BANKROLL else 0,
            "status": ChallengeStatus.ACTIVE.value,
            "start_date": now,
            "created_at": now,
            "last_updated": now,
            "current_session_count": 0,
            "valid_sessions_count": 0,
            "total_hours_played": 0,
            "counted_session_ids": []
        })
        try:
            result = self.supabase.table("challenges").insert(data).execute()
            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to create challenge")
            challenge = ChallengeResponse(**result.data[0])
            logger.info(f"Challenge {challenge.id} ({challenge.type.value}) created for {user_id}")
            return challenge
        except HTTPException:
            raise
        except Exception as e:
            raise classify_backend_error(e)

    def list_challenges(self, user_id: str, status: Optional[ChallengeStatus] = None) -> List[ChallengeResponse]:
        try:
            query = self.supabase.table("challenges")\
                .select("*")\
                .eq("user_id", user_id)
            if status is not None:
                query = query.eq("status", status.value)
            result = query.order("created_at", desc=True).execute()
            return [ChallengeResponse(**row) for row in result.data or []]
        except Exception as e:
            raise classify_backend_error(e)

    def list_public_challenges(self, user_id: str) -> List[ChallengeResponse]:
        try:
            result = self.supabase.table("challenges")\
                .select("*")\
                .eq("user_id", user_id)\
                .eq("is_public", True)\
                .order("created_at", desc=True)\
                .execute()
            return [ChallengeResponse(**row) for row in result.data or []]
        except Exception as e:
            raise classify_backend_error(e)

    def update_progress(self, challenge_id: str, user_id: str, progress: ChallengeProgressUpdate) -> ChallengeResponse:
        challenge = self._get_owned(challenge_id, user_id)
        if challenge.status != ChallengeStatus.ACTIVE:
            raise ConflictError(f"Challenge is {challenge.status.value}")
        update_data = {"current_value": progress.current_value}
        if reached_target(challenge, progress.current_value):
            update_data["status"] = ChallengeStatus.COMPLETED.value
            update_data["completed_at"] = datetime.now(timezone.utc).isoformat()
        try:
            updated = self._save(challenge_id, update_data)
            self._log_progress(updated, progress.current_value, progress.trigger_event, progress.related_entity_id)
        except HTTPException:
            raise
        except Exception as e:
            raise classify_backend_error(e)
        if updated.status == ChallengeStatus.COMPLETED:
            logger.info(f"Challenge {challenge_id} completed")
        return updated

    def abandon(self, challenge_id: str, user_id: str) -> ChallengeResponse:
        challenge = self._get_owned(challenge_id, user_id)
        if challenge.status != ChallengeStatus.ACTIVE:
            raise ConflictError(f"Challenge is {challenge.status.value}")
        try:
            return self._save(challenge_id, {"status": ChallengeStatus.ABANDONED.value})
        except HTTPException:
            raise
        except Exception as e:
            raise classify_backend_error(e)

    def delete_challenge(self, challenge_id: str, user_id: str) -> bool:
        self._get_owned(challenge_id, user_id)
        try:
            self.supabase.table("challenge_progress").delete().eq("challenge_id", challenge_id).execute()
            result = self.supabase.table("challenges").delete().eq("id", challenge_id).execute()
            return len(result.data or []) > 0
        except Exception as e:
            raise classify_backend_error(e)

    def get_progress_log(self, challenge_id: str, user_id: str) -> List[ChallengeProgressResponse]:
        self._get_owned(challenge_id, user_id)
        try:
            result = self.supabase.table("challenge_progress")\
                .select("*")\
                .eq("challenge_id", challenge_id)\
                .order("timestamp", desc=True)\
                .execute()
            return [ChallengeProgressResponse(**row) for row in result.data or []]
        except Exception as e:
            raise classify_backend_error(e)

    def expire_overdue(self, user_id: str, now: Optional[datetime] = None) -> int:
        """Fail active challenges whose end date has passed"""
        now = _as_utc(now or datetime.now(timezone.utc))
        expired = 0
        for challenge in self.list_challenges(user_id, ChallengeStatus.ACTIVE):
            if challenge.end_date and _as_utc(challenge.end_date) < now:
                try:
                    self._save(challenge.id, {"status": ChallengeStatus.FAILED.value})
                except HTTPException:
                    raise
                except Exception as e:
                    raise classify_backend_error(e)
                expired += 1
        return expired

    # Event hooks

    def apply_session(self, user_id: str, session: Any) -> List[ChallengeResponse]:
        """Count a finished session toward the user's active session challenges"""
        updated = []
        for challenge in self.list_challenges(user_id, ChallengeStatus.ACTIVE):
            update_data = fold_session(challenge, session)
            if update_data is None:
                continue
            try:
                saved = self._save(challenge.id, update_data)
                self._log_progress(saved, saved.current_value, "session_completed", session.id)
            except HTTPException:
                raise
            except Exception as e:
                raise classify_backend_error(e)
            updated.append(saved)
        return updated

    def apply_hand_logged(self, user_id: str, hand_id: str) -> List[ChallengeResponse]:
        updated = []
        for challenge in self.list_challenges(user_id, ChallengeStatus.ACTIVE):
            if challenge.type != ChallengeType.HANDS:
                continue
            value = challenge.current_value + 1
            update_data = {"current_value": value}
            if reached_target(challenge, value):
                update_data["status"] = ChallengeStatus.COMPLETED.value
                update_data["completed_at"] = datetime.now(timezone.utc).isoformat()
            try:
                saved = self._save(challenge.id, update_data)
                self._log_progress(saved, value, "hand_logged", hand_id)
            except HTTPException:
                raise
            except Exception as e:
                raise classify_backend_error(e)
            updated.append(saved)
        return updated

    def current_bankroll(self, user_id: str) -> float:
        """Bankroll summary total plus the raw profit of every session"""
        try:
            summary = self.supabase.table("bankroll_summaries")\
                .select("current_total")\
                .eq("user_id", user_id)\
                .limit(1)\
                .execute()
            session_rows = fetch_all(
                lambda: self.supabase.table("sessions")
                .select("id, profit")
                .eq("user_id", user_id)
                .order("id")
            )
        except Exception as e:
            raise classify_backend_error(e)
        total = (summary.data[0].get("current_total") or 0.0) if summary.data else 0.0
        return total + sum(row.get("profit") or 0.0 for row in session_rows)

    def apply_bankroll(self, user_id: str, bankroll_total: Optional[float] = None, trigger_event: str = "bankroll_updated") -> List[ChallengeResponse]:
        """Move active bankroll challenges to the current bankroll"""
        challenges = [
            c for c in self.list_challenges(user_id, ChallengeStatus.ACTIVE)
            if c.type == ChallengeType.BANKROLL
        ]
        if not challenges:
            return []
        if bankroll_total is None:
            bankroll_total = self.current_bankroll(user_id)
        updated = []
        for challenge in challenges:
            if abs(challenge.current_value - bankroll_total) < 0.01:
                continue
            update_data = {"current_value": bankroll_total}
            if reached_target(challenge, bankroll_total):
                update_data["status"] = ChallengeStatus.COMPLETED.value
                update_data["completed_at"] = datetime.now(timezone.utc).isoformat()
            try:
                saved = self._save(challenge.id, update_data)
                self._log_progress(saved, bankroll_total, trigger_event)
            except HTTPException:
                raise
            except Exception as e:
                raise classify_backend_error(e)
            updated.append(saved)
        return updated
