from supabase import Client
from stack_api.modules.sessions.schemas import SessionCreate, SessionUpdate, SessionResponse
from stack_api.modules.staking.service import StakeService
from stack_api.modules.challenges.service import ChallengeService
from stack_api.core.exceptions import NotFoundError, PermissionDeniedError, InvalidDataError, classify_backend_error
from typing import List, Optional, Dict
from datetime import datetime, timezone
from fastapi import HTTPException
import logging

logger = logging.getLogger(__name__)


def hours_between(start: datetime, end: datetime) -> float:
    return max((end - start).total_seconds() / 3600.0, 0.0)


def duplicate_key(session: SessionResponse) -> str:
    """Sessions with the same buy-in, cashout and start minute are duplicates"""
    start_minute = session.start_date.replace(second=0, microsecond=0)
    return f"{session.buy_in}|{session.cashout}|{start_minute.timestamp()}"


def find_duplicates(sessions: List[SessionResponse]) -> List[SessionResponse]:
    """Every session except the earliest-created one in each duplicate group"""
    groups: Dict[str, List[SessionResponse]] = {}
    for session in sessions:
        groups.setdefault(duplicate_key(session), []).append(session)
    epoch = datetime.min.replace(tzinfo=timezone.utc)
    to_remove = []
    for group in groups.values():
        if len(group) < 2:
            continue
        ordered = sorted(group, key=lambda s: s.created_at or epoch)
        to_remove.extend(ordered[1:])
    return to_remove


class SessionService:
    def __init__(self, supabase: Client):
        self.supabase = supabase
        self.stakes = StakeService(supabase)
        self.challenges = ChallengeService(supabase)

    def _sync_bankroll_challenges(self, user_id: str) -> None:
        try:
            self.challenges.apply_bankroll(user_id, trigger_event="session_update")
        except HTTPException as e:
            logger.error(f"Bankroll challenge update for {user_id} failed: {e.detail}")

    def list_sessions(self, user_id: str, since: Optional[datetime] = None, limit: Optional[int] = None) -> List[SessionResponse]:
        """User's sessions, most recent start first"""
        try:
            query = self.supabase.table("sessions")\
                .select("*")\
                .eq("user_id", user_id)
            if since is not None:
                query = query.gte("start_date", since.isoformat())
            query = query.order("start_date", desc=True)
            if limit:
                query = query.limit(limit)
            result = query.execute()
            return [SessionResponse(**row) for row in result.data or []]
        except Exception as e:
            raise classify_backend_error(e)

    def get_session(self, session_id: str, user_id: str) -> SessionResponse:
        try:
            result = self.supabase.table("sessions")\
                .select("*")\
                .eq("id", session_id)\
                .limit(1)\
                .execute()
            if not result.data:
                raise NotFoundError("Session not found")
            session = SessionResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise classify_backend_error(e)
        if session.user_id != user_id:
            raise PermissionDeniedError("You can only access your own sessions")
        return session

    def create_session(self, user_id: str, session_data: SessionCreate) -> SessionResponse:
        if session_data.end_time < session_data.start_time:
            raise InvalidDataError("Session cannot end before it starts")
        data = session_data.model_dump(mode="json")
        if session_data.hours_played is None:
            data["hours_played"] = hours_between(session_data.start_time, session_data.end_time)
        profit = session_data.profit
        if profit is None:
            profit = session_data.cashout - session_data.buy_in
        data.update({
            "user_id": user_id,
            "profit": profit,
            "adjusted_profit": profit,
            "created_at": datetime.now(timezone.utc).isoformat()
        })
        try:
            result = self.supabase.table("sessions").insert(data).execute()
            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to create session")
            session = SessionResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise classify_backend_error(e)

        logger.info(f"Session {session.id} created for {user_id} (profit {profit})")
        # Stakes can be attached before the session row exists (live sessions)
        if self.stakes.stakes_for_session(session.id):
            adjusted = self.stakes.sync_session_adjusted_profit(session.id, user_id)
            if adjusted is not None:
                session.adjusted_profit = adjusted
        try:
            self.challenges.apply_session(user_id, session)
        except HTTPException as e:
            logger.error(f"Challenge update for session {session.id} failed: {e.detail}")
        self._sync_bankroll_challenges(user_id)
        return session

    def update_session(self, session_id: str, user_id: str, session_data: SessionUpdate) -> SessionResponse:
        current = self.get_session(session_id, user_id)
        update_data = session_data.model_dump(mode="json", exclude_none=True)
        if not update_data:
            return current

        buy_in = session_data.buy_in if session_data.buy_in is not None else current.buy_in
        cashout = session_data.cashout if session_data.cashout is not None else current.cashout
        profit_changed = session_data.buy_in is not None or session_data.cashout is not None
        if profit_changed:
            update_data["profit"] = cashout - buy_in
        if session_data.hours_played is None and (session_data.start_time or session_data.end_time):
            update_data["hours_played"] = hours_between(
                session_data.start_time or current.start_time,
                session_data.end_time or current.end_time
            )
        try:
            result = self.supabase.table("sessions")\
                .update(update_data)\
                .eq("id", session_id)\
                .execute()
            if not result.data:
                raise NotFoundError("Session not found")
            session = SessionResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise classify_backend_error(e)

        if profit_changed:
            adjusted = self.stakes.sync_session_adjusted_profit(session_id, user_id)
            if adjusted is not None:
                session.adjusted_profit = adjusted
            self._sync_bankroll_challenges(user_id)
        return session

    def delete_session(self, session_id: str, user_id: str) -> bool:
        self.get_session(session_id, user_id)
        cancelled = self.stakes.cancel_stakes_for_session(session_id)
        if cancelled:
            logger.info(f"Cancelled {cancelled} stake(s) on deleted session {session_id}")
        try:
            result = self.supabase.table("sessions")\
                .delete()\
                .eq("id", session_id)\
                .execute()
        except Exception as e:
            raise classify_backend_error(e)
        self._sync_bankroll_challenges(user_id)
        return len(result.data or []) > 0

    def recalculate_adjusted_profit(self, session_id: str, user_id: str) -> SessionResponse:
        session = self.get_session(session_id, user_id)
        adjusted = self.stakes.sync_session_adjusted_profit(session_id, user_id)
        if adjusted is not None:
            session.adjusted_profit = adjusted
        return session

    def ensure_adjusted_profits(self, user_id: str) -> int:
        """Backfill adjusted_profit on sessions that predate staking adjustments"""
        updated = 0
        staked_session_ids = {
            s.session_id for s in self.stakes.list_stakes_for_user(user_id)
            if s.staked_player_user_id == user_id
        }
        for session in self.list_sessions(user_id):
            if session.id in staked_session_ids:
                self.stakes.sync_session_adjusted_profit(session.id, user_id)
                updated += 1
            elif session.adjusted_profit is None:
                try:
                    self.supabase.table("sessions")\
                        .update({"adjusted_profit": session.profit})\
                        .eq("id", session.id)\
                        .execute()
                except Exception as e:
                    raise classify_backend_error(e)
                updated += 1
        return updated

    def remove_duplicate_sessions(self, user_id: str) -> int:
        """Delete duplicated sessions, keeping the earliest created of each group"""
        duplicates = find_duplicates(self.list_sessions(user_id))
        if not duplicates:
            return 0
        try:
            self.supabase.table("sessions")\
                .delete()\
                .in_("id", [s.id for s in duplicates])\
                .execute()
        except Exception as e:
            raise classify_backend_error(e)
        logger.info(f"Removed {len(duplicates)} duplicate session(s) for {user_id}")
        self._sync_bankroll_challenges(user_id)
        return len(duplicates)
