from supabase import Client
from stack_api.modules.staking.schemas import (
    StakeCreate, StakeUpdate, StakeResponse, StakeStatus, INACTIVE_STATUSES
)
from stack_api.core.exceptions import (
    NotFoundError, PermissionDeniedError, InvalidDataError, ConflictError, classify_backend_error
)
from typing import List, Optional
from datetime import datetime, timezone
from fastapi import HTTPException
import logging

logger = logging.getLogger(__name__)

SETTLEABLE_STATUSES = (StakeStatus.ACTIVE, StakeStatus.AWAITING_SETTLEMENT)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class StakeService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def check_party(self, stake: StakeResponse, user_id: str) -> None:
        if user_id not in (stake.staker_user_id, stake.staked_player_user_id):
            raise PermissionDeniedError("You are not part of this stake")

    def _update(self, stake_id: str, update_data: dict) -> StakeResponse:
        update_data["last_updated_at"] = _now()
        result = self.supabase.table("stakes")\
            .update(update_data)\
            .eq("id", stake_id)\
            .execute()
        if not result.data:
            raise NotFoundError("Stake not found")
        return StakeResponse(**result.data[0])

    def get_stake(self, stake_id: str) -> StakeResponse:
        try:
            result = self.supabase.table("stakes")\
                .select("*")\
                .eq("id", stake_id)\
                .limit(1)\
                .execute()
            if not result.data:
                raise NotFoundError("Stake not found")
            return StakeResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise classify_backend_error(e)

    def add_stake(self, stake_data: StakeCreate, created_by: str) -> StakeResponse:
        """Record a stake on a finished session; it starts awaiting settlement"""
        if created_by not in (stake_data.staker_user_id, stake_data.staked_player_user_id):
            raise PermissionDeniedError("You can only record stakes you are part of")
        if stake_data.staker_user_id == stake_data.staked_player_user_id:
            raise InvalidDataError("A player cannot stake themselves")
        try:
            now = _now()
            result = self.supabase.table("stakes").insert({
                **stake_data.model_dump(mode="json"),
                "status": StakeStatus.AWAITING_SETTLEMENT.value,
                "proposed_at": now,
                "accepted_at": now,
                "last_updated_at": now
            }).execute()

            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to add stake")

            stake = StakeResponse(**result.data[0])
            logger.info(f"Stake {stake.id} added on session {stake.session_id}")
            self.sync_session_adjusted_profit(stake.session_id, stake.staked_player_user_id)
            return stake
        except HTTPException:
            raise
        except Exception as e:
            raise classify_backend_error(e)

    def list_stakes_for_user(self, user_id: str) -> List[StakeResponse]:
        """Stakes where the user is staker or player, newest first"""
        try:
            as_staker = self.supabase.table("stakes")\
                .select("*")\
                .eq("staker_user_id", user_id)\
                .execute()
            as_player = self.supabase.table("stakes")\
                .select("*")\
                .eq("staked_player_user_id", user_id)\
                .execute()
        except Exception as e:
            raise classify_backend_error(e)

        stakes = {}
        for row in (as_staker.data or []) + (as_player.data or []):
            stakes[row["id"]] = StakeResponse(**row)
        epoch = datetime.min.replace(tzinfo=timezone.utc)
        return sorted(
            stakes.values(),
            key=lambda s: s.proposed_at or epoch,
            reverse=True
        )

    def stakes_for_session(self, session_id: str) -> List[StakeResponse]:
        try:
            result = self.supabase.table("stakes")\
                .select("*")\
                .eq("session_id", session_id)\
                .execute()
            return [StakeResponse(**row) for row in result.data or []]
        except Exception as e:
            raise classify_backend_error(e)

    def update_stake(self, stake_id: str, user_id: str, stake_data: StakeUpdate) -> StakeResponse:
        stake = self.get_stake(stake_id)
        self.check_party(stake, user_id)
        if stake.status == StakeStatus.SETTLED:
            raise ConflictError("Settled stakes cannot be edited")
        update_data = {}
        if stake_data.stake_percentage is not None:
            update_data["stake_percentage"] = stake_data.stake_percentage
        if stake_data.markup is not None:
            update_data["markup"] = stake_data.markup
        if not update_data:
            return stake
        try:
            updated = self._update(stake_id, update_data)
        except HTTPException:
            raise
        except Exception as e:
            raise classify_backend_error(e)
        self.sync_session_adjusted_profit(updated.session_id, updated.staked_player_user_id)
        return updated

    def initiate_settlement(self, stake_id: str, user_id: str) -> StakeResponse:
        """One party marks the stake paid; the other must confirm"""
        stake = self.get_stake(stake_id)
        self.check_party(stake, user_id)
        if stake.status not in SETTLEABLE_STATUSES:
            raise ConflictError(f"Cannot settle a stake that is {stake.status.value}")
        try:
            return self._update(stake_id, {
                "status": StakeStatus.AWAITING_CONFIRMATION.value,
                "settlement_initiator_user_id": user_id
            })
        except HTTPException:
            raise
        except Exception as e:
            raise classify_backend_error(e)

    def confirm_settlement(self, stake_id: str, user_id: str) -> StakeResponse:
        stake = self.get_stake(stake_id)
        self.check_party(stake, user_id)
        if stake.status != StakeStatus.AWAITING_CONFIRMATION:
            raise ConflictError("Settlement has not been initiated")
        if stake.settlement_initiator_user_id == user_id:
            raise ConflictError("The other party must confirm the settlement")
        try:
            settled = self._update(stake_id, {
                "status": StakeStatus.SETTLED.value,
                "settlement_confirmer_user_id": user_id,
                "settled_at": _now()
            })
            logger.info(f"Stake {stake_id} settled")
            return settled
        except HTTPException:
            raise
        except Exception as e:
            raise classify_backend_error(e)

    def delete_stake(self, stake_id: str, user_id: str) -> bool:
        stake = self.get_stake(stake_id)
        self.check_party(stake, user_id)
        try:
            result = self.supabase.table("stakes")\
                .delete()\
                .eq("id", stake_id)\
                .execute()
        except Exception as e:
            raise classify_backend_error(e)
        self.sync_session_adjusted_profit(stake.session_id, stake.staked_player_user_id)
        return len(result.data or []) > 0

    def cancel_stakes_for_session(self, session_id: str) -> int:
        """Cancel every unsettled stake on a session (session deleted)"""
        cancelled = 0
        for stake in self.stakes_for_session(session_id):
            if stake.status == StakeStatus.SETTLED or stake.status in INACTIVE_STATUSES:
                continue
            try:
                self._update(stake.id, {"status": StakeStatus.CANCELLED.value})
            except HTTPException:
                raise
            except Exception as e:
                raise classify_backend_error(e)
            cancelled += 1
        return cancelled

    def calculate_adjusted_profit(self, profit: float, stakes: List[StakeResponse], player_user_id: str) -> float:
        """Session profit after what the player owes (or is owed by) stakers"""
        transferred = sum(
            s.amount_transferred_at_settlement
            for s in stakes
            if s.staked_player_user_id == player_user_id and s.status not in INACTIVE_STATUSES
        )
        return profit - transferred

    def sync_session_adjusted_profit(self, session_id: str, player_user_id: str) -> Optional[float]:
        """Recompute and store adjusted_profit on the player's session; None if the session is gone"""
        try:
            session_result = self.supabase.table("sessions")\
                .select("id, user_id, profit")\
                .eq("id", session_id)\
                .limit(1)\
                .execute()
            if not session_result.data:
                return None
            session = session_result.data[0]
            if session["user_id"] != player_user_id:
                return None
            adjusted = self.calculate_adjusted_profit(
                session["profit"], self.stakes_for_session(session_id), player_user_id
            )
            self.supabase.table("sessions")\
                .update({"adjusted_profit": adjusted})\
                .eq("id", session_id)\
                .execute()
            return adjusted
        except HTTPException:
            raise
        except Exception as e:
            raise classify_backend_error(e)
