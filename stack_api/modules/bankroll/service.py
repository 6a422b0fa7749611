from supabase import Client
from stack_api.modules.bankroll.schemas import (
    BankrollAdjustment, BankrollTransactionResponse, BankrollSummaryResponse
)
from stack_api.modules.challenges.service import ChallengeService
from stack_api.core.exceptions import NotFoundError, PermissionDeniedError, classify_backend_error
from typing import List, Optional
from datetime import datetime, timezone
from fastapi import HTTPException
import logging

logger = logging.getLogger(__name__)


class BankrollService:
    def __init__(self, supabase: Client):
        self.supabase = supabase
        self.challenges = ChallengeService(supabase)

    def get_summary(self, user_id: str) -> BankrollSummaryResponse:
        """Current bankroll; a zero summary is created on first access"""
        try:
            result = self.supabase.table("bankroll_summaries")\
                .select("*")\
                .eq("user_id", user_id)\
                .limit(1)\
                .execute()
            if result.data:
                return BankrollSummaryResponse(**result.data[0])
            created = self.supabase.table("bankroll_summaries").insert({
                "user_id": user_id,
                "current_total": 0,
                "last_updated": datetime.now(timezone.utc).isoformat()
            }).execute()
            return BankrollSummaryResponse(**created.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise classify_backend_error(e)

    def list_transactions(self, user_id: str, since: Optional[datetime] = None) -> List[BankrollTransactionResponse]:
        try:
            query = self.supabase.table("bankroll_transactions")\
                .select("*")\
                .eq("user_id", user_id)
            if since is not None:
                query = query.gte("timestamp", since.isoformat())
            result = query.order("timestamp", desc=True).execute()
            return [BankrollTransactionResponse(**row) for row in result.data or []]
        except Exception as e:
            raise classify_backend_error(e)

    def _set_total(self, user_id: str, total: float) -> BankrollSummaryResponse:
        result = self.supabase.table("bankroll_summaries")\
            .update({"current_total": total, "last_updated": datetime.now(timezone.utc).isoformat()})\
            .eq("user_id", user_id)\
            .execute()
        return BankrollSummaryResponse(**result.data[0])

    def _sync_challenges(self, user_id: str) -> None:
        try:
            self.challenges.apply_bankroll(user_id)
        except HTTPException as e:
            logger.error(f"Bankroll challenge update for {user_id} failed: {e.detail}")

    def adjust(self, user_id: str, adjustment: BankrollAdjustment) -> BankrollTransactionResponse:
        """Record a deposit (positive) or withdrawal (negative)"""
        summary = self.get_summary(user_id)
        try:
            result = self.supabase.table("bankroll_transactions").insert({
                "user_id": user_id,
                "amount": adjustment.amount,
                "note": adjustment.note,
                "timestamp": datetime.now(timezone.utc).isoformat()
            }).execute()
            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to record transaction")
            updated = self._set_total(user_id, summary.current_total + adjustment.amount)
        except HTTPException:
            raise
        except Exception as e:
            raise classify_backend_error(e)

        logger.info(f"Bankroll for {user_id} adjusted by {adjustment.amount} to {updated.current_total}")
        self._sync_challenges(user_id)
        return BankrollTransactionResponse(**result.data[0])

    def add(self, user_id: str, amount: float, note: Optional[str] = None) -> BankrollTransactionResponse:
        return self.adjust(user_id, BankrollAdjustment(amount=abs(amount), note=note))

    def subtract(self, user_id: str, amount: float, note: Optional[str] = None) -> BankrollTransactionResponse:
        return self.adjust(user_id, BankrollAdjustment(amount=-abs(amount), note=note))

    def delete_transaction(self, user_id: str, transaction_id: str) -> BankrollSummaryResponse:
        """Remove a transaction and reverse its effect on the total"""
        try:
            result = self.supabase.table("bankroll_transactions")\
                .select("*")\
                .eq("id", transaction_id)\
                .limit(1)\
                .execute()
        except Exception as e:
            raise classify_backend_error(e)
        if not result.data:
            raise NotFoundError("Transaction not found")
        transaction = BankrollTransactionResponse(**result.data[0])
        if transaction.user_id != user_id:
            raise PermissionDeniedError("You can only delete your own transactions")

        summary = self.get_summary(user_id)
        try:
            self.supabase.table("bankroll_transactions")\
                .delete()\
                .eq("id", transaction_id)\
                .execute()
            updated = self._set_total(user_id, summary.current_total - transaction.amount)
        except HTTPException:
            raise
        except Exception as e:
            raise classify_backend_error(e)
        self._sync_challenges(user_id)
        return updated
