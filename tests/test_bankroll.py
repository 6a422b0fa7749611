"""
Unit tests for stack_api.modules.bankroll.service.

Tests cover:
  • Summary creation, adjustments and transaction reversal
  • Bankroll challenges tracking summary plus session profit
  • Challenge hook failures never undo a recorded transaction
"""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest
from fastapi import HTTPException
from pydantic import ValidationError

from stack_api.core.exceptions import NotFoundError, PermissionDeniedError
from stack_api.modules.bankroll.schemas import BankrollAdjustment
from stack_api.modules.bankroll.service import BankrollService
from stack_api.modules.challenges.schemas import ChallengeCreate, ChallengeStatus, ChallengeType


@pytest.fixture
def bankroll(fake_supabase):
    return BankrollService(fake_supabase)


class TestSummary:
    def test_created_on_first_access(self, bankroll, fake_supabase):
        summary = bankroll.get_summary("u1")
        assert summary.current_total == 0
        assert len(fake_supabase.rows("bankroll_summaries")) == 1
        bankroll.get_summary("u1")
        assert len(fake_supabase.rows("bankroll_summaries")) == 1


class TestAdjust:
    def test_add_and_subtract(self, bankroll):
        bankroll.add("u1", 500, note="deposit")
        bankroll.subtract("u1", 200)
        assert bankroll.get_summary("u1").current_total == 300
        amounts = sorted(t.amount for t in bankroll.list_transactions("u1"))
        assert amounts == [-200, 500]

    def test_subtract_ignores_sign(self, bankroll):
        bankroll.subtract("u1", -50)
        assert bankroll.get_summary("u1").current_total == -50

    def test_zero_rejected(self):
        with pytest.raises(ValidationError):
            BankrollAdjustment(amount=0)

    def test_adjust_drives_bankroll_challenge(self, bankroll):
        bankroll.challenges.create_challenge("u1", ChallengeCreate(
            type=ChallengeType.BANKROLL, title="Build", target_value=1000, starting_bankroll=0
        ))
        bankroll.add("u1", 1200)
        [challenge] = bankroll.challenges.list_challenges("u1")
        assert challenge.status == ChallengeStatus.COMPLETED

    def test_challenge_counts_session_profit(self, bankroll, fake_supabase):
        fake_supabase.seed("sessions", {"user_id": "u1", "profit": 1500.0})
        created = bankroll.challenges.create_challenge("u1", ChallengeCreate(
            type=ChallengeType.BANKROLL, title="Build", target_value=5000, starting_bankroll=1500
        ))
        bankroll.add("u1", 100)
        [challenge] = bankroll.challenges.list_challenges("u1")
        assert challenge.id == created.id
        assert challenge.current_value == pytest.approx(1600)

    def test_challenge_failure_keeps_the_deposit(self, bankroll, caplog):
        bankroll.challenges.apply_bankroll = MagicMock(side_effect=HTTPException(status_code=500, detail="boom"))
        transaction = bankroll.add("u1", 100)
        assert transaction.amount == 100
        assert bankroll.get_summary("u1").current_total == 100
        assert len(bankroll.list_transactions("u1")) == 1
        assert "Bankroll challenge update" in caplog.text

        bankroll.delete_transaction("u1", transaction.id)
        assert bankroll.get_summary("u1").current_total == 0


class TestDeleteTransaction:
    def test_reverses_amount(self, bankroll):
        bankroll.add("u1", 500)
        withdrawal = bankroll.subtract("u1", 100)
        summary = bankroll.delete_transaction("u1", withdrawal.id)
        assert summary.current_total == 500
        assert len(bankroll.list_transactions("u1")) == 1

    def test_missing(self, bankroll):
        with pytest.raises(NotFoundError):
            bankroll.delete_transaction("u1", "nope")

    def test_other_users_transaction(self, bankroll):
        deposit = bankroll.add("u1", 500)
        with pytest.raises(PermissionDeniedError):
            bankroll.delete_transaction("u2", deposit.id)
