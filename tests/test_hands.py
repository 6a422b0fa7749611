"""
Unit tests for stack_api.modules.hands.service.
"""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest
from fastapi import HTTPException

from stack_api.core.exceptions import NotFoundError, PermissionDeniedError
from stack_api.modules.challenges.schemas import ChallengeCreate, ChallengeStatus, ChallengeType
from stack_api.modules.hands.schemas import HandCreate
from stack_api.modules.hands.service import HandService, hero_pnl_from_hand

HAND = {
    "game": {"small_blind": 1, "big_blind": 2},
    "players": [{"name": "Hero", "seat": 1, "is_hero": True}],
    "pot": {"amount": 120, "hero_pnl": 58.5},
}


@pytest.fixture
def hands(fake_supabase):
    return HandService(fake_supabase)


class TestHeroPnl:
    def test_read_from_pot(self):
        assert hero_pnl_from_hand(HAND) == 58.5

    @pytest.mark.parametrize("hand", [{}, {"pot": None}, {"pot": {"hero_pnl": "n/a"}}])
    def test_missing_or_bad(self, hand):
        assert hero_pnl_from_hand(hand) == 0


class TestSaveHand:
    def test_save_derives_pnl(self, hands):
        saved = hands.save_hand("u1", HandCreate(hand=HAND, session_id="s1"))
        assert saved.hero_pnl == 58.5
        assert saved.session_id == "s1"

    def test_explicit_pnl_wins(self, hands):
        assert hands.save_hand("u1", HandCreate(hand=HAND, hero_pnl=-10)).hero_pnl == -10

    def test_counts_toward_hand_challenge(self, hands):
        hands.challenges.create_challenge("u1", ChallengeCreate(type=ChallengeType.HANDS, title="h", target_value=1))
        hands.save_hand("u1", HandCreate(hand=HAND))
        [challenge] = hands.challenges.list_challenges("u1")
        assert challenge.status == ChallengeStatus.COMPLETED

    def test_challenge_failure_is_logged(self, hands, caplog):
        hands.challenges.apply_hand_logged = MagicMock(side_effect=HTTPException(status_code=500, detail="boom"))
        saved = hands.save_hand("u1", HandCreate(hand=HAND))
        assert saved.id
        assert "Failed to update hand challenges" in caplog.text


class TestReadAndDelete:
    def test_list_and_session_filter(self, hands):
        hands.save_hand("u1", HandCreate(hand=HAND, session_id="s1"))
        hands.save_hand("u1", HandCreate(hand=HAND))
        hands.save_hand("u2", HandCreate(hand=HAND, session_id="s1"))
        assert len(hands.list_hands("u1")) == 2
        assert len(hands.list_hands("u1", limit=1)) == 1
        assert len(hands.hands_for_session("s1", "u1")) == 1

    def test_shared_hand_readable_by_anyone(self, hands):
        saved = hands.save_hand("u1", HandCreate(hand=HAND))
        assert hands.get_hand(saved.id).user_id == "u1"
        with pytest.raises(NotFoundError):
            hands.get_hand(saved.id, owner_user_id="u2")

    def test_delete_own_only(self, hands, fake_supabase):
        saved = hands.save_hand("u1", HandCreate(hand=HAND))
        with pytest.raises(PermissionDeniedError):
            hands.delete_hand(saved.id, "u2")
        assert hands.delete_hand(saved.id, "u1") is True
        assert fake_supabase.rows("saved_hands") == []
