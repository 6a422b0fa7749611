"""
Unit tests for stack_api.modules.follows.service.
"""

from __future__ import annotations

import pytest

from stack_api.core.exceptions import InvalidDataError
from stack_api.modules.follows.service import FollowService


@pytest.fixture
def follows(fake_supabase):
    return FollowService(fake_supabase)


class TestFollow:
    def test_follow_and_counts(self, follows):
        follows.follow("alice", "bob")
        follows.follow("carol", "bob")
        assert follows.is_following("alice", "bob")
        assert not follows.is_following("bob", "alice")
        assert follows.count_followers("bob") == 2
        assert follows.count_following("alice") == 1
        assert sorted(follows.get_follower_ids("bob")) == ["alice", "carol"]
        assert follows.get_following_ids("carol") == ["bob"]

    def test_follow_twice_is_idempotent(self, follows, fake_supabase):
        first = follows.follow("alice", "bob")
        second = follows.follow("alice", "bob")
        assert first.id == second.id
        assert len(fake_supabase.rows("user_follows")) == 1

    def test_cannot_follow_self(self, follows):
        with pytest.raises(InvalidDataError):
            follows.follow("alice", "alice")

    def test_unfollow(self, follows):
        follows.follow("alice", "bob")
        assert follows.unfollow("alice", "bob") is True
        assert follows.unfollow("alice", "bob") is False
        assert follows.count_followers("bob") == 0


class TestPostNotifications:
    def test_off_by_default(self, follows):
        follows.follow("alice", "bob")
        assert follows.get_post_notifications("alice", "bob") is False

    def test_toggle(self, follows):
        follows.follow("alice", "bob")
        follows.follow("carol", "bob")
        follows.set_post_notifications("alice", "bob", True)
        assert follows.get_post_notifications("alice", "bob") is True
        assert follows.get_notification_subscriber_ids("bob") == ["alice"]

    def test_toggle_without_follow(self, follows):
        with pytest.raises(Exception) as exc_info:
            follows.set_post_notifications("alice", "bob", True)
        assert exc_info.value.status_code == 404


def test_remove_all_for_user(follows, fake_supabase):
    follows.follow("alice", "bob")
    follows.follow("bob", "carol")
    follows.follow("carol", "dave")
    follows.remove_all_for_user("bob")
    assert [(r["follower_id"], r["followee_id"]) for r in fake_supabase.rows("user_follows")] == [("carol", "dave")]
