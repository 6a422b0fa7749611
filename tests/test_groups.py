"""
Unit tests for stack_api.modules.groups.service.

Tests cover:
  • Group creation and ownership
  • Invite rules (self, existing member, duplicate pending) and responses
  • Leaving and deleting
  • Leaderboard ranking by hours and by adjusted profit, read in pages
  • Chat messages, previews and paging
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from stack_api.config.settings import settings
from stack_api.core.exceptions import (
    ConflictError,
    InvalidDataError,
    NotFoundError,
    PermissionDeniedError,
)
from stack_api.modules.groups.schemas import (
    GroupCreate,
    InviteStatus,
    LeaderboardType,
    MemberRole,
    MessageType,
)
from stack_api.modules.groups.service import HAND_MESSAGE_PREVIEW, GroupService

T0 = datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def groups(fake_supabase):
    fake_supabase.seed(
        "user_profiles",
        {"id": "alice", "username": "alice", "display_name": "Alice"},
        {"id": "bob", "username": "bob"},
        {"id": "carol", "username": "carol"},
    )
    return GroupService(fake_supabase)


@pytest.fixture
def group(groups):
    return groups.create_group(GroupCreate(name="Tuesday Game"), "alice")


def join(groups, group_id, username):
    invite = groups.invite_user(group_id, username, "alice")
    return groups.accept_invite(invite.id, invite.invitee_id)


# ---------------------------------------------------------------------------
# Creation and invites
# ---------------------------------------------------------------------------

class TestCreateGroup:
    def test_owner_is_first_member(self, groups, group):
        assert group.owner_id == "alice"
        assert group.member_count == 1
        members = groups.list_members(group.id)
        assert [(m.user_id, m.role) for m in members] == [("alice", MemberRole.OWNER)]
        assert members[0].profile.username == "alice"

    def test_listed_for_member(self, groups, group):
        assert [g.id for g in groups.list_user_groups("alice")] == [group.id]
        assert groups.list_user_groups("bob") == []


class TestInvites:
    def test_accept(self, groups, group):
        invite = groups.invite_user(group.id, "Bob", "alice")
        assert invite.inviter_name == "Alice"
        assert invite.group_name == "Tuesday Game"
        assert [i.id for i in groups.list_pending_invites("bob")] == [invite.id]

        member = groups.accept_invite(invite.id, "bob")
        assert member.role == MemberRole.MEMBER
        assert groups.get_group(group.id).member_count == 2
        assert groups.list_pending_invites("bob") == []

    def test_decline(self, groups, group):
        invite = groups.invite_user(group.id, "bob", "alice")
        assert groups.decline_invite(invite.id, "bob").status == InviteStatus.DECLINED
        with pytest.raises(ConflictError):
            groups.accept_invite(invite.id, "bob")

    def test_cannot_invite_self(self, groups, group):
        with pytest.raises(InvalidDataError):
            groups.invite_user(group.id, "alice", "alice")

    def test_cannot_invite_member(self, groups, group):
        join(groups, group.id, "bob")
        with pytest.raises(ConflictError):
            groups.invite_user(group.id, "bob", "alice")

    def test_duplicate_pending_invite(self, groups, group):
        groups.invite_user(group.id, "bob", "alice")
        with pytest.raises(ConflictError):
            groups.invite_user(group.id, "bob", "alice")

    def test_unknown_username(self, groups, group):
        with pytest.raises(NotFoundError):
            groups.invite_user(group.id, "nobody", "alice")

    def test_invite_for_someone_else(self, groups, group):
        invite = groups.invite_user(group.id, "bob", "alice")
        with pytest.raises(PermissionDeniedError):
            groups.accept_invite(invite.id, "carol")


# ---------------------------------------------------------------------------
# Membership
# ---------------------------------------------------------------------------

class TestMembership:
    def test_leave(self, groups, group):
        join(groups, group.id, "bob")
        assert groups.leave_group(group.id, "bob") is True
        assert groups.get_group(group.id).member_count == 1

    def test_owner_cannot_leave(self, groups, group):
        with pytest.raises(ConflictError):
            groups.leave_group(group.id, "alice")

    def test_non_member_leave(self, groups, group):
        with pytest.raises(NotFoundError):
            groups.leave_group(group.id, "carol")

    def test_owner_listed_first(self, groups, group, fake_supabase):
        join(groups, group.id, "bob")
        # Make bob's membership older than the owner's
        for row in fake_supabase.rows("group_members"):
            if row["user_id"] == "bob":
                row["joined_at"] = (T0 - timedelta(days=1)).isoformat()
        assert [m.user_id for m in groups.list_members(group.id)] == ["alice", "bob"]

    def test_delete_cascades(self, groups, group, fake_supabase):
        join(groups, group.id, "bob")
        groups.send_text_message(group.id, "bob", "gg")
        assert groups.delete_group(group.id, "alice") is True
        for table in ("groups", "group_members", "group_invites", "group_messages"):
            assert fake_supabase.rows(table) == []

    def test_only_owner_deletes(self, groups, group):
        join(groups, group.id, "bob")
        with pytest.raises(PermissionDeniedError):
            groups.delete_group(group.id, "bob")

    def test_owner_settings(self, groups, group):
        assert groups.update_avatar(group.id, "alice", "https://img/g.jpg").avatar_url == "https://img/g.jpg"
        updated = groups.set_leaderboard_type(group.id, "alice", LeaderboardType.MOST_PROFIT)
        assert updated.leaderboard_type == LeaderboardType.MOST_PROFIT
        with pytest.raises(PermissionDeniedError):
            groups.update_avatar(group.id, "bob", "https://img/x.jpg")


# ---------------------------------------------------------------------------
# Leaderboard
# ---------------------------------------------------------------------------

class TestLeaderboard:
    @pytest.fixture
    def seeded(self, groups, group, fake_supabase):
        join(groups, group.id, "bob")
        fake_supabase.seed(
            "sessions",
            {"user_id": "alice", "hours_played": 10, "profit": 100, "adjusted_profit": 100},
            {"user_id": "bob", "hours_played": 3, "profit": 900, "adjusted_profit": 450},
            {"user_id": "bob", "hours_played": 2, "profit": -50, "adjusted_profit": None},
            {"user_id": "carol", "hours_played": 99, "profit": 9999},
        )
        return group

    def test_by_hours(self, groups, seeded):
        board = groups.get_leaderboard(seeded.id)
        assert board.leaderboard_type == LeaderboardType.MOST_HOURS
        assert [(e.user.id, e.rank, e.total_hours) for e in board.entries] == [("alice", 1, 10), ("bob", 2, 5)]

    def test_by_adjusted_profit(self, groups, seeded):
        board = groups.get_leaderboard(seeded.id, LeaderboardType.MOST_PROFIT)
        assert [(e.user.id, e.total_profit) for e in board.entries] == [("bob", 400), ("alice", 100)]

    def test_sessions_read_in_pages(self, groups, seeded, fake_supabase, monkeypatch):
        monkeypatch.setattr(settings, "query_page_size", 2)
        fake_supabase.seed("sessions", *[{"user_id": "alice", "hours_played": 1, "profit": 10} for _ in range(4)])
        fake_supabase.calls.clear()

        board = groups.get_leaderboard(seeded.id)

        assert [(e.user.id, e.total_hours) for e in board.entries] == [("alice", 14), ("bob", 5)]
        # 7 member sessions in pages of 2
        assert fake_supabase.calls.count(("sessions", "select")) == 4


# ---------------------------------------------------------------------------
# Chat
# ---------------------------------------------------------------------------

class TestMessages:
    def test_text_message_updates_preview(self, groups, group):
        message = groups.send_text_message(group.id, "alice", "  running late ")
        assert message.text == "running late"
        assert message.sender_name == "Alice"
        updated = groups.get_group(group.id)
        assert updated.last_message == "running late"
        assert updated.last_message_time is not None

    def test_empty_text(self, groups, group):
        with pytest.raises(InvalidDataError):
            groups.send_text_message(group.id, "alice", "   ")

    def test_hand_message(self, groups, group):
        message = groups.send_hand_message(group.id, "alice", "hand-1")
        assert message.message_type == MessageType.HAND
        assert message.hand_owner_user_id == "alice"
        assert groups.get_group(group.id).last_message == HAND_MESSAGE_PREVIEW

    def test_fetch_pages_oldest_first(self, groups, group, fake_supabase):
        fake_supabase.seed("group_messages", *(
            {
                "group_id": group.id,
                "sender_id": "alice",
                "sender_name": "Alice",
                "message_type": "text",
                "text": f"m{i}",
                "timestamp": (T0 + timedelta(minutes=i)).isoformat(),
            }
            for i in range(5)
        ))
        page = groups.fetch_messages(group.id, limit=2)
        assert [m.text for m in page] == ["m3", "m4"]
        older = groups.fetch_messages(group.id, before=page[0].timestamp, limit=2)
        assert [m.text for m in older] == ["m1", "m2"]
