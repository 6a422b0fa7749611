from supabase import Client
from stack_api.modules.groups.schemas import (
    GroupCreate, GroupResponse, GroupMemberResponse, GroupMemberInfo, GroupInviteResponse,
    GroupMessageResponse, LeaderboardEntry, LeaderboardResponse, LeaderboardType,
    MemberRole, InviteStatus, MessageType
)
from stack_api.modules.users.service import UserService
from stack_api.modules.users.schemas import UserProfileResponse
from stack_api.core.exceptions import (
    NotFoundError, PermissionDeniedError, ConflictError, InvalidDataError, classify_backend_error
)
from stack_api.config.settings import settings
from stack_api.database.supabase_client import fetch_all
from typing import List, Optional, Dict
from datetime import datetime, timezone
from fastapi import HTTPException
import logging

logger = logging.getLogger(__name__)

HAND_MESSAGE_PREVIEW = "Poker Hand"


class GroupService:
    def __init__(self, supabase: Client):
        self.supabase = supabase
        self.users = UserService(supabase)

    def create_group(self, group_data: GroupCreate, user_id: str) -> GroupResponse:
        """Create a group; the creator becomes its owner and first member"""
        now = datetime.now(timezone.utc).isoformat()
        try:
            result = self.supabase.table("groups").insert({
                "name": group_data.name,
                "description": group_data.description or "",
                "owner_id": user_id,
                "member_count": 1,
                "leaderboard_type": group_data.leaderboard_type.value,
                "created_at": now
            }).execute()

            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to create group")

            group = GroupResponse(**result.data[0])
            self.supabase.table("group_members").insert({
                "group_id": group.id,
                "user_id": user_id,
                "role": MemberRole.OWNER.value,
                "joined_at": now
            }).execute()

            logger.info(f"Group {group.id} created by {user_id}")
            return group
        except HTTPException:
            raise
        except Exception as e:
            raise classify_backend_error(e)

    def get_group(self, group_id: str) -> GroupResponse:
        try:
            result = self.supabase.table("groups")\
                .select("*")\
                .eq("id", group_id)\
                .limit(1)\
                .execute()
        except Exception as e:
            raise classify_backend_error(e)
        if not result.data:
            raise NotFoundError("Group not found")
        return GroupResponse(**result.data[0])

    def list_user_groups(self, user_id: str) -> List[GroupResponse]:
        """Groups the user belongs to, most recent activity first"""
        try:
            members_result = self.supabase.table("group_members")\
                .select("group_id")\
                .eq("user_id", user_id)\
                .execute()
            group_ids = [m["group_id"] for m in members_result.data or []]
            if not group_ids:
                return []
            result = self.supabase.table("groups")\
                .select("*")\
                .in_("id", group_ids)\
                .execute()
        except Exception as e:
            raise classify_backend_error(e)

        groups = [GroupResponse(**row) for row in result.data or []]
        return sorted(groups, key=lambda g: g.last_message_time or g.created_at, reverse=True)

    def _require_owner(self, group_id: str, user_id: str, detail: str) -> GroupResponse:
        group = self.get_group(group_id)
        if group.owner_id != user_id:
            raise PermissionDeniedError(detail)
        return group

    def _get_member(self, group_id: str, user_id: str) -> Optional[GroupMemberResponse]:
        result = self.supabase.table("group_members")\
            .select("*")\
            .eq("group_id", group_id)\
            .eq("user_id", user_id)\
            .limit(1)\
            .execute()
        return GroupMemberResponse(**result.data[0]) if result.data else None

    def _bump_member_count(self, group: GroupResponse, delta: int) -> None:
        self.supabase.table("groups")\
            .update({"member_count": max(group.member_count + delta, 0)})\
            .eq("id", group.id)\
            .execute()

    # Invites

    def invite_user(self, group_id: str, username: str, inviter_id: str) -> GroupInviteResponse:
        """
        Invite someone by username.

        The invitee must exist, must not already be a member and must not
        have a pending invite to the same group.
        """
        group = self.get_group(group_id)
        invitee = self.users.get_profile_by_username(username)
        if invitee.id == inviter_id:
            raise InvalidDataError("You cannot invite yourself")

        try:
            if self._get_member(group_id, invitee.id):
                raise ConflictError(f"{invitee.username} is already a member of this group")

            pending = self.supabase.table("group_invites")\
                .select("id")\
                .eq("group_id", group_id)\
                .eq("invitee_id", invitee.id)\
                .eq("status", InviteStatus.PENDING.value)\
                .limit(1)\
                .execute()
            if pending.data:
                raise ConflictError(f"{invitee.username} already has a pending invite")

            inviter = self.users.get_profile(inviter_id)
            result = self.supabase.table("group_invites").insert({
                "group_id": group_id,
                "group_name": group.name,
                "inviter_id": inviter_id,
                "inviter_name": inviter.display_name or inviter.username,
                "invitee_id": invitee.id,
                "status": InviteStatus.PENDING.value,
                "created_at": datetime.now(timezone.utc).isoformat()
            }).execute()

            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to create invite")

            logger.info(f"User {inviter_id} invited {invitee.id} to group {group_id}")
            return GroupInviteResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise classify_backend_error(e)

    def list_pending_invites(self, user_id: str) -> List[GroupInviteResponse]:
        try:
            result = self.supabase.table("group_invites")\
                .select("*")\
                .eq("invitee_id", user_id)\
                .eq("status", InviteStatus.PENDING.value)\
                .order("created_at", desc=True)\
                .execute()
            return [GroupInviteResponse(**row) for row in result.data or []]
        except Exception as e:
            raise classify_backend_error(e)

    def _get_pending_invite(self, invite_id: str, user_id: str) -> GroupInviteResponse:
        try:
            result = self.supabase.table("group_invites")\
                .select("*")\
                .eq("id", invite_id)\
                .limit(1)\
                .execute()
        except Exception as e:
            raise classify_backend_error(e)
        if not result.data:
            raise NotFoundError("Invite not found")
        invite = GroupInviteResponse(**result.data[0])
        if invite.invitee_id != user_id:
            raise PermissionDeniedError("This invite is not addressed to you")
        if invite.status != InviteStatus.PENDING:
            raise ConflictError(f"Invite already {invite.status.value}")
        return invite

    def accept_invite(self, invite_id: str, user_id: str) -> GroupMemberResponse:
        invite = self._get_pending_invite(invite_id, user_id)
        group = self.get_group(invite.group_id)
        try:
            self.supabase.table("group_invites")\
                .update({"status": InviteStatus.ACCEPTED.value})\
                .eq("id", invite_id)\
                .execute()

            existing = self._get_member(group.id, user_id)
            if existing:
                return existing

            result = self.supabase.table("group_members").insert({
                "group_id": group.id,
                "user_id": user_id,
                "role": MemberRole.MEMBER.value,
                "joined_at": datetime.now(timezone.utc).isoformat()
            }).execute()
            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to join group")

            self._bump_member_count(group, 1)
            logger.info(f"User {user_id} joined group {group.id}")
            return GroupMemberResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise classify_backend_error(e)

    def decline_invite(self, invite_id: str, user_id: str) -> GroupInviteResponse:
        self._get_pending_invite(invite_id, user_id)
        try:
            result = self.supabase.table("group_invites")\
                .update({"status": InviteStatus.DECLINED.value})\
                .eq("id", invite_id)\
                .execute()
            return GroupInviteResponse(**result.data[0])
        except Exception as e:
            raise classify_backend_error(e)

    # Membership

    def leave_group(self, group_id: str, user_id: str) -> bool:
        group = self.get_group(group_id)
        if group.owner_id == user_id:
            raise ConflictError("The group owner cannot leave the group")
        try:
            result = self.supabase.table("group_members")\
                .delete()\
                .eq("group_id", group_id)\
                .eq("user_id", user_id)\
                .execute()
            if not result.data:
                raise NotFoundError("You are not a member of this group")
            self._bump_member_count(group, -1)
            return True
        except HTTPException:
            raise
        except Exception as e:
            raise classify_backend_error(e)

    def list_members(self, group_id: str) -> List[GroupMemberInfo]:
        """Members with their profiles, owner first"""
        try:
            result = self.supabase.table("group_members")\
                .select("*")\
                .eq("group_id", group_id)\
                .order("joined_at")\
                .execute()
        except Exception as e:
            raise classify_backend_error(e)

        members = [GroupMemberResponse(**row) for row in result.data or []]
        profiles = {p.id: p for p in self.users.get_profiles_by_ids([m.user_id for m in members])}
        infos = [
            GroupMemberInfo(user_id=m.user_id, role=m.role, joined_at=m.joined_at, profile=profiles.get(m.user_id))
            for m in members
        ]
        return sorted(infos, key=lambda info: info.role != MemberRole.OWNER)

    def delete_group(self, group_id: str, user_id: str) -> bool:
        """Delete the group with its members, invites and messages"""
        self._require_owner(group_id, user_id, "Only the group owner can delete the group")
        try:
            for table in ("group_messages", "group_invites", "group_members"):
                self.supabase.table(table)\
                    .delete()\
                    .eq("group_id", group_id)\
                    .execute()
            result = self.supabase.table("groups")\
                .delete()\
                .eq("id", group_id)\
                .execute()
            logger.info(f"Group {group_id} deleted by {user_id}")
            return len(result.data or []) > 0
        except Exception as e:
            raise classify_backend_error(e)

    def update_avatar(self, group_id: str, user_id: str, avatar_url: str) -> GroupResponse:
        self._require_owner(group_id, user_id, "Only the group owner can change the group image")
        return self._update_group(group_id, {"avatar_url": avatar_url})

    def set_leaderboard_type(self, group_id: str, user_id: str, leaderboard_type: LeaderboardType) -> GroupResponse:
        self._require_owner(group_id, user_id, "Only the group owner can change the leaderboard")
        return self._update_group(group_id, {"leaderboard_type": leaderboard_type.value})

    def _update_group(self, group_id: str, update_data: dict) -> GroupResponse:
        try:
            result = self.supabase.table("groups")\
                .update(update_data)\
                .eq("id", group_id)\
                .execute()
            if not result.data:
                raise NotFoundError("Group not found")
            return GroupResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise classify_backend_error(e)

    # Leaderboard

    def get_leaderboard(self, group_id: str, leaderboard_type: Optional[LeaderboardType] = None) -> LeaderboardResponse:
        """Rank members by total hours or total (adjusted) profit across their sessions"""
        group = self.get_group(group_id)
        leaderboard_type = leaderboard_type or group.leaderboard_type
        try:
            members_result = self.supabase.table("group_members")\
                .select("user_id")\
                .eq("group_id", group_id)\
                .execute()
            member_ids = [m["user_id"] for m in members_result.data or []]
            if not member_ids:
                return LeaderboardResponse(group_id=group_id, leaderboard_type=leaderboard_type, entries=[])

            session_rows = fetch_all(
                lambda: self.supabase.table("sessions")
                .select("id, user_id, hours_played, profit, adjusted_profit")
                .in_("user_id", member_ids)
                .order("id")
            )
        except Exception as e:
            raise classify_backend_error(e)

        totals: Dict[str, Dict[str, float]] = {uid: {"hours": 0.0, "profit": 0.0} for uid in member_ids}
        for row in session_rows:
            entry = totals.get(row["user_id"])
            if entry is None:
                continue
            entry["hours"] += row.get("hours_played") or 0.0
            adjusted = row.get("adjusted_profit")
            entry["profit"] += adjusted if adjusted is not None else (row.get("profit") or 0.0)

        profiles: List[UserProfileResponse] = self.users.get_profiles_by_ids(member_ids)
        metric = "hours" if leaderboard_type == LeaderboardType.MOST_HOURS else "profit"
        ranked = sorted(profiles, key=lambda p: totals[p.id][metric], reverse=True)
        entries = [
            LeaderboardEntry(
                user=profile,
                total_hours=totals[profile.id]["hours"],
                total_profit=totals[profile.id]["profit"],
                rank=position
            )
            for position, profile in enumerate(ranked, start=1)
        ]
        return LeaderboardResponse(group_id=group_id, leaderboard_type=leaderboard_type, entries=entries)

    # Chat

    def _send_message(self, group_id: str, sender_id: str, message: dict, preview: str) -> GroupMessageResponse:
        sender = self.users.get_profile(sender_id)
        now = datetime.now(timezone.utc).isoformat()
        message.update({
            "group_id": group_id,
            "sender_id": sender_id,
            "sender_name": sender.display_name or sender.username,
            "sender_avatar_url": sender.avatar_url,
            "timestamp": now
        })
        try:
            result = self.supabase.table("group_messages").insert(message).execute()
            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to send message")
            self.supabase.table("groups")\
                .update({"last_message": preview, "last_message_time": now})\
                .eq("id", group_id)\
                .execute()
            return GroupMessageResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise classify_backend_error(e)

    def send_text_message(self, group_id: str, sender_id: str, text: str) -> GroupMessageResponse:
        text = text.strip()
        if not text:
            raise InvalidDataError("Message cannot be empty")
        return self._send_message(group_id, sender_id, {
            "message_type": MessageType.TEXT.value,
            "text": text
        }, preview=text)

    def send_hand_message(self, group_id: str, sender_id: str, hand_history_id: str) -> GroupMessageResponse:
        return self._send_message(group_id, sender_id, {
            "message_type": MessageType.HAND.value,
            "hand_history_id": hand_history_id,
            "hand_owner_user_id": sender_id
        }, preview=HAND_MESSAGE_PREVIEW)

    def fetch_messages(self, group_id: str, before: Optional[datetime] = None, limit: Optional[int] = None) -> List[GroupMessageResponse]:
        """Newest page of messages (older than ``before`` when given), returned oldest first"""
        limit = limit or settings.group_messages_page_size
        try:
            query = self.supabase.table("group_messages")\
                .select("*")\
                .eq("group_id", group_id)
            if before is not None:
                query = query.lt("timestamp", before.isoformat())
            result = query.order("timestamp", desc=True)\
                .limit(limit)\
                .execute()
        except Exception as e:
            raise classify_backend_error(e)
        messages = [GroupMessageResponse(**row) for row in result.data or []]
        messages.reverse()
        return messages
