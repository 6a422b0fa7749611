from fastapi import APIRouter, Depends
from stack_api.database.supabase_client import get_supabase
from stack_api.modules.groups.schemas import (
    GroupCreate, GroupResponse, GroupMemberResponse, GroupMemberInfo, GroupInviteResponse,
    InviteCreate, GroupAvatarUpdate, LeaderboardTypeUpdate, LeaderboardType, LeaderboardResponse,
    TextMessageCreate, HandMessageCreate, GroupMessageResponse
)
from stack_api.modules.groups.service import GroupService
from stack_api.core.dependencies import get_current_user_id, require_verified_user, check_group_member
from supabase import Client
from typing import List, Dict, Optional
from datetime import datetime

router = APIRouter(prefix="/groups", tags=["groups"])


def get_group_service(supabase: Client = Depends(get_supabase)) -> GroupService:
    return GroupService(supabase)


@router.post("", response_model=GroupResponse, status_code=201)
async def create_group(
    group_data: GroupCreate,
    user_data: Dict = Depends(require_verified_user),
    service: GroupService = Depends(get_group_service)
):
    """Create a new group owned by the current user"""
    return service.create_group(group_data, user_data["id"])


@router.get("", response_model=List[GroupResponse])
async def list_my_groups(
    user_data: Dict = Depends(get_current_user_id),
    service: GroupService = Depends(get_group_service)
):
    return service.list_user_groups(user_data["id"])


@router.get("/invites", response_model=List[GroupInviteResponse])
async def list_pending_invites(
    user_data: Dict = Depends(get_current_user_id),
    service: GroupService = Depends(get_group_service)
):
    return service.list_pending_invites(user_data["id"])


@router.post("/invites/{invite_id}/accept", response_model=GroupMemberResponse)
async def accept_invite(
    invite_id: str,
    user_data: Dict = Depends(get_current_user_id),
    service: GroupService = Depends(get_group_service)
):
    return service.accept_invite(invite_id, user_data["id"])


@router.post("/invites/{invite_id}/decline", response_model=GroupInviteResponse)
async def decline_invite(
    invite_id: str,
    user_data: Dict = Depends(get_current_user_id),
    service: GroupService = Depends(get_group_service)
):
    return service.decline_invite(invite_id, user_data["id"])


@router.get("/{group_id}", response_model=GroupResponse)
async def get_group(
    group_id: str,
    user_data: Dict = Depends(get_current_user_id),
    service: GroupService = Depends(get_group_service),
    supabase: Client = Depends(get_supabase)
):
    """Get group by ID (only if user is a member)"""
    check_group_member(group_id, user_data, supabase)
    return service.get_group(group_id)


@router.delete("/{group_id}", status_code=204)
async def delete_group(
    group_id: str,
    user_data: Dict = Depends(get_current_user_id),
    service: GroupService = Depends(get_group_service)
):
    service.delete_group(group_id, user_data["id"])
    return None


@router.post("/{group_id}/invites", response_model=GroupInviteResponse, status_code=201)
async def invite_user(
    group_id: str,
    invite: InviteCreate,
    user_data: Dict = Depends(get_current_user_id),
    service: GroupService = Depends(get_group_service),
    supabase: Client = Depends(get_supabase)
):
    check_group_member(group_id, user_data, supabase)
    return service.invite_user(group_id, invite.username, user_data["id"])


@router.post("/{group_id}/leave", status_code=204)
async def leave_group(
    group_id: str,
    user_data: Dict = Depends(get_current_user_id),
    service: GroupService = Depends(get_group_service)
):
    service.leave_group(group_id, user_data["id"])
    return None


@router.get("/{group_id}/members", response_model=List[GroupMemberInfo])
async def list_members(
    group_id: str,
    user_data: Dict = Depends(get_current_user_id),
    service: GroupService = Depends(get_group_service),
    supabase: Client = Depends(get_supabase)
):
    check_group_member(group_id, user_data, supabase)
    return service.list_members(group_id)


@router.put("/{group_id}/avatar", response_model=GroupResponse)
async def update_avatar(
    group_id: str,
    avatar: GroupAvatarUpdate,
    user_data: Dict = Depends(get_current_user_id),
    service: GroupService = Depends(get_group_service)
):
    return service.update_avatar(group_id, user_data["id"], avatar.avatar_url)


@router.put("/{group_id}/leaderboard-type", response_model=GroupResponse)
async def set_leaderboard_type(
    group_id: str,
    update: LeaderboardTypeUpdate,
    user_data: Dict = Depends(get_current_user_id),
    service: GroupService = Depends(get_group_service)
):
    return service.set_leaderboard_type(group_id, user_data["id"], update.leaderboard_type)


@router.get("/{group_id}/leaderboard", response_model=LeaderboardResponse)
async def get_leaderboard(
    group_id: str,
    leaderboard_type: Optional[LeaderboardType] = None,
    user_data: Dict = Depends(get_current_user_id),
    service: GroupService = Depends(get_group_service),
    supabase: Client = Depends(get_supabase)
):
    """Members ranked by the group's leaderboard type unless one is given"""
    check_group_member(group_id, user_data, supabase)
    return service.get_leaderboard(group_id, leaderboard_type)


@router.get("/{group_id}/messages", response_model=List[GroupMessageResponse])
async def fetch_messages(
    group_id: str,
    before: Optional[datetime] = None,
    limit: Optional[int] = None,
    user_data: Dict = Depends(get_current_user_id),
    service: GroupService = Depends(get_group_service),
    supabase: Client = Depends(get_supabase)
):
    check_group_member(group_id, user_data, supabase)
    return service.fetch_messages(group_id, before=before, limit=limit)


@router.post("/{group_id}/messages", response_model=GroupMessageResponse, status_code=201)
async def send_text_message(
    group_id: str,
    message: TextMessageCreate,
    user_data: Dict = Depends(get_current_user_id),
    service: GroupService = Depends(get_group_service),
    supabase: Client = Depends(get_supabase)
):
    check_group_member(group_id, user_data, supabase)
    return service.send_text_message(group_id, user_data["id"], message.text)


@router.post("/{group_id}/messages/hand", response_model=GroupMessageResponse, status_code=201)
async def send_hand_message(
    group_id: str,
    message: HandMessageCreate,
    user_data: Dict = Depends(get_current_user_id),
    service: GroupService = Depends(get_group_service),
    supabase: Client = Depends(get_supabase)
):
    check_group_member(group_id, user_data, supabase)
    return service.send_hand_message(group_id, user_data["id"], message.hand_history_id)
