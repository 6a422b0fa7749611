from fastapi import APIRouter, Depends
from stack_api.database.supabase_client import get_supabase
from stack_api.modules.follows.schemas import (
    FollowResponse, FollowStatusResponse, FollowCountsResponse, PostNotificationsUpdate
)
from stack_api.modules.follows.service import FollowService
from stack_api.modules.users.schemas import UserProfileResponse
from stack_api.modules.users.service import UserService
from stack_api.core.dependencies import get_current_user_id
from supabase import Client
from typing import List, Dict

router = APIRouter(prefix="/follows", tags=["follows"])


def get_follow_service(supabase: Client = Depends(get_supabase)) -> FollowService:
    return FollowService(supabase)


def get_user_service(supabase: Client = Depends(get_supabase)) -> UserService:
    return UserService(supabase)


@router.post("/{user_id}", response_model=FollowResponse, status_code=201)
async def follow_user(
    user_id: str,
    user_data: Dict = Depends(get_current_user_id),
    service: FollowService = Depends(get_follow_service),
    users: UserService = Depends(get_user_service)
):
    users.get_profile(user_id)
    return service.follow(user_data["id"], user_id)


@router.delete("/{user_id}", status_code=204)
async def unfollow_user(
    user_id: str,
    user_data: Dict = Depends(get_current_user_id),
    service: FollowService = Depends(get_follow_service)
):
    service.unfollow(user_data["id"], user_id)


@router.get("/{user_id}/status", response_model=FollowStatusResponse)
async def follow_status(
    user_id: str,
    user_data: Dict = Depends(get_current_user_id),
    service: FollowService = Depends(get_follow_service)
):
    return FollowStatusResponse(
        user_id=user_id,
        is_following=service.is_following(user_data["id"], user_id),
        post_notifications=service.get_post_notifications(user_data["id"], user_id)
    )


@router.put("/{user_id}/notifications", response_model=FollowResponse)
async def set_post_notifications(
    user_id: str,
    body: PostNotificationsUpdate,
    user_data: Dict = Depends(get_current_user_id),
    service: FollowService = Depends(get_follow_service)
):
    """Toggle new-post alerts for a user you follow"""
    return service.set_post_notifications(user_data["id"], user_id, body.enabled)


@router.get("/{user_id}/counts", response_model=FollowCountsResponse)
async def follow_counts(
    user_id: str,
    user_data: Dict = Depends(get_current_user_id),
    service: FollowService = Depends(get_follow_service)
):
    return FollowCountsResponse(
        user_id=user_id,
        followers_count=service.count_followers(user_id),
        following_count=service.count_following(user_id)
    )


@router.get("/{user_id}/followers", response_model=List[UserProfileResponse])
async def list_followers(
    user_id: str,
    user_data: Dict = Depends(get_current_user_id),
    service: FollowService = Depends(get_follow_service),
    users: UserService = Depends(get_user_service)
):
    return users.get_profiles_by_ids(service.get_follower_ids(user_id))


@router.get("/{user_id}/following", response_model=List[UserProfileResponse])
async def list_following(
    user_id: str,
    user_data: Dict = Depends(get_current_user_id),
    service: FollowService = Depends(get_follow_service),
    users: UserService = Depends(get_user_service)
):
    return users.get_profiles_by_ids(service.get_following_ids(user_id))
