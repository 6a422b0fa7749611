from fastapi import APIRouter, Depends, File, UploadFile
from stack_api.database.supabase_client import get_supabase, SupabaseClient
from stack_api.modules.users.schemas import (
    ProfileCreate, ProfileUpdate, UserProfileResponse, UsernameAvailability
)
from stack_api.modules.users.service import UserService
from stack_api.modules.auth.service import AuthService
from stack_api.core.dependencies import get_current_user_id, get_auth_service
from supabase import Client
from typing import List, Dict

router = APIRouter(prefix="/users", tags=["users"])


def get_user_service(supabase: Client = Depends(get_supabase)) -> UserService:
    return UserService(supabase)


@router.get("/me", response_model=UserProfileResponse)
async def get_my_profile(
    user_data: Dict = Depends(get_current_user_id),
    service: UserService = Depends(get_user_service)
):
    return service.get_profile(user_data["id"])


@router.post("/me", response_model=UserProfileResponse, status_code=201)
async def create_my_profile(
    profile_data: ProfileCreate,
    user_data: Dict = Depends(get_current_user_id),
    service: UserService = Depends(get_user_service)
):
    """Create the profile for the signed-in user (profile setup step)"""
    return service.create_profile(user_data["id"], profile_data)


@router.put("/me", response_model=UserProfileResponse)
async def update_my_profile(
    profile_data: ProfileUpdate,
    user_data: Dict = Depends(get_current_user_id),
    service: UserService = Depends(get_user_service)
):
    return service.update_profile(user_data["id"], profile_data)


@router.delete("/me", status_code=204)
async def delete_my_account(
    user_data: Dict = Depends(get_current_user_id),
    service: UserService = Depends(get_user_service),
    auth_service: AuthService = Depends(get_auth_service)
):
    """Delete profile data and the auth account"""
    service.delete_profile(user_data["id"])
    auth_service.delete_auth_user(user_data["id"], SupabaseClient.get_service_client())


@router.post("/me/avatar", response_model=UserProfileResponse)
async def upload_my_avatar(
    file: UploadFile = File(...),
    user_data: Dict = Depends(get_current_user_id),
    service: UserService = Depends(get_user_service)
):
    content = await file.read()
    return service.upload_avatar(user_data["id"], content, file.content_type or "image/jpeg")


@router.delete("/me/avatar", status_code=204)
async def delete_my_avatar(
    user_data: Dict = Depends(get_current_user_id),
    service: UserService = Depends(get_user_service)
):
    service.delete_avatar(user_data["id"])


@router.get("/check-username", response_model=UsernameAvailability)
async def check_username(
    username: str,
    user_data: Dict = Depends(get_current_user_id),
    service: UserService = Depends(get_user_service)
):
    return service.check_username(username, exclude_user_id=user_data["id"])


@router.get("/search", response_model=List[UserProfileResponse])
async def search_users(
    q: str,
    limit: int = 10,
    user_data: Dict = Depends(get_current_user_id),
    service: UserService = Depends(get_user_service)
):
    """Search by username or display name prefix"""
    return service.search_users(q, current_user_id=user_data["id"], limit=limit)


@router.get("/{user_id}", response_model=UserProfileResponse)
async def get_user(
    user_id: str,
    user_data: Dict = Depends(get_current_user_id),
    service: UserService = Depends(get_user_service)
):
    return service.get_profile(user_id)
