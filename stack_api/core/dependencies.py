"""
Core dependencies for route protection and ownership checks
"""

from fastapi import Depends, HTTPException, Security, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from stack_api.database.supabase_client import get_supabase
from stack_api.modules.auth.service import AuthService
from supabase import Client
from typing import Optional
import logging

logger = logging.getLogger(__name__)

security = HTTPBearer()
optional_security = HTTPBearer(auto_error=False)


def get_auth_service(supabase: Client = Depends(get_supabase)) -> AuthService:
    return AuthService(supabase)


def get_current_token(
    credentials: HTTPAuthorizationCredentials = Security(security)
) -> str:
    """Extract JWT token from Authorization header"""
    return credentials.credentials


def get_optional_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Security(optional_security)
) -> Optional[str]:
    return credentials.credentials if credentials else None


def get_current_user_id(
    credentials: HTTPAuthorizationCredentials = Security(security),
    auth_service: AuthService = Depends(get_auth_service)
) -> dict:
    """Extract current user info from JWT token"""
    token = credentials.credentials
    user_data = auth_service.get_current_user(token)
    return user_data


def require_verified_user(user_data: dict = Depends(get_current_user_id)) -> dict:
    """Email-verified (or phone) users only"""
    if not user_data.get("email_verified") and "phone" not in (user_data.get("providers") or []):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Please verify your email before continuing."
        )
    return user_data


def is_group_member(group_id: str, user_id: str, supabase: Client) -> bool:
    member_result = supabase.table("group_members")\
        .select("user_id")\
        .eq("group_id", group_id)\
        .eq("user_id", user_id)\
        .limit(1)\
        .execute()
    return bool(member_result.data)


def check_group_member(group_id: str, user_data: dict, supabase: Client) -> dict:
    """Raise 403 unless the user is a member of the group"""
    if not is_group_member(group_id, user_data["id"], supabase):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You must be a member of this group"
        )
    return user_data
