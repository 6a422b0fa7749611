from fastapi import APIRouter, Depends
from stack_api.database.supabase_client import get_supabase
from stack_api.config.settings import settings
from stack_api.modules.auth.schemas import (
    LoginRequest, RegisterRequest, TokenResponse, RegisterResponse,
    RefreshRequest, EmailRequest, PhoneCodeRequest, PhoneVerifyRequest,
    FlowResponse, FlowFailureResponse
)
from stack_api.modules.auth.service import AuthService
from stack_api.modules.auth.flow import AuthFlowCoordinator, TokenAuthGateway
from stack_api.modules.users.service import UserService
from stack_api.core.dependencies import (
    get_auth_service, get_current_token, get_optional_token, get_current_user_id
)
from supabase import Client
from typing import Dict, Optional

router = APIRouter(prefix="/auth", tags=["auth"])


def get_flow_coordinator(
    token: Optional[str] = Depends(get_optional_token),
    auth_service: AuthService = Depends(get_auth_service),
    supabase: Client = Depends(get_supabase)
) -> AuthFlowCoordinator:
    return AuthFlowCoordinator(
        TokenAuthGateway(auth_service, token),
        UserService(supabase),
        timeout=settings.flow_refresh_timeout,
    )


@router.post("/register", response_model=RegisterResponse, status_code=201)
async def register(
    register_data: RegisterRequest,
    service: AuthService = Depends(get_auth_service)
):
    """Register a new user"""
    return service.register(register_data)


@router.post("/login", response_model=TokenResponse)
async def login(
    login_data: LoginRequest,
    service: AuthService = Depends(get_auth_service)
):
    """Login and get access token"""
    return service.login(login_data)


@router.post("/phone/send-code", status_code=202)
async def send_phone_code(
    request: PhoneCodeRequest,
    service: AuthService = Depends(get_auth_service)
):
    service.send_phone_code(request.phone)
    return {"message": "Verification code sent"}


@router.post("/phone/verify", response_model=TokenResponse)
async def verify_phone_code(
    request: PhoneVerifyRequest,
    service: AuthService = Depends(get_auth_service)
):
    return service.verify_phone_code(request.phone, request.code)


@router.post("/refresh", response_model=TokenResponse)
async def refresh(
    request: RefreshRequest,
    service: AuthService = Depends(get_auth_service)
):
    return service.refresh(request.refresh_token)


@router.post("/verification-email", status_code=202)
async def send_verification_email(
    request: EmailRequest,
    service: AuthService = Depends(get_auth_service)
):
    service.send_verification_email(request.email)
    return {"message": "Verification email sent"}


@router.post("/password-reset", status_code=202)
async def send_password_reset(
    request: EmailRequest,
    service: AuthService = Depends(get_auth_service)
):
    service.send_password_reset(request.email)
    return {"message": "Password reset email sent"}


@router.post("/logout", status_code=200)
async def logout(
    token: str = Depends(get_current_token),
    service: AuthService = Depends(get_auth_service)
):
    """Logout and invalidate token"""
    service.logout(token)
    return {"message": "Logged out successfully"}


@router.get("/me")
async def get_current_user(current_user: Dict = Depends(get_current_user_id)):
    """Get current authenticated user"""
    return current_user


@router.get("/flow", response_model=FlowResponse)
async def get_flow(coordinator: AuthFlowCoordinator = Depends(get_flow_coordinator)):
    """Which top-level flow the bearer of this token belongs in"""
    state = await coordinator.refresh_flow()
    failure = None
    if coordinator.last_failure:
        failure = FlowFailureResponse(
            reason=coordinator.last_failure.reason.value,
            message=coordinator.last_failure.message,
        )
    return FlowResponse(state=state.kind.value, user_id=state.user_id, failure=failure)
