import hashlib
import logging
import time
from supabase import Client
from stack_api.modules.auth.schemas import (
    LoginRequest, RegisterRequest, TokenResponse, RegisterResponse, Principal
)
from stack_api.modules.auth.errors import AuthError, AuthErrorCode, map_auth_error
from stack_api.config.settings import settings
from fastapi import HTTPException
from typing import Dict, Any, Optional

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6

# In-memory cache for get_current_user to reduce Supabase auth calls (e.g. many parallel requests with same token)
_AUTH_USER_CACHE: Dict[str, tuple] = {}
_AUTH_CACHE_MAX_SIZE = 500


def _cache_key(token: str) -> str:
    return hashlib.sha256(token.encode()).hexdigest()


def invalidate_cached_user(token: str) -> None:
    _AUTH_USER_CACHE.pop(_cache_key(token), None)


class AuthService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def _token_response(self, auth_response, email: Optional[str] = None, phone: Optional[str] = None) -> TokenResponse:
        user = auth_response.user
        session = auth_response.session
        return TokenResponse(
            access_token=session.access_token,
            refresh_token=session.refresh_token,
            token_type="bearer",
            user_id=user.id,
            email=user.email or email,
            phone=user.phone or phone,
        )

    def register(self, register_data: RegisterRequest) -> RegisterResponse:
        """Register a new user and send the confirmation email"""
        if len(register_data.password) < MIN_PASSWORD_LENGTH:
            raise AuthError(AuthErrorCode.WEAK_PASSWORD)
        try:
            user_metadata = {}
            if register_data.display_name:
                user_metadata["display_name"] = register_data.display_name

            auth_response = self.supabase.auth.sign_up({
                "email": register_data.email,
                "password": register_data.password,
                "options": {
                    "data": user_metadata
                }
            })

            if not auth_response.user:
                raise AuthError(AuthErrorCode.UNKNOWN, "Failed to register user")

            logger.info(f"Registered user {auth_response.user.id}")
            return RegisterResponse(
                user_id=auth_response.user.id,
                email=auth_response.user.email or register_data.email,
                email_verification_required=auth_response.session is None,
                message="Account created. Check your inbox to verify your email."
            )
        except HTTPException:
            raise
        except Exception as e:
            raise map_auth_error(e)

    def login(self, login_data: LoginRequest) -> TokenResponse:
        """Sign in with email and password; unverified accounts are rejected"""
        try:
            auth_response = self.supabase.auth.sign_in_with_password({
                "email": login_data.email,
                "password": login_data.password
            })

            if not auth_response.user or not auth_response.session:
                raise AuthError(AuthErrorCode.WRONG_PASSWORD)

            if auth_response.user.email_confirmed_at is None:
                raise AuthError(AuthErrorCode.EMAIL_NOT_VERIFIED)

            return self._token_response(auth_response, email=login_data.email)
        except HTTPException:
            raise
        except Exception as e:
            raise map_auth_error(e)

    def send_phone_code(self, phone: str) -> bool:
        """Send a one-time SMS code for phone sign-in"""
        try:
            self.supabase.auth.sign_in_with_otp({"phone": phone})
            return True
        except Exception as e:
            raise map_auth_error(e)

    def verify_phone_code(self, phone: str, code: str) -> TokenResponse:
        """Exchange an SMS code for a session"""
        try:
            auth_response = self.supabase.auth.verify_otp({
                "phone": phone,
                "token": code,
                "type": "sms"
            })
            if not auth_response.user or not auth_response.session:
                raise AuthError(AuthErrorCode.INVALID_VERIFICATION_CODE)
            return self._token_response(auth_response, phone=phone)
        except HTTPException:
            raise
        except Exception as e:
            raise map_auth_error(e)

    def refresh(self, refresh_token: str) -> TokenResponse:
        try:
            auth_response = self.supabase.auth.refresh_session(refresh_token)
            if not auth_response.user or not auth_response.session:
                raise AuthError(AuthErrorCode.NOT_AUTHENTICATED)
            return self._token_response(auth_response)
        except HTTPException:
            raise
        except Exception as e:
            raise map_auth_error(e)

    def send_verification_email(self, email: str) -> bool:
        try:
            self.supabase.auth.resend({"type": "signup", "email": email})
            return True
        except Exception as e:
            mapped = map_auth_error(e)
            if mapped.code == AuthErrorCode.UNKNOWN:
                raise AuthError(AuthErrorCode.VERIFICATION_EMAIL_FAILED)
            raise mapped

    def send_password_reset(self, email: str) -> bool:
        try:
            options = {}
            if settings.password_reset_redirect_url:
                options["redirect_to"] = settings.password_reset_redirect_url
            self.supabase.auth.reset_password_for_email(email, options)
            return True
        except Exception as e:
            raise map_auth_error(e)

    def get_current_user(self, token: str) -> Dict[str, Any]:
        """Get current user details from Supabase Auth token. Uses short TTL cache to reduce auth API calls."""
        try:
            cache_key = _cache_key(token)
            now = time.monotonic()
            if cache_key in _AUTH_USER_CACHE:
                user_data, expiry = _AUTH_USER_CACHE[cache_key]
                if now < expiry:
                    return user_data
                del _AUTH_USER_CACHE[cache_key]
            user_response = self.supabase.auth.get_user(jwt=token)
            if not user_response or not user_response.user:
                raise HTTPException(status_code=401, detail="Invalid or expired token")
            user = user_response.user
            principal = Principal.from_supabase_user(user)
            user_data = {
                "id": user.id,
                "email": user.email,
                "phone": principal.phone,
                "email_verified": principal.email_verified,
                "providers": principal.providers,
                "user_metadata": user.user_metadata or {},
                "app_metadata": user.app_metadata or {},
                "created_at": user.created_at,
                "updated_at": user.updated_at
            }
            if len(_AUTH_USER_CACHE) < _AUTH_CACHE_MAX_SIZE:
                _AUTH_USER_CACHE[cache_key] = (user_data, now + settings.auth_cache_ttl_sec)
            return user_data
        except HTTPException:
            raise
        except Exception as e:
            error_msg = str(e)
            if "JWT" in error_msg or "expired" in error_msg.lower() or "invalid" in error_msg.lower():
                raise HTTPException(status_code=401, detail="Invalid or expired token")
            raise HTTPException(status_code=401, detail="Authentication failed")

    def reload_user(self, token: str) -> Principal:
        """Fetch the principal fresh from the auth server, bypassing the cache"""
        try:
            user_response = self.supabase.auth.get_user(jwt=token)
        except Exception as e:
            raise map_auth_error(e)
        if not user_response or not user_response.user:
            raise AuthError(AuthErrorCode.NOT_AUTHENTICATED)
        invalidate_cached_user(token)
        return Principal.from_supabase_user(user_response.user)

    def logout(self, token: str) -> bool:
        """Revoke the session behind the token"""
        invalidate_cached_user(token)
        try:
            self.supabase.auth.admin.sign_out(token)
            return True
        except Exception as e:
            logger.warning(f"Sign out failed: {e}")
            raise AuthError(AuthErrorCode.SIGN_OUT_ERROR)

    def delete_auth_user(self, user_id: str, admin_client: Client) -> bool:
        """Delete the auth account (requires service role key)"""
        if not settings.supabase_service_role_key:
            raise HTTPException(
                status_code=500,
                detail="Service role key not configured. Cannot delete auth users."
            )
        try:
            admin_client.auth.admin.delete_user(user_id)
            return True
        except Exception as e:
            raise HTTPException(
                status_code=500,
                detail=f"Failed to delete auth user: {str(e)}"
            )
