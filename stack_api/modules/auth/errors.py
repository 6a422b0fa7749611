from enum import Enum
from typing import Optional
from fastapi import HTTPException


class AuthErrorCode(str, Enum):
    WRONG_PASSWORD = "wrong_password"
    USER_NOT_FOUND = "user_not_found"
    INVALID_EMAIL = "invalid_email"
    EMAIL_IN_USE = "email_in_use"
    NETWORK_ERROR = "network_error"
    WEAK_PASSWORD = "weak_password"
    TOO_MANY_REQUESTS = "too_many_requests"
    USER_DISABLED = "user_disabled"
    REQUIRES_RECENT_LOGIN = "requires_recent_login"
    EMAIL_NOT_VERIFIED = "email_not_verified"
    VERIFICATION_EMAIL_FAILED = "verification_email_failed"
    NOT_AUTHENTICATED = "not_authenticated"
    SIGN_OUT_ERROR = "sign_out_error"
    INVALID_PHONE_NUMBER = "invalid_phone_number"
    INVALID_VERIFICATION_CODE = "invalid_verification_code"
    UNKNOWN = "unknown"


AUTH_ERROR_MESSAGES = {
    AuthErrorCode.WRONG_PASSWORD: "Incorrect email or password.",
    AuthErrorCode.USER_NOT_FOUND: "No account found with this email.",
    AuthErrorCode.INVALID_EMAIL: "Please enter a valid email address.",
    AuthErrorCode.EMAIL_IN_USE: "An account with this email already exists.",
    AuthErrorCode.NETWORK_ERROR: "Network error. Please check your connection.",
    AuthErrorCode.WEAK_PASSWORD: "Password must be at least 6 characters long.",
    AuthErrorCode.TOO_MANY_REQUESTS: "Too many attempts. Please try again later.",
    AuthErrorCode.USER_DISABLED: "This account has been disabled.",
    AuthErrorCode.REQUIRES_RECENT_LOGIN: "Please sign in again to continue.",
    AuthErrorCode.EMAIL_NOT_VERIFIED: "Please verify your email before signing in.",
    AuthErrorCode.VERIFICATION_EMAIL_FAILED: "Failed to send verification email. Please try again.",
    AuthErrorCode.NOT_AUTHENTICATED: "You are not signed in.",
    AuthErrorCode.SIGN_OUT_ERROR: "Failed to sign out. Please try again.",
    AuthErrorCode.INVALID_PHONE_NUMBER: "Please enter a valid phone number.",
    AuthErrorCode.INVALID_VERIFICATION_CODE: "Invalid verification code.",
}

AUTH_ERROR_STATUS = {
    AuthErrorCode.WRONG_PASSWORD: 401,
    AuthErrorCode.USER_NOT_FOUND: 404,
    AuthErrorCode.INVALID_EMAIL: 422,
    AuthErrorCode.EMAIL_IN_USE: 409,
    AuthErrorCode.NETWORK_ERROR: 503,
    AuthErrorCode.WEAK_PASSWORD: 422,
    AuthErrorCode.TOO_MANY_REQUESTS: 429,
    AuthErrorCode.USER_DISABLED: 403,
    AuthErrorCode.REQUIRES_RECENT_LOGIN: 401,
    AuthErrorCode.EMAIL_NOT_VERIFIED: 403,
    AuthErrorCode.VERIFICATION_EMAIL_FAILED: 502,
    AuthErrorCode.NOT_AUTHENTICATED: 401,
    AuthErrorCode.SIGN_OUT_ERROR: 500,
    AuthErrorCode.INVALID_PHONE_NUMBER: 422,
    AuthErrorCode.INVALID_VERIFICATION_CODE: 401,
    AuthErrorCode.UNKNOWN: 500,
}

# Supabase auth error codes (newer servers) -> our codes
_SUPABASE_CODES = {
    "invalid_credentials": AuthErrorCode.WRONG_PASSWORD,
    "user_not_found": AuthErrorCode.USER_NOT_FOUND,
    "email_address_invalid": AuthErrorCode.INVALID_EMAIL,
    "validation_failed": AuthErrorCode.INVALID_EMAIL,
    "user_already_exists": AuthErrorCode.EMAIL_IN_USE,
    "email_exists": AuthErrorCode.EMAIL_IN_USE,
    "weak_password": AuthErrorCode.WEAK_PASSWORD,
    "over_request_rate_limit": AuthErrorCode.TOO_MANY_REQUESTS,
    "over_email_send_rate_limit": AuthErrorCode.TOO_MANY_REQUESTS,
    "over_sms_send_rate_limit": AuthErrorCode.TOO_MANY_REQUESTS,
    "user_banned": AuthErrorCode.USER_DISABLED,
    "reauthentication_needed": AuthErrorCode.REQUIRES_RECENT_LOGIN,
    "email_not_confirmed": AuthErrorCode.EMAIL_NOT_VERIFIED,
    "otp_expired": AuthErrorCode.INVALID_VERIFICATION_CODE,
    "phone_exists": AuthErrorCode.EMAIL_IN_USE,
    "bad_jwt": AuthErrorCode.NOT_AUTHENTICATED,
    "session_not_found": AuthErrorCode.NOT_AUTHENTICATED,
}

# Fallback on message text for older servers
_MESSAGE_HINTS = [
    ("invalid login credentials", AuthErrorCode.WRONG_PASSWORD),
    ("already registered", AuthErrorCode.EMAIL_IN_USE),
    ("already exists", AuthErrorCode.EMAIL_IN_USE),
    ("email not confirmed", AuthErrorCode.EMAIL_NOT_VERIFIED),
    ("password should be at least", AuthErrorCode.WEAK_PASSWORD),
    ("rate limit", AuthErrorCode.TOO_MANY_REQUESTS),
    ("too many requests", AuthErrorCode.TOO_MANY_REQUESTS),
    ("invalid email", AuthErrorCode.INVALID_EMAIL),
    ("unable to validate email", AuthErrorCode.INVALID_EMAIL),
    ("invalid phone", AuthErrorCode.INVALID_PHONE_NUMBER),
    ("token has expired or is invalid", AuthErrorCode.INVALID_VERIFICATION_CODE),
    ("banned", AuthErrorCode.USER_DISABLED),
    ("user not found", AuthErrorCode.USER_NOT_FOUND),
    ("jwt", AuthErrorCode.NOT_AUTHENTICATED),
    ("expired", AuthErrorCode.NOT_AUTHENTICATED),
    ("connection", AuthErrorCode.NETWORK_ERROR),
    ("network", AuthErrorCode.NETWORK_ERROR),
    ("timed out", AuthErrorCode.NETWORK_ERROR),
]


class AuthError(HTTPException):
    """Auth failure carrying a stable code and a user-facing message."""

    def __init__(self, code: AuthErrorCode, message: Optional[str] = None):
        self.code = code
        detail = message or AUTH_ERROR_MESSAGES.get(code) or "An unknown error occurred."
        super().__init__(status_code=AUTH_ERROR_STATUS[code], detail=detail)


def map_auth_error(exc: Exception) -> AuthError:
    if isinstance(exc, AuthError):
        return exc
    if isinstance(exc, (ConnectionError, TimeoutError)):
        return AuthError(AuthErrorCode.NETWORK_ERROR)
    code = getattr(exc, "code", None)
    if code in _SUPABASE_CODES:
        return AuthError(_SUPABASE_CODES[code])
    message = str(exc)
    lowered = message.lower()
    for hint, mapped in _MESSAGE_HINTS:
        if hint in lowered:
            return AuthError(mapped)
    return AuthError(AuthErrorCode.UNKNOWN, message or None)
