from pydantic import BaseModel, EmailStr, Field
from typing import Optional, List, Any


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class TokenResponse(BaseModel):
    access_token: str
    refresh_token: Optional[str] = None
    token_type: str = "bearer"
    user_id: str
    email: Optional[str] = None
    phone: Optional[str] = None


class RegisterRequest(BaseModel):
    email: EmailStr
    password: str
    display_name: Optional[str] = None


class RegisterResponse(BaseModel):
    user_id: str
    email: str
    email_verification_required: bool = True
    message: str


class RefreshRequest(BaseModel):
    refresh_token: str


class EmailRequest(BaseModel):
    email: EmailStr


class PhoneCodeRequest(BaseModel):
    phone: str = Field(..., min_length=8, max_length=20)


class PhoneVerifyRequest(BaseModel):
    phone: str = Field(..., min_length=8, max_length=20)
    code: str = Field(..., min_length=4, max_length=10)


class Principal(BaseModel):
    """Authenticated identity as reported by the auth service (not the app profile)."""
    user_id: str
    email: Optional[str] = None
    phone: Optional[str] = None
    email_verified: bool = False
    providers: List[str] = []

    @property
    def is_phone_user(self) -> bool:
        return "phone" in self.providers

    @property
    def is_verified(self) -> bool:
        # Phone sign-ins have no email to confirm
        return self.email_verified or self.is_phone_user

    @classmethod
    def from_supabase_user(cls, user: Any) -> "Principal":
        app_metadata = getattr(user, "app_metadata", None) or {}
        providers = list(app_metadata.get("providers") or [])
        provider = app_metadata.get("provider")
        if provider and provider not in providers:
            providers.append(provider)
        return cls(
            user_id=user.id,
            email=getattr(user, "email", None) or None,
            phone=getattr(user, "phone", None) or None,
            email_verified=getattr(user, "email_confirmed_at", None) is not None,
            providers=providers,
        )


class FlowFailureResponse(BaseModel):
    reason: str
    message: str


class FlowResponse(BaseModel):
    state: str
    user_id: Optional[str] = None
    failure: Optional[FlowFailureResponse] = None
