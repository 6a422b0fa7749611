"""
Auth flow coordinator.

Decides which top-level flow a client belongs in (loading, signed out,
email verification, profile setup, main) from the authenticated principal
and whether an app profile exists for it.

All backend calls go through two small sync collaborators:

- an ``AuthGateway`` (principal lookup, reload, sign-out, listener), and
- a profile source with ``profile_exists(user_id)`` / ``get_profile(user_id)``
  (``UserService`` satisfies this).

The coordinator runs those calls in worker threads and owns its state: only
the refresh task writes it, one refresh runs at a time, and triggers that
arrive while a refresh is in flight are coalesced into one follow-up refresh.
"""

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, List, Optional

from fastapi import HTTPException
from supabase import Client

from stack_api.core.exceptions import PermissionDeniedError, ProfileNotFoundError
from stack_api.modules.auth.errors import AuthError, AuthErrorCode
from stack_api.modules.auth.schemas import Principal
from stack_api.modules.auth.service import AuthService

logger = logging.getLogger(__name__)


class FlowKind(str, Enum):
    LOADING = "loading"
    SIGNED_OUT = "signed_out"
    EMAIL_VERIFICATION = "email_verification"
    PROFILE_SETUP = "profile_setup"
    MAIN = "main"


@dataclass(frozen=True)
class FlowState:
    kind: FlowKind
    user_id: Optional[str] = None

    @classmethod
    def loading(cls) -> "FlowState":
        return cls(FlowKind.LOADING)

    @classmethod
    def signed_out(cls) -> "FlowState":
        return cls(FlowKind.SIGNED_OUT)

    @classmethod
    def email_verification(cls) -> "FlowState":
        return cls(FlowKind.EMAIL_VERIFICATION)

    @classmethod
    def profile_setup(cls) -> "FlowState":
        return cls(FlowKind.PROFILE_SETUP)

    @classmethod
    def main(cls, user_id: str) -> "FlowState":
        return cls(FlowKind.MAIN, user_id)

    def __str__(self) -> str:
        if self.kind == FlowKind.MAIN:
            return f"main({self.user_id})"
        return self.kind.value


class FlowFailureReason(str, Enum):
    NOT_AUTHENTICATED = "not_authenticated"
    PERMISSION_DENIED = "permission_denied"
    NETWORK = "network"
    TIMEOUT = "timeout"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class FlowFailure:
    reason: FlowFailureReason
    message: str


def resolve_flow(verified: bool, profile_exists: bool, user_id: str) -> FlowState:
    """Decision table for an authenticated principal."""
    if not verified:
        return FlowState.email_verification()
    if not profile_exists:
        return FlowState.profile_setup()
    return FlowState.main(user_id)


def classify_failure(exc: BaseException) -> FlowFailure:
    message = str(exc) or exc.__class__.__name__
    if isinstance(exc, HTTPException):
        message = str(exc.detail)
    if isinstance(exc, (asyncio.TimeoutError, TimeoutError)):
        return FlowFailure(FlowFailureReason.TIMEOUT, "Timed out while resolving the session")
    if isinstance(exc, AuthError):
        if exc.code in (AuthErrorCode.NOT_AUTHENTICATED, AuthErrorCode.REQUIRES_RECENT_LOGIN):
            return FlowFailure(FlowFailureReason.NOT_AUTHENTICATED, message)
        if exc.code == AuthErrorCode.NETWORK_ERROR:
            return FlowFailure(FlowFailureReason.NETWORK, message)
    if isinstance(exc, PermissionDeniedError):
        return FlowFailure(FlowFailureReason.PERMISSION_DENIED, message)
    if isinstance(exc, HTTPException):
        if exc.status_code == 401:
            return FlowFailure(FlowFailureReason.NOT_AUTHENTICATED, message)
        if exc.status_code == 403:
            return FlowFailure(FlowFailureReason.PERMISSION_DENIED, message)
        if exc.status_code in (502, 503, 504):
            return FlowFailure(FlowFailureReason.NETWORK, message)
    if isinstance(exc, (ConnectionError, OSError)):
        return FlowFailure(FlowFailureReason.NETWORK, message)
    return FlowFailure(FlowFailureReason.UNKNOWN, message)


class AuthGateway:
    """Sync adapter over the auth backend."""

    def current_principal(self) -> Optional[Principal]:
        raise NotImplementedError

    def reload(self, principal: Principal) -> Principal:
        raise NotImplementedError

    def sign_out(self) -> None:
        raise NotImplementedError

    def subscribe(self, callback: Callable[..., None]) -> Any:
        """Register for auth-state-changed events; returns a handle for unsubscribe()."""
        return None

    def unsubscribe(self, handle: Any) -> None:
        pass


class SupabaseAuthGateway(AuthGateway):
    """Gateway over a Supabase client holding its own session."""

    def __init__(self, client: Client):
        self.client = client

    def current_principal(self) -> Optional[Principal]:
        session = self.client.auth.get_session()
        if not session or not session.user:
            return None
        return Principal.from_supabase_user(session.user)

    def reload(self, principal: Principal) -> Principal:
        response = self.client.auth.get_user()
        if not response or not response.user:
            raise AuthError(AuthErrorCode.NOT_AUTHENTICATED)
        return Principal.from_supabase_user(response.user)

    def sign_out(self) -> None:
        self.client.auth.sign_out()

    def subscribe(self, callback: Callable[..., None]) -> Any:
        return self.client.auth.on_auth_state_change(callback)

    def unsubscribe(self, handle: Any) -> None:
        if handle is not None:
            handle.unsubscribe()


class TokenAuthGateway(AuthGateway):
    """Gateway for one request: the principal comes from a bearer token."""

    def __init__(self, auth_service: AuthService, token: Optional[str]):
        self.auth_service = auth_service
        self.token = token

    def current_principal(self) -> Optional[Principal]:
        if not self.token:
            return None
        user_data = self.auth_service.get_current_user(self.token)
        return Principal(
            user_id=user_data["id"],
            email=user_data.get("email"),
            phone=user_data.get("phone"),
            email_verified=bool(user_data.get("email_verified")),
            providers=user_data.get("providers") or [],
        )

    def reload(self, principal: Principal) -> Principal:
        return self.auth_service.reload_user(self.token)

    def sign_out(self) -> None:
        if self.token:
            self.auth_service.logout(self.token)
        self.token = None


class AuthFlowCoordinator:
    """Owns the published FlowState and the cached profile of the current user."""

    def __init__(self, gateway: AuthGateway, profiles: Any, timeout: Optional[float] = None):
        self._gateway = gateway
        self._profiles = profiles
        self._timeout = timeout
        self._state = FlowState.loading()
        self._observers: List[Callable[[FlowState], None]] = []
        self._lock = asyncio.Lock()
        self._pending = False
        self._runner: Optional[asyncio.Future] = None
        self._subscription = None
        self.current_profile: Any = None
        self.last_failure: Optional[FlowFailure] = None
        self.refresh_count = 0

    @property
    def state(self) -> FlowState:
        return self._state

    @property
    def is_refreshing(self) -> bool:
        return self._runner is not None and not self._runner.done()

    def subscribe(self, callback: Callable[[FlowState], None]) -> Callable[[], None]:
        self._observers.append(callback)

        def unsubscribe():
            if callback in self._observers:
                self._observers.remove(callback)
        return unsubscribe

    def _set_state(self, new_state: FlowState) -> None:
        if new_state == self._state:
            return
        logger.info(f"Auth flow {self._state} -> {new_state}")
        self._state = new_state
        for callback in list(self._observers):
            try:
                callback(new_state)
            except Exception:
                logger.exception("Flow state observer failed")

    # Profile cache

    def cache_profile(self, profile: Any) -> None:
        self.current_profile = profile

    def clear_profile_cache(self) -> None:
        self.current_profile = None

    def _cached_profile_id(self) -> Optional[str]:
        if self.current_profile is None:
            return None
        if isinstance(self.current_profile, dict):
            return self.current_profile.get("id")
        return getattr(self.current_profile, "id", None)

    def _verify_profile_consistency(self, user_id: str) -> None:
        cached_id = self._cached_profile_id()
        if cached_id is not None and cached_id != user_id:
            logger.warning(f"Cached profile {cached_id} does not match principal {user_id}; clearing")
            self.clear_profile_cache()

    # Triggers

    def _trigger(self) -> asyncio.Future:
        self._pending = True
        if self._runner is None or self._runner.done():
            self._runner = asyncio.ensure_future(self._drain())
        else:
            logger.debug("Refresh in flight; coalescing trigger")
        return self._runner

    async def refresh_flow(self) -> FlowState:
        """Re-evaluate the flow; concurrent callers share one refresh cycle."""
        await asyncio.shield(self._trigger())
        return self._state

    async def force_flow(self, state: FlowState) -> None:
        async with self._lock:
            logger.info(f"Forcing auth flow to {state}")
            self._set_state(state)

    async def sign_out(self) -> None:
        async with self._lock:
            self.clear_profile_cache()
            try:
                await asyncio.to_thread(self._gateway.sign_out)
            finally:
                self._set_state(FlowState.signed_out())

    def attach(self) -> None:
        """Refresh on every auth-state-changed event from the gateway."""
        if self._subscription is not None:
            return
        loop = asyncio.get_running_loop()

        def on_auth_event(*_args):
            loop.call_soon_threadsafe(self._trigger)

        self._subscription = self._gateway.subscribe(on_auth_event)
        logger.info("Auth state listener attached")

    def detach(self) -> None:
        if self._subscription is None:
            return
        self._gateway.unsubscribe(self._subscription)
        self._subscription = None
        logger.info("Auth state listener detached")

    # Refresh cycle

    async def _drain(self) -> None:
        while self._pending:
            self._pending = False
            async with self._lock:
                await self._refresh_once()

    async def _refresh_once(self) -> None:
        self.refresh_count += 1
        self._set_state(FlowState.loading())
        try:
            if self._timeout:
                new_state = await asyncio.wait_for(self._resolve(), self._timeout)
            else:
                new_state = await self._resolve()
            self.last_failure = None
        except Exception as e:
            failure = classify_failure(e)
            logger.warning(f"Auth flow refresh failed ({failure.reason.value}): {failure.message}")
            self.last_failure = failure
            self.clear_profile_cache()
            if failure.reason == FlowFailureReason.PERMISSION_DENIED:
                await self._force_backend_sign_out()
            new_state = FlowState.signed_out()
        self._set_state(new_state)

    async def _force_backend_sign_out(self) -> None:
        try:
            await asyncio.to_thread(self._gateway.sign_out)
        except Exception as e:
            logger.error(f"Forced sign-out after permission error failed: {e}")

    async def _resolve(self) -> FlowState:
        principal = await asyncio.to_thread(self._gateway.current_principal)
        if principal is None:
            self.clear_profile_cache()
            return FlowState.signed_out()

        principal = await asyncio.to_thread(self._gateway.reload, principal)
        user_id = principal.user_id
        self._verify_profile_consistency(user_id)

        if not principal.is_verified:
            return resolve_flow(False, False, user_id)

        profile_exists = self.current_profile is not None
        if not profile_exists:
            profile_exists = await asyncio.to_thread(self._profiles.profile_exists, user_id)
        if profile_exists and self.current_profile is None:
            try:
                self.current_profile = await asyncio.to_thread(self._profiles.get_profile, user_id)
            except ProfileNotFoundError:
                profile_exists = False
        return resolve_flow(True, profile_exists, user_id)
