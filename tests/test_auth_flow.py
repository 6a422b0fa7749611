"""
Tests for stack_api.modules.auth.flow.

Tests cover:
  • The (verified, profile exists) decision table
  • refresh_flow outcomes for each principal shape
  • Coalescing of concurrent triggers (no overlapping round trips)
  • Failure classification and forced sign-out on permission errors
  • Profile cache behaviour
  • Observers, force_flow and the auth-state listener
"""

from __future__ import annotations

import asyncio
import threading
import time
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest
from fastapi import HTTPException

from stack_api.core.exceptions import PermissionDeniedError, ProfileNotFoundError
from stack_api.modules.auth.errors import AuthError, AuthErrorCode
from stack_api.modules.auth.flow import (
    AuthFlowCoordinator,
    AuthGateway,
    FlowFailureReason,
    FlowKind,
    FlowState,
    SupabaseAuthGateway,
    TokenAuthGateway,
    classify_failure,
    resolve_flow,
)
from stack_api.modules.auth.schemas import Principal


# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------

class FakeGateway(AuthGateway):
    def __init__(self, principal=None, reload_error=None, reload_delay=0.0):
        self.principal = principal
        self.reload_error = reload_error
        self.reload_delay = reload_delay
        self.sign_out_calls = 0
        self.reload_calls = 0
        self.in_flight = 0
        self.max_in_flight = 0
        self.reload_started = threading.Event()
        self.callback = None
        self._counter_lock = threading.Lock()

    def current_principal(self):
        return self.principal

    def reload(self, principal):
        with self._counter_lock:
            self.reload_calls += 1
            self.in_flight += 1
            self.max_in_flight = max(self.max_in_flight, self.in_flight)
        self.reload_started.set()
        try:
            if self.reload_delay:
                time.sleep(self.reload_delay)
            if self.reload_error is not None:
                raise self.reload_error
            return self.principal
        finally:
            with self._counter_lock:
                self.in_flight -= 1

    def sign_out(self):
        self.sign_out_calls += 1
        self.principal = None

    def subscribe(self, callback):
        self.callback = callback
        return "handle"

    def unsubscribe(self, handle):
        self.callback = None


class FakeProfiles:
    def __init__(self, existing=(), exists_error=None, get_error=None):
        self.existing = set(existing)
        self.exists_error = exists_error
        self.get_error = get_error
        self.exists_calls = 0
        self.get_calls = 0

    def profile_exists(self, user_id):
        self.exists_calls += 1
        if self.exists_error is not None:
            raise self.exists_error
        return user_id in self.existing

    def get_profile(self, user_id):
        self.get_calls += 1
        if self.get_error is not None:
            raise self.get_error
        return SimpleNamespace(id=user_id, username=f"user_{user_id}")


def verified(user_id="u1"):
    return Principal(user_id=user_id, email="a@b.com", email_verified=True, providers=["email"])


def unverified(user_id="u1"):
    return Principal(user_id=user_id, email="a@b.com", email_verified=False, providers=["email"])


# ---------------------------------------------------------------------------
# Decision table
# ---------------------------------------------------------------------------

class TestResolveFlow:
    @pytest.mark.parametrize("profile_exists", [True, False])
    def test_unverified_always_email_verification(self, profile_exists):
        assert resolve_flow(False, profile_exists, "u1") == FlowState.email_verification()

    def test_verified_without_profile(self):
        assert resolve_flow(True, False, "u1") == FlowState.profile_setup()

    def test_verified_with_profile(self):
        state = resolve_flow(True, True, "u1")
        assert state.kind == FlowKind.MAIN
        assert state.user_id == "u1"

    def test_state_str(self):
        assert str(FlowState.main("abc")) == "main(abc)"
        assert str(FlowState.signed_out()) == "signed_out"


# ---------------------------------------------------------------------------
# refresh_flow
# ---------------------------------------------------------------------------

class TestRefreshFlow:
    @pytest.mark.asyncio
    async def test_starts_loading(self):
        coordinator = AuthFlowCoordinator(FakeGateway(), FakeProfiles())
        assert coordinator.state == FlowState.loading()

    @pytest.mark.asyncio
    async def test_no_principal_signs_out(self):
        coordinator = AuthFlowCoordinator(FakeGateway(principal=None), FakeProfiles())
        coordinator.cache_profile(SimpleNamespace(id="old"))
        state = await coordinator.refresh_flow()
        assert state == FlowState.signed_out()
        assert coordinator.current_profile is None

    @pytest.mark.asyncio
    async def test_verified_with_profile_goes_main_and_caches(self):
        profiles = FakeProfiles(existing={"u1"})
        coordinator = AuthFlowCoordinator(FakeGateway(principal=verified()), profiles)
        state = await coordinator.refresh_flow()
        assert state == FlowState.main("u1")
        assert coordinator.current_profile.id == "u1"
        assert profiles.get_calls == 1

    @pytest.mark.asyncio
    async def test_verified_without_profile_goes_profile_setup(self):
        coordinator = AuthFlowCoordinator(FakeGateway(principal=verified()), FakeProfiles())
        assert await coordinator.refresh_flow() == FlowState.profile_setup()

    @pytest.mark.asyncio
    async def test_unverified_skips_profile_lookup(self):
        profiles = FakeProfiles(existing={"u1"})
        coordinator = AuthFlowCoordinator(FakeGateway(principal=unverified()), profiles)
        assert await coordinator.refresh_flow() == FlowState.email_verification()
        assert profiles.exists_calls == 0

    @pytest.mark.asyncio
    async def test_phone_user_counts_as_verified(self):
        principal = Principal(user_id="p1", phone="+15550001111", providers=["phone"])
        coordinator = AuthFlowCoordinator(FakeGateway(principal=principal), FakeProfiles(existing={"p1"}))
        assert await coordinator.refresh_flow() == FlowState.main("p1")

    @pytest.mark.asyncio
    async def test_profile_vanishing_between_checks_goes_profile_setup(self):
        profiles = FakeProfiles(existing={"u1"}, get_error=ProfileNotFoundError())
        coordinator = AuthFlowCoordinator(FakeGateway(principal=verified()), profiles)
        assert await coordinator.refresh_flow() == FlowState.profile_setup()

    @pytest.mark.asyncio
    async def test_cached_profile_skips_lookup(self):
        profiles = FakeProfiles(existing={"u1"})
        coordinator = AuthFlowCoordinator(FakeGateway(principal=verified()), profiles)
        await coordinator.refresh_flow()
        await coordinator.refresh_flow()
        assert profiles.exists_calls == 1
        assert profiles.get_calls == 1
        assert coordinator.refresh_count == 2

    @pytest.mark.asyncio
    async def test_cached_profile_for_other_user_is_dropped(self):
        profiles = FakeProfiles(existing={"u2"})
        coordinator = AuthFlowCoordinator(FakeGateway(principal=verified("u2")), profiles)
        coordinator.cache_profile(SimpleNamespace(id="u1"))
        assert await coordinator.refresh_flow() == FlowState.main("u2")
        assert coordinator.current_profile.id == "u2"
        assert profiles.exists_calls == 1


# ---------------------------------------------------------------------------
# Failures
# ---------------------------------------------------------------------------

class TestFailures:
    @pytest.mark.asyncio
    async def test_reload_network_error_signs_out_with_reason(self):
        gateway = FakeGateway(principal=verified(), reload_error=AuthError(AuthErrorCode.NETWORK_ERROR))
        coordinator = AuthFlowCoordinator(gateway, FakeProfiles(existing={"u1"}))
        assert await coordinator.refresh_flow() == FlowState.signed_out()
        assert coordinator.last_failure.reason == FlowFailureReason.NETWORK
        assert gateway.sign_out_calls == 0

    @pytest.mark.asyncio
    async def test_unexpected_error_signs_out(self):
        gateway = FakeGateway(principal=verified(), reload_error=RuntimeError("boom"))
        coordinator = AuthFlowCoordinator(gateway, FakeProfiles())
        assert await coordinator.refresh_flow() == FlowState.signed_out()
        assert coordinator.last_failure.reason == FlowFailureReason.UNKNOWN
        assert coordinator.last_failure.message == "boom"

    @pytest.mark.asyncio
    async def test_permission_denied_forces_sign_out(self):
        gateway = FakeGateway(principal=verified())
        profiles = FakeProfiles(exists_error=PermissionDeniedError("nope"))
        coordinator = AuthFlowCoordinator(gateway, profiles)
        assert await coordinator.refresh_flow() == FlowState.signed_out()
        assert coordinator.last_failure.reason == FlowFailureReason.PERMISSION_DENIED
        assert gateway.sign_out_calls == 1
        assert coordinator.current_profile is None

    @pytest.mark.asyncio
    async def test_timeout_signs_out(self):
        gateway = FakeGateway(principal=verified(), reload_delay=0.3)
        coordinator = AuthFlowCoordinator(gateway, FakeProfiles(existing={"u1"}), timeout=0.05)
        assert await coordinator.refresh_flow() == FlowState.signed_out()
        assert coordinator.last_failure.reason == FlowFailureReason.TIMEOUT

    @pytest.mark.asyncio
    async def test_success_clears_last_failure(self):
        gateway = FakeGateway(principal=verified(), reload_error=RuntimeError("boom"))
        coordinator = AuthFlowCoordinator(gateway, FakeProfiles(existing={"u1"}))
        await coordinator.refresh_flow()
        gateway.reload_error = None
        assert await coordinator.refresh_flow() == FlowState.main("u1")
        assert coordinator.last_failure is None


class TestClassifyFailure:
    def test_timeout(self):
        assert classify_failure(asyncio.TimeoutError()).reason == FlowFailureReason.TIMEOUT

    def test_auth_not_authenticated(self):
        failure = classify_failure(AuthError(AuthErrorCode.NOT_AUTHENTICATED))
        assert failure.reason == FlowFailureReason.NOT_AUTHENTICATED
        assert failure.message == "You are not signed in."

    def test_http_401(self):
        assert classify_failure(HTTPException(status_code=401, detail="x")).reason == FlowFailureReason.NOT_AUTHENTICATED

    def test_http_503(self):
        assert classify_failure(HTTPException(status_code=503, detail="x")).reason == FlowFailureReason.NETWORK

    def test_connection_error(self):
        assert classify_failure(ConnectionError("reset")).reason == FlowFailureReason.NETWORK

    def test_permission_denied(self):
        assert classify_failure(PermissionDeniedError()).reason == FlowFailureReason.PERMISSION_DENIED


# ---------------------------------------------------------------------------
# Concurrency
# ---------------------------------------------------------------------------

class TestCoalescing:
    @pytest.mark.asyncio
    async def test_concurrent_refreshes_never_overlap(self):
        gateway = FakeGateway(principal=verified(), reload_delay=0.05)
        coordinator = AuthFlowCoordinator(gateway, FakeProfiles(existing={"u1"}))
        states = await asyncio.gather(*(coordinator.refresh_flow() for _ in range(5)))
        assert all(s == FlowState.main("u1") for s in states)
        assert gateway.max_in_flight == 1
        assert coordinator.refresh_count <= 2

    @pytest.mark.asyncio
    async def test_triggers_during_refresh_coalesce_into_one_follow_up(self):
        gateway = FakeGateway(principal=verified(), reload_delay=0.1)
        coordinator = AuthFlowCoordinator(gateway, FakeProfiles(existing={"u1"}))

        first = asyncio.ensure_future(coordinator.refresh_flow())
        await asyncio.to_thread(gateway.reload_started.wait, 1.0)
        assert coordinator.is_refreshing

        late = [asyncio.ensure_future(coordinator.refresh_flow()) for _ in range(3)]
        await asyncio.gather(first, *late)

        assert coordinator.refresh_count == 2
        assert gateway.reload_calls == 2
        assert gateway.max_in_flight == 1
        assert not coordinator.is_refreshing


# ---------------------------------------------------------------------------
# Observers, force_flow, sign_out, listener
# ---------------------------------------------------------------------------

class TestObservers:
    @pytest.mark.asyncio
    async def test_observer_sees_loading_then_result(self):
        coordinator = AuthFlowCoordinator(FakeGateway(principal=verified()), FakeProfiles(existing={"u1"}))
        seen = []
        coordinator.subscribe(seen.append)
        await coordinator.force_flow(FlowState.signed_out())
        await coordinator.refresh_flow()
        assert seen == [FlowState.signed_out(), FlowState.loading(), FlowState.main("u1")]

    @pytest.mark.asyncio
    async def test_same_state_is_not_republished(self):
        coordinator = AuthFlowCoordinator(FakeGateway(), FakeProfiles())
        callback = MagicMock()
        coordinator.subscribe(callback)
        await coordinator.force_flow(FlowState.profile_setup())
        await coordinator.force_flow(FlowState.profile_setup())
        callback.assert_called_once_with(FlowState.profile_setup())

    @pytest.mark.asyncio
    async def test_unsubscribe(self):
        coordinator = AuthFlowCoordinator(FakeGateway(), FakeProfiles())
        callback = MagicMock()
        unsubscribe = coordinator.subscribe(callback)
        unsubscribe()
        await coordinator.force_flow(FlowState.signed_out())
        callback.assert_not_called()

    @pytest.mark.asyncio
    async def test_failing_observer_does_not_break_others(self):
        coordinator = AuthFlowCoordinator(FakeGateway(), FakeProfiles())
        good = MagicMock()
        coordinator.subscribe(MagicMock(side_effect=RuntimeError("bad observer")))
        coordinator.subscribe(good)
        await coordinator.force_flow(FlowState.signed_out())
        good.assert_called_once()

    @pytest.mark.asyncio
    async def test_sign_out(self):
        gateway = FakeGateway(principal=verified())
        coordinator = AuthFlowCoordinator(gateway, FakeProfiles(existing={"u1"}))
        await coordinator.refresh_flow()
        await coordinator.sign_out()
        assert coordinator.state == FlowState.signed_out()
        assert coordinator.current_profile is None
        assert gateway.sign_out_calls == 1

    @pytest.mark.asyncio
    async def test_listener_event_triggers_refresh(self):
        gateway = FakeGateway(principal=verified())
        coordinator = AuthFlowCoordinator(gateway, FakeProfiles(existing={"u1"}))
        coordinator.attach()
        assert gateway.callback is not None

        gateway.callback("SIGNED_IN", None)
        for _ in range(100):
            await asyncio.sleep(0.01)
            if coordinator.state == FlowState.main("u1") and not coordinator.is_refreshing:
                break
        assert coordinator.state == FlowState.main("u1")

        coordinator.detach()
        assert gateway.callback is None


class TestTokenGateway:
    def test_no_token_means_no_principal(self):
        gateway = TokenAuthGateway(MagicMock(), None)
        assert gateway.current_principal() is None

    def test_principal_from_cached_user(self):
        auth_service = MagicMock()
        auth_service.get_current_user.return_value = {
            "id": "u1", "email": "a@b.com", "phone": None, "email_verified": True, "providers": ["email"]
        }
        principal = TokenAuthGateway(auth_service, "tok").current_principal()
        assert principal.user_id == "u1"
        assert principal.is_verified

    def test_sign_out_revokes_and_forgets_token(self):
        auth_service = MagicMock()
        gateway = TokenAuthGateway(auth_service, "tok")
        gateway.sign_out()
        auth_service.logout.assert_called_once_with("tok")
        assert gateway.current_principal() is None


class TestSupabaseGateway:
    def supabase_user(self, **overrides):
        data = dict(
            id="u1",
            email="a@b.com",
            phone="",
            email_confirmed_at="2024-03-01T00:00:00Z",
            app_metadata={"provider": "email", "providers": ["email"]},
        )
        data.update(overrides)
        return SimpleNamespace(**data)

    def test_principal_from_session(self):
        client = MagicMock()
        client.auth.get_session.return_value = SimpleNamespace(user=self.supabase_user())
        principal = SupabaseAuthGateway(client).current_principal()
        assert principal.user_id == "u1"
        assert principal.phone is None
        assert principal.is_verified

    def test_no_session(self):
        client = MagicMock()
        client.auth.get_session.return_value = None
        assert SupabaseAuthGateway(client).current_principal() is None

    def test_phone_user_counts_as_verified(self):
        client = MagicMock()
        user = self.supabase_user(email=None, email_confirmed_at=None, app_metadata={"provider": "phone"})
        client.auth.get_user.return_value = SimpleNamespace(user=user)
        principal = SupabaseAuthGateway(client).reload(Principal(user_id="u1"))
        assert principal.providers == ["phone"]
        assert principal.is_verified

    def test_reload_without_user(self):
        client = MagicMock()
        client.auth.get_user.return_value = None
        with pytest.raises(AuthError):
            SupabaseAuthGateway(client).reload(Principal(user_id="u1"))

    def test_subscribe_round_trip(self):
        client = MagicMock()
        gateway = SupabaseAuthGateway(client)
        handle = gateway.subscribe(lambda *args: None)
        gateway.unsubscribe(handle)
        handle.unsubscribe.assert_called_once_with()
