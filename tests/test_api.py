"""
HTTP-level tests for the FastAPI app.

Supabase and the bearer-token dependency are overridden so requests run
against the in-memory fake.

Tests cover:
  • Health, readiness and security headers
  • Authentication required on protected routes
  • Session create → analytics summary round trip through the routers
  • Verified-only actions and group membership checks
  • Home game buy-in request and host approval
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from stack_api.config.settings import settings
from stack_api.core.dependencies import get_current_user_id
from stack_api.database.supabase_client import get_supabase
from stack_api.main import app


@pytest.fixture
def current_user():
    return {"id": "alice", "email": "alice@example.com", "email_verified": True, "providers": ["email"]}


@pytest.fixture
def client(fake_supabase, current_user):
    fake_supabase.seed(
        "user_profiles",
        {"id": "alice", "username": "alice"},
        {"id": "bob", "username": "bob"},
    )
    app.dependency_overrides[get_supabase] = lambda: fake_supabase
    app.dependency_overrides[get_current_user_id] = lambda: current_user
    yield TestClient(app)
    app.dependency_overrides.clear()


def session_payload(start: datetime, buy_in=200, cashout=450):
    return {
        "game_type": "Cash Game",
        "game_name": "Bellagio",
        "stakes": "$1/$2",
        "start_date": start.isoformat(),
        "start_time": start.isoformat(),
        "end_time": (start + timedelta(hours=5)).isoformat(),
        "buy_in": buy_in,
        "cashout": cashout,
    }


# ---------------------------------------------------------------------------
# Service endpoints
# ---------------------------------------------------------------------------

class TestServiceEndpoints:
    def test_health_has_security_headers(self):
        response = TestClient(app).get("/health")
        assert response.status_code == 200
        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert response.headers["X-Frame-Options"] == "DENY"

    def test_ready_without_supabase(self, monkeypatch):
        monkeypatch.setattr(settings, "supabase_url", "")
        assert TestClient(app).get("/ready").status_code == 503

    def test_ready_with_supabase(self, monkeypatch):
        monkeypatch.setattr(settings, "supabase_url", "https://example.supabase.co")
        monkeypatch.setattr(settings, "supabase_key", "anon")
        assert TestClient(app).get("/ready").json() == {"status": "ready"}

    def test_protected_route_needs_token(self):
        response = TestClient(app).get("/api/v1/sessions")
        assert response.status_code in (401, 403)


# ---------------------------------------------------------------------------
# Sessions and analytics
# ---------------------------------------------------------------------------

class TestSessionsAndAnalytics:
    def test_create_then_summarise(self, client):
        start = datetime.now(timezone.utc) - timedelta(days=2)
        created = client.post("/api/v1/sessions", json=session_payload(start))
        assert created.status_code == 201
        assert created.json()["profit"] == 250
        assert created.json()["hours_played"] == pytest.approx(5)

        client.post("/api/v1/sessions", json=session_payload(start - timedelta(days=60), buy_in=300, cashout=100))

        summary = client.get("/api/v1/analytics/summary", params={"time_range": "1W"}).json()
        assert summary["total_sessions"] == 2
        assert summary["win_rate"] == pytest.approx(50)
        assert summary["selected_range_profit"] == pytest.approx(250)
        assert summary["time_range_label"] == "week"
        assert summary["filter_active"] is False

    def test_summary_with_filter(self, client):
        start = datetime.now(timezone.utc) - timedelta(days=2)
        client.post("/api/v1/sessions", json=session_payload(start))
        client.post("/api/v1/sessions", json=session_payload(start, buy_in=300, cashout=100))

        summary = client.get("/api/v1/analytics/summary", params={"profitability": "losing"}).json()
        assert summary["filter_active"] is True
        assert summary["total_sessions"] == 1
        assert summary["average_profit"] == pytest.approx(-200)

    def test_day_of_week_has_seven_rows(self, client):
        rows = client.get("/api/v1/analytics/day-of-week").json()
        assert [r["day_name"] for r in rows][:2] == ["Monday", "Tuesday"]
        assert len(rows) == 7

    def test_bad_time_range(self, client):
        assert client.get("/api/v1/analytics/summary", params={"time_range": "2W"}).status_code == 422

    def test_other_users_session(self, client, fake_supabase, current_user):
        start = datetime.now(timezone.utc)
        created = client.post("/api/v1/sessions", json=session_payload(start)).json()
        current_user["id"] = "bob"
        assert client.get(f"/api/v1/sessions/{created['id']}").status_code == 403


# ---------------------------------------------------------------------------
# Social
# ---------------------------------------------------------------------------

class TestSocial:
    def test_unverified_user_cannot_post(self, client, current_user):
        current_user["email_verified"] = False
        response = client.post("/api/v1/posts", json={"content": "hello"})
        assert response.status_code == 403

    def test_verified_user_posts(self, client):
        response = client.post("/api/v1/posts", json={"content": "hello"})
        assert response.status_code == 201
        assert response.json()["username"] == "alice"

    def test_group_visible_to_members_only(self, client, current_user):
        group = client.post("/api/v1/groups", json={"name": "Home Game"}).json()
        assert client.get(f"/api/v1/groups/{group['id']}").status_code == 200

        current_user["id"] = "bob"
        assert client.get(f"/api/v1/groups/{group['id']}").status_code == 403
        assert client.get(f"/api/v1/groups/{group['id']}/messages").status_code == 403

    def test_home_game_buy_in_round_trip(self, client, current_user):
        created = client.post("/api/v1/home-games", json={"title": "Friday", "small_blind": 1, "big_blind": 2})
        assert created.status_code == 201
        game_id = created.json()["id"]
        assert created.json()["stakes"] == "$1/$2"

        current_user["id"] = "bob"
        request = client.post(f"/api/v1/home-games/{game_id}/buy-ins", json={"amount": 100})
        assert request.status_code == 201
        assert client.post(f"/api/v1/home-games/{game_id}/buy-ins/{request.json()['id']}/approve").status_code == 403

        current_user["id"] = "alice"
        approved = client.post(f"/api/v1/home-games/{game_id}/buy-ins/{request.json()['id']}/approve")
        assert approved.json()["total_buy_in"] == 100

        detail = client.get(f"/api/v1/home-games/{game_id}").json()
        assert [p["user_id"] for p in detail["players"]] == ["bob"]
        assert detail["pending_requests"] == []
        assert client.post(f"/api/v1/home-games/{game_id}/buy-ins", json={"amount": 0}).status_code == 422
