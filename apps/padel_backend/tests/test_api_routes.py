"""
HTTP-level tests for the club API.

The app's store and login flow are swapped for in-memory ones through
dependency overrides, so startup (database, seeding) never runs.
"""

import json
import os
from unittest.mock import MagicMock, patch

import pytest
from fastapi.testclient import TestClient

from padel_backend.api.dependencies import get_login_flow, get_store
from padel_backend.api import main
from padel_backend.api.main import app
from padel_backend.services import matchmaking_service
from padel_backend.services.auth_service import LoginFlow, verify_password
from padel_backend.tests.factories import make_booking

EARLY = "08:00-09:30"


@pytest.fixture
def login_flow(store):
    return LoginFlow(store)


@pytest.fixture
def client(store, login_flow):
    """TestClient bound to the fixture store."""
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_login_flow] = lambda: login_flow
    yield TestClient(app)
    app.dependency_overrides.clear()


def login_as(store, player):
    store.logged_player = store.get_player(player.id)


# ============================================================================
# Health / session
# ============================================================================


def test_health(client):
    response = client.get("/api/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_server_binds_to_loopback_by_default():
    assert main.DEFAULT_HOST == "127.0.0.1"
    assert main.HOST == os.environ.get("HOST", "127.0.0.1")


def test_session_starts_at_phone_step(client):
    response = client.get("/api/auth/session")
    assert response.status_code == 200
    assert response.json() == {"step": "awaiting_phone", "player": None, "isAdmin": False}


# ============================================================================
# Login flow
# ============================================================================


def test_first_login_via_api(client, store, alice):
    response = client.post("/api/auth/phone", json={"phone": "111"})
    assert response.status_code == 200
    assert response.json()["step"] == "awaiting_setup"

    response = client.post("/api/auth/setup", json={"newPassword": "ab"})
    assert response.status_code == 400
    assert "at least 4" in response.json()["detail"]

    response = client.post("/api/auth/setup", json={"newPassword": "abcd"})
    assert response.status_code == 200
    data = response.json()
    assert data["step"] == "authenticated"
    assert data["player"]["id"] == alice.id
    assert data["player"]["hasPassword"] is True
    assert "passwordHash" not in data["player"]
    assert verify_password("abcd", store.get_player(alice.id).password_hash)


def test_password_login_and_logout(client):
    assert client.post("/api/auth/phone", json={"phone": "222"}).json()["step"] == "awaiting_password"

    response = client.post("/api/auth/password", json={"password": "wrong"})
    assert response.status_code == 401

    response = client.post("/api/auth/password", json={"password": "abcd"})
    assert response.status_code == 200
    assert response.json()["step"] == "authenticated"

    response = client.post("/api/auth/logout")
    assert response.json()["step"] == "awaiting_phone"
    assert client.get("/api/bookings").status_code == 401


def test_unknown_phone_returns_401(client):
    response = client.post("/api/auth/phone", json={"phone": "000"})
    assert response.status_code == 401
    assert response.json()["detail"].startswith("Phone number not found")


def test_setup_out_of_order_returns_401(client):
    assert client.post("/api/auth/setup", json={"newPassword": "abcd"}).status_code == 401


# ============================================================================
# Players
# ============================================================================


def test_list_players_requires_login(client):
    assert client.get("/api/players").status_code == 401


def test_player_sees_only_self(client, store, alice):
    login_as(store, alice)
    response = client.get("/api/players")
    assert response.status_code == 200
    assert [p["id"] for p in response.json()] == [alice.id]


def test_admin_lists_and_searches_roster(client, store, admin, carol):
    store.bookings = [make_booking(EARLY, carol.id)]
    login_as(store, admin)

    assert len(client.get("/api/players").json()) == 4

    response = client.get("/api/players", params={"q": "gamma"})
    [found] = response.json()
    assert found["id"] == carol.id
    assert found["activeBookings"] == 1


def test_create_player(client, store, admin):
    login_as(store, admin)
    response = client.post(
        "/api/players",
        json={"name": "Dave", "phone": "444", "level": "Level 3 (Upper Intermediate)", "side": "Backhand"},
    )
    assert response.status_code == 201
    data = response.json()
    assert data["matchesPlayed"] == 0
    assert data["hasPassword"] is False
    assert store.get_player_by_phone("444") is not None


def test_create_player_duplicate_phone_returns_409(client, store, admin):
    login_as(store, admin)
    response = client.post("/api/players", json={"name": "Copy", "phone": "111"})
    assert response.status_code == 409


def test_create_player_blank_name_returns_400(client, store, admin):
    login_as(store, admin)
    assert client.post("/api/players", json={"name": " ", "phone": "555"}).status_code == 400


def test_create_player_requires_admin(client, store, alice):
    login_as(store, alice)
    assert client.post("/api/players", json={"name": "Dave", "phone": "444"}).status_code == 403


def test_player_updates_own_profile(client, store, alice):
    login_as(store, alice)
    response = client.put(f"/api/players/{alice.id}", json={"side": "Drive (Forehand)", "password": "new1"})
    assert response.status_code == 200
    assert response.json()["side"] == "Drive (Forehand)"
    assert verify_password("new1", store.get_player(alice.id).password_hash)


def test_player_cannot_update_other_profile(client, store, alice, bob):
    login_as(store, alice)
    assert client.put(f"/api/players/{bob.id}", json={"name": "x"}).status_code == 403


def test_update_unknown_player_returns_404(client, store, admin):
    login_as(store, admin)
    assert client.put("/api/players/ghost", json={"name": "x"}).status_code == 404


def test_delete_player_releases_bookings(client, store, admin, alice, bob):
    store.bookings = [make_booking(EARLY, alice.id, bob.id, booking_id="b1")]
    login_as(store, admin)

    response = client.delete(f"/api/players/{alice.id}")
    assert response.json() == {"status": "success", "deleted": True, "released_bookings": 1}
    assert store.get_booking("b1").player_ids == [bob.id]

    response = client.delete(f"/api/players/{alice.id}")
    assert response.json()["deleted"] is False


def test_reset_password(client, store, admin, bob):
    login_as(store, admin)
    response = client.post(f"/api/players/{bob.id}/reset-password")
    assert response.status_code == 200
    assert response.json()["hasPassword"] is False


# ============================================================================
# Bookings
# ============================================================================


def test_enroll_and_list(client, store, alice):
    login_as(store, alice)
    response = client.post("/api/bookings/enroll", json={"slotTime": EARLY})
    assert response.status_code == 201
    assert response.json()["playerIds"] == [alice.id]

    response = client.post("/api/bookings/enroll", json={"slotTime": EARLY})
    assert response.status_code == 409

    slots = client.get("/api/bookings").json()
    assert [s["slotTime"] for s in slots] == [EARLY, "09:30-11:00", "11:00-13:00"]
    assert slots[0]["isEnrolled"] is True
    assert slots[0]["totalBookings"] == 1


def test_enroll_unknown_slot_returns_404(client, store, alice):
    login_as(store, alice)
    assert client.post("/api/bookings/enroll", json={"slotTime": "20:00-21:30"}).status_code == 404


def test_admin_pairs_partner(client, store, admin, alice, bob):
    store.bookings = [make_booking(EARLY, alice.id, booking_id="b1")]
    login_as(store, admin)

    available = client.get("/api/bookings/available", params={"slot_time": EARLY}).json()
    assert alice.id not in [p["id"] for p in available]

    response = client.put("/api/bookings/b1/players", json={"playerIds": [alice.id, bob.id]})
    assert response.status_code == 200
    assert response.json() == {"id": "b1", "slotTime": EARLY, "playerIds": [alice.id, bob.id]}


def test_admin_create_booking_validation(client, store, admin, alice, bob):
    login_as(store, admin)
    response = client.post(
        "/api/bookings", json={"slotTime": EARLY, "playerIds": [alice.id, bob.id], "mode": "solo"}
    )
    assert response.status_code == 400

    response = client.post(
        "/api/bookings", json={"slotTime": EARLY, "playerIds": [alice.id, bob.id], "mode": "doubles"}
    )
    assert response.status_code == 201


def test_leave_booking(client, store, alice, bob):
    store.bookings = [make_booking(EARLY, alice.id, bob.id, booking_id="b1")]
    login_as(store, alice)

    response = client.post("/api/bookings/b1/leave", json={"playerId": bob.id})
    assert response.status_code == 403

    response = client.post("/api/bookings/b1/leave", json={"playerId": alice.id})
    data = response.json()
    assert data["status"] == "success"
    assert data["cancelled"] is False
    assert data["booking"] == {"id": "b1", "slotTime": EARLY, "playerIds": [bob.id]}


def test_leaving_solo_booking_cancels_it(client, store, alice):
    store.bookings = [make_booking(EARLY, alice.id, booking_id="b1")]
    login_as(store, alice)

    response = client.post("/api/bookings/b1/leave", json={"playerId": alice.id})
    assert response.status_code == 200
    assert response.json() == {"status": "success", "cancelled": True, "booking": None}
    assert store.bookings == []


def test_cancel_booking(client, store, alice):
    store.bookings = [make_booking(EARLY, alice.id, booking_id="b1")]
    login_as(store, alice)

    assert client.delete("/api/bookings/b1").json() == {"status": "success", "cancelled": True, "booking": None}
    assert client.delete("/api/bookings/b1").status_code == 404


# ============================================================================
# Matchmaking
# ============================================================================


def test_matchmaking_requires_admin(client, store, alice):
    login_as(store, alice)
    assert client.post("/api/matchmaking/suggestion").status_code == 403


def test_matchmaking_needs_four_players(client, store, admin, carol):
    store.players = [p for p in store.players if p.id != carol.id]
    login_as(store, admin)

    with patch.object(matchmaking_service, "get_gemini_client") as mock_get:
        response = client.post("/api/matchmaking/suggestion")

    assert response.status_code == 400
    mock_get.assert_not_called()


def test_matchmaking_suggestion(client, store, admin, alice, bob, carol):
    login_as(store, admin)
    mock_client = MagicMock()
    mock_client.models.generate_content.return_value = MagicMock(text=json.dumps({
        "team1Ids": [admin.id, carol.id],
        "team2Ids": [alice.id, bob.id],
        "reasoning": "Strong and beginner together",
        "balanceScore": 91,
    }))

    with patch.object(matchmaking_service, "get_gemini_client", return_value=mock_client):
        response = client.post("/api/matchmaking/suggestion")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"
    assert [p["id"] for p in data["suggestion"]["team1"]] == [admin.id, carol.id]
    assert data["suggestion"]["balanceScore"] == 91


def test_matchmaking_failure_is_reported(client, store, admin):
    login_as(store, admin)
    mock_client = MagicMock()
    mock_client.models.generate_content.side_effect = Exception("quota")

    with patch.object(matchmaking_service, "get_gemini_client", return_value=mock_client):
        response = client.post("/api/matchmaking/suggestion")

    assert response.status_code == 200
    assert response.json() == {
        "status": "failed",
        "suggestion": None,
        "errorMessage": "The match advisor is unavailable",
    }
