"""
tests/test_api_routes.py — FastAPI Route Integration Tests
==========================================================
Drives the HTTP surface with the FastAPI TestClient against the shared
in-memory database.

These tests verify:
- Error mapping (status code + ``{"error", "message"}`` body)
- Auth guards on ``/users/me`` and admin catalogue endpoints
- The register → login → spend → equip → logout flow end to end
"""

from __future__ import annotations

import pytest
from conftest import auth_header, make_account, make_cosmetic


def _login(client, username: str, password: str = "hunter22") -> str:
    resp = client.post("/api/users/login", json={"username": username, "password": password})
    assert resp.status_code == 200, resp.text
    return resp.json()["token"]


@pytest.fixture
def alice_token(client, db_engine):
    make_account(db_engine, "alice", balance=500)
    return _login(client, "alice")


@pytest.fixture
def admin_token(client, db_engine):
    make_account(db_engine, "root", is_admin=True)
    return _login(client, "root")


# ===========================================================================
# Health endpoint
# ===========================================================================
class TestHealthEndpoint:
    def test_health_returns_ok(self, client):
        resp = client.get("/api/health")
        assert resp.status_code == 200
        assert resp.json() == {"status": "ok"}


# ===========================================================================
# Registration & session
# ===========================================================================
class TestAuthFlow:
    def test_register_login_me(self, client):
        resp = client.post(
            "/api/users/register",
            json={"username": "carol", "password": "pw-carol", "email": "c@example.com"},
        )
        assert resp.status_code == 201
        body = resp.json()
        assert body["balance"] == 0
        assert "password_hash" not in body

        token = _login(client, "carol", "pw-carol")
        me = client.get("/api/users/me", headers=auth_header(token))
        assert me.status_code == 200
        assert me.json()["username"] == "carol"

    def test_duplicate_registration(self, client, db_engine):
        make_account(db_engine, "alice")
        resp = client.post(
            "/api/users/register",
            json={"username": "alice", "password": "x", "email": "x@example.com"},
        )
        assert resp.status_code == 409
        assert resp.json()["error"] == "duplicate_username"

    def test_missing_fields(self, client):
        resp = client.post("/api/users/register", json={"username": "dave"})
        assert resp.status_code == 400
        assert resp.json()["message"] == "Please provide a username, password and mail"

    def test_wrong_password(self, client, db_engine):
        make_account(db_engine, "alice")
        resp = client.post("/api/users/login", json={"username": "alice", "password": "no"})
        assert resp.status_code == 401
        assert resp.json() == {
            "error": "wrong_credentials",
            "message": "Wrong username or password",
        }

    def test_logout_revokes_token(self, client, alice_token):
        assert client.post("/api/users/logout", headers=auth_header(alice_token)).status_code == 200
        resp = client.get("/api/users/me", headers=auth_header(alice_token))
        assert resp.status_code == 401
        assert resp.json()["error"] == "revoked"

    def test_me_without_token(self, client):
        resp = client.get("/api/users/me")
        assert resp.status_code == 401
        assert resp.json()["error"] == "missing_token"

    def test_change_password(self, client, alice_token):
        resp = client.put(
            "/api/users/me/password",
            headers=auth_header(alice_token),
            json={"old_password": "hunter22", "new_password": "hunter33"},
        )
        assert resp.status_code == 200
        _login(client, "alice", "hunter33")


# ===========================================================================
# Wallet & inventory
# ===========================================================================
class TestWallet:
    def test_credit_and_debit(self, client, alice_token):
        h = auth_header(alice_token)
        assert client.post("/api/users/me/balance/credit", headers=h, json={"amount": 50}).json() == {
            "balance": 550.0
        }
        assert client.post("/api/users/me/balance/debit", headers=h, json={"amount": "50.5"}).json() == {
            "balance": 499.5
        }
        assert client.get("/api/users/me/balance", headers=h).json() == {"balance": 499.5}

    def test_overdraw(self, client, alice_token):
        resp = client.post(
            "/api/users/me/balance/debit", headers=auth_header(alice_token), json={"amount": 501}
        )
        assert resp.status_code == 400
        assert resp.json() == {"error": "insufficient_funds", "message": "Not enough balance"}

    def test_invalid_amount(self, client, alice_token):
        resp = client.post(
            "/api/users/me/balance/credit", headers=auth_header(alice_token), json={"amount": "abc"}
        )
        assert resp.status_code == 400
        assert resp.json()["error"] == "invalid_amount"

    def test_purchase_and_equip(self, client, db_engine, alice_token):
        h = auth_header(alice_token)
        frame = make_cosmetic(db_engine, price=100)

        resp = client.post("/api/users/me/purchase", headers=h, json={"item_id": frame.id})
        assert resp.status_code == 200
        assert resp.json()["balance"] == 400.0

        resp = client.post("/api/users/me/equip", headers=h, json={"slot": "border", "item_id": frame.id})
        assert resp.status_code == 200
        assert client.get("/api/users/me", headers=h).json()["border"] == frame.id

        client.post("/api/users/me/unequip", headers=h, json={"slot": "border"})
        assert client.get("/api/users/me", headers=h).json()["border"] is None

    def test_equip_not_owned(self, client, db_engine, alice_token):
        frame = make_cosmetic(db_engine, price=100)
        resp = client.post(
            "/api/users/me/equip",
            headers=auth_header(alice_token),
            json={"slot": "border", "item_id": frame.id},
        )
        assert resp.status_code == 400
        assert resp.json()["error"] == "not_owned"


# ===========================================================================
# Friends, stats, leaderboards
# ===========================================================================
class TestSocialAndStats:
    def test_friends(self, client, db_engine, alice_token):
        bob = make_account(db_engine, "bob")
        h = auth_header(alice_token)
        assert client.post(f"/api/users/me/friends/{bob.id}", headers=h).json() == {"friends": [bob.id]}
        assert [f["username"] for f in client.get("/api/users/me/friends", headers=h).json()] == ["bob"]
        assert client.delete(f"/api/users/me/friends/{bob.id}", headers=h).json() == {"friends": []}

    def test_self_friend(self, client, alice_token):
        me = client.get("/api/users/me", headers=auth_header(alice_token)).json()
        resp = client.post(f"/api/users/me/friends/{me['id']}", headers=auth_header(alice_token))
        assert resp.status_code == 409

    def test_record_game_then_stats(self, client, alice_token):
        h = auth_header(alice_token)
        resp = client.post(
            "/api/games",
            headers=h,
            json={"type": "plinko", "balance_start": 100, "balance_end": 150, "rounds_played": 3},
        )
        assert resp.status_code == 201
        assert resp.json()["type"] == "plinko"

        stats = client.get("/api/users/me/stats", headers=h).json()
        assert stats == {"games_played": 1, "wins": 1, "total_earnings": 50.0, "win_rate": 1.0}
        assert len(client.get("/api/users/me/games", headers=h).json()) == 1

    def test_leaderboard(self, client, db_engine):
        make_account(db_engine, "rich", balance=900)
        make_account(db_engine, "poor", balance=1)
        resp = client.get("/api/leaderboard/balance?count=1")
        assert resp.status_code == 200
        assert [e["username"] for e in resp.json()] == ["rich"]

    def test_leaderboard_invalid_count(self, client):
        resp = client.get("/api/leaderboard/wins?count=0")
        assert resp.status_code == 400
        assert resp.json()["error"] == "invalid_parameter"

    def test_unknown_leaderboard(self, client):
        assert client.get("/api/leaderboard/luck").status_code == 404


# ===========================================================================
# Auth guards: admin and self-or-admin endpoints
# ===========================================================================
class TestGuards:
    def test_catalogue_create_requires_admin(self, client, alice_token):
        resp = client.post(
            "/api/cosmetics",
            headers=auth_header(alice_token),
            json={"name": "Gold", "category": "frame", "price": 10},
        )
        assert resp.status_code == 403

    def test_catalogue_create_without_token(self, client):
        resp = client.post("/api/cosmetics", json={"name": "Gold", "category": "frame"})
        assert resp.status_code == 401

    def test_admin_catalogue_crud(self, client, admin_token):
        h = auth_header(admin_token)
        resp = client.post(
            "/api/cosmetics", headers=h, json={"name": "Gold", "category": "frame", "price": 10}
        )
        assert resp.status_code == 201
        item_id = resp.json()["id"]

        resp = client.patch(f"/api/cosmetics/{item_id}", headers=h, json={"price": 25})
        assert resp.json()["price"] == 25.0
        assert client.get("/api/cosmetics/name/Gold").json()["id"] == item_id

        assert client.delete(f"/api/cosmetics/{item_id}", headers=h).status_code == 200
        assert client.get(f"/api/cosmetics/{item_id}").status_code == 404

    def test_duplicate_cosmetic_name(self, client, db_engine, admin_token):
        make_cosmetic(db_engine, "Gold")
        resp = client.post(
            "/api/cosmetics",
            headers=auth_header(admin_token),
            json={"name": "Gold", "category": "frame"},
        )
        assert resp.status_code == 409
        assert resp.json()["error"] == "duplicate_name"

    def test_cannot_patch_someone_else(self, client, db_engine, alice_token):
        bob = make_account(db_engine, "bob")
        resp = client.patch(
            f"/api/users/{bob.id}", headers=auth_header(alice_token), json={"email": "x@y.z"}
        )
        assert resp.status_code == 403

    def test_cannot_self_promote(self, client, alice_token):
        me = client.get("/api/users/me", headers=auth_header(alice_token)).json()
        resp = client.patch(
            f"/api/users/{me['id']}", headers=auth_header(alice_token), json={"is_admin": True}
        )
        assert resp.status_code == 403

    def test_admin_can_patch_anyone(self, client, db_engine, admin_token):
        bob = make_account(db_engine, "bob")
        resp = client.patch(
            f"/api/users/{bob.id}", headers=auth_header(admin_token), json={"email": "b@new.io"}
        )
        assert resp.status_code == 200
        assert resp.json()["email"] == "b@new.io"

    def test_self_delete_revokes_token(self, client, alice_token):
        me = client.get("/api/users/me", headers=auth_header(alice_token)).json()
        assert client.delete(f"/api/users/{me['id']}", headers=auth_header(alice_token)).status_code == 200
        assert client.get("/api/users/me", headers=auth_header(alice_token)).status_code == 401
