"""Integration tests for authentication and friend management endpoints."""
from __future__ import annotations

import os
from typing import Iterator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import delete

os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///./test_socialsphere.db")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")

from socialsphere.database import Base, SessionLocal, engine  # noqa: E402
from socialsphere.main import app  # noqa: E402
from socialsphere.models import Account, StoredDocument  # noqa: E402


@pytest.fixture(scope="module", autouse=True)
def _create_schema() -> Iterator[None]:
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(autouse=True)
def _clean_database() -> Iterator[None]:
    with SessionLocal() as session:
        session.execute(delete(StoredDocument))
        session.execute(delete(Account))
        session.commit()
    yield


def _register(client: TestClient, email: str, first_name: str, password: str = "password123") -> dict:
    response = client.post(
        "/auth/register",
        json={"email": email, "password": password, "firstName": first_name, "lastName": "Tester"},
    )
    assert response.status_code == 201, response.text
    return response.json()


def _auth(registration: dict) -> dict[str, str]:
    return {"Authorization": f"Bearer {registration['access_token']}"}


def test_register_login_and_me() -> None:
    with TestClient(app) as client:
        reg = _register(client, "ada@example.com", "Ada")
        assert reg["display_name"] == "Ada Tester"

        duplicate = client.post(
            "/auth/register",
            json={"email": "ada@example.com", "password": "password123", "firstName": "Ada", "lastName": "Tester"},
        )
        assert duplicate.status_code == 409
        assert duplicate.json()["detail"] == "This email is already registered"

        wrong = client.post("/auth/login", json={"email": "ada@example.com", "password": "nope-nope"})
        assert wrong.status_code == 401
        assert wrong.json()["detail"] == "Incorrect password"

        login = client.post("/auth/login", json={"email": "ada@example.com", "password": "password123"})
        assert login.status_code == 200, login.text
        assert login.json()["user_id"] == reg["user_id"]

        me = client.get("/auth/me", headers=_auth(login.json()))
        assert me.status_code == 200
        assert me.json() == {"uid": reg["user_id"], "email": "ada@example.com", "display_name": "Ada Tester"}


def test_requests_without_token_are_rejected() -> None:
    with TestClient(app) as client:
        assert client.get("/friends/").status_code == 401
        assert client.get("/auth/me", headers={"Authorization": "Bearer not-a-token"}).status_code == 401


def test_friend_request_accept_and_remove_flow() -> None:
    with TestClient(app) as client:
        alice = _register(client, "alice@example.com", "Alice")
        bob = _register(client, "bob@example.com", "Bob")

        sent = client.post("/friends/requests", json={"receiverId": bob["user_id"]}, headers=_auth(alice))
        assert sent.status_code == 201, sent.text
        assert sent.json()["requestId"] == f"{alice['user_id']}_{bob['user_id']}"

        again = client.post("/friends/requests", json={"receiverId": bob["user_id"]}, headers=_auth(alice))
        assert again.status_code == 409

        status_view = client.get(f"/friends/status/{alice['user_id']}", headers=_auth(bob))
        assert status_view.json()["status"] == "request_received"

        overview = client.get("/friends/requests", headers=_auth(bob)).json()
        assert [item["senderId"] for item in overview["incoming_requests"]] == [alice["user_id"]]
        assert overview["outgoing_requests"] == []

        accepted = client.post(f"/friends/requests/{alice['user_id']}/accept", headers=_auth(bob))
        assert accepted.status_code == 200, accepted.text

        friends = client.get("/friends/", headers=_auth(alice)).json()["items"]
        assert [friend["id"] for friend in friends] == [bob["user_id"]]
        assert client.get(f"/friends/status/{bob['user_id']}", headers=_auth(alice)).json()["status"] == "friends"

        removed = client.delete(f"/friends/{bob['user_id']}", headers=_auth(alice))
        assert removed.status_code == 204
        assert client.get("/friends/", headers=_auth(bob)).json()["items"] == []


def test_reject_twice_reports_not_found() -> None:
    with TestClient(app) as client:
        alice = _register(client, "alice@example.com", "Alice")
        bob = _register(client, "bob@example.com", "Bob")
        client.post("/friends/requests", json={"receiverId": bob["user_id"]}, headers=_auth(alice))

        first = client.post(f"/friends/requests/{alice['user_id']}/reject", headers=_auth(bob))
        assert first.status_code == 200

        second = client.post(f"/friends/requests/{alice['user_id']}/reject", headers=_auth(bob))
        assert second.status_code == 404
        assert second.json()["detail"] == "Friend request not found"


def test_self_request_and_suggestions() -> None:
    with TestClient(app) as client:
        alice = _register(client, "alice@example.com", "Alice")
        bob = _register(client, "bob@example.com", "Bob")

        own = client.post("/friends/requests", json={"receiverId": alice["user_id"]}, headers=_auth(alice))
        assert own.status_code == 400

        suggestions = client.get("/friends/suggestions", headers=_auth(alice)).json()["items"]
        assert [user["id"] for user in suggestions] == [bob["user_id"]]


def test_system_endpoints() -> None:
    with TestClient(app) as client:
        assert client.get("/api").json()["service"]
        health = client.get("/health").json()
        assert health["status"] == "ok"
        assert health["live_queries"] >= 1
