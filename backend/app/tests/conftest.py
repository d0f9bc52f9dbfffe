"""
Shared fixtures: in-memory database and authenticated clients.
"""
import os

os.environ["DATABASE_URL"] = "sqlite://"

import pytest
from fastapi.testclient import TestClient

from app.main import app
from app.db.base import Base
from app.db.session import engine
from app import models  # noqa: F401


@pytest.fixture
def client():
    """Test client on a fresh schema."""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield TestClient(app)
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def make_user(client):
    """Sign up and log in a user; returns (user_id, auth headers)."""
    def _make_user(username: str, display_name: str = None):
        response = client.post(
            "/api/auth/signup",
            json={
                "username": username,
                "email": f"{username}@example.com",
                "password": "testpassword123",
                "display_name": display_name or username.capitalize()
            }
        )
        assert response.status_code == 201, response.text
        user_id = response.json()["id"]

        response = client.post(
            "/api/auth/login",
            json={"username": username, "password": "testpassword123"}
        )
        assert response.status_code == 200, response.text
        token = response.json()["access_token"]
        return user_id, {"Authorization": f"Bearer {token}"}

    return _make_user


@pytest.fixture
def trip_with_members(client, make_user):
    """
    A trip hosted by alice with bob and carol approved.
    Returns (trip json, {name: (user_id, headers)}).
    """
    users = {name: make_user(name) for name in ("alice", "bob", "carol")}
    alice_headers = users["alice"][1]

    trip = client.post("/api/trips", json={"name": "Lisbon"}, headers=alice_headers).json()
    for name in ("bob", "carol"):
        user_id, headers = users[name]
        response = client.post("/api/trips/join", json={"code": trip["code"]}, headers=headers)
        assert response.json()["status"] == "pending"
        response = client.post(
            f"/api/trips/{trip['id']}/members/{user_id}/approve", headers=alice_headers
        )
        assert response.status_code == 200, response.text

    return trip, users
