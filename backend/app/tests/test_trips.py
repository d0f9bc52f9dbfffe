"""
Tests for trip creation, join by code and member approval.
"""
import pytest

from app.db.session import SessionLocal
from app.models.trip import MemberStatus
from app.models.user import User
from app.services import trip_service


def test_create_trip_generates_code(client, make_user):
    _, headers = make_user("alice")

    response = client.post("/api/trips", json={"name": "Lisbon"}, headers=headers)

    assert response.status_code == 201
    trip = response.json()
    assert len(trip["code"]) == 6
    assert trip["code"] == trip["code"].upper()
    assert trip["code"].isalnum()
    assert trip["currency"] == "USD"
    assert trip["currency_symbol"] == "$"


def test_codes_are_unique(client, make_user):
    _, headers = make_user("alice")
    codes = {
        client.post("/api/trips", json={"name": f"Trip {i}"}, headers=headers).json()["code"]
        for i in range(20)
    }
    assert len(codes) == 20


def test_host_is_member(client, make_user):
    alice_id, headers = make_user("alice")
    trip = client.post("/api/trips", json={"name": "Lisbon"}, headers=headers).json()

    detail = client.get(f"/api/trips/code/{trip['code']}", headers=headers).json()

    assert [m["user_id"] for m in detail["members"]] == [alice_id]
    assert detail["members"][0]["is_host"] is True
    assert detail["expenses"] == []


def test_join_requires_approval(client, make_user):
    _, alice = make_user("alice")
    bob_id, bob = make_user("bob")
    trip = client.post("/api/trips", json={"name": "Lisbon"}, headers=alice).json()

    response = client.post("/api/trips/join", json={"code": trip["code"].lower()}, headers=bob)
    assert response.status_code == 200
    assert response.json() == {"trip_id": trip["id"], "status": "pending"}

    # Pending members cannot see the trip yet
    assert client.get(f"/api/trips/{trip['id']}", headers=bob).status_code == 403

    # Asking again returns the same request
    again = client.post("/api/trips/join", json={"code": trip["code"]}, headers=bob)
    assert again.json()["status"] == "pending"

    members = client.get(f"/api/trips/{trip['id']}/members", headers=alice).json()
    assert [m["status"] for m in members] == ["approved", "pending"]

    response = client.post(f"/api/trips/{trip['id']}/members/{bob_id}/approve", headers=alice)
    assert response.status_code == 200
    assert response.json()["status"] == "approved"
    assert response.json()["approved_at"] is not None

    assert client.get(f"/api/trips/{trip['id']}", headers=bob).status_code == 200
    assert [t["id"] for t in client.get("/api/trips", headers=bob).json()] == [trip["id"]]


def test_host_join_is_approved(client, make_user):
    _, alice = make_user("alice")
    trip = client.post("/api/trips", json={"name": "Lisbon"}, headers=alice).json()

    response = client.post("/api/trips/join", json={"code": trip["code"]}, headers=alice)

    assert response.json()["status"] == "approved"


def test_join_unknown_code(client, make_user):
    _, headers = make_user("bob")
    response = client.post("/api/trips/join", json={"code": "NOPE00"}, headers=headers)
    assert response.status_code == 404


def test_only_host_approves(trip_with_members, client, make_user):
    trip, users = trip_with_members
    dave_id, dave = make_user("dave")
    client.post("/api/trips/join", json={"code": trip["code"]}, headers=dave)

    bob_headers = users["bob"][1]
    response = client.post(f"/api/trips/{trip['id']}/members/{dave_id}/approve", headers=bob_headers)
    assert response.status_code == 403

    response = client.post(f"/api/trips/{trip['id']}/members/{dave_id}/deny", headers=users["alice"][1])
    assert response.status_code == 200
    assert response.json()["status"] == "denied"

    again = client.post("/api/trips/join", json={"code": trip["code"]}, headers=dave)
    assert again.json()["status"] == "denied"


def test_non_host_sees_only_approved(trip_with_members, client, make_user):
    trip, users = trip_with_members
    _, dave = make_user("dave")
    client.post("/api/trips/join", json={"code": trip["code"]}, headers=dave)

    members = client.get(f"/api/trips/{trip['id']}/members", headers=users["bob"][1]).json()

    assert len(members) == 3
    assert all(m["status"] == "approved" for m in members)


def test_request_membership_by_code(client, make_user):
    _, alice = make_user("alice")
    bob_id, _ = make_user("bob")
    trip = client.post("/api/trips", json={"name": "Lisbon"}, headers=alice).json()

    db = SessionLocal()
    try:
        bob = db.query(User).filter(User.id == bob_id).first()
        assert trip_service.request_membership(trip["code"], bob, db) == MemberStatus.PENDING
        assert trip_service.request_membership(trip["code"].lower(), bob, db) == MemberStatus.PENDING
        with pytest.raises(LookupError):
            trip_service.request_membership("ZZZZZZ", bob, db)
    finally:
        db.close()
