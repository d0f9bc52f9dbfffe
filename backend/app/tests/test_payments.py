"""
Tests for payment confirmation endpoints.
"""


def test_payment_confirm_flow(trip_with_members, client):
    trip, users = trip_with_members
    alice_id, alice = users["alice"]
    _, bob = users["bob"]
    url = f"/api/payments/{trip['id']}"

    response = client.post(url, json={"payee_id": alice_id, "amount": "30.00"}, headers=bob)
    assert response.status_code == 201, response.text
    payment = response.json()
    assert payment["status"] == "pending"
    assert payment["currency"] == "USD"

    # Only the payee can confirm
    assert client.post(f"{url}/{payment['id']}/confirm", headers=bob).status_code == 403

    response = client.post(f"{url}/{payment['id']}/confirm", headers=alice)
    assert response.status_code == 200
    assert response.json()["status"] == "confirmed"
    assert response.json()["confirmed_at"] is not None

    assert [p["id"] for p in client.get(url, headers=alice).json()] == [payment["id"]]
    assert client.get(url, headers=users["carol"][1]).json() == []


def test_payment_dispute(trip_with_members, client):
    trip, users = trip_with_members
    bob_id, bob = users["bob"]
    url = f"/api/payments/{trip['id']}"

    payment = client.post(url, json={"payee_id": bob_id, "amount": 12}, headers=users["carol"][1]).json()
    response = client.post(f"{url}/{payment['id']}/dispute", headers=bob)

    assert response.json()["status"] == "disputed"
    assert response.json()["confirmed_at"] is None


def test_payment_validation(trip_with_members, client, make_user):
    trip, users = trip_with_members
    alice_id, alice = users["alice"]
    outsider_id, _ = make_user("outsider")
    url = f"/api/payments/{trip['id']}"

    assert client.post(url, json={"payee_id": alice_id, "amount": 5}, headers=alice).status_code == 400
    assert client.post(url, json={"payee_id": outsider_id, "amount": 5}, headers=alice).status_code == 400
    assert client.post(url, json={"payee_id": users["bob"][0], "amount": 0}, headers=alice).status_code == 422
