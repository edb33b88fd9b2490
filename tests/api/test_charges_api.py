"""
Tests for the wallet charge endpoints.
"""

from decimal import Decimal


CHAT_ID = 90001


def create_charge(client, amount="50000"):
    return client.post("/charges", json={"account_id": CHAT_ID, "amount": amount})


def test_charge_flow_credits_once(client):
    charge = create_charge(client).json()
    assert charge["status"] == "waiting_payment"

    client.post(f"/charges/{charge['id']}/evidence", json={"evidence": "transfer-42"})
    assert [c["id"] for c in client.get("/charges/pending").json()] == [charge["id"]]

    first = client.post(f"/charges/{charge['id']}/approve")
    second = client.post(f"/charges/{charge['id']}/approve")

    assert first.status_code == 200
    assert second.status_code == 200
    assert second.json()["status"] == "completed"
    balance = client.get(f"/wallet/{CHAT_ID}/balance").json()["balance"]
    assert Decimal(balance) == Decimal("50000")
    entries = client.get(f"/wallet/{CHAT_ID}/entries").json()
    assert len(entries) == 1


def test_amount_outside_range(client):
    assert create_charge(client, amount="10").status_code == 422
    assert create_charge(client, amount="99999999").status_code == 422


def test_reject_charge(client):
    charge = create_charge(client).json()

    response = client.post(f"/charges/{charge['id']}/reject", json={"reason": "not received"})

    assert response.json()["status"] == "rejected"
    assert client.post(f"/charges/{charge['id']}/approve").status_code == 409


def test_unknown_charge(client):
    assert client.get("/charges/5").status_code == 404
