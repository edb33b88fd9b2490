"""
Tests for the account and wallet endpoints.
"""

from decimal import Decimal


CHAT_ID = 80001


def balance(client, chat_id=CHAT_ID):
    return Decimal(client.get(f"/wallet/{chat_id}/balance").json()["balance"])


def test_register_account(client):
    response = client.put(f"/accounts/{CHAT_ID}")

    assert response.status_code == 200
    assert response.json()["id"] == CHAT_ID
    assert Decimal(response.json()["balance"]) == Decimal("0")


def test_unknown_account_balance(client):
    assert client.get("/wallet/123/balance").status_code == 404


def test_credit_and_debit(client):
    credit = client.post(f"/wallet/{CHAT_ID}/credit", json={"amount": "40000"})
    assert credit.status_code == 201
    assert credit.json()["kind"] == "charge-credit"

    debit = client.post(
        f"/wallet/{CHAT_ID}/debit",
        json={"amount": "15000", "description": "1 month plan", "reference": "order:1"},
    )
    assert debit.status_code == 201
    assert Decimal(debit.json()["amount"]) == Decimal("-15000")
    assert debit.json()["kind"] == "purchase-debit"
    assert balance(client) == Decimal("25000")


def test_overdraft_refused(client):
    client.post(f"/wallet/{CHAT_ID}/credit", json={"amount": "1000"})

    response = client.post(f"/wallet/{CHAT_ID}/debit", json={"amount": "1000.01"})

    assert response.status_code == 402
    assert balance(client) == Decimal("1000")


def test_non_positive_amount_rejected(client):
    response = client.post(f"/wallet/{CHAT_ID}/credit", json={"amount": "0"})
    assert response.status_code == 422


def test_entries_newest_first(client):
    client.post(f"/wallet/{CHAT_ID}/credit", json={"amount": "5000"})
    client.post(f"/wallet/{CHAT_ID}/debit", json={"amount": "2000"})

    entries = client.get(f"/wallet/{CHAT_ID}/entries").json()

    assert [e["kind"] for e in entries] == ["purchase-debit", "charge-credit"]
    assert len(client.get(f"/wallet/{CHAT_ID}/entries?limit=1").json()) == 1
