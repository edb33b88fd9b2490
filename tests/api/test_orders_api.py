"""
Tests for the order endpoints.
"""

from decimal import Decimal


CHAT_ID = 70001

PLAN = {
    "plan_id": "plan_1m_50gb",
    "name": "1 month 50GB",
    "price": "25000",
    "duration_days": 30,
    "data_limit_gb": 50,
}


def create_order(client, account_id=CHAT_ID, **extra):
    response = client.post("/orders", json={
        "account_id": account_id,
        "plan": PLAN,
        "server_ref": "server_main",
        **extra,
    })
    assert response.status_code == 201
    return response.json()


def submit(client, order_id):
    return client.post(f"/orders/{order_id}/evidence", json={"evidence": "receipt-1"})


class TestOrderFlow:

    def test_create_order(self, client):
        order = create_order(client)

        assert order["status"] == "waiting_payment"
        assert order["is_terminal"] is False
        assert order["kind"] == "new"
        assert order["plan"]["plan_id"] == "plan_1m_50gb"
        assert Decimal(order["plan"]["price"]) == Decimal("25000")

    def test_submit_and_approve(self, client, provisioner):
        order = create_order(client)

        submitted = submit(client, order["id"])
        assert submitted.status_code == 200
        assert submitted.json()["status"] == "payment_submitted"
        assert client.get("/orders/pending").json()[0]["id"] == order["id"]

        approved = client.post(f"/orders/{order['id']}/approve")
        assert approved.status_code == 200
        service = approved.json()
        assert service["order_id"] == order["id"]
        assert service["status"] == "active"
        assert service["username"].startswith("TEST-")
        assert len(provisioner.calls) == 1

        fetched = client.get(f"/orders/{order['id']}").json()
        assert fetched["status"] == "completed"
        assert fetched["is_terminal"] is True
        assert fetched["service_id"] == service["id"]
        assert client.get(f"/services/{service['id']}").json()["id"] == service["id"]

    def test_approve_replay_returns_same_service(self, client, provisioner):
        order = create_order(client)
        submit(client, order["id"])

        first = client.post(f"/orders/{order['id']}/approve").json()
        second = client.post(f"/orders/{order['id']}/approve")

        assert second.status_code == 200
        assert second.json()["id"] == first["id"]
        assert len(provisioner.calls) == 1
        assert len(client.get(f"/accounts/{CHAT_ID}/services").json()) == 1

    def test_reject_then_approve_conflicts(self, client):
        order = create_order(client)
        submit(client, order["id"])

        rejected = client.post(f"/orders/{order['id']}/reject", json={"reason": "blurry receipt"})
        assert rejected.json()["status"] == "rejected"
        assert rejected.json()["rejection_reason"] == "blurry receipt"

        response = client.post(f"/orders/{order['id']}/approve")
        assert response.status_code == 409

    def test_cancel(self, client):
        order = create_order(client)

        response = client.post(f"/orders/{order['id']}/cancel")
        assert response.json()["status"] == "cancelled"
        assert submit(client, order["id"]).status_code == 409


class TestOrderErrors:

    def test_unknown_order(self, client):
        assert client.get("/orders/999").status_code == 404
        assert client.post("/orders/999/approve").status_code == 404

    def test_approve_without_evidence(self, client):
        order = create_order(client)

        assert client.post(f"/orders/{order['id']}/approve").status_code == 409

    def test_renewal_needs_service(self, client):
        response = client.post("/orders", json={
            "account_id": CHAT_ID,
            "plan": PLAN,
            "server_ref": "server_main",
            "kind": "renewal",
        })
        assert response.status_code == 422

    def test_provisioning_outage_keeps_order_pending(self, client, provisioner):
        order = create_order(client)
        submit(client, order["id"])
        provisioner.fail_times = 100

        response = client.post(f"/orders/{order['id']}/approve")

        assert response.status_code == 502
        assert client.get(f"/orders/{order['id']}").json()["status"] == "payment_submitted"
        assert client.get(f"/accounts/{CHAT_ID}/services").json() == []


class TestWalletPayment:

    def test_pay_with_wallet(self, client):
        order = create_order(client)
        client.post(f"/wallet/{CHAT_ID}/credit", json={"amount": "30000"})

        response = client.post(f"/orders/{order['id']}/pay-with-wallet")

        assert response.status_code == 200
        assert response.json()["order_id"] == order["id"]
        balance = client.get(f"/wallet/{CHAT_ID}/balance").json()["balance"]
        assert Decimal(balance) == Decimal("5000")

    def test_pay_with_wallet_insufficient(self, client):
        order = create_order(client)

        response = client.post(f"/orders/{order['id']}/pay-with-wallet")

        assert response.status_code == 402
        assert client.get(f"/orders/{order['id']}").json()["status"] == "waiting_payment"
