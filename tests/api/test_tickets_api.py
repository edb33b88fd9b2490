"""
Tests for the support ticket endpoints.
"""


def open_ticket(client):
    response = client.post("/tickets", json={
        "account_id": 60001,
        "category": "billing",
        "subject": "Charged twice",
        "message": "I see two transfers on my card",
    })
    assert response.status_code == 201
    return response.json()


def test_ticket_conversation(client):
    ticket = open_ticket(client)
    assert ticket["status"] == "open"
    assert len(ticket["messages"]) == 1

    reply = client.post(
        f"/tickets/{ticket['id']}/messages",
        json={"author": "admin", "text": "Refund issued"},
    )
    assert [m["author"] for m in reply.json()["messages"]] == ["user", "admin"]

    closed = client.post(f"/tickets/{ticket['id']}/close", json={"closed_by": "admin"})
    assert closed.json()["status"] == "closed"
    assert client.get("/tickets/open").json() == []


def test_reply_to_closed_ticket(client):
    ticket = open_ticket(client)
    client.post(f"/tickets/{ticket['id']}/close", json={"closed_by": "user"})

    response = client.post(
        f"/tickets/{ticket['id']}/messages",
        json={"author": "user", "text": "still broken"},
    )
    assert response.status_code == 409


def test_unknown_ticket(client):
    assert client.get("/tickets/42").status_code == 404
