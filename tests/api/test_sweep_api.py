"""
Tests for the sweep trigger endpoint.
"""

from datetime import datetime, timedelta


def test_sweep_expires_and_notifies(client, notifier, make_service):
    service = make_service(approved_at=datetime.utcnow() - timedelta(days=31))
    service_id = service.id

    report = client.post("/sweep").json()

    assert report["expired_services"] == [service_id]
    assert report["expiry_notices_sent"] == [service_id]
    assert report["errors"] == []
    assert notifier.expired_ids == [service_id]
    assert client.get(f"/services/{service_id}").json()["status"] == "expired"

    again = client.post("/sweep").json()
    assert again["expiry_notices_sent"] == []
