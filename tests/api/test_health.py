"""
Tests for the health check endpoint.
"""


def test_health_check_returns_200(client):
    response = client.get("/health")
    assert response.status_code == 200


def test_health_check_reports_service_and_database(client):
    """
    Monitoring parses these fields, so their names and the
    service identifier must not drift.
    """
    data = client.get("/health").json()

    assert data["service"] == "vpn-sales-engine"
    assert data["database"] == "healthy"
    assert data["status"] == "healthy"
