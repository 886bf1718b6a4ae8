"""
Test suite for observability middleware.

System role: Verification of request correlation headers
"""

from fastapi.testclient import TestClient

from recall.api.main import create_app


def test_correlation_id_is_echoed_back() -> None:
    client = TestClient(create_app())

    response = client.get("/api/v1/health", headers={"X-Correlation-ID": "abc-123"})

    assert response.status_code == 200
    assert response.headers["X-Correlation-ID"] == "abc-123"


def test_correlation_id_is_generated_when_missing() -> None:
    client = TestClient(create_app())

    response = client.get("/api/v1/health")

    assert response.headers["X-Correlation-ID"]
