"""Test health check endpoint."""

from fastapi.testclient import TestClient

from momentum.main import app

client = TestClient(app)


def test_health_check():
    """Test that /health returns 200 with status ok."""
    response = client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"


def test_api_requires_bearer_token():
    response = client.get("/api/documents")
    assert response.status_code == 401
