"""Tests for health endpoints."""

from unittest.mock import AsyncMock, patch

from fastapi.testclient import TestClient

from coursemaster.core.database import AsyncCassandraConnection


def test_liveness(client: TestClient) -> None:
    """Test the liveness endpoint."""
    response = client.get("/health/live")
    assert response.status_code == 200
    assert response.json() == {"status": "alive"}


def test_readiness_without_database(client: TestClient) -> None:
    """Without a database the service reports not ready."""
    response = client.get("/health/ready")
    assert response.status_code == 503
    data = response.json()
    assert data["status"] == "not_ready"
    assert data["database"] is False
    assert data["services"] is False
    assert "environment" in data


def test_readiness_when_started(app, client: TestClient) -> None:
    app.state.enrollment_service = AsyncMock()
    with patch.object(AsyncCassandraConnection, "is_connected", return_value=True):
        response = client.get("/health/ready")

    assert response.status_code == 200
    assert response.json()["status"] == "ready"


def test_health(client: TestClient) -> None:
    """Test the general health endpoint."""
    response = client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["app_name"] == "coursemaster"
    assert "version" in data
    assert "environment" in data


def test_root(client: TestClient) -> None:
    """Test the root endpoint."""
    response = client.get("/")
    assert response.status_code == 200
    data = response.json()
    assert "CourseMaster" in data["message"]
    assert "version" in data
