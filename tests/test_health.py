"""
Health endpoint tests using pytest-asyncio and httpx.AsyncClient.
"""

import pytest


@pytest.mark.asyncio
async def test_health_endpoint(test_client):
    """Test the health check endpoint returns expected structure."""
    response = await test_client.get("/api/v1/health")

    assert response.status_code == 200
    data = response.json()

    assert data["status"] == "ok"
    assert data["uptime"].startswith("PT")
    assert data["checks"] == {"database": "ok", "billing_tables": "ok"}
    assert "version" in data


@pytest.mark.asyncio
async def test_root_health_is_public(test_client):
    """No credentials needed for the load balancer health check."""
    response = await test_client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] in ["ok", "degraded"]


@pytest.mark.asyncio
async def test_protected_routes_need_a_token(test_client):
    response = await test_client.get("/api/v1/proposals")

    assert response.status_code in (401, 403)
