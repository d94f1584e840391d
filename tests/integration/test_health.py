"""
Tests for the service status endpoints
"""

import pytest
from httpx import ASGITransport, AsyncClient

from git_cors_proxy import __version__
from git_cors_proxy.main import app


@pytest.mark.asyncio
async def test_health_reports_configuration():
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://proxy.test") as ac:
        resp = await ac.get("/health")

    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "healthy"
    assert data["version"] == __version__
    assert data["uptime"] >= 0
    assert set(data["configuration"]) == {
        "allowedOrigins",
        "corsAllowLocalhost",
        "corsEnableLogging",
        "gitDetectionMode",
    }


@pytest.mark.asyncio
async def test_root_describes_usage():
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://proxy.test") as ac:
        resp = await ac.get("/")

    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "online"
    assert data["usage"].startswith("/{domain}/")
