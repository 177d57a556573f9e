"""Health endpoint tests."""

import pytest


@pytest.mark.asyncio
async def test_health_returns_ok(unauthenticated_client):
    """Health is open and reports server, version and database status."""
    resp = await unauthenticated_client.get("/api/health")
    assert resp.status_code == 200
    data = resp.json()
    assert data["server"] == "ok"
    assert data["db"] == "ok"
    assert data["status"] == "healthy"
    assert "version" in data


@pytest.mark.asyncio
async def test_health_degraded_when_db_down(app, unauthenticated_client, monkeypatch):
    async def broken_ping():
        raise ConnectionRefusedError("db unreachable")

    monkeypatch.setattr(app.state.db, "ping", broken_ping)
    resp = await unauthenticated_client.get("/api/health")
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "degraded"
    assert data["db"] == "error: ConnectionRefusedError"
