"""Health endpoint and service banner tests."""

import pytest

from directline.realtime.connection import Registered


@pytest.mark.asyncio
async def test_health_returns_ok(client):
    """Health endpoint should return server status, version and db status."""
    resp = await client.get("/health")
    assert resp.status_code == 200
    data = resp.json()
    assert data["server"] == "ok"
    assert data["database"] == "ok"
    assert data["status"] == "healthy"
    assert "version" in data


@pytest.mark.asyncio
async def test_health_counts_online_users(client, make_connection):
    make_connection().apply(Registered(1))
    make_connection().apply(Registered(2))

    resp = await client.get("/health")
    assert resp.json()["online_users"] == 2


@pytest.mark.asyncio
async def test_index_lists_routes(client):
    resp = await client.get("/")
    assert resp.status_code == 200
    routes = resp.json()["routes"]
    assert "POST /messages" in routes
    assert "GET /conversations/{user_id}" in routes
