"""
Tests for the health, metrics and error envelope plumbing.
"""

import pytest
from httpx import AsyncClient


@pytest.mark.asyncio
async def test_health_reports_disabled_cache(client: AsyncClient):
    response = await client.get("/health")
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "healthy"
    assert body["cache"] == {"status": "disabled"}


@pytest.mark.asyncio
async def test_request_id_is_echoed(client: AsyncClient):
    response = await client.get("/", headers={"X-Request-ID": "abc123"})
    assert response.headers["X-Request-ID"] == "abc123"
    assert "X-Response-Time" in response.headers


@pytest.mark.asyncio
async def test_metrics_exposes_booking_counter(client: AsyncClient):
    response = await client.get("/metrics")
    assert response.status_code == 200
    assert "booking_attempts_total" in response.text


@pytest.mark.asyncio
async def test_unknown_route_uses_error_envelope(client: AsyncClient):
    response = await client.get("/api/nowhere")
    assert response.status_code == 404
    assert response.json() == {"error": "Not Found"}


@pytest.mark.asyncio
async def test_malformed_json_body(client: AsyncClient, guest_headers):
    response = await client.post(
        "/api/bookings",
        content="not json at all",
        headers={**guest_headers, "Content-Type": "application/json"},
    )
    assert response.status_code == 400
    assert response.json()["error"] == "Validation error"
