"""Tests for request ID middleware and request-scoped logging context."""

import pytest
from structlog.testing import capture_logs


@pytest.mark.asyncio
async def test_request_id_generated(client):
    """Each request gets a unique X-Request-ID header."""
    r1 = await client.get("/api/v1/health")
    r2 = await client.get("/api/v1/health")
    assert "X-Request-ID" in r1.headers
    assert "X-Request-ID" in r2.headers
    assert r1.headers["X-Request-ID"] != r2.headers["X-Request-ID"]


@pytest.mark.asyncio
async def test_request_id_propagated(client):
    """Incoming X-Request-ID is propagated through the response."""
    r = await client.get("/api/v1/health", headers={"X-Request-ID": "test-trace-12345"})
    assert r.headers["X-Request-ID"] == "test-trace-12345"


@pytest.mark.asyncio
async def test_rejection_logged_with_reason(client):
    """The failing stage is visible in logs even though the response hides it."""
    with capture_logs() as logs:
        r = await client.get("/api/v1/users/me", headers={"Cookie": "token=garbage"})

    assert r.status_code == 401
    rejected = [e for e in logs if e["event"] == "auth.rejected"]
    assert rejected and rejected[0]["reason"] == "token_not_verified"


@pytest.mark.asyncio
async def test_security_headers_on_health(client):
    """Health endpoint returns security headers."""
    r = await client.get("/api/v1/health")
    assert r.status_code == 200
    assert r.headers["X-Content-Type-Options"] == "nosniff"
    assert r.headers["X-Frame-Options"] == "DENY"
    assert r.headers["Referrer-Policy"] == "strict-origin-when-cross-origin"
    assert "Cache-Control" not in r.headers


@pytest.mark.asyncio
async def test_no_hsts_on_http(client):
    """HSTS header is NOT set on HTTP connections (only HTTPS)."""
    r = await client.get("/api/v1/health")
    assert "Strict-Transport-Security" not in r.headers


@pytest.mark.asyncio
async def test_auth_responses_not_cached(client):
    """Responses on auth routes, or carrying a cookie, are marked no-store."""
    r = await client.post("/api/v1/auth/logout")
    assert r.headers["Cache-Control"] == "no-store"

    r = await client.get("/api/v1/users/me", headers={"Cookie": "token=garbage"})
    assert r.status_code == 401
    assert r.headers["Cache-Control"] == "no-store"
    assert r.headers["X-Content-Type-Options"] == "nosniff"
