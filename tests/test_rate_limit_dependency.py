"""Tests for the rate limiting FastAPI dependency."""

import pytest
from fastapi import Depends, FastAPI
from fastapi.testclient import TestClient

from app.core.config import settings
from app.core.exception_handlers import setup_exception_handlers
from app.core.rate_limit import (
    TOO_MANY_REQUESTS_MESSAGE,
    UNKNOWN_CLIENT,
    create_rate_limiter,
    get_client_identifier,
)


def _build_app(kv_store, **limiter_kwargs) -> FastAPI:
    app = FastAPI()
    app.state.kv_store = kv_store
    setup_exception_handlers(app)
    limiter = create_rate_limiter(**limiter_kwargs)

    @app.get("/limited", dependencies=[Depends(limiter)])
    async def limited() -> dict:
        return {"ok": True}

    return app


def test_rejects_after_max_with_too_many_requests_body(store) -> None:
    client = TestClient(_build_app(store, window_ms=1000, max_requests=3))

    for _ in range(3):
        assert client.get("/limited").status_code == 200

    response = client.get("/limited")
    assert response.status_code == 429
    assert response.json() == {"error": TOO_MANY_REQUESTS_MESSAGE}
    assert response.headers["Retry-After"] == "1"
    assert response.headers["X-RateLimit-Limit"] == "3"
    assert response.headers["X-RateLimit-Remaining"] == "0"


def test_allows_again_after_window(store, clock) -> None:
    client = TestClient(_build_app(store, window_ms=900_000, max_requests=5))

    for _ in range(5):
        assert client.get("/limited").status_code == 200
    assert client.get("/limited").status_code == 429

    clock.advance(900)
    assert client.get("/limited").status_code == 200


def test_counts_by_client_ip(store) -> None:
    client = TestClient(_build_app(store, window_ms=60_000, max_requests=2))

    client.get("/limited")
    client.get("/limited")

    # TestClient reports its peer as "testclient"
    assert store.ttl("ratelimit:testclient") == pytest.approx(60)


def test_headers_can_be_disabled(store, monkeypatch) -> None:
    monkeypatch.setattr(settings.rate_limit, "include_headers", False)
    client = TestClient(_build_app(store, window_ms=1000, max_requests=1))

    client.get("/limited")
    response = client.get("/limited")

    assert response.status_code == 429
    assert "Retry-After" not in response.headers


def test_disabled_limiter_never_blocks(store, monkeypatch) -> None:
    monkeypatch.setattr(settings.rate_limit, "enabled", False)
    client = TestClient(_build_app(store, window_ms=1000, max_requests=1))

    for _ in range(5):
        assert client.get("/limited").status_code == 200
    assert store.ttl("ratelimit:testclient") is None


def test_backend_outage_fails_open(failing_store) -> None:
    client = TestClient(_build_app(failing_store, window_ms=1000, max_requests=1))

    for _ in range(3):
        assert client.get("/limited").status_code == 200


def test_backend_outage_fails_closed_when_configured(failing_store) -> None:
    client = TestClient(
        _build_app(failing_store, window_ms=1000, max_requests=1, fail_open=False)
    )

    assert client.get("/limited").status_code == 429


def test_fail_open_setting_is_the_default(failing_store, monkeypatch) -> None:
    monkeypatch.setattr(settings.rate_limit, "fail_open", False)
    client = TestClient(_build_app(failing_store, window_ms=1000, max_requests=1))

    assert client.get("/limited").status_code == 429


def test_invalid_limits_rejected_at_creation() -> None:
    with pytest.raises(ValueError):
        create_rate_limiter(window_ms=500, max_requests=5)


def test_client_identifier_falls_back_to_sentinel() -> None:
    class _Request:
        client = None

    assert get_client_identifier(_Request()) == UNKNOWN_CLIENT  # type: ignore[arg-type]
