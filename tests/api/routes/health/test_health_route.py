"""Testes dos endpoints de health e readiness."""

from __future__ import annotations

import json
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest
from starlette.requests import Request

from api.routes.health.router import health_check, readiness_check


def _build_request_with_state(state: SimpleNamespace) -> Request:
    scope = {
        "type": "http",
        "asgi": {"version": "3.0"},
        "http_version": "1.1",
        "method": "GET",
        "path": "/ready",
        "raw_path": b"/ready",
        "query_string": b"",
        "headers": [],
        "app": SimpleNamespace(state=state),
    }

    async def _receive() -> dict[str, object]:
        return {"type": "http.request", "body": b"", "more_body": False}

    return Request(scope, _receive)


@pytest.mark.asyncio
async def test_health_reports_service() -> None:
    response = await health_check()

    assert response.status == "healthy"
    assert response.service == "ponte-crm"


@pytest.mark.asyncio
async def test_readiness_skips_redis_when_not_configured() -> None:
    request = _build_request_with_state(SimpleNamespace(redis_client=None, pipeline=None))

    response = await readiness_check(request)
    payload = json.loads(response.body.decode("utf-8"))

    assert response.status_code == 200
    assert payload["status"] == "ready"
    assert payload["checks"]["redis"]["status"] == "skipped"
    assert payload["checks"]["workers"]["running"] is False


@pytest.mark.asyncio
async def test_readiness_ok_with_redis_and_workers() -> None:
    redis_client = MagicMock()
    redis_client.ping = AsyncMock(return_value=True)
    pipeline = SimpleNamespace(worker_pool=SimpleNamespace(running=True))

    request = _build_request_with_state(
        SimpleNamespace(redis_client=redis_client, pipeline=pipeline)
    )

    response = await readiness_check(request)
    payload = json.loads(response.body.decode("utf-8"))

    assert response.status_code == 200
    assert payload["checks"]["redis"]["status"] == "ok"
    assert payload["checks"]["workers"]["running"] is True


@pytest.mark.asyncio
async def test_readiness_fails_when_redis_is_down() -> None:
    redis_client = MagicMock()
    redis_client.ping = AsyncMock(side_effect=ConnectionError("refused"))

    request = _build_request_with_state(SimpleNamespace(redis_client=redis_client, pipeline=None))

    response = await readiness_check(request)
    payload = json.loads(response.body.decode("utf-8"))

    assert response.status_code == 503
    assert payload["status"] == "not_ready"
    assert payload["checks"]["redis"] == {
        "status": "failed",
        "latency_ms": None,
        "error": "ConnectionError",
    }


@pytest.mark.asyncio
async def test_readiness_reports_configured_backends() -> None:
    request = _build_request_with_state(SimpleNamespace(redis_client=None, pipeline=None))

    response = await readiness_check(request)
    payload = json.loads(response.body.decode("utf-8"))

    assert set(payload["backends"]) == {"idempotency", "counters", "queue", "dead_letters"}
    assert payload["checks"]["workers"]["in_flight"] == 0
