"""Endpoints de health check.

- GET /health: liveness, sem tocar em dependências
- GET /ready: Redis (quando configurado) e estado do worker pool
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any, Literal

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from config.settings import (
    get_base_settings,
    get_idempotency_settings,
    get_queue_settings,
    get_security_settings,
)

logger = logging.getLogger(__name__)

router = APIRouter()

_REDIS_PING_TIMEOUT_SECONDS = 2.0


class HealthResponse(BaseModel):
    """Resposta do liveness probe."""

    status: str
    service: str
    environment: str
    timestamp: str
    version: str = "1.0.0"


@dataclass(frozen=True, slots=True)
class RedisCheck:
    status: Literal["ok", "skipped", "failed"]
    latency_ms: float | None = None
    error: str | None = None

    def as_dict(self) -> dict[str, Any]:
        return {
            "status": self.status,
            "latency_ms": self.latency_ms,
            "error": self.error,
        }


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Liveness probe: o processo responde."""
    settings = get_base_settings()
    return HealthResponse(
        status="healthy",
        service=settings.service_name,
        environment=settings.environment,
        timestamp=datetime.now(UTC).isoformat(),
    )


@router.get("/ready")
async def readiness_check(request: Request) -> JSONResponse:
    """Readiness probe.

    Só o Redis reprova o readiness: sem ele não há dedupe, contadores
    nem fila. Workers parados são reportados, mas não derrubam a
    instância (o intake continua aceitando e enfileirando).
    """
    redis_check = await _ping_redis(getattr(request.app.state, "redis_client", None))
    pipeline = getattr(request.app.state, "pipeline", None)
    worker_pool = getattr(pipeline, "worker_pool", None)

    ready = redis_check.status != "failed"
    payload = {
        "status": "ready" if ready else "not_ready",
        "checks": {
            "redis": redis_check.as_dict(),
            "workers": {
                "running": bool(worker_pool and worker_pool.running),
                "in_flight": getattr(worker_pool, "in_flight", 0),
            },
        },
        "backends": _configured_backends(),
        "timestamp": datetime.now(UTC).isoformat(),
    }
    if not ready:
        logger.warning("readiness_failed", extra={"redis": redis_check.error})
    return JSONResponse(content=payload, status_code=200 if ready else 503)


def _configured_backends() -> dict[str, str]:
    queue = get_queue_settings()
    return {
        "idempotency": get_idempotency_settings().backend,
        "counters": get_security_settings().counter_backend,
        "queue": queue.backend,
        "dead_letters": queue.dead_letter_backend,
    }


async def _ping_redis(redis_client: Any | None) -> RedisCheck:
    if redis_client is None:
        return RedisCheck(status="skipped", error="not_configured")
    started_at = time.perf_counter()
    try:
        await asyncio.wait_for(redis_client.ping(), timeout=_REDIS_PING_TIMEOUT_SECONDS)
    except TimeoutError:
        return RedisCheck(status="failed", error="timeout")
    except Exception as exc:
        return RedisCheck(status="failed", error=type(exc).__name__)
    return RedisCheck(status="ok", latency_ms=round((time.perf_counter() - started_at) * 1000, 2))
