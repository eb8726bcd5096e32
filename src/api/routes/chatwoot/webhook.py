"""Endpoints de webhook do Chatwoot.

Endpoints:
- POST /webhooks/chatwoot: evento roteado pelo campo `event` do corpo
- POST /webhooks/chatwoot/conversation-created
- POST /webhooks/chatwoot/message-created
- POST /webhooks/chatwoot/conversation-status-changed
- GET  /webhooks/chatwoot/test: verificação do caminho (com rate limit)
- GET  /webhooks/chatwoot/status?webhook_id=: status pelo store de idempotência
  (também em /webhooks/status)

Segurança:
- Guards (IP, rate limit, tamanho, HMAC, timestamp, schema) no dispatcher
- Resposta imediata (200) após o enqueue; processamento fica nos workers
- Corpo lido em stream pelo dispatcher, cortado no limite de tamanho
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import Any

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from api.routes.dependencies import get_client_ip, get_pipeline
from app.bootstrap.dependencies import WebhookPipeline
from app.domain.envelope import EventType
from app.domain.intake import IntakeRejected, to_http
from app.observability import (
    correlation_id_from_headers,
    get_correlation_id,
    reset_correlation_id,
    set_correlation_id,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def _now_iso() -> str:
    return datetime.now(UTC).isoformat()


def _json(
    status_code: int,
    body: dict[str, Any],
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    response_headers = {"X-Correlation-ID": get_correlation_id(), **(headers or {})}
    return JSONResponse(
        content={**body, "timestamp": _now_iso()},
        status_code=status_code,
        headers=response_headers,
    )


async def _receive(
    request: Request,
    pipeline: WebhookPipeline,
    source_ip: str,
    expected_event: EventType | None = None,
) -> JSONResponse:
    token = set_correlation_id(correlation_id_from_headers(request.headers))
    try:
        outcome = await pipeline.dispatcher.dispatch(
            request.headers,
            request.stream(),
            source_ip,
            method=request.method,
            path=request.url.path,
            expected_event=expected_event,
        )
        status_code, payload = to_http(outcome)
        headers = outcome.headers if isinstance(outcome, IntakeRejected) else None
        return _json(status_code, payload, headers)
    finally:
        reset_correlation_id(token)


@router.post("", response_model=None)
async def receive_webhook(
    request: Request,
    pipeline: WebhookPipeline = Depends(get_pipeline),
    source_ip: str = Depends(get_client_ip),
) -> JSONResponse:
    """Recebe qualquer evento suportado (roteado pelo campo `event`)."""
    return await _receive(request, pipeline, source_ip)


@router.post("/conversation-created", response_model=None)
async def conversation_created(
    request: Request,
    pipeline: WebhookPipeline = Depends(get_pipeline),
    source_ip: str = Depends(get_client_ip),
) -> JSONResponse:
    return await _receive(request, pipeline, source_ip, EventType.CONVERSATION_CREATED)


@router.post("/message-created", response_model=None)
async def message_created(
    request: Request,
    pipeline: WebhookPipeline = Depends(get_pipeline),
    source_ip: str = Depends(get_client_ip),
) -> JSONResponse:
    return await _receive(request, pipeline, source_ip, EventType.MESSAGE_CREATED)


@router.post("/conversation-status-changed", response_model=None)
async def conversation_status_changed(
    request: Request,
    pipeline: WebhookPipeline = Depends(get_pipeline),
    source_ip: str = Depends(get_client_ip),
) -> JSONResponse:
    return await _receive(
        request, pipeline, source_ip, EventType.CONVERSATION_STATUS_CHANGED
    )


@router.get("/test", response_model=None)
async def webhook_test(
    request: Request,
    pipeline: WebhookPipeline = Depends(get_pipeline),
    source_ip: str = Depends(get_client_ip),
) -> JSONResponse:
    """Confirma que o caminho do webhook está ativo."""
    token = set_correlation_id(correlation_id_from_headers(request.headers))
    try:
        rejection = await pipeline.dispatcher.check_entry(
            request.headers, source_ip, request.method, request.url.path
        )
        if rejection is not None:
            status_code, payload = to_http(rejection)
            return _json(status_code, payload, rejection.headers)

        logger.info("webhook_test_called", extra={"source_ip": source_ip})
        return _json(
            200,
            {
                "success": True,
                "message": "Webhook endpoint is working",
                "ip": source_ip,
            },
        )
    finally:
        reset_correlation_id(token)


@router.get("/status", response_model=None)
async def webhook_status(
    webhook_id: str | None = None,
    pipeline: WebhookPipeline = Depends(get_pipeline),
) -> JSONResponse:
    """Status de processamento de um webhook."""
    if not webhook_id:
        return _json(
            400,
            {
                "success": False,
                "error": "webhook_id parameter is required",
                "error_code": "WEBHOOK_ID_REQUIRED",
            },
        )
    return _json(200, await pipeline.status_query.get(webhook_id))


# Alias sem o prefixo do colaborador: GET /webhooks/status
status_router = APIRouter()
status_router.add_api_route("/status", webhook_status, methods=["GET"], response_model=None)
