"""API administrativa de dead-letters (uso por operadores).

Endpoints:
- GET  /webhooks/chatwoot/dead-letters?limit=50
- POST /webhooks/chatwoot/dead-letters/{webhook_id}/replay

Autenticação: Authorization: Bearer <ADMIN_API_TOKEN>, comparação em
tempo constante. Sem token configurado a API fica desabilitada.
"""

from __future__ import annotations

import hmac
import logging

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse

from api.routes.dependencies import get_admin_token, get_client_ip, get_pipeline
from app.bootstrap.dependencies import WebhookPipeline

logger = logging.getLogger(__name__)

router = APIRouter()

_BEARER_PREFIX = "bearer "


def _error(status_code: int, error_code: str, message: str) -> JSONResponse:
    return JSONResponse(
        content={"success": False, "error": message, "error_code": error_code},
        status_code=status_code,
    )


def _authorize(request: Request, admin_token: str) -> JSONResponse | None:
    """Retorna a resposta de erro ou None se autorizado."""
    if not admin_token:
        return _error(403, "ADMIN_API_DISABLED", "Admin API disabled")

    header = request.headers.get("authorization", "")
    provided = header[len(_BEARER_PREFIX) :] if header.lower().startswith(_BEARER_PREFIX) else ""
    if not provided or not hmac.compare_digest(
        provided.encode("utf-8"), admin_token.encode("utf-8")
    ):
        logger.warning("admin_unauthorized", extra={"path": request.url.path})
        return _error(401, "UNAUTHORIZED", "Invalid or missing bearer token")
    return None


@router.get("/dead-letters", response_model=None)
async def list_dead_letters(
    request: Request,
    limit: int = Query(50, ge=1, le=500),
    pipeline: WebhookPipeline = Depends(get_pipeline),
    admin_token: str = Depends(get_admin_token),
    source_ip: str = Depends(get_client_ip),
) -> JSONResponse:
    """Lista dead-letters recentes (inclui payload para triagem)."""
    denied = _authorize(request, admin_token)
    if denied is not None:
        return denied

    await pipeline.monitor.record_sensitive_access(source_ip, "dead_letters")
    records = await pipeline.executor.list_dead_letters(limit)
    return JSONResponse(
        content={
            "success": True,
            "count": len(records),
            "dead_letters": [record.to_dict() for record in records],
        }
    )


@router.post("/dead-letters/{webhook_id}/replay", response_model=None)
async def replay_dead_letter(
    webhook_id: str,
    request: Request,
    pipeline: WebhookPipeline = Depends(get_pipeline),
    admin_token: str = Depends(get_admin_token),
) -> JSONResponse:
    """Reenfileira um dead-letter com tentativas zeradas."""
    denied = _authorize(request, admin_token)
    if denied is not None:
        return denied

    job = await pipeline.executor.replay(webhook_id)
    if job is None:
        return _error(404, "DEAD_LETTER_NOT_FOUND", "Failed webhook not found")
    return JSONResponse(
        content={
            "success": True,
            "webhook_id": webhook_id,
            "job_id": job.job_id,
            "event_type": str(job.event_type),
            "message": "Webhook retry dispatched",
        }
    )
