"""Resultado tri-state do intake: Accepted | Duplicate | Rejected.

Duplicatas são um resultado normal (200), nunca uma exceção.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True, slots=True)
class IntakeAccepted:
    """Envelope novo, job enfileirado."""

    webhook_id: str | None
    job_id: str
    queue_name: str
    queued_at: str
    estimated_processing_seconds: int
    deduplicated: bool = True
    event_type: str | None = None


@dataclass(frozen=True, slots=True)
class IntakeDuplicate:
    """Id já aceito dentro da janela de idempotência."""

    webhook_id: str
    event_type: str | None = None


@dataclass(frozen=True, slots=True)
class IntakeRejected:
    """Guard falhou; nada foi enfileirado.

    Attributes:
        error_code: Código estável (ex.: INVALID_SIGNATURE)
        http_status: Status HTTP da resposta
        message: Mensagem curta para o chamador
        details: Campos extras do corpo (ex.: retry_after, max_size_bytes)
        headers: Headers extras (ex.: Retry-After)
    """

    error_code: str
    http_status: int
    message: str
    details: dict[str, Any] = field(default_factory=dict)
    headers: dict[str, str] = field(default_factory=dict)


IntakeOutcome = IntakeAccepted | IntakeDuplicate | IntakeRejected


def to_http(outcome: IntakeOutcome) -> tuple[int, dict[str, Any]]:
    """Converte o resultado em (status, corpo JSON)."""
    if isinstance(outcome, IntakeAccepted):
        return 200, {
            "success": True,
            "webhook_id": outcome.webhook_id,
            "queued_at": outcome.queued_at,
            "processing_status": "queued",
            "estimated_processing_time_seconds": outcome.estimated_processing_seconds,
            "deduplicated": outcome.deduplicated,
        }
    if isinstance(outcome, IntakeDuplicate):
        return 200, {
            "success": True,
            "message": "Already processed",
            "webhook_id": outcome.webhook_id,
            "status": "duplicate",
        }
    return outcome.http_status, {
        "success": False,
        "error": outcome.message,
        "error_code": outcome.error_code,
        **outcome.details,
    }
