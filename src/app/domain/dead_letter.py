"""DeadLetterRecord: job que esgotou tentativas ou falhou permanentemente.

Persistido para inspeção manual; nunca reprocessado automaticamente.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

from app.domain.job import QueuedJob


@dataclass(frozen=True, slots=True)
class DeadLetterRecord:
    """Registro de dead-letter.

    Attributes:
        webhook_id: Id do webhook (ou job_id quando o evento não tem id)
        event_type: Tipo do evento
        payload: Dados de negócio (para replay)
        error: Mensagem da última falha (classe + texto)
        attempts: Tentativas realizadas
        failed_at: Momento do dead-letter (ISO 8601 UTC)
        job_id: Job de origem
        queue_name: Fila de origem
        permanent: True se a falha foi permanente (sem retry)
    """

    webhook_id: str
    event_type: str
    payload: dict[str, Any]
    error: str
    attempts: int
    failed_at: str
    job_id: str
    queue_name: str
    permanent: bool = False

    @classmethod
    def from_job(
        cls,
        job: QueuedJob,
        error: str,
        *,
        permanent: bool,
        failed_at: datetime | None = None,
    ) -> DeadLetterRecord:
        return cls(
            webhook_id=job.webhook_id or job.job_id,
            event_type=str(job.event_type),
            payload=job.payload,
            error=error,
            attempts=job.attempt,
            failed_at=(failed_at or datetime.now(UTC)).isoformat(),
            job_id=job.job_id,
            queue_name=str(job.queue_name),
            permanent=permanent,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "webhook_id": self.webhook_id,
            "event_type": self.event_type,
            "payload": self.payload,
            "error": self.error,
            "attempts": self.attempts,
            "failed_at": self.failed_at,
            "job_id": self.job_id,
            "queue_name": self.queue_name,
            "permanent": self.permanent,
        }

    def to_summary(self) -> dict[str, Any]:
        """Visão sem payload, usada pelo endpoint de status e listagem."""
        return {
            "webhook_id": self.webhook_id,
            "event_type": self.event_type,
            "error": self.error,
            "attempts": self.attempts,
            "failed_at": self.failed_at,
            "permanent": self.permanent,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> DeadLetterRecord:
        return cls(
            webhook_id=str(data["webhook_id"]),
            event_type=str(data.get("event_type", "")),
            payload=dict(data.get("payload") or {}),
            error=str(data.get("error", "")),
            attempts=int(data.get("attempts", 0)),
            failed_at=str(data.get("failed_at", "")),
            job_id=str(data.get("job_id", "")),
            queue_name=str(data.get("queue_name", "")),
            permanent=bool(data.get("permanent", False)),
        )
