"""QueuedJob: unidade de trabalho derivada de um envelope aceito.

Serializado como JSON nas filas (memória ou Redis). O status segue
fsm.JobState; COMPLETED e DEAD_LETTERED são terminais.
"""

from __future__ import annotations

import json
import uuid
from dataclasses import dataclass, field, replace
from typing import Any

from app.domain.envelope import EventType, QueueName
from fsm.states.job import JobState


@dataclass(frozen=True, slots=True)
class QueuedJob:
    """Job enfileirado.

    Attributes:
        job_id: uuid4 hex
        queue_name: Fila de prioridade
        event_type: Tipo do evento de origem
        webhook_id: Id do webhook (pode ser None)
        payload: Dados de negócio do envelope
        attempt: Tentativas já realizadas (começa em 0)
        max_attempts: Limite de tentativas
        next_run_at: Unix seconds a partir do qual o job pode rodar
        status: Estado atual (JobState)
        last_error: Última falha registrada
        created_at: Unix seconds da criação
    """

    queue_name: QueueName
    event_type: EventType
    payload: dict[str, Any]
    webhook_id: str | None = None
    max_attempts: int = 5
    next_run_at: float = 0.0
    attempt: int = 0
    status: JobState = JobState.PENDING
    last_error: str | None = None
    created_at: float = 0.0
    job_id: str = field(default_factory=lambda: uuid.uuid4().hex)

    def with_status(self, status: JobState, **changes: Any) -> QueuedJob:
        """Cópia com novo status (o job é imutável)."""
        return replace(self, status=status, **changes)

    @property
    def attempts_exhausted(self) -> bool:
        return self.attempt >= self.max_attempts

    def to_dict(self) -> dict[str, Any]:
        return {
            "job_id": self.job_id,
            "queue_name": str(self.queue_name),
            "event_type": str(self.event_type),
            "webhook_id": self.webhook_id,
            "payload": self.payload,
            "attempt": self.attempt,
            "max_attempts": self.max_attempts,
            "next_run_at": self.next_run_at,
            "status": str(self.status),
            "last_error": self.last_error,
            "created_at": self.created_at,
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), separators=(",", ":"), ensure_ascii=False)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> QueuedJob:
        return cls(
            job_id=str(data["job_id"]),
            queue_name=QueueName(data["queue_name"]),
            event_type=EventType(data["event_type"]),
            webhook_id=data.get("webhook_id"),
            payload=dict(data.get("payload") or {}),
            attempt=int(data.get("attempt", 0)),
            max_attempts=int(data.get("max_attempts", 5)),
            next_run_at=float(data.get("next_run_at", 0.0)),
            status=JobState(data.get("status", JobState.PENDING)),
            last_error=data.get("last_error"),
            created_at=float(data.get("created_at", 0.0)),
        )

    @classmethod
    def from_json(cls, raw: str | bytes) -> QueuedJob:
        return cls.from_dict(json.loads(raw))
