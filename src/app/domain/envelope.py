"""WebhookEnvelope: uma tentativa de entrega de webhook.

O envelope carrega os metadados de autenticidade (assinatura, timestamp)
e o payload bruto. `id` do payload é a chave de idempotência.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any


class EventType(StrEnum):
    """Eventos do Chatwoot tratados pelo pipeline."""

    CONVERSATION_CREATED = "conversation_created"
    MESSAGE_CREATED = "message_created"
    CONVERSATION_STATUS_CHANGED = "conversation_status_changed"


class QueueName(StrEnum):
    """Filas por prioridade. HIGH é drenada antes de NORMAL."""

    HIGH = "webhooks-high"
    NORMAL = "webhooks-normal"


@dataclass(frozen=True, slots=True)
class EventRoute:
    """Fila, atraso de agendamento e estimativa exibida ao chamador."""

    queue: QueueName
    delay_seconds: int
    estimated_processing_seconds: int


EVENT_ROUTING: dict[EventType, EventRoute] = {
    EventType.CONVERSATION_CREATED: EventRoute(QueueName.HIGH, 2, 5),
    EventType.MESSAGE_CREATED: EventRoute(QueueName.NORMAL, 5, 3),
    EventType.CONVERSATION_STATUS_CHANGED: EventRoute(QueueName.HIGH, 1, 2),
}

QUEUE_PRIORITY: tuple[QueueName, ...] = (QueueName.HIGH, QueueName.NORMAL)


def route_for(event_type: EventType) -> EventRoute:
    return EVENT_ROUTING[event_type]


def parse_event_type(value: object) -> EventType | None:
    """Converte o campo `event` do corpo; None se desconhecido."""
    try:
        return EventType(str(value))
    except ValueError:
        return None


@dataclass(frozen=True, slots=True)
class WebhookEnvelope:
    """Entrega aceita pelos guards de autenticidade.

    Attributes:
        webhook_id: Id do payload (None = evento não deduplicável)
        event_type: Tipo do evento
        timestamp: Unix seconds declarado no header
        raw_payload: Corpo bruto (≤ limite configurado)
        signature: "sha256=<hex>"
        payload: Corpo já decodificado e validado
        source_ip: IP de origem (observabilidade)
        user_agent: User-Agent (observabilidade)
    """

    webhook_id: str | None
    event_type: EventType
    timestamp: int
    raw_payload: bytes
    signature: str
    payload: dict[str, Any] = field(default_factory=dict)
    source_ip: str = ""
    user_agent: str = ""

    @property
    def deduplicable(self) -> bool:
        return self.webhook_id is not None
