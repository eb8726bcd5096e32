"""Modelos de domínio do pipeline de webhooks."""

from app.domain.dead_letter import DeadLetterRecord
from app.domain.envelope import (
    EVENT_ROUTING,
    QUEUE_PRIORITY,
    EventRoute,
    EventType,
    QueueName,
    WebhookEnvelope,
    parse_event_type,
    route_for,
)
from app.domain.intake import (
    IntakeAccepted,
    IntakeDuplicate,
    IntakeOutcome,
    IntakeRejected,
    to_http,
)
from app.domain.job import QueuedJob

__all__ = [
    "EVENT_ROUTING",
    "QUEUE_PRIORITY",
    "DeadLetterRecord",
    "EventRoute",
    "EventType",
    "IntakeAccepted",
    "IntakeDuplicate",
    "IntakeOutcome",
    "IntakeRejected",
    "QueueName",
    "QueuedJob",
    "WebhookEnvelope",
    "parse_event_type",
    "route_for",
    "to_http",
]
