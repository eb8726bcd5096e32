"""Protocolos e contratos do core da aplicação."""

from .audit_store import SecurityAuditStoreProtocol
from .counters import CounterStoreProtocol
from .dead_letter_store import DeadLetterStoreProtocol
from .http_client import ChatClientProtocol, CrmClientProtocol
from .idempotency import IdempotencyStoreProtocol
from .job_queue import JobQueueProtocol
from .mapping_store import MappingStoreProtocol

__all__ = [
    "ChatClientProtocol",
    "CounterStoreProtocol",
    "CrmClientProtocol",
    "DeadLetterStoreProtocol",
    "IdempotencyStoreProtocol",
    "JobQueueProtocol",
    "MappingStoreProtocol",
    "SecurityAuditStoreProtocol",
]
