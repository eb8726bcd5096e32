"""Stores: implementações concretas de persistência.

Módulos disponíveis:
    - memory_stores: Stores em memória para desenvolvimento/testes
    - redis_idempotency_store: Claim/marca de webhooks aceitos (SET NX EX)
    - redis_counter_store: Contadores de rate limit e anomalias
    - redis_job_queue: Filas agendadas (sorted sets)
    - redis_mapping_store: Mapeamentos Chatwoot ↔ Krayin
    - firestore_dead_letter_store: Dead-letter persistente
    - firestore_audit_store: Trilha de auditoria de segurança
"""

from __future__ import annotations

from app.infra.stores.firestore_audit_store import FirestoreAuditStore
from app.infra.stores.firestore_dead_letter_store import FirestoreDeadLetterStore
from app.infra.stores.memory_stores import (
    MemoryAuditStore,
    MemoryCounterStore,
    MemoryDeadLetterStore,
    MemoryIdempotencyStore,
    MemoryJobQueue,
    MemoryMappingStore,
)
from app.infra.stores.redis_counter_store import RedisCounterStore
from app.infra.stores.redis_idempotency_store import RedisIdempotencyStore
from app.infra.stores.redis_job_queue import RedisJobQueue
from app.infra.stores.redis_mapping_store import RedisMappingStore

__all__ = [
    # Firestore
    "FirestoreAuditStore",
    "FirestoreDeadLetterStore",
    # Memory (dev/test)
    "MemoryAuditStore",
    "MemoryCounterStore",
    "MemoryDeadLetterStore",
    "MemoryIdempotencyStore",
    "MemoryJobQueue",
    "MemoryMappingStore",
    # Redis (Upstash)
    "RedisCounterStore",
    "RedisIdempotencyStore",
    "RedisJobQueue",
    "RedisMappingStore",
]
