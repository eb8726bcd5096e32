"""Factories de stores baseadas em configuração de ambiente."""

from __future__ import annotations

import logging
import os

from app.bootstrap.clients import create_async_redis_client, create_firestore_client
from app.infra.stores import (
    FirestoreAuditStore,
    FirestoreDeadLetterStore,
    MemoryAuditStore,
    MemoryCounterStore,
    MemoryDeadLetterStore,
    MemoryIdempotencyStore,
    MemoryJobQueue,
    MemoryMappingStore,
    RedisCounterStore,
    RedisIdempotencyStore,
    RedisJobQueue,
    RedisMappingStore,
)
from app.protocols.audit_store import SecurityAuditStoreProtocol
from app.protocols.counters import CounterStoreProtocol
from app.protocols.dead_letter_store import DeadLetterStoreProtocol
from app.protocols.idempotency import IdempotencyStoreProtocol
from app.protocols.job_queue import JobQueueProtocol
from app.protocols.mapping_store import MappingStoreProtocol
from config.settings import (
    get_base_settings,
    get_firestore_settings,
    get_idempotency_settings,
    get_queue_settings,
    get_security_settings,
)

logger = logging.getLogger(__name__)


def _warn_memory_outside_dev(store: str) -> None:
    base = get_base_settings()
    if not base.is_development:
        logger.warning(
            "memory_store_in_non_dev",
            extra={"store": store, "backend": "memory", "environment": base.environment},
        )


def create_idempotency_store() -> IdempotencyStoreProtocol:
    """Cria store de idempotência (IDEMPOTENCY_BACKEND)."""
    backend = get_idempotency_settings().backend
    if backend == "redis":
        store: IdempotencyStoreProtocol = RedisIdempotencyStore(create_async_redis_client())
    else:
        _warn_memory_outside_dev("idempotency")
        store = MemoryIdempotencyStore()
    logger.info("idempotency_store_created", extra={"backend": backend})
    return store


def create_counter_store() -> CounterStoreProtocol:
    """Cria store de contadores (COUNTER_BACKEND)."""
    backend = get_security_settings().counter_backend
    if backend == "redis":
        store: CounterStoreProtocol = RedisCounterStore(create_async_redis_client())
    else:
        _warn_memory_outside_dev("counters")
        store = MemoryCounterStore()
    logger.info("counter_store_created", extra={"backend": backend})
    return store


def create_job_queue() -> JobQueueProtocol:
    """Cria fila de jobs (QUEUE_BACKEND)."""
    backend = get_queue_settings().backend
    if backend == "redis":
        queue: JobQueueProtocol = RedisJobQueue(create_async_redis_client())
    else:
        _warn_memory_outside_dev("job_queue")
        queue = MemoryJobQueue()
    logger.info("job_queue_created", extra={"backend": backend})
    return queue


def create_dead_letter_store() -> DeadLetterStoreProtocol:
    """Cria store de dead-letter (DEAD_LETTER_BACKEND)."""
    backend = get_queue_settings().dead_letter_backend
    if backend == "firestore":
        store: DeadLetterStoreProtocol = FirestoreDeadLetterStore(
            create_firestore_client(),
            collection_name=get_firestore_settings().collection_dead_letters,
        )
    else:
        _warn_memory_outside_dev("dead_letters")
        store = MemoryDeadLetterStore()
    logger.info("dead_letter_store_created", extra={"backend": backend})
    return store


def create_audit_store() -> SecurityAuditStoreProtocol:
    """Cria store de auditoria de segurança (AUDIT_STORE_BACKEND)."""
    backend = os.getenv("AUDIT_STORE_BACKEND", "memory").lower()
    if backend == "firestore":
        store: SecurityAuditStoreProtocol = FirestoreAuditStore(
            create_firestore_client(),
            collection_name=get_firestore_settings().collection_audit,
        )
    elif backend == "memory":
        store = MemoryAuditStore()
    else:
        msg = f"AUDIT_STORE_BACKEND inválido: {backend}"
        raise ValueError(msg)
    logger.info("audit_store_created", extra={"backend": backend})
    return store


def create_mapping_store() -> MappingStoreProtocol:
    """Cria store de mapeamentos (MAPPING_STORE_BACKEND)."""
    backend = os.getenv("MAPPING_STORE_BACKEND", "memory").lower()
    if backend == "redis":
        store: MappingStoreProtocol = RedisMappingStore(create_async_redis_client())
    elif backend == "memory":
        _warn_memory_outside_dev("mappings")
        store = MemoryMappingStore()
    else:
        msg = f"MAPPING_STORE_BACKEND inválido: {backend}"
        raise ValueError(msg)
    logger.info("mapping_store_created", extra={"backend": backend})
    return store
