"""Stores em memória: apenas para desenvolvimento e testes.

ATENÇÃO: Não usar em staging/production. Sem persistência entre reinícios
e sem compartilhamento entre instâncias.

Operações de check-and-set rodam sob um lock: o TestClient e o worker
pool podem acessar o mesmo store a partir de threads diferentes.
"""

from __future__ import annotations

import heapq
import itertools
import threading
import time
from typing import TYPE_CHECKING, Any

from app.protocols.audit_store import SecurityAuditStoreProtocol
from app.protocols.counters import CounterStoreProtocol
from app.protocols.dead_letter_store import DeadLetterStoreProtocol
from app.protocols.idempotency import IdempotencyStoreProtocol
from app.protocols.job_queue import JobQueueProtocol
from app.protocols.mapping_store import MappingStoreProtocol

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from app.domain.dead_letter import DeadLetterRecord
    from app.domain.envelope import QueueName
    from app.domain.job import QueuedJob

_CLAIMED = "claimed"
_PROCESSED = "processed"


class _ExpiringDict:
    """Dicionário com expiração por chave (valor, expires_at)."""

    def __init__(self, clock: Callable[[], float]) -> None:
        self._clock = clock
        self._data: dict[str, tuple[Any, float]] = {}

    def get(self, key: str) -> Any | None:
        entry = self._data.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if self._clock() >= expires_at:
            del self._data[key]
            return None
        return value

    def set(self, key: str, value: Any, ttl: float) -> None:
        self._data[key] = (value, self._clock() + ttl)

    def ttl(self, key: str) -> float:
        if self.get(key) is None:
            return 0.0
        return self._data[key][1] - self._clock()

    def pop(self, key: str) -> Any | None:
        value = self.get(key)
        self._data.pop(key, None)
        return value


class MemoryIdempotencyStore(IdempotencyStoreProtocol):
    """Store de idempotência em memória (apenas dev/test)."""

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._entries = _ExpiringDict(clock)
        self._lock = threading.Lock()

    async def claim(self, key: str, ttl: int) -> bool:
        with self._lock:
            if self._entries.get(key) is not None:
                return False
            self._entries.set(key, _CLAIMED, ttl)
            return True

    async def mark_processed(self, key: str, ttl: int) -> None:
        with self._lock:
            self._entries.set(key, _PROCESSED, ttl)

    async def release(self, key: str) -> None:
        with self._lock:
            if self._entries.get(key) == _CLAIMED:
                self._entries.pop(key)

    async def has_been_processed(self, key: str) -> bool:
        with self._lock:
            return self._entries.get(key) == _PROCESSED


class MemoryCounterStore(CounterStoreProtocol):
    """Contadores com janela fixa (apenas dev/test)."""

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._counters = _ExpiringDict(clock)
        self._lock = threading.Lock()

    async def increment(self, key: str, ttl: int) -> int:
        with self._lock:
            current = self._counters.get(key)
            if current is None:
                self._counters.set(key, 1, ttl)
                return 1
            remaining = self._counters.ttl(key)
            self._counters.set(key, current + 1, remaining)
            return current + 1

    async def get(self, key: str) -> int:
        with self._lock:
            return int(self._counters.get(key) or 0)

    async def ttl_remaining(self, key: str) -> int:
        with self._lock:
            return max(0, int(round(self._counters.ttl(key))))

    async def set_flag(self, key: str, ttl: int) -> None:
        with self._lock:
            self._counters.set(key, 1, ttl)

    async def has_flag(self, key: str) -> bool:
        with self._lock:
            return self._counters.get(key) is not None


class MemoryJobQueue(JobQueueProtocol):
    """Fila em memória: um heap por nome, ordenado por not_before."""

    def __init__(self) -> None:
        self._heaps: dict[str, list[tuple[float, int, QueuedJob]]] = {}
        self._sequence = itertools.count()
        self._lock = threading.Lock()

    async def enqueue(self, job: QueuedJob, queue_name: QueueName, not_before: float) -> None:
        with self._lock:
            heap = self._heaps.setdefault(str(queue_name), [])
            heapq.heappush(heap, (not_before, next(self._sequence), job))

    async def dequeue(
        self,
        queue_names: Sequence[QueueName],
        now: float,
    ) -> QueuedJob | None:
        with self._lock:
            for name in queue_names:
                heap = self._heaps.get(str(name))
                if heap and heap[0][0] <= now:
                    return heapq.heappop(heap)[2]
        return None

    async def size(self, queue_name: QueueName) -> int:
        with self._lock:
            return len(self._heaps.get(str(queue_name), []))

    def scheduled(self, queue_name: QueueName) -> list[tuple[float, QueuedJob]]:
        """Jobs agendados (not_before, job) em ordem (apenas testes)."""
        with self._lock:
            return [(nb, job) for nb, _, job in sorted(self._heaps.get(str(queue_name), []))]


class MemoryDeadLetterStore(DeadLetterStoreProtocol):
    """Dead-letter em memória (apenas dev/test)."""

    def __init__(self) -> None:
        self._records: dict[str, DeadLetterRecord] = {}
        self._lock = threading.Lock()

    async def save(self, record: DeadLetterRecord) -> None:
        with self._lock:
            self._records.pop(record.webhook_id, None)
            self._records[record.webhook_id] = record

    async def get(self, webhook_id: str) -> DeadLetterRecord | None:
        with self._lock:
            return self._records.get(webhook_id)

    async def list_recent(self, limit: int = 50) -> list[DeadLetterRecord]:
        with self._lock:
            return list(reversed(self._records.values()))[:limit]

    async def delete(self, webhook_id: str) -> bool:
        with self._lock:
            return self._records.pop(webhook_id, None) is not None


class MemoryAuditStore(SecurityAuditStoreProtocol):
    """Auditoria de segurança em memória (apenas dev/test)."""

    def __init__(self, max_records: int = 10000) -> None:
        self._records: list[dict[str, Any]] = []
        self._max_records = max_records
        self._lock = threading.Lock()

    async def append(self, record: dict[str, Any]) -> None:
        with self._lock:
            self._records.append(dict(record))
            # Limita tamanho para evitar memory leak em dev
            if len(self._records) > self._max_records:
                self._records = self._records[-self._max_records :]

    def get_records(self) -> list[dict[str, Any]]:
        """Retorna todos os registros (apenas para testes)."""
        with self._lock:
            return list(self._records)


class MemoryMappingStore(MappingStoreProtocol):
    """Mapeamentos em memória (apenas dev/test)."""

    def __init__(self) -> None:
        self._data: dict[tuple[str, str], dict[str, Any]] = {}
        self._lock = threading.Lock()

    async def get(self, namespace: str, key: str) -> dict[str, Any] | None:
        with self._lock:
            found = self._data.get((namespace, key))
            return dict(found) if found is not None else None

    async def upsert(self, namespace: str, key: str, data: dict[str, Any]) -> dict[str, Any]:
        with self._lock:
            merged = {**self._data.get((namespace, key), {}), **data}
            self._data[(namespace, key)] = merged
            return dict(merged)
