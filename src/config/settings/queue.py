"""Settings da fila de jobs e do executor.

Política de retry: até `max_attempts` tentativas; o atraso após a
tentativa n falha é `backoff_schedule[min(n - 1, len - 1)]`.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import TYPE_CHECKING, Literal

if TYPE_CHECKING:
    from config.settings.base.core import BaseSettings

QueueBackend = Literal["memory", "redis"]
DeadLetterBackend = Literal["memory", "firestore"]

DEFAULT_BACKOFF_SCHEDULE: tuple[int, ...] = (60, 120, 300, 600, 1800)


@dataclass(frozen=True)
class QueueSettings:
    """Configurações de fila, retry e worker pool.

    Attributes:
        backend: Backend da fila (memory|redis)
        max_attempts: Tentativas antes do dead-letter
        backoff_schedule: Atrasos (s) entre tentativas
        attempt_timeout_seconds: Timeout por tentativa (estouro = transitório)
        worker_concurrency: Jobs simultâneos no pool
        poll_interval_seconds: Intervalo de polling com fila vazia
        shutdown_timeout_seconds: Espera máxima pelo drain no shutdown
        dead_letter_backend: Backend do dead-letter (memory|firestore)
    """

    backend: QueueBackend = "memory"
    max_attempts: int = 5
    backoff_schedule: tuple[int, ...] = DEFAULT_BACKOFF_SCHEDULE
    attempt_timeout_seconds: float = 120.0
    worker_concurrency: int = 4
    poll_interval_seconds: float = 1.0
    shutdown_timeout_seconds: float = 30.0
    dead_letter_backend: DeadLetterBackend = "memory"

    def validate(self, base: BaseSettings) -> list[str]:
        """Valida configurações de fila.

        Args:
            base: BaseSettings para verificar ambiente.

        Returns:
            Lista de erros de validação.
        """
        errors: list[str] = []

        if self.backend not in {"memory", "redis"}:
            errors.append(f"QUEUE_BACKEND inválido: {self.backend}")
        if self.backend == "memory" and not base.is_development:
            errors.append("QUEUE_BACKEND=memory proibido em staging/production")
        if self.backend == "redis" and not base.redis_url:
            errors.append("QUEUE_BACKEND=redis requer REDIS_URL configurado")

        if self.dead_letter_backend not in {"memory", "firestore"}:
            errors.append(f"DEAD_LETTER_BACKEND inválido: {self.dead_letter_backend}")
        if self.dead_letter_backend == "memory" and not base.is_development:
            errors.append("DEAD_LETTER_BACKEND=memory proibido em staging/production")

        if self.max_attempts < 1:
            errors.append("QUEUE_MAX_ATTEMPTS deve ser >= 1")
        if not self.backoff_schedule or any(d <= 0 for d in self.backoff_schedule):
            errors.append("QUEUE_BACKOFF_SCHEDULE deve conter apenas valores > 0")
        if self.attempt_timeout_seconds <= 0:
            errors.append("QUEUE_ATTEMPT_TIMEOUT_SECONDS deve ser > 0")
        if self.worker_concurrency < 1:
            errors.append("QUEUE_WORKER_CONCURRENCY deve ser >= 1")
        if self.poll_interval_seconds <= 0:
            errors.append("QUEUE_POLL_INTERVAL_SECONDS deve ser > 0")

        return errors


def parse_backoff_schedule(raw: str) -> tuple[int, ...]:
    """Converte "60,120,300" em (60, 120, 300).

    Itens vazios são ignorados; string vazia usa o schedule padrão.

    Raises:
        ValueError: Se algum item não for inteiro.
    """
    parts = [item.strip() for item in raw.split(",") if item.strip()]
    if not parts:
        return DEFAULT_BACKOFF_SCHEDULE
    return tuple(int(item) for item in parts)


def _load_queue_from_env() -> QueueSettings:
    """Carrega QueueSettings de variáveis de ambiente."""
    backend_str = os.getenv("QUEUE_BACKEND", "memory").lower()
    backend: QueueBackend = backend_str if backend_str == "redis" else "memory"
    dl_str = os.getenv("DEAD_LETTER_BACKEND", "memory").lower()
    dead_letter_backend: DeadLetterBackend = (
        dl_str if dl_str == "firestore" else "memory"
    )
    return QueueSettings(
        backend=backend,
        max_attempts=int(os.getenv("QUEUE_MAX_ATTEMPTS", "5")),
        backoff_schedule=parse_backoff_schedule(
            os.getenv("QUEUE_BACKOFF_SCHEDULE", "60,120,300,600,1800")
        ),
        attempt_timeout_seconds=float(
            os.getenv("QUEUE_ATTEMPT_TIMEOUT_SECONDS", "120")
        ),
        worker_concurrency=int(os.getenv("QUEUE_WORKER_CONCURRENCY", "4")),
        poll_interval_seconds=float(os.getenv("QUEUE_POLL_INTERVAL_SECONDS", "1.0")),
        shutdown_timeout_seconds=float(
            os.getenv("QUEUE_SHUTDOWN_TIMEOUT_SECONDS", "30")
        ),
        dead_letter_backend=dead_letter_backend,
    )


@lru_cache(maxsize=1)
def get_queue_settings() -> QueueSettings:
    """Retorna instância cacheada de QueueSettings."""
    return _load_queue_from_env()
