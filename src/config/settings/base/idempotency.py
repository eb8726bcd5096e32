"""Settings de idempotência de webhooks.

O store registra ids já aceitos. Um claim curto protege a janela entre
a checagem e o enqueue; o TTL completo só é gravado após o enqueue.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import TYPE_CHECKING, Literal

if TYPE_CHECKING:
    from config.settings.base.core import BaseSettings

IdempotencyBackend = Literal["memory", "redis"]


@dataclass(frozen=True)
class IdempotencySettings:
    """Configurações de idempotência.

    Attributes:
        backend: Backend do store (memory|redis)
        ttl_seconds: Janela em que um id reenviado é tratado como duplicado
        claim_ttl_seconds: TTL do claim provisório antes do enqueue
    """

    backend: IdempotencyBackend = "memory"
    ttl_seconds: int = 86400  # 24h
    claim_ttl_seconds: int = 30

    def validate(self, base: BaseSettings) -> list[str]:
        """Valida configurações de idempotência.

        Args:
            base: BaseSettings para verificar ambiente.

        Returns:
            Lista de erros de validação.
        """
        errors: list[str] = []

        if self.backend not in {"memory", "redis"}:
            errors.append(f"IDEMPOTENCY_BACKEND inválido: {self.backend}")

        if self.backend == "memory" and not base.is_development:
            errors.append(
                "IDEMPOTENCY_BACKEND=memory proibido em staging/production. Use Redis."
            )

        if self.backend == "redis" and not base.redis_url:
            errors.append("IDEMPOTENCY_BACKEND=redis requer REDIS_URL configurado")

        if self.ttl_seconds <= 0:
            errors.append("WEBHOOK_IDEMPOTENCY_TTL deve ser > 0")

        if not 0 < self.claim_ttl_seconds <= self.ttl_seconds:
            errors.append(
                "IDEMPOTENCY_CLAIM_TTL deve ser > 0 e <= WEBHOOK_IDEMPOTENCY_TTL"
            )

        return errors


def _load_idempotency_from_env() -> IdempotencySettings:
    """Carrega IdempotencySettings de variáveis de ambiente."""
    backend_str = os.getenv("IDEMPOTENCY_BACKEND", "memory").lower()
    backend: IdempotencyBackend = backend_str if backend_str == "redis" else "memory"
    return IdempotencySettings(
        backend=backend,
        ttl_seconds=int(os.getenv("WEBHOOK_IDEMPOTENCY_TTL", "86400")),
        claim_ttl_seconds=int(os.getenv("IDEMPOTENCY_CLAIM_TTL", "30")),
    )


@lru_cache(maxsize=1)
def get_idempotency_settings() -> IdempotencySettings:
    """Retorna instância cacheada de IdempotencySettings."""
    return _load_idempotency_from_env()
