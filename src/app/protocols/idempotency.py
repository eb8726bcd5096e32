"""Protocolo do store de idempotência.

Fluxo do intake:
    claim(key, claim_ttl)  -> False = duplicado (já aceito ou em andamento)
    enqueue(job)
    mark_processed(key, ttl)  (ou release(key) se o enqueue falhar)
"""

from __future__ import annotations

from abc import ABC, abstractmethod


class IdempotencyStoreProtocol(ABC):
    """Contrato assíncrono para registro de ids aceitos.

    `claim` precisa ser um único SET-if-not-exists com TTL: entre a
    checagem e a marcação nenhuma outra entrega do mesmo id pode passar.
    """

    @abstractmethod
    async def claim(self, key: str, ttl: int) -> bool:
        """Reivindica a chave atomicamente.

        Returns:
            True se a chave foi criada agora (entrega nova);
            False se já existia (duplicado).
        """

    @abstractmethod
    async def mark_processed(self, key: str, ttl: int) -> None:
        """Grava a marca definitiva com o TTL completo."""

    @abstractmethod
    async def release(self, key: str) -> None:
        """Remove um claim cujo enqueue falhou."""

    @abstractmethod
    async def has_been_processed(self, key: str) -> bool:
        """True se a marca definitiva existe (base do endpoint de status)."""
