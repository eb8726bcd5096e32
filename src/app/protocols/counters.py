"""Protocolo de contadores com TTL (rate limit e anomalias).

Implementações: dicionário com lock (instância única) ou Redis
(várias instâncias atrás do mesmo contrato).
"""

from __future__ import annotations

from abc import ABC, abstractmethod


class CounterStoreProtocol(ABC):
    """Contadores atômicos e flags com expiração."""

    @abstractmethod
    async def increment(self, key: str, ttl: int) -> int:
        """Incrementa e retorna o novo valor.

        O TTL é aplicado apenas quando a chave nasce: a janela é fixa a
        partir do primeiro incremento.
        """

    @abstractmethod
    async def get(self, key: str) -> int:
        """Valor atual (0 se ausente ou expirado)."""

    @abstractmethod
    async def ttl_remaining(self, key: str) -> int:
        """Segundos até expirar (0 se ausente)."""

    @abstractmethod
    async def set_flag(self, key: str, ttl: int) -> None:
        """Grava flag com TTL (ex.: bloqueio de IP)."""

    @abstractmethod
    async def has_flag(self, key: str) -> bool:
        """True se a flag existe e não expirou."""
