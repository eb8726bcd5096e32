"""Protocolo do store de dead-letter."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from app.domain.dead_letter import DeadLetterRecord


class DeadLetterStoreProtocol(ABC):
    """Persistência de jobs terminais com falha, indexada por webhook_id."""

    @abstractmethod
    async def save(self, record: DeadLetterRecord) -> None:
        """Grava (ou sobrescreve) o registro."""

    @abstractmethod
    async def get(self, webhook_id: str) -> DeadLetterRecord | None: ...

    @abstractmethod
    async def list_recent(self, limit: int = 50) -> list[DeadLetterRecord]:
        """Registros mais recentes primeiro."""

    @abstractmethod
    async def delete(self, webhook_id: str) -> bool:
        """Remove o registro; False se não existia."""
