"""Protocolo do store de mapeamentos Chatwoot ↔ Krayin.

Chave-valor com semântica de create-or-update. Namespaces usados:
contact, conversation, activity, stage_change.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


class MappingStoreProtocol(ABC):
    """Mapeamentos por (namespace, chave)."""

    @abstractmethod
    async def get(self, namespace: str, key: str) -> dict[str, Any] | None: ...

    @abstractmethod
    async def upsert(self, namespace: str, key: str, data: dict[str, Any]) -> dict[str, Any]:
        """Mescla `data` no registro existente (ou cria) e retorna o resultado."""
