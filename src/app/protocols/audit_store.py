"""Protocolo da trilha de auditoria de segurança.

Registros nunca contêm secrets, assinaturas completas ou payload bruto.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


class SecurityAuditStoreProtocol(ABC):
    """Append-only de eventos de segurança."""

    @abstractmethod
    async def append(self, record: dict[str, Any]) -> None:
        """Adiciona registro (event_type, webhook_id, source_ip, ...)."""
