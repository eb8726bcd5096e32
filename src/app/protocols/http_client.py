"""Protocolos dos clientes REST consumidos pelo executor.

Evita dependência direta da camada api. Falhas seguem a taxonomia:
CollaboratorUnavailableError (transitória) e CollaboratorRejectedError
(permanente).
"""

from __future__ import annotations

from typing import Any, Protocol


class CrmClientProtocol(Protocol):
    """Contrato mínimo do CRM (Krayin)."""

    async def create_lead(self, data: dict[str, Any]) -> dict[str, Any]: ...

    async def update_lead_stage(self, lead_id: int, stage_id: int) -> dict[str, Any]: ...

    async def create_activity(self, lead_id: int, data: dict[str, Any]) -> dict[str, Any]: ...


class ChatClientProtocol(Protocol):
    """Contrato mínimo da plataforma de chat (Chatwoot)."""

    async def get_conversation(self, conversation_id: int) -> dict[str, Any]: ...

    async def get_contact(self, contact_id: int) -> dict[str, Any]: ...
