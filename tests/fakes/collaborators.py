"""Fakes dos clientes Krayin e Chatwoot usados pelos handlers."""

from __future__ import annotations

from typing import Any


class FakeCrmClient:
    """CRM em memória. `failures` são levantadas em ordem, uma por chamada."""

    def __init__(self, failures: list[BaseException] | None = None) -> None:
        self.failures = list(failures or [])
        self.leads: list[dict[str, Any]] = []
        self.activities: list[tuple[int, dict[str, Any]]] = []
        self.stage_updates: list[tuple[int, int]] = []
        self.calls = 0
        self._next_id = 500

    def _step(self) -> int:
        self.calls += 1
        if self.failures:
            raise self.failures.pop(0)
        self._next_id += 1
        return self._next_id

    async def create_lead(self, data: dict[str, Any]) -> dict[str, Any]:
        lead_id = self._step()
        self.leads.append(data)
        return {"id": lead_id, **data}

    async def update_lead_stage(self, lead_id: int, stage_id: int) -> dict[str, Any]:
        self._step()
        self.stage_updates.append((lead_id, stage_id))
        return {"id": lead_id, "lead_pipeline_stage_id": stage_id}

    async def create_activity(self, lead_id: int, data: dict[str, Any]) -> dict[str, Any]:
        activity_id = self._step()
        self.activities.append((lead_id, data))
        return {"id": activity_id, "lead_id": lead_id}


class FakeChatClient:
    """Chatwoot em memória: conversas pré-cadastradas por id."""

    def __init__(self) -> None:
        self.conversations: dict[int, dict[str, Any]] = {}
        self.requested: list[int] = []

    async def get_conversation(self, conversation_id: int) -> dict[str, Any]:
        self.requested.append(conversation_id)
        return self.conversations.get(conversation_id, {})

    async def get_contact(self, contact_id: int) -> dict[str, Any]:
        return {"id": contact_id}
