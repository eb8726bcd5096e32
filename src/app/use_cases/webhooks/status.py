"""Consulta de status de um webhook pelo id."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from app.domain.envelope import EventType
from app.domain.events import dedupe_key

if TYPE_CHECKING:
    from app.protocols.dead_letter_store import DeadLetterStoreProtocol
    from app.protocols.idempotency import IdempotencyStoreProtocol


class WebhookStatusQuery:
    """`processed` vem do store de idempotência; dead-letter é anexado se existir.

    O id é procurado em todos os tipos de evento, já que o store guarda a
    chave com o tipo como namespace.
    """

    def __init__(
        self,
        idempotency_store: IdempotencyStoreProtocol,
        dead_letters: DeadLetterStoreProtocol | None = None,
    ) -> None:
        self._store = idempotency_store
        self._dead_letters = dead_letters

    async def get(self, webhook_id: str) -> dict[str, Any]:
        event_types = [
            str(event_type)
            for event_type in EventType
            if await self._store.has_been_processed(dedupe_key(event_type, webhook_id))
        ]
        processed = bool(event_types)
        body: dict[str, Any] = {
            "success": True,
            "webhook_id": webhook_id,
            "processed": processed,
            "status": "completed" if processed else "pending",
            "event_types": event_types,
        }
        if self._dead_letters is not None:
            record = await self._dead_letters.get(webhook_id)
            if record is not None:
                body["dead_letter"] = {
                    "error": record.error,
                    "attempts": record.attempts,
                    "failed_at": record.failed_at,
                }
        return body
