"""Firestore Dead-Letter Store: jobs que falharam de forma terminal.

Um documento por webhook_id na collection `failed_webhooks`
(webhook_id, event_type, payload, error, failed_at, attempts).
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from app.domain.dead_letter import DeadLetterRecord
from app.protocols.dead_letter_store import DeadLetterStoreProtocol
from utils.errors import FirestoreUnavailableError

if TYPE_CHECKING:
    from google.cloud.firestore import Client as FirestoreClient

logger = logging.getLogger(__name__)

DEAD_LETTER_COLLECTION = "failed_webhooks"


class FirestoreDeadLetterStore(DeadLetterStoreProtocol):
    """Dead-letter persistente.

    Args:
        firestore_client: Cliente Firestore síncrono
        collection_name: Nome da collection (default: failed_webhooks)
    """

    def __init__(
        self,
        firestore_client: FirestoreClient,
        collection_name: str = DEAD_LETTER_COLLECTION,
    ) -> None:
        self._db = firestore_client
        self._collection = collection_name

    def _doc(self, webhook_id: str):
        return self._db.collection(self._collection).document(webhook_id)

    async def save(self, record: DeadLetterRecord) -> None:
        try:
            await asyncio.to_thread(self._doc(record.webhook_id).set, record.to_dict())
        except Exception as exc:
            raise FirestoreUnavailableError("Falha ao gravar dead-letter") from exc
        logger.info(
            "dead_letter_saved",
            extra={"webhook_id": record.webhook_id, "event_type": record.event_type},
        )

    async def get(self, webhook_id: str) -> DeadLetterRecord | None:
        try:
            snapshot = await asyncio.to_thread(self._doc(webhook_id).get)
        except Exception as exc:
            raise FirestoreUnavailableError("Falha ao ler dead-letter") from exc
        if not snapshot.exists:
            return None
        return DeadLetterRecord.from_dict(snapshot.to_dict() or {})

    async def list_recent(self, limit: int = 50) -> list[DeadLetterRecord]:
        from google.cloud import firestore

        def _query() -> list[DeadLetterRecord]:
            query = (
                self._db.collection(self._collection)
                .order_by("failed_at", direction=firestore.Query.DESCENDING)
                .limit(limit)
            )
            return [DeadLetterRecord.from_dict(doc.to_dict() or {}) for doc in query.stream()]

        try:
            return await asyncio.to_thread(_query)
        except Exception as exc:
            raise FirestoreUnavailableError("Falha ao listar dead-letters") from exc

    async def delete(self, webhook_id: str) -> bool:
        def _delete() -> bool:
            doc = self._doc(webhook_id)
            if not doc.get().exists:
                return False
            doc.delete()
            return True

        try:
            return await asyncio.to_thread(_delete)
        except Exception as exc:
            raise FirestoreUnavailableError("Falha ao remover dead-letter") from exc
