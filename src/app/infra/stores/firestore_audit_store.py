"""Firestore Audit Store: trilha de auditoria de segurança.

Append-only. Eventos: webhook_received, webhook_processed,
webhook_dead_lettered, critical_security_event. Sem secrets, sem
assinatura completa, sem payload bruto.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from app.protocols.audit_store import SecurityAuditStoreProtocol

if TYPE_CHECKING:
    from google.cloud.firestore import Client as FirestoreClient

logger = logging.getLogger(__name__)

AUDIT_COLLECTION = "security_audit"


class FirestoreAuditStore(SecurityAuditStoreProtocol):
    """Store de auditoria usando Firestore.

    Falhas de escrita são logadas e não interrompem o fluxo principal.

    Args:
        firestore_client: Cliente Firestore síncrono
        collection_name: Nome da collection (default: security_audit)
    """

    def __init__(
        self,
        firestore_client: FirestoreClient,
        collection_name: str = AUDIT_COLLECTION,
    ) -> None:
        self._db = firestore_client
        self._collection = collection_name

    def _append_sync(self, record: dict[str, Any]) -> None:
        now = datetime.now(UTC)
        enriched = {
            **record,
            "timestamp": now.isoformat(),
            "created_at": now,  # Para TTL policy do Firestore
        }
        event_type = record.get("event_type", "unknown")
        doc_id = f"{now.strftime('%Y%m%d')}_{event_type}_{uuid.uuid4().hex[:12]}"

        try:
            self._db.collection(self._collection).document(doc_id).set(enriched)
        except Exception as exc:
            logger.error(
                "security_audit_append_error",
                extra={"error_type": type(exc).__name__, "doc_id": doc_id},
            )
            return
        logger.debug(
            "security_audit_appended",
            extra={"doc_id": doc_id, "event_type": event_type},
        )

    async def append(self, record: dict[str, Any]) -> None:
        """Usa asyncio.to_thread: o SDK do Firestore é síncrono."""
        await asyncio.to_thread(self._append_sync, record)
