"""Testes dos stores Firestore com cliente mockado."""

from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

from app.domain.dead_letter import DeadLetterRecord
from app.infra.stores.firestore_audit_store import FirestoreAuditStore
from app.infra.stores.firestore_dead_letter_store import FirestoreDeadLetterStore
from utils.errors import FirestoreUnavailableError


def _record() -> DeadLetterRecord:
    return DeadLetterRecord(
        webhook_id="w1",
        event_type="message_created",
        payload={"id": 1},
        error="CollaboratorUnavailableError: krayin_unavailable",
        attempts=5,
        failed_at="2026-10-18T12:00:00+00:00",
        job_id="j1",
        queue_name="webhooks-normal",
    )


class TestFirestoreDeadLetterStore:
    @pytest.mark.asyncio
    async def test_save_writes_document_by_webhook_id(self) -> None:
        client = MagicMock()
        store = FirestoreDeadLetterStore(client, collection_name="dl")

        await store.save(_record())

        client.collection.assert_called_with("dl")
        client.collection.return_value.document.assert_called_with("w1")
        document = client.collection.return_value.document.return_value
        document.set.assert_called_once_with(_record().to_dict())

    @pytest.mark.asyncio
    async def test_get_returns_record(self) -> None:
        client = MagicMock()
        document = client.collection.return_value.document.return_value
        document.get.return_value = SimpleNamespace(
            exists=True, to_dict=lambda: _record().to_dict()
        )
        store = FirestoreDeadLetterStore(client)

        assert await store.get("w1") == _record()

    @pytest.mark.asyncio
    async def test_get_missing_returns_none(self) -> None:
        client = MagicMock()
        document = client.collection.return_value.document.return_value
        document.get.return_value = SimpleNamespace(exists=False, to_dict=lambda: None)
        store = FirestoreDeadLetterStore(client)

        assert await store.get("w1") is None

    @pytest.mark.asyncio
    async def test_delete_missing_returns_false(self) -> None:
        client = MagicMock()
        document = client.collection.return_value.document.return_value
        document.get.return_value = SimpleNamespace(exists=False)
        store = FirestoreDeadLetterStore(client)

        assert await store.delete("w1") is False
        document.delete.assert_not_called()

    @pytest.mark.asyncio
    async def test_delete_existing(self) -> None:
        client = MagicMock()
        document = client.collection.return_value.document.return_value
        document.get.return_value = SimpleNamespace(exists=True)
        store = FirestoreDeadLetterStore(client)

        assert await store.delete("w1") is True
        document.delete.assert_called_once_with()

    @pytest.mark.asyncio
    async def test_backend_failure_is_wrapped(self) -> None:
        client = MagicMock()
        document = client.collection.return_value.document.return_value
        document.set.side_effect = RuntimeError("unavailable")
        store = FirestoreDeadLetterStore(client)

        with pytest.raises(FirestoreUnavailableError):
            await store.save(_record())


class TestFirestoreAuditStore:
    @pytest.mark.asyncio
    async def test_append_enriches_record(self) -> None:
        client = MagicMock()
        store = FirestoreAuditStore(client, collection_name="audit")

        await store.append({"event_type": "webhook_received", "webhook_id": "w1"})

        client.collection.assert_called_with("audit")
        doc_id = client.collection.return_value.document.call_args.args[0]
        assert "_webhook_received_" in doc_id
        written = client.collection.return_value.document.return_value.set.call_args.args[0]
        assert written["webhook_id"] == "w1"
        assert "timestamp" in written
        assert "created_at" in written

    @pytest.mark.asyncio
    async def test_append_failure_does_not_raise(self) -> None:
        client = MagicMock()
        client.collection.return_value.document.return_value.set.side_effect = RuntimeError()
        store = FirestoreAuditStore(client)

        await store.append({"event_type": "webhook_received"})
