"""Testes dos handlers de sincronização Chatwoot -> Krayin."""

from __future__ import annotations

import pytest

from app.domain.envelope import EventType, QueueName
from app.domain.events import validate_event
from app.domain.job import QueuedJob
from app.infra.stores.memory_stores import MemoryAuditStore, MemoryMappingStore
from app.use_cases.webhooks import CrmSyncHandlers
from app.use_cases.webhooks.handlers import build_activity_data, build_lead_data
from config.settings import KrayinSettings
from tests.fakes import payloads
from tests.fakes.clock import FakeClock
from tests.fakes.collaborators import FakeChatClient, FakeCrmClient
from utils.errors import MissingParentError


def _job(payload: dict, event_type: EventType, queue: QueueName = QueueName.HIGH) -> QueuedJob:
    clean = validate_event(event_type, payload).model_dump(mode="json")
    webhook_id = clean.get("id")
    return QueuedJob(
        queue_name=queue,
        event_type=event_type,
        payload=clean,
        webhook_id=str(webhook_id) if webhook_id is not None else None,
        attempt=1,
    )


def _conversation(conversation_id: int = 1, contact_id: int = 10) -> QueuedJob:
    return _job(
        payloads.conversation_created(conversation_id, contact_id),
        EventType.CONVERSATION_CREATED,
    )


def _message(message_id: int = 100, conversation_id: int = 1, **kwargs) -> QueuedJob:
    return _job(
        payloads.message_created(message_id, conversation_id, **kwargs),
        EventType.MESSAGE_CREATED,
        QueueName.NORMAL,
    )


def _status(status: str = "resolved", webhook_id: int | None = 300) -> QueuedJob:
    return _job(
        payloads.status_changed(webhook_id=webhook_id, status=status),
        EventType.CONVERSATION_STATUS_CHANGED,
    )


@pytest.fixture
def mappings() -> MemoryMappingStore:
    return MemoryMappingStore()


@pytest.fixture
def handlers(
    crm: FakeCrmClient, chat: FakeChatClient, mappings: MemoryMappingStore, clock: FakeClock
) -> CrmSyncHandlers:
    return CrmSyncHandlers(
        crm=crm,
        mappings=mappings,
        krayin_settings=KrayinSettings(),
        chat=chat,
        audit_store=MemoryAuditStore(),
        clock=clock,
    )


class TestConversationCreated:
    @pytest.mark.asyncio
    async def test_creates_lead_and_mappings(
        self, handlers: CrmSyncHandlers, crm: FakeCrmClient, mappings: MemoryMappingStore
    ) -> None:
        await handlers.conversation_created(_conversation())

        assert len(crm.leads) == 1
        lead = crm.leads[0]
        assert lead["title"] == "Maria Silva - Consulta via Chat"
        assert lead["person"]["emails"] == ["maria@exemplo.com"]
        assert lead["custom_fields"]["chatwoot_contact_id"] == 10
        contact = await mappings.get("contact", "10")
        assert contact["krayin_lead_id"] == 501
        conversation = await mappings.get("conversation", "1")
        assert conversation["krayin_lead_id"] == 501
        assert conversation["message_count"] == 0

    @pytest.mark.asyncio
    async def test_reexecution_does_not_duplicate_lead(
        self, handlers: CrmSyncHandlers, crm: FakeCrmClient
    ) -> None:
        await handlers.conversation_created(_conversation())
        await handlers.conversation_created(_conversation())

        assert crm.calls == 1

    @pytest.mark.asyncio
    async def test_second_conversation_reuses_contact_lead(
        self, handlers: CrmSyncHandlers, crm: FakeCrmClient, mappings: MemoryMappingStore
    ) -> None:
        await handlers.conversation_created(_conversation(conversation_id=1))
        await handlers.conversation_created(_conversation(conversation_id=2))

        assert crm.calls == 1
        assert (await mappings.get("conversation", "2"))["krayin_lead_id"] == 501

    @pytest.mark.asyncio
    async def test_audit_records_processing(self, crm: FakeCrmClient) -> None:
        audit = MemoryAuditStore()
        handlers = CrmSyncHandlers(
            crm=crm,
            mappings=MemoryMappingStore(),
            krayin_settings=KrayinSettings(),
            audit_store=audit,
        )

        await handlers.conversation_created(_conversation())

        record = audit.get_records()[-1]
        assert record["event_type"] == "webhook_processed"
        assert record["webhook_type"] == "conversation_created"
        assert record["krayin_lead_id"] == 501


class TestMessageCreated:
    @pytest.mark.asyncio
    async def test_creates_activity_and_bumps_count(
        self, handlers: CrmSyncHandlers, crm: FakeCrmClient, mappings: MemoryMappingStore
    ) -> None:
        await handlers.conversation_created(_conversation())

        await handlers.message_created(_message())

        lead_id, activity = crm.activities[0]
        assert lead_id == 501
        assert activity["title"] == "Mensagem recebida de Maria Silva"
        assert activity["activity_type"] == "call"
        assert (await mappings.get("activity", "100"))["krayin_activity_id"] == 502
        assert (await mappings.get("conversation", "1"))["message_count"] == 1

    @pytest.mark.asyncio
    async def test_duplicate_message_is_skipped(
        self, handlers: CrmSyncHandlers, crm: FakeCrmClient
    ) -> None:
        await handlers.conversation_created(_conversation())
        await handlers.message_created(_message())
        await handlers.message_created(_message())

        assert len(crm.activities) == 1

    @pytest.mark.asyncio
    async def test_message_before_conversation_is_missing_parent(
        self, handlers: CrmSyncHandlers, crm: FakeCrmClient
    ) -> None:
        with pytest.raises(MissingParentError):
            await handlers.message_created(_message(conversation_id=99))

        assert crm.activities == []

    @pytest.mark.asyncio
    async def test_recovers_conversation_from_chat_api(
        self,
        handlers: CrmSyncHandlers,
        chat: FakeChatClient,
        mappings: MemoryMappingStore,
        crm: FakeCrmClient,
    ) -> None:
        await handlers.conversation_created(_conversation(conversation_id=1, contact_id=10))
        chat.conversations[7] = {"id": 7, "status": "open", "meta": {"sender": {"id": 10}}}

        await handlers.message_created(_message(message_id=101, conversation_id=7))

        assert chat.requested == [7]
        assert crm.activities[0][0] == 501
        assert (await mappings.get("conversation", "7"))["message_count"] == 1


class TestStatusChanged:
    @pytest.mark.asyncio
    async def test_moves_lead_to_stage(
        self, handlers: CrmSyncHandlers, crm: FakeCrmClient, mappings: MemoryMappingStore
    ) -> None:
        await handlers.conversation_created(_conversation())

        job = _status("resolved")

        await handlers.conversation_status_changed(job)

        assert crm.stage_updates == [(501, 3)]
        key = f"1:resolved:{job.payload['changed_at']}"
        change = await mappings.get("stage_change", key)
        assert change["previous_stage"] == "In Progress"
        assert change["new_stage"] == "Follow-up"
        assert (await mappings.get("conversation", "1"))["status"] == "resolved"

    @pytest.mark.asyncio
    async def test_same_change_applied_once(
        self, handlers: CrmSyncHandlers, crm: FakeCrmClient
    ) -> None:
        await handlers.conversation_created(_conversation())

        await handlers.conversation_status_changed(_status("pending", webhook_id=None))
        await handlers.conversation_status_changed(_status("pending", webhook_id=None))

        assert crm.stage_updates == [(501, 4)]

    @pytest.mark.asyncio
    async def test_later_change_with_reused_id_reaches_crm(
        self, handlers: CrmSyncHandlers, crm: FakeCrmClient
    ) -> None:
        await handlers.conversation_created(_conversation())
        resolved = payloads.status_changed(webhook_id=1, status="resolved")
        reopened = payloads.status_changed(
            webhook_id=1,
            status="open",
            previous_status="resolved",
            changed_at="2026-10-18T13:00:00Z",
        )

        await handlers.conversation_status_changed(
            _job(resolved, EventType.CONVERSATION_STATUS_CHANGED)
        )
        await handlers.conversation_status_changed(
            _job(reopened, EventType.CONVERSATION_STATUS_CHANGED)
        )

        assert crm.stage_updates == [(501, 3), (501, 2)]

    @pytest.mark.asyncio
    async def test_redelivered_change_is_applied_once(
        self, handlers: CrmSyncHandlers, crm: FakeCrmClient
    ) -> None:
        await handlers.conversation_created(_conversation())

        await handlers.conversation_status_changed(_status("resolved"))
        await handlers.conversation_status_changed(_status("resolved"))

        assert crm.stage_updates == [(501, 3)]

    @pytest.mark.parametrize(
        ("status", "expected"),
        [
            ("open", (2, "In Progress")),
            ("resolved", (3, "Follow-up")),
            ("pending", (4, "Waiting")),
            ("snoozed", (4, "Waiting")),
        ],
    )
    def test_stage_for_status(
        self, handlers: CrmSyncHandlers, status: str, expected: tuple[int, str]
    ) -> None:
        assert handlers.stage_for_status(status) == expected


def test_as_mapping_covers_every_event(handlers: CrmSyncHandlers) -> None:
    assert set(handlers.as_mapping()) == set(EventType)


def test_lead_without_contact_channels() -> None:
    data = build_lead_data({"id": 3, "name": "Ana"}, KrayinSettings(default_pipeline_id=7))

    assert data["person"]["emails"] == []
    assert data["person"]["contact_numbers"] == []
    assert data["lead_pipeline_id"] == 7


def test_activity_for_attachment() -> None:
    payload = payloads.message_created(message_type="outgoing")
    payload["content_type"] = "image"

    data = build_activity_data(payload)

    assert data["activity_type"] == "email"
    assert data["title"] == "Mensagem enviada para Maria Silva"
    assert "Arquivo anexado" in data["description"]
    assert data["custom_fields"]["is_private"] is False
