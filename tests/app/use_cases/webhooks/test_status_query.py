"""Testes da consulta de status de webhook."""

from __future__ import annotations

import pytest

from app.domain.dead_letter import DeadLetterRecord
from app.domain.envelope import EventType
from app.domain.events import dedupe_key
from app.infra.stores.memory_stores import MemoryDeadLetterStore, MemoryIdempotencyStore
from app.use_cases.webhooks import WebhookStatusQuery
from tests.fakes.clock import FakeClock


@pytest.mark.asyncio
async def test_unknown_id_is_pending(clock: FakeClock) -> None:
    query = WebhookStatusQuery(MemoryIdempotencyStore(clock))

    assert await query.get("42") == {
        "success": True,
        "webhook_id": "42",
        "processed": False,
        "status": "pending",
        "event_types": [],
    }


@pytest.mark.asyncio
async def test_claimed_but_not_marked_is_pending(clock: FakeClock) -> None:
    store = MemoryIdempotencyStore(clock)
    await store.claim(dedupe_key(EventType.MESSAGE_CREATED, "42"), ttl=30)

    assert (await WebhookStatusQuery(store).get("42"))["processed"] is False


@pytest.mark.asyncio
async def test_processed_with_dead_letter(clock: FakeClock) -> None:
    store = MemoryIdempotencyStore(clock)
    key = dedupe_key(EventType.MESSAGE_CREATED, "42")
    await store.claim(key, ttl=30)
    await store.mark_processed(key, ttl=86400)
    dead_letters = MemoryDeadLetterStore()
    await dead_letters.save(
        DeadLetterRecord(
            webhook_id="42",
            event_type="message_created",
            payload={"id": 42},
            error="CollaboratorUnavailableError: down",
            attempts=5,
            failed_at="2026-10-18T12:00:00+00:00",
            job_id="j",
            queue_name="webhooks-normal",
        )
    )

    body = await WebhookStatusQuery(store, dead_letters).get("42")

    assert body["status"] == "completed"
    assert body["dead_letter"] == {
        "error": "CollaboratorUnavailableError: down",
        "attempts": 5,
        "failed_at": "2026-10-18T12:00:00+00:00",
    }


@pytest.mark.asyncio
async def test_id_is_found_under_every_event_type(clock: FakeClock) -> None:
    store = MemoryIdempotencyStore(clock)
    for event_type in (EventType.CONVERSATION_CREATED, EventType.MESSAGE_CREATED):
        key = dedupe_key(event_type, "100")
        await store.claim(key, ttl=30)
        await store.mark_processed(key, ttl=86400)

    body = await WebhookStatusQuery(store).get("100")

    assert body["processed"] is True
    assert body["event_types"] == ["conversation_created", "message_created"]
