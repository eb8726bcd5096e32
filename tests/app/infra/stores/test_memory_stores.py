"""Testes dos stores em memória."""

from __future__ import annotations

import pytest

from app.domain.dead_letter import DeadLetterRecord
from app.domain.envelope import EventType, QueueName
from app.domain.job import QueuedJob
from app.infra.stores.memory_stores import (
    MemoryAuditStore,
    MemoryCounterStore,
    MemoryDeadLetterStore,
    MemoryIdempotencyStore,
    MemoryJobQueue,
    MemoryMappingStore,
)
from tests.fakes.clock import FakeClock


def _job(queue: QueueName = QueueName.HIGH, **changes) -> QueuedJob:
    return QueuedJob(
        queue_name=queue,
        event_type=EventType.CONVERSATION_CREATED,
        payload={"id": 1},
        **changes,
    )


def _record(webhook_id: str) -> DeadLetterRecord:
    return DeadLetterRecord(
        webhook_id=webhook_id,
        event_type="message_created",
        payload={"id": webhook_id},
        error="boom",
        attempts=5,
        failed_at="2026-10-18T12:00:00+00:00",
        job_id=f"job-{webhook_id}",
        queue_name="webhooks-normal",
    )


class TestMemoryIdempotencyStore:
    @pytest.mark.asyncio
    async def test_claim_is_exclusive(self, clock: FakeClock) -> None:
        store = MemoryIdempotencyStore(clock)

        assert await store.claim("w1", ttl=30) is True
        assert await store.claim("w1", ttl=30) is False

    @pytest.mark.asyncio
    async def test_claim_expires_after_ttl(self, clock: FakeClock) -> None:
        store = MemoryIdempotencyStore(clock)
        await store.claim("w1", ttl=30)

        clock.advance(30)

        assert await store.claim("w1", ttl=30) is True

    @pytest.mark.asyncio
    async def test_mark_processed_extends_window(self, clock: FakeClock) -> None:
        store = MemoryIdempotencyStore(clock)
        await store.claim("w1", ttl=30)
        await store.mark_processed("w1", ttl=86400)

        clock.advance(3600)

        assert await store.has_been_processed("w1") is True
        assert await store.claim("w1", ttl=30) is False

    @pytest.mark.asyncio
    async def test_release_only_drops_claims(self, clock: FakeClock) -> None:
        store = MemoryIdempotencyStore(clock)
        await store.claim("claimed", ttl=30)
        await store.claim("done", ttl=30)
        await store.mark_processed("done", ttl=86400)

        await store.release("claimed")
        await store.release("done")

        assert await store.claim("claimed", ttl=30) is True
        assert await store.has_been_processed("done") is True

    @pytest.mark.asyncio
    async def test_claimed_is_not_processed(self, clock: FakeClock) -> None:
        store = MemoryIdempotencyStore(clock)
        await store.claim("w1", ttl=30)

        assert await store.has_been_processed("w1") is False


class TestMemoryCounterStore:
    @pytest.mark.asyncio
    async def test_fixed_window_is_not_renewed(self, clock: FakeClock) -> None:
        counters = MemoryCounterStore(clock)

        assert await counters.increment("k", ttl=60) == 1
        clock.advance(40)
        assert await counters.increment("k", ttl=60) == 2
        assert await counters.ttl_remaining("k") == 20

        clock.advance(20)
        assert await counters.get("k") == 0
        assert await counters.increment("k", ttl=60) == 1

    @pytest.mark.asyncio
    async def test_flags_expire(self, clock: FakeClock) -> None:
        counters = MemoryCounterStore(clock)
        await counters.set_flag("ip_block:1.2.3.4", ttl=3600)

        assert await counters.has_flag("ip_block:1.2.3.4") is True
        clock.advance(3600)
        assert await counters.has_flag("ip_block:1.2.3.4") is False


class TestMemoryJobQueue:
    @pytest.mark.asyncio
    async def test_dequeue_respects_not_before(self) -> None:
        queue = MemoryJobQueue()
        job = _job()
        await queue.enqueue(job, QueueName.HIGH, not_before=100.0)

        assert await queue.dequeue([QueueName.HIGH], now=99.0) is None
        assert await queue.dequeue([QueueName.HIGH], now=100.0) == job
        assert await queue.size(QueueName.HIGH) == 0

    @pytest.mark.asyncio
    async def test_high_priority_queue_drains_first(self) -> None:
        queue = MemoryJobQueue()
        normal = _job(QueueName.NORMAL)
        high = _job(QueueName.HIGH)
        await queue.enqueue(normal, QueueName.NORMAL, not_before=0.0)
        await queue.enqueue(high, QueueName.HIGH, not_before=5.0)

        order = [QueueName.HIGH, QueueName.NORMAL]
        assert await queue.dequeue(order, now=10.0) == high
        assert await queue.dequeue(order, now=10.0) == normal

    @pytest.mark.asyncio
    async def test_same_schedule_keeps_fifo(self) -> None:
        queue = MemoryJobQueue()
        first, second = _job(), _job()
        await queue.enqueue(first, QueueName.HIGH, not_before=1.0)
        await queue.enqueue(second, QueueName.HIGH, not_before=1.0)

        assert [job for _, job in queue.scheduled(QueueName.HIGH)] == [first, second]


class TestMemoryDeadLetterStore:
    @pytest.mark.asyncio
    async def test_save_get_list_delete(self) -> None:
        store = MemoryDeadLetterStore()
        await store.save(_record("a"))
        await store.save(_record("b"))

        assert (await store.get("a")).webhook_id == "a"
        assert [r.webhook_id for r in await store.list_recent(10)] == ["b", "a"]
        assert [r.webhook_id for r in await store.list_recent(1)] == ["b"]
        assert await store.delete("a") is True
        assert await store.delete("a") is False
        assert await store.get("a") is None


class TestMemoryAuditStore:
    @pytest.mark.asyncio
    async def test_append_is_bounded(self) -> None:
        store = MemoryAuditStore(max_records=2)
        for index in range(3):
            await store.append({"event_type": "webhook_received", "n": index})

        assert [r["n"] for r in store.get_records()] == [1, 2]


class TestMemoryMappingStore:
    @pytest.mark.asyncio
    async def test_upsert_merges_fields(self) -> None:
        store = MemoryMappingStore()

        await store.upsert("conversation", "1", {"krayin_lead_id": 9, "message_count": 0})
        merged = await store.upsert("conversation", "1", {"message_count": 1})

        assert merged == {"krayin_lead_id": 9, "message_count": 1}
        assert await store.get("conversation", "1") == merged
        assert await store.get("conversation", "2") is None
