"""Testes dos stores Redis com cliente mockado."""

from __future__ import annotations

import json
from unittest.mock import AsyncMock, MagicMock

import pytest

from app.domain.envelope import EventType, QueueName
from app.domain.job import QueuedJob
from app.infra.stores.redis_counter_store import RedisCounterStore
from app.infra.stores.redis_idempotency_store import RedisIdempotencyStore
from app.infra.stores.redis_job_queue import JOBS_HASH, RedisJobQueue
from app.infra.stores.redis_mapping_store import RedisMappingStore
from utils.errors import InfrastructureError, RedisConnectionError


def _pipeline(results: list) -> MagicMock:
    pipeline = MagicMock()
    pipeline.execute = AsyncMock(return_value=results)
    return pipeline


class TestRedisIdempotencyStore:
    @pytest.mark.asyncio
    async def test_claim_uses_set_nx_with_claim_ttl(self) -> None:
        redis = MagicMock()
        redis.set = AsyncMock(return_value=True)
        store = RedisIdempotencyStore(redis)

        assert await store.claim("w1", ttl=30) is True
        redis.set.assert_awaited_once_with("webhook_processed:w1", "claimed", nx=True, ex=30)

    @pytest.mark.asyncio
    async def test_claim_returns_false_for_duplicate(self) -> None:
        redis = MagicMock()
        redis.set = AsyncMock(return_value=None)
        store = RedisIdempotencyStore(redis)

        assert await store.claim("w1", ttl=30) is False

    @pytest.mark.asyncio
    async def test_mark_processed_overwrites_with_full_ttl(self) -> None:
        redis = MagicMock()
        redis.set = AsyncMock(return_value=True)
        store = RedisIdempotencyStore(redis)

        await store.mark_processed("w1", ttl=86400)

        redis.set.assert_awaited_once_with("webhook_processed:w1", "processed", ex=86400)

    @pytest.mark.asyncio
    async def test_release_runs_compare_and_delete_script(self) -> None:
        redis = MagicMock()
        redis.eval = AsyncMock(return_value=1)
        store = RedisIdempotencyStore(redis)

        await store.release("w1")

        args = redis.eval.await_args.args
        assert args[1:] == (1, "webhook_processed:w1", "claimed")

    @pytest.mark.asyncio
    async def test_has_been_processed_decodes_bytes(self) -> None:
        redis = MagicMock()
        redis.get = AsyncMock(side_effect=[b"processed", b"claimed", None])
        store = RedisIdempotencyStore(redis)

        assert await store.has_been_processed("a") is True
        assert await store.has_been_processed("b") is False
        assert await store.has_been_processed("c") is False

    @pytest.mark.asyncio
    async def test_backend_failure_is_infrastructure_error(self) -> None:
        redis = MagicMock()
        redis.set = AsyncMock(side_effect=ConnectionError("down"))
        store = RedisIdempotencyStore(redis)

        with pytest.raises(RedisConnectionError) as exc_info:
            await store.claim("w1", ttl=30)

        assert isinstance(exc_info.value, InfrastructureError)
        assert isinstance(exc_info.value.__cause__, ConnectionError)


class TestRedisCounterStore:
    @pytest.mark.asyncio
    async def test_increment_sets_expiry_only_once(self) -> None:
        pipeline = _pipeline([3, False])
        redis = MagicMock()
        redis.pipeline.return_value = pipeline
        counters = RedisCounterStore(redis)

        assert await counters.increment("rapid_fire:1.2.3.4", ttl=60) == 3
        pipeline.incr.assert_called_once_with("counter:rapid_fire:1.2.3.4")
        pipeline.expire.assert_called_once_with("counter:rapid_fire:1.2.3.4", 60, nx=True)

    @pytest.mark.asyncio
    async def test_ttl_remaining_clamps_missing_keys(self) -> None:
        redis = MagicMock()
        redis.ttl = AsyncMock(return_value=-2)
        counters = RedisCounterStore(redis)

        assert await counters.ttl_remaining("k") == 0

    @pytest.mark.asyncio
    async def test_flags(self) -> None:
        redis = MagicMock()
        redis.set = AsyncMock()
        redis.exists = AsyncMock(return_value=1)
        counters = RedisCounterStore(redis)

        await counters.set_flag("ip_block:1.2.3.4", ttl=3600)

        redis.set.assert_awaited_once_with("counter:ip_block:1.2.3.4", "1", ex=3600)
        assert await counters.has_flag("ip_block:1.2.3.4") is True


class TestRedisJobQueue:
    @pytest.mark.asyncio
    async def test_enqueue_writes_hash_and_sorted_set(self) -> None:
        pipeline = _pipeline([1, 1])
        redis = MagicMock()
        redis.pipeline.return_value = pipeline
        queue = RedisJobQueue(redis)
        job = QueuedJob(
            queue_name=QueueName.HIGH,
            event_type=EventType.CONVERSATION_CREATED,
            payload={"id": 1},
        )

        await queue.enqueue(job, QueueName.HIGH, not_before=42.0)

        pipeline.hset.assert_called_once_with(JOBS_HASH, job.job_id, job.to_json())
        pipeline.zadd.assert_called_once_with("queue:webhooks-high", {job.job_id: 42.0})

    @pytest.mark.asyncio
    async def test_dequeue_skips_jobs_taken_by_other_workers(self) -> None:
        job = QueuedJob(
            queue_name=QueueName.NORMAL,
            event_type=EventType.MESSAGE_CREATED,
            payload={"id": 2},
        )
        redis = MagicMock()
        redis.zrangebyscore = AsyncMock(side_effect=[[], [b"taken", job.job_id.encode()]])
        redis.zrem = AsyncMock(side_effect=[0, 1])
        redis.hget = AsyncMock(return_value=job.to_json().encode())
        redis.hdel = AsyncMock()
        queue = RedisJobQueue(redis)

        result = await queue.dequeue([QueueName.HIGH, QueueName.NORMAL], now=100.0)

        assert result == job
        redis.hdel.assert_awaited_once_with(JOBS_HASH, job.job_id)

    @pytest.mark.asyncio
    async def test_dequeue_empty(self) -> None:
        redis = MagicMock()
        redis.zrangebyscore = AsyncMock(return_value=[])
        queue = RedisJobQueue(redis)

        assert await queue.dequeue([QueueName.HIGH], now=1.0) is None

    @pytest.mark.asyncio
    async def test_failure_is_wrapped(self) -> None:
        redis = MagicMock()
        redis.zcard = AsyncMock(side_effect=TimeoutError())
        queue = RedisJobQueue(redis)

        with pytest.raises(RedisConnectionError):
            await queue.size(QueueName.HIGH)


class TestRedisMappingStore:
    @pytest.mark.asyncio
    async def test_get_decodes_json_fields(self) -> None:
        redis = MagicMock()
        redis.hgetall = AsyncMock(
            return_value={b"krayin_lead_id": b"9", b"status": json.dumps("open").encode()}
        )
        store = RedisMappingStore(redis)

        assert await store.get("conversation", "1") == {"krayin_lead_id": 9, "status": "open"}
        redis.hgetall.assert_awaited_once_with("mapping:conversation:1")

    @pytest.mark.asyncio
    async def test_get_missing_returns_none(self) -> None:
        redis = MagicMock()
        redis.hgetall = AsyncMock(return_value={})
        store = RedisMappingStore(redis)

        assert await store.get("contact", "1") is None

    @pytest.mark.asyncio
    async def test_upsert_returns_merged_mapping(self) -> None:
        pipeline = _pipeline([1, {b"krayin_lead_id": b"9", b"message_count": b"2"}])
        redis = MagicMock()
        redis.pipeline.return_value = pipeline
        store = RedisMappingStore(redis)

        merged = await store.upsert("conversation", "1", {"message_count": 2})

        assert merged == {"krayin_lead_id": 9, "message_count": 2}
        pipeline.hset.assert_called_once_with(
            "mapping:conversation:1", mapping={"message_count": "2"}
        )
        pipeline.expire.assert_not_called()
