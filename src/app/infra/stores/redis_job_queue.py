"""Redis Job Queue: filas agendadas em sorted sets.

Layout:
    queue:{nome}  ZSET  member=job_id, score=not_before
    queue:jobs    HASH  job_id -> JSON do QueuedJob

O consumidor que consegue o ZREM (retorno 1) é o dono do job; os
demais seguem para o próximo candidato.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from app.domain.job import QueuedJob
from app.protocols.job_queue import JobQueueProtocol
from utils.errors import RedisConnectionError

if TYPE_CHECKING:
    from collections.abc import Sequence

    from redis.asyncio import Redis as AsyncRedis

    from app.domain.envelope import QueueName

logger = logging.getLogger(__name__)

QUEUE_PREFIX = "queue:"
JOBS_HASH = "queue:jobs"
_CANDIDATES = 10


def _decode(value: bytes | str) -> str:
    return value.decode("utf-8") if isinstance(value, bytes) else value


class RedisJobQueue(JobQueueProtocol):
    """Fila compartilhada entre instâncias.

    Args:
        async_redis_client: Cliente redis.asyncio
    """

    def __init__(self, async_redis_client: AsyncRedis) -> None:
        self._redis = async_redis_client

    def _queue_key(self, queue_name: QueueName) -> str:
        return f"{QUEUE_PREFIX}{queue_name}"

    async def enqueue(self, job: QueuedJob, queue_name: QueueName, not_before: float) -> None:
        try:
            pipeline = self._redis.pipeline(transaction=True)
            pipeline.hset(JOBS_HASH, job.job_id, job.to_json())
            pipeline.zadd(self._queue_key(queue_name), {job.job_id: not_before})
            await pipeline.execute()
        except Exception as exc:
            raise RedisConnectionError("Falha ao enfileirar job no Redis") from exc
        logger.debug(
            "job_enqueued",
            extra={"job_id": job.job_id, "queue": str(queue_name), "not_before": not_before},
        )

    async def dequeue(
        self,
        queue_names: Sequence[QueueName],
        now: float,
    ) -> QueuedJob | None:
        try:
            for name in queue_names:
                key = self._queue_key(name)
                candidates = await self._redis.zrangebyscore(
                    key, "-inf", now, start=0, num=_CANDIDATES
                )
                for raw_id in candidates:
                    job_id = _decode(raw_id)
                    if await self._redis.zrem(key, job_id) != 1:
                        continue  # outro worker levou
                    raw_job = await self._redis.hget(JOBS_HASH, job_id)
                    await self._redis.hdel(JOBS_HASH, job_id)
                    if raw_job is None:
                        logger.warning("job_payload_missing", extra={"job_id": job_id})
                        continue
                    return QueuedJob.from_json(raw_job)
        except Exception as exc:
            raise RedisConnectionError("Falha ao consumir fila no Redis") from exc
        return None

    async def size(self, queue_name: QueueName) -> int:
        try:
            return int(await self._redis.zcard(self._queue_key(queue_name)))
        except Exception as exc:
            raise RedisConnectionError("Falha ao medir fila no Redis") from exc
