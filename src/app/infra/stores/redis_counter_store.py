"""Redis Counter Store: contadores de janela fixa e flags de bloqueio.

INCR + EXPIRE NX no mesmo pipeline transacional: o TTL nasce com o
primeiro incremento e não é renovado pelos seguintes.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from app.protocols.counters import CounterStoreProtocol
from utils.errors import RedisConnectionError

if TYPE_CHECKING:
    from redis.asyncio import Redis as AsyncRedis

logger = logging.getLogger(__name__)

COUNTER_PREFIX = "counter:"


class RedisCounterStore(CounterStoreProtocol):
    """Contadores compartilhados entre instâncias.

    Args:
        async_redis_client: Cliente redis.asyncio
    """

    def __init__(self, async_redis_client: AsyncRedis) -> None:
        self._redis = async_redis_client

    def _key(self, key: str) -> str:
        return f"{COUNTER_PREFIX}{key}"

    async def increment(self, key: str, ttl: int) -> int:
        redis_key = self._key(key)
        try:
            pipeline = self._redis.pipeline(transaction=True)
            pipeline.incr(redis_key)
            pipeline.expire(redis_key, ttl, nx=True)
            count, _ = await pipeline.execute()
        except Exception as exc:
            raise RedisConnectionError("Falha ao incrementar contador no Redis") from exc
        return int(count)

    async def get(self, key: str) -> int:
        try:
            value = await self._redis.get(self._key(key))
        except Exception as exc:
            raise RedisConnectionError("Falha ao ler contador no Redis") from exc
        return int(value) if value is not None else 0

    async def ttl_remaining(self, key: str) -> int:
        try:
            remaining = await self._redis.ttl(self._key(key))
        except Exception as exc:
            raise RedisConnectionError("Falha ao ler TTL no Redis") from exc
        # -2 = ausente, -1 = sem expiração
        return max(0, int(remaining))

    async def set_flag(self, key: str, ttl: int) -> None:
        try:
            await self._redis.set(self._key(key), "1", ex=ttl)
        except Exception as exc:
            raise RedisConnectionError("Falha ao gravar flag no Redis") from exc

    async def has_flag(self, key: str) -> bool:
        try:
            return bool(await self._redis.exists(self._key(key)))
        except Exception as exc:
            raise RedisConnectionError("Falha ao consultar flag no Redis") from exc
