"""Redis Mapping Store: mapeamentos Chatwoot ↔ Krayin.

Cada mapeamento é um HASH `mapping:{namespace}:{key}` com valores JSON.
HSET mescla campos atomicamente (create-or-update).
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

from app.protocols.mapping_store import MappingStoreProtocol
from utils.errors import RedisConnectionError

if TYPE_CHECKING:
    from redis.asyncio import Redis as AsyncRedis

MAPPING_PREFIX = "mapping:"


def _decode(value: bytes | str) -> str:
    return value.decode("utf-8") if isinstance(value, bytes) else value


class RedisMappingStore(MappingStoreProtocol):
    """Store de mapeamentos usando Redis.

    Args:
        async_redis_client: Cliente redis.asyncio
        ttl_seconds: Expiração opcional dos mapeamentos (None = sem TTL)
    """

    def __init__(self, async_redis_client: AsyncRedis, ttl_seconds: int | None = None) -> None:
        self._redis = async_redis_client
        self._ttl = ttl_seconds

    def _key(self, namespace: str, key: str) -> str:
        return f"{MAPPING_PREFIX}{namespace}:{key}"

    async def get(self, namespace: str, key: str) -> dict[str, Any] | None:
        try:
            raw = await self._redis.hgetall(self._key(namespace, key))
        except Exception as exc:
            raise RedisConnectionError("Falha ao ler mapeamento no Redis") from exc
        if not raw:
            return None
        return {_decode(field): json.loads(_decode(value)) for field, value in raw.items()}

    async def upsert(self, namespace: str, key: str, data: dict[str, Any]) -> dict[str, Any]:
        redis_key = self._key(namespace, key)
        encoded = {field: json.dumps(value, default=str) for field, value in data.items()}
        try:
            pipeline = self._redis.pipeline(transaction=True)
            pipeline.hset(redis_key, mapping=encoded)
            if self._ttl:
                pipeline.expire(redis_key, self._ttl)
            pipeline.hgetall(redis_key)
            results = await pipeline.execute()
        except Exception as exc:
            raise RedisConnectionError("Falha ao gravar mapeamento no Redis") from exc
        merged = results[-1]
        return {_decode(field): json.loads(_decode(value)) for field, value in merged.items()}
