"""Redis Idempotency Store: registro de webhooks aceitos.

Usa SET NX EX para o claim atômico: entre a checagem e a marcação
nenhuma outra entrega do mesmo id passa. O valor distingue o claim
provisório ("claimed") da marca definitiva ("processed").

Contrato de Keys:
    Keys são ids opacos do webhook. Logadas apenas como preview.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from app.protocols.idempotency import IdempotencyStoreProtocol
from config.logging import mask_value
from utils.errors import RedisConnectionError

if TYPE_CHECKING:
    from redis.asyncio import Redis as AsyncRedis

logger = logging.getLogger(__name__)

IDEMPOTENCY_PREFIX = "webhook_processed:"

CLAIMED = "claimed"
PROCESSED = "processed"

# Remove apenas claims provisórios; marcas definitivas sobrevivem.
_RELEASE_SCRIPT = """
if redis.call('GET', KEYS[1]) == ARGV[1] then
    return redis.call('DEL', KEYS[1])
end
return 0
"""


def _decode(value: bytes | str | None) -> str | None:
    if isinstance(value, bytes):
        return value.decode("utf-8")
    return value


class RedisIdempotencyStore(IdempotencyStoreProtocol):
    """Store de idempotência usando Redis (Upstash compatível).

    Args:
        async_redis_client: Cliente redis.asyncio
    """

    def __init__(self, async_redis_client: AsyncRedis) -> None:
        self._redis = async_redis_client

    def _key(self, key: str) -> str:
        return f"{IDEMPOTENCY_PREFIX}{key}"

    async def claim(self, key: str, ttl: int) -> bool:
        try:
            was_set = await self._redis.set(self._key(key), CLAIMED, nx=True, ex=ttl)
        except Exception as exc:
            raise RedisConnectionError("Falha ao reivindicar id no Redis") from exc
        if not was_set:
            logger.debug("idempotency_duplicate_detected", extra={"key": mask_value(key)})
        return bool(was_set)

    async def mark_processed(self, key: str, ttl: int) -> None:
        try:
            await self._redis.set(self._key(key), PROCESSED, ex=ttl)
        except Exception as exc:
            raise RedisConnectionError("Falha ao marcar id processado no Redis") from exc
        logger.debug(
            "idempotency_marked", extra={"key": mask_value(key), "ttl": ttl}
        )

    async def release(self, key: str) -> None:
        try:
            await self._redis.eval(_RELEASE_SCRIPT, 1, self._key(key), CLAIMED)
        except Exception as exc:
            raise RedisConnectionError("Falha ao liberar claim no Redis") from exc

    async def has_been_processed(self, key: str) -> bool:
        try:
            value = await self._redis.get(self._key(key))
        except Exception as exc:
            raise RedisConnectionError("Falha ao consultar idempotência no Redis") from exc
        return _decode(value) == PROCESSED
