"""Rate limiting multi-camada do tier de webhooks.

Camadas (janela fixa): por IP, por endpoint e global com o mesmo
limite, mais burst por IP. Cada requisição incrementa todos os
contadores; a camada viola quando o contador passa do limite.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from app.protocols.counters import CounterStoreProtocol
    from config.settings.security import SecuritySettings

_DIGITS_RE = re.compile(r"\d+")
KEY_PREFIX = "throttle:webhooks"


@dataclass(frozen=True, slots=True)
class RateLimitDecision:
    """Resultado da checagem.

    Attributes:
        allowed: False se alguma camada foi violada
        violations: Camadas violadas (ip, endpoint, global, burst)
        attempts: Contagem atual por camada
        retry_after: Segundos até a janela mais longa violada expirar
    """

    allowed: bool
    violations: list[str] = field(default_factory=list)
    attempts: dict[str, int] = field(default_factory=dict)
    retry_after: int = 0

    @property
    def total_attempts(self) -> int:
        return sum(self.attempts.values())


def endpoint_key(method: str, path: str) -> str:
    """Normaliza método+path agrupando ids numéricos (post:/x/{id})."""
    return f"{method}:{_DIGITS_RE.sub('{id}', path)}".lower()


class WebhookRateLimiter:
    """Limiter do tier de webhooks.

    Args:
        counters: Store de contadores atômicos
        settings: Limites e janelas
    """

    def __init__(self, counters: CounterStoreProtocol, settings: SecuritySettings) -> None:
        self._counters = counters
        self._settings = settings

    async def hit(self, client_ip: str, method: str, path: str) -> RateLimitDecision:
        """Registra a requisição e decide se ela passa."""
        s = self._settings
        layers = {
            "ip": (
                f"{KEY_PREFIX}:ip:{client_ip}",
                s.rate_limit_max_attempts,
                s.rate_limit_decay_seconds,
            ),
            "endpoint": (
                f"{KEY_PREFIX}:endpoint:{endpoint_key(method, path)}",
                s.rate_limit_max_attempts,
                s.rate_limit_decay_seconds,
            ),
            "global": (
                f"{KEY_PREFIX}:global",
                s.rate_limit_max_attempts,
                s.rate_limit_decay_seconds,
            ),
            "burst": (
                f"{KEY_PREFIX}:burst:{client_ip}",
                s.rate_limit_burst,
                s.rate_limit_burst_decay_seconds,
            ),
        }

        violations: list[str] = []
        attempts: dict[str, int] = {}
        retry_after = 0
        for layer, (key, limit, window) in layers.items():
            count = await self._counters.increment(key, window)
            attempts[layer] = count
            if count > limit:
                violations.append(layer)
                remaining = await self._counters.ttl_remaining(key)
                retry_after = max(retry_after, remaining or window)

        return RateLimitDecision(
            allowed=not violations,
            violations=violations,
            attempts=attempts,
            retry_after=retry_after,
        )
