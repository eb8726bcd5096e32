"""Settings de rate limiting e bloqueio de IPs.

Limites do tier de webhook (por IP, por endpoint e global) mais burst
por IP. O detector de anomalias usa `block_duration_seconds`.
"""

from __future__ import annotations

import ipaddress
import os
from dataclasses import dataclass
from functools import lru_cache
from typing import TYPE_CHECKING, Literal

if TYPE_CHECKING:
    from config.settings.base.core import BaseSettings

CounterBackend = Literal["memory", "redis"]


@dataclass(frozen=True)
class SecuritySettings:
    """Configurações de rate limit, bloqueio e API administrativa.

    Attributes:
        rate_limit_max_attempts: Requisições permitidas por janela
        rate_limit_decay_seconds: Janela do limite principal
        rate_limit_burst: Requisições permitidas por IP na janela de burst
        rate_limit_burst_decay_seconds: Janela de burst
        block_duration_seconds: Duração do bloqueio temporário de IP
        counter_backend: Backend dos contadores (memory|redis)
        admin_api_token: Bearer token da API de dead-letter (vazio = desabilitada)
        trusted_proxies: IPs/redes cujos X-Forwarded-For e X-Real-IP são aceitos
    """

    rate_limit_max_attempts: int = 100
    rate_limit_decay_seconds: int = 60
    rate_limit_burst: int = 200
    rate_limit_burst_decay_seconds: int = 300
    block_duration_seconds: int = 3600
    counter_backend: CounterBackend = "memory"
    admin_api_token: str = ""
    trusted_proxies: tuple[str, ...] = ()

    def validate(self, base: BaseSettings) -> list[str]:
        """Valida configurações de segurança.

        Args:
            base: BaseSettings para verificar ambiente.

        Returns:
            Lista de erros de validação.
        """
        errors: list[str] = []

        if self.counter_backend == "memory" and not base.is_development:
            errors.append("COUNTER_BACKEND=memory proibido em staging/production")
        if self.counter_backend == "redis" and not base.redis_url:
            errors.append("COUNTER_BACKEND=redis requer REDIS_URL configurado")

        for name, value in (
            ("WEBHOOK_RATE_LIMIT_MAX_ATTEMPTS", self.rate_limit_max_attempts),
            ("WEBHOOK_RATE_LIMIT_DECAY_SECONDS", self.rate_limit_decay_seconds),
            ("WEBHOOK_RATE_LIMIT_BURST", self.rate_limit_burst),
            (
                "WEBHOOK_RATE_LIMIT_BURST_DECAY_SECONDS",
                self.rate_limit_burst_decay_seconds,
            ),
            ("SECURITY_BLOCK_DURATION_SECONDS", self.block_duration_seconds),
        ):
            if value <= 0:
                errors.append(f"{name} deve ser > 0")

        for proxy in self.trusted_proxies:
            try:
                ipaddress.ip_network(proxy, strict=False)
            except ValueError:
                errors.append(f"TRUSTED_PROXIES contém rede inválida: {proxy}")

        return errors


def parse_trusted_proxies(raw: str) -> tuple[str, ...]:
    """Lista separada por vírgula (ex.: "10.0.0.0/8, 127.0.0.1")."""
    return tuple(part.strip() for part in raw.split(",") if part.strip())


def _load_security_from_env() -> SecuritySettings:
    """Carrega SecuritySettings de variáveis de ambiente."""
    backend_str = os.getenv("COUNTER_BACKEND", "memory").lower()
    backend: CounterBackend = backend_str if backend_str == "redis" else "memory"
    return SecuritySettings(
        rate_limit_max_attempts=int(os.getenv("WEBHOOK_RATE_LIMIT_MAX_ATTEMPTS", "100")),
        rate_limit_decay_seconds=int(
            os.getenv("WEBHOOK_RATE_LIMIT_DECAY_SECONDS", "60")
        ),
        rate_limit_burst=int(os.getenv("WEBHOOK_RATE_LIMIT_BURST", "200")),
        rate_limit_burst_decay_seconds=int(
            os.getenv("WEBHOOK_RATE_LIMIT_BURST_DECAY_SECONDS", "300")
        ),
        block_duration_seconds=int(os.getenv("SECURITY_BLOCK_DURATION_SECONDS", "3600")),
        counter_backend=backend,
        admin_api_token=os.getenv("ADMIN_API_TOKEN", ""),
        trusted_proxies=parse_trusted_proxies(os.getenv("TRUSTED_PROXIES", "")),
    )


@lru_cache(maxsize=1)
def get_security_settings() -> SecuritySettings:
    """Retorna instância cacheada de SecuritySettings."""
    return _load_security_from_env()
