"""Settings de segurança do webhook do Chatwoot.

Secret HMAC, limite de payload e janela de tolerância do timestamp.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache

from config.settings.base.core import env_flag

DEFAULT_MAX_PAYLOAD_BYTES = 1_048_576  # 1 MiB
DEFAULT_TIMESTAMP_TOLERANCE_SECONDS = 300


@dataclass(frozen=True)
class WebhookSecuritySettings:
    """Configurações de autenticidade do webhook.

    Attributes:
        webhook_secret: Secret compartilhado para HMAC-SHA256
        max_payload_bytes: Tamanho máximo do corpo aceito
        timestamp_tolerance_seconds: Desvio máximo |now - timestamp|
        timestamp_enabled: Liga a checagem de replay por timestamp
    """

    webhook_secret: str = ""
    max_payload_bytes: int = DEFAULT_MAX_PAYLOAD_BYTES
    timestamp_tolerance_seconds: int = DEFAULT_TIMESTAMP_TOLERANCE_SECONDS
    timestamp_enabled: bool = True

    def validate(self) -> list[str]:
        """Valida configurações de segurança do webhook.

        Returns:
            Lista de erros de validação.
        """
        errors: list[str] = []

        if not self.webhook_secret:
            errors.append("CHATWOOT_WEBHOOK_SECRET não configurado")

        if self.max_payload_bytes <= 0:
            errors.append("WEBHOOK_MAX_PAYLOAD_SIZE deve ser > 0")

        if self.timestamp_tolerance_seconds < 0:
            errors.append("WEBHOOK_TIMESTAMP_TOLERANCE deve ser >= 0")

        return errors


def _load_webhook_security_from_env() -> WebhookSecuritySettings:
    """Carrega WebhookSecuritySettings de variáveis de ambiente."""
    return WebhookSecuritySettings(
        webhook_secret=os.getenv("CHATWOOT_WEBHOOK_SECRET", ""),
        max_payload_bytes=int(
            os.getenv("WEBHOOK_MAX_PAYLOAD_SIZE", str(DEFAULT_MAX_PAYLOAD_BYTES))
        ),
        timestamp_tolerance_seconds=int(
            os.getenv(
                "WEBHOOK_TIMESTAMP_TOLERANCE", str(DEFAULT_TIMESTAMP_TOLERANCE_SECONDS)
            )
        ),
        timestamp_enabled=env_flag("WEBHOOK_TIMESTAMP_ENABLED", "true"),
    )


@lru_cache(maxsize=1)
def get_webhook_security_settings() -> WebhookSecuritySettings:
    """Retorna instância cacheada de WebhookSecuritySettings."""
    return _load_webhook_security_from_env()
