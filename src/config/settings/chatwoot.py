"""Settings do cliente REST do Chatwoot.

Usado pelo executor para recuperar conversas ainda não mapeadas.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache


@dataclass(frozen=True)
class ChatwootSettings:
    """Configurações do cliente Chatwoot.

    Attributes:
        base_url: URL base da instância
        api_token: Token de acesso (header api_access_token)
        account_id: Conta usada nas rotas /accounts/{id}
        timeout_seconds: Timeout por requisição
        max_retries: Tentativas do cliente HTTP
    """

    base_url: str = ""
    api_token: str = ""
    account_id: str = ""
    timeout_seconds: float = 10.0
    max_retries: int = 3

    def validate(self) -> list[str]:
        errors: list[str] = []
        if not self.base_url:
            errors.append("CHATWOOT_URL não configurado")
        if not self.api_token:
            errors.append("CHATWOOT_API_TOKEN não configurado")
        return errors


def _load_chatwoot_from_env() -> ChatwootSettings:
    """Carrega ChatwootSettings de variáveis de ambiente."""
    return ChatwootSettings(
        base_url=os.getenv("CHATWOOT_URL", "").rstrip("/"),
        api_token=os.getenv("CHATWOOT_API_TOKEN", ""),
        account_id=os.getenv("CHATWOOT_ACCOUNT_ID", ""),
        timeout_seconds=float(os.getenv("CHATWOOT_API_TIMEOUT", "10")),
        max_retries=int(os.getenv("CHATWOOT_API_RETRY_ATTEMPTS", "3")),
    )


@lru_cache(maxsize=1)
def get_chatwoot_settings() -> ChatwootSettings:
    """Retorna instância cacheada de ChatwootSettings."""
    return _load_chatwoot_from_env()
