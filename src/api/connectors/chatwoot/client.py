"""Cliente REST do Chatwoot (leitura de conversas e contatos).

Com CHATWOOT_ACCOUNT_ID configurado as rotas usam o prefixo
/api/v1/accounts/{account_id}; sem ele, /api/v1.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from api.connectors.http_base import HttpClient, HttpClientConfig

if TYPE_CHECKING:
    import httpx

    from config.settings.chatwoot import ChatwootSettings

logger = logging.getLogger(__name__)


class ChatwootClient:
    """Implementa ChatClientProtocol sobre HttpClient."""

    def __init__(self, http: HttpClient, account_id: str = "") -> None:
        self._http = http
        self._prefix = f"/api/v1/accounts/{account_id}" if account_id else "/api/v1"

    async def get_conversation(self, conversation_id: int) -> dict[str, Any]:
        return await self._http.request(
            "GET", f"{self._prefix}/conversations/{conversation_id}"
        )

    async def get_messages(self, conversation_id: int) -> list[dict[str, Any]]:
        body = await self._http.request(
            "GET", f"{self._prefix}/conversations/{conversation_id}/messages"
        )
        payload = body.get("payload", body.get("data", []))
        return payload if isinstance(payload, list) else []

    async def get_contact(self, contact_id: int) -> dict[str, Any]:
        body = await self._http.request("GET", f"{self._prefix}/contacts/{contact_id}")
        payload = body.get("payload")
        return payload if isinstance(payload, dict) else body


def create_chatwoot_client(
    settings: ChatwootSettings,
    transport: httpx.AsyncBaseTransport | None = None,
) -> ChatwootClient:
    config = HttpClientConfig(
        base_url=settings.base_url,
        timeout_seconds=settings.timeout_seconds,
        max_retries=settings.max_retries,
        default_headers={
            "api_access_token": settings.api_token,
            "Accept": "application/json",
        },
    )
    return ChatwootClient(
        HttpClient(config, service="chatwoot", transport=transport),
        account_id=settings.account_id,
    )
