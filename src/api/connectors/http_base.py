"""Cliente HTTP base para os conectores REST (Krayin, Chatwoot).

Retries locais com backoff exponencial para 429/5xx e falhas de rede.
Esgotadas as tentativas, a falha é traduzida para a taxonomia do
executor:
    - CollaboratorUnavailableError: 429, 5xx, timeout, conexão (transitória)
    - CollaboratorRejectedError: demais 4xx (permanente)
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import httpx

from utils.errors import CollaboratorRejectedError, CollaboratorUnavailableError

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)


@dataclass
class HttpClientConfig:
    """Configuração do cliente HTTP."""

    base_url: str = ""
    timeout_seconds: float = 10.0
    max_retries: int = 3
    backoff_base_seconds: float = 0.5
    backoff_max_seconds: float = 8.0
    default_headers: dict[str, str] = field(default_factory=dict)
    verify_ssl: bool = True


def _is_retryable_status(status_code: int) -> bool:
    return status_code == 429 or status_code >= 500


class HttpClient:
    """Cliente HTTP assíncrono com retry.

    Args:
        config: Configuração (URL base, timeout, retries, headers).
        service: Nome do colaborador para logs e mensagens de erro.
        transport: Transport httpx opcional (testes usam MockTransport).
        sleep: Função de espera do backoff (injetável em testes).
    """

    def __init__(
        self,
        config: HttpClientConfig,
        service: str,
        transport: httpx.AsyncBaseTransport | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._config = config
        self._service = service
        self._transport = transport
        self._sleep = sleep

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self._config.base_url,
            headers=self._config.default_headers,
            timeout=self._config.timeout_seconds,
            verify=self._config.verify_ssl,
            transport=self._transport,
        )

    async def request(
        self,
        method: str,
        path: str,
        *,
        json: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Executa a requisição e retorna o corpo JSON (dict vazio se sem corpo).

        Raises:
            CollaboratorUnavailableError: Falha transitória após os retries.
            CollaboratorRejectedError: Resposta 4xx não retentável.
        """
        for attempt in range(self._config.max_retries + 1):
            last_attempt = attempt >= self._config.max_retries
            try:
                async with self._client() as client:
                    response = await client.request(method, path, json=json, params=params)
            except (httpx.TimeoutException, httpx.TransportError) as exc:
                if last_attempt:
                    raise CollaboratorUnavailableError(
                        f"{self._service}_connection_error"
                    ) from exc
                await self._backoff(attempt, reason=type(exc).__name__)
                continue

            if _is_retryable_status(response.status_code):
                if last_attempt:
                    raise CollaboratorUnavailableError(
                        f"{self._service}_unavailable",
                        status_code=response.status_code,
                    )
                await self._backoff(attempt, reason=f"status_{response.status_code}")
                continue

            if response.status_code >= 400:
                logger.warning(
                    "http_request_rejected",
                    extra={
                        "service": self._service,
                        "method": method,
                        "path": path,
                        "status_code": response.status_code,
                    },
                )
                raise CollaboratorRejectedError(
                    f"{self._service}_rejected",
                    status_code=response.status_code,
                )

            if not response.content:
                return {}
            body = response.json()
            return body if isinstance(body, dict) else {"data": body}

        raise CollaboratorUnavailableError(f"{self._service}_retry_exhausted")

    async def _backoff(self, attempt: int, reason: str) -> None:
        backoff = min(
            (2**attempt) * self._config.backoff_base_seconds,
            self._config.backoff_max_seconds,
        )
        logger.info(
            "http_backoff",
            extra={"service": self._service, "backoff_seconds": backoff, "reason": reason},
        )
        await self._sleep(backoff)
