"""Filters de logging: contexto de requisição e redação de segredos.

- CorrelationIdFilter: injeta correlation_id e service em todo record.
- RedactionFilter: mascara campos sensíveis passados via `extra`
  (secret, token, signature, authorization) antes da formatação.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Callable

# Campos de `extra` que nunca podem sair em claro
SENSITIVE_FIELDS = frozenset(
    {
        "secret",
        "webhook_secret",
        "api_token",
        "token",
        "authorization",
        "signature",
        "raw_payload",
    }
)

REDACTED = "[redacted]"


class CorrelationIdFilter(logging.Filter):
    """Injeta correlation_id e service em cada record de log.

    Se correlation_id já foi passado via `extra`, preserva o valor.

    Args:
        service_name: Nome do serviço para identificação nos logs.
        correlation_id_getter: Função que retorna o correlation_id atual.
    """

    def __init__(
        self,
        service_name: str,
        correlation_id_getter: Callable[[], str] | None = None,
    ) -> None:
        super().__init__()
        self._service_name = service_name
        self._get_correlation_id = correlation_id_getter or (lambda: "")

    def filter(self, record: logging.LogRecord) -> bool:
        existing = getattr(record, "correlation_id", None)
        record.correlation_id = existing if existing else self._get_correlation_id()
        record.service = self._service_name
        return True


class RedactionFilter(logging.Filter):
    """Substitui valores de campos sensíveis por `[redacted]`.

    Não filtra records, apenas sanitiza. Previews mascarados
    (ex.: `signature_preview`) não são afetados.
    """

    def __init__(self, fields: frozenset[str] = SENSITIVE_FIELDS) -> None:
        super().__init__()
        self._fields = fields

    def filter(self, record: logging.LogRecord) -> bool:
        for name in self._fields:
            if getattr(record, name, None):
                setattr(record, name, REDACTED)
        return True
