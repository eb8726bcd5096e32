"""Correlation id por requisição e por execução de job.

Usa ContextVar: cada request HTTP e cada tentativa de job roda com seu
próprio valor, injetado nos logs pelo CorrelationIdFilter.

Uso:
    token = set_correlation_id(correlation_id_from_headers(request.headers))
    try:
        ...
    finally:
        reset_correlation_id(token)
"""

from __future__ import annotations

import re
import uuid
from contextvars import ContextVar, Token
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Mapping

_correlation_id: ContextVar[str] = ContextVar("correlation_id", default="")

CORRELATION_HEADERS = ("x-correlation-id", "x-request-id")
_SAFE_ID_RE = re.compile(r"^[A-Za-z0-9._:\-]{1,128}$")


def get_correlation_id() -> str:
    """Correlation id do contexto atual (vazio se não definido)."""
    return _correlation_id.get()


def set_correlation_id(correlation_id: str | None = None) -> Token[str]:
    """Define o correlation id; gera um UUID quando None.

    Returns:
        Token para reset posterior via reset_correlation_id().
    """
    return _correlation_id.set(correlation_id or generate_correlation_id())


def reset_correlation_id(token: Token[str]) -> None:
    _correlation_id.reset(token)


def generate_correlation_id() -> str:
    return str(uuid.uuid4())


def correlation_id_from_headers(headers: Mapping[str, str]) -> str:
    """Reaproveita o id enviado pelo chamador se for seguro para logs.

    Valores com caracteres fora de [A-Za-z0-9._:-] ou acima de 128
    caracteres são descartados e um novo id é gerado.
    """
    lowered = {key.lower(): value for key, value in headers.items()}
    for header in CORRELATION_HEADERS:
        candidate = (lowered.get(header) or "").strip()
        if candidate and _SAFE_ID_RE.match(candidate):
            return candidate
    return generate_correlation_id()
