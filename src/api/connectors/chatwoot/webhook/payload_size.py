"""Guard de tamanho do payload.

Roda antes de qualquer trabalho criptográfico. Confere o Content-Length
declarado (rejeição antecipada), limita a leitura em stream e confere o
tamanho real medido (header forjado).
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from utils.errors import PayloadTooLargeError

if TYPE_CHECKING:
    from collections.abc import AsyncIterable


def parse_content_length(raw: str | None) -> int | None:
    """Content-Length como int; None se ausente ou inválido."""
    if raw is None:
        return None
    value = raw.strip()
    if not value.isdigit():
        return None
    return int(value)


def check_declared_size(declared_length: int | None, max_bytes: int) -> None:
    """Rejeição antes de ler o corpo.

    Raises:
        PayloadTooLargeError: Content-Length acima do limite.
    """
    if declared_length is not None and declared_length > max_bytes:
        raise PayloadTooLargeError(declared_length, max_bytes)


def check_payload_size(
    declared_length: int | None,
    actual_length: int,
    max_bytes: int,
) -> None:
    """Confere o tamanho declarado e o real.

    Raises:
        PayloadTooLargeError: Qualquer um dos dois acima do limite.
    """
    check_declared_size(declared_length, max_bytes)
    if actual_length > max_bytes:
        raise PayloadTooLargeError(actual_length, max_bytes)


async def read_bounded(chunks: AsyncIterable[bytes], max_bytes: int) -> bytes:
    """Lê o corpo em chunks e para assim que o limite é ultrapassado.

    Cobre corpos chunked sem Content-Length: nada além de
    `max_bytes` + um chunk fica em memória.

    Raises:
        PayloadTooLargeError: Corpo acima do limite (tamanho lido até o corte).
    """
    buffer = bytearray()
    async for chunk in chunks:
        buffer.extend(chunk)
        if len(buffer) > max_bytes:
            raise PayloadTooLargeError(len(buffer), max_bytes)
    return bytes(buffer)
