"""Guard de tolerância do timestamp (janela anti-replay)."""

from __future__ import annotations

import logging

from utils.errors import InvalidTimestampError, TimestampExpiredError

logger = logging.getLogger(__name__)


def parse_timestamp(raw: str | None) -> int:
    """Converte o header X-Timestamp em unix seconds.

    Raises:
        InvalidTimestampError: Valor ausente ou não inteiro.
    """
    value = (raw or "").strip()
    if not value or not value.lstrip("-").isdigit():
        raise InvalidTimestampError("Invalid timestamp")
    return int(value)


def validate_timestamp(timestamp: int, now: int, tolerance: int) -> None:
    """Falha se |now - timestamp| > tolerance.

    Raises:
        TimestampExpiredError: Fora da janela.
    """
    skew = abs(now - timestamp)
    if skew > tolerance:
        logger.warning(
            "webhook_timestamp_expired",
            extra={"skew_seconds": skew, "tolerance_seconds": tolerance},
        )
        raise TimestampExpiredError("Request timestamp expired")
