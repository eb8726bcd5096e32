"""Assinatura HMAC-SHA256 do webhook do Chatwoot.

Formato: "sha256=" + hex(HMAC_SHA256(secret, f"{timestamp}." + payload)).
Comparação em tempo constante; secret ausente é erro de configuração.
"""

from __future__ import annotations

import hashlib
import hmac
import logging
from dataclasses import dataclass

from config.logging import mask_value
from utils.errors import ConfigurationError, InvalidSignatureError

logger = logging.getLogger(__name__)

SIGNATURE_PREFIX = "sha256="
_PREVIEW_CHARS = 10


@dataclass(frozen=True, slots=True)
class SignatureResult:
    """Resultado da verificação (sem dados sensíveis)."""

    valid: bool
    error: str | None = None


def signing_input(raw_payload: bytes, timestamp: int | str) -> bytes:
    """Bytes assinados: timestamp em texto, ".", corpo bruto."""
    return str(timestamp).encode("ascii") + b"." + raw_payload


def compute_signature(raw_payload: bytes, timestamp: int | str, secret: str) -> str:
    """Assinatura esperada no formato do header."""
    digest = hmac.new(
        secret.encode("utf-8"),
        signing_input(raw_payload, timestamp),
        hashlib.sha256,
    ).hexdigest()
    return f"{SIGNATURE_PREFIX}{digest}"


def check_signature(
    raw_payload: bytes,
    timestamp: int | str,
    provided_signature: str,
    secret: str,
) -> SignatureResult:
    """Verifica sem levantar exceção de assinatura.

    Raises:
        ConfigurationError: Se o secret não estiver configurado.
    """
    if not secret:
        raise ConfigurationError("Webhook secret not configured")

    expected = compute_signature(raw_payload, timestamp, secret)
    # compare_digest sobre bytes: aceita qualquer entrada sem early-exit
    if hmac.compare_digest(
        expected.encode("utf-8"),
        (provided_signature or "").encode("utf-8", errors="replace"),
    ):
        return SignatureResult(valid=True)
    return SignatureResult(valid=False, error="signature_mismatch")


def verify_signature(
    raw_payload: bytes,
    timestamp: int | str,
    provided_signature: str,
    secret: str,
) -> None:
    """Verifica a assinatura e loga previews truncados em caso de falha.

    Raises:
        ConfigurationError: Secret ausente (falha fechada).
        InvalidSignatureError: Assinatura não confere.
    """
    result = check_signature(raw_payload, timestamp, provided_signature, secret)
    if result.valid:
        return

    expected = compute_signature(raw_payload, timestamp, secret)
    logger.warning(
        "webhook_signature_invalid",
        extra={
            "signature_preview": mask_value(provided_signature, _PREVIEW_CHARS),
            "expected_preview": mask_value(expected, _PREVIEW_CHARS),
            "payload_bytes": len(raw_payload),
        },
    )
    raise InvalidSignatureError("Invalid signature")
