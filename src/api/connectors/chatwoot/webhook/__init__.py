"""Webhook Chatwoot: guards de tamanho, assinatura, timestamp e headers."""

from .headers import (
    AuthHeaders,
    extract_auth_headers,
    is_suspicious_user_agent,
    is_trusted_proxy,
    resolve_client_ip,
)
from .payload_size import (
    check_declared_size,
    check_payload_size,
    parse_content_length,
    read_bounded,
)
from .signature import (
    SIGNATURE_PREFIX,
    SignatureResult,
    check_signature,
    compute_signature,
    verify_signature,
)
from .timestamp import parse_timestamp, validate_timestamp

__all__ = [
    "SIGNATURE_PREFIX",
    "AuthHeaders",
    "SignatureResult",
    "check_declared_size",
    "check_payload_size",
    "check_signature",
    "compute_signature",
    "extract_auth_headers",
    "is_suspicious_user_agent",
    "is_trusted_proxy",
    "parse_content_length",
    "parse_timestamp",
    "read_bounded",
    "resolve_client_ip",
    "validate_timestamp",
    "verify_signature",
]
