"""Extração de headers do webhook e resolução do IP de origem.

Headers aceitos (o primeiro presente vence):
    assinatura: X-Signature, X-Chatwoot-Signature
    timestamp:  X-Timestamp, X-Chatwoot-Timestamp
"""

from __future__ import annotations

import ipaddress
from dataclasses import dataclass
from typing import TYPE_CHECKING

from utils.errors import MissingHeadersError

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

SIGNATURE_HEADERS = ("x-signature", "x-chatwoot-signature")
TIMESTAMP_HEADERS = ("x-timestamp", "x-chatwoot-timestamp")

SUSPICIOUS_USER_AGENT_MARKERS = (
    "bot",
    "crawler",
    "spider",
    "scraper",
    "curl",
    "wget",
    "python",
    "java",
    "go-http",
)


@dataclass(frozen=True, slots=True)
class AuthHeaders:
    signature: str
    timestamp: str


def _lower(headers: Mapping[str, str]) -> dict[str, str]:
    return {key.lower(): value for key, value in headers.items()}


def _first(headers: dict[str, str], names: tuple[str, ...]) -> str | None:
    for name in names:
        value = (headers.get(name) or "").strip()
        if value:
            return value
    return None


def extract_auth_headers(headers: Mapping[str, str]) -> AuthHeaders:
    """Extrai assinatura e timestamp (ambos entram no HMAC).

    Raises:
        MissingHeadersError: Qualquer um dos dois ausente.
    """
    lowered = _lower(headers)
    signature = _first(lowered, SIGNATURE_HEADERS)
    timestamp = _first(lowered, TIMESTAMP_HEADERS)
    if signature is None or timestamp is None:
        raise MissingHeadersError("Missing signature or timestamp header")
    return AuthHeaders(signature=signature, timestamp=timestamp)


def _is_public_ip(value: str) -> bool:
    try:
        address = ipaddress.ip_address(value)
    except ValueError:
        return False
    return not (
        address.is_private
        or address.is_loopback
        or address.is_reserved
        or address.is_link_local
        or address.is_multicast
    )


def is_trusted_proxy(peer_ip: str | None, trusted_proxies: Iterable[str]) -> bool:
    """Peer pertence a algum IP/rede de proxy confiável."""
    if not peer_ip:
        return False
    try:
        address = ipaddress.ip_address(peer_ip)
    except ValueError:
        return False
    for network in trusted_proxies:
        try:
            if address in ipaddress.ip_network(network, strict=False):
                return True
        except ValueError:
            continue
    return False


def resolve_client_ip(
    headers: Mapping[str, str],
    peer_ip: str | None,
    trusted_proxies: Iterable[str] = (),
) -> str:
    """IP do cliente.

    X-Forwarded-For (primeiro IP público) e X-Real-IP só valem quando o
    peer é um proxy confiável; caso contrário o peer é o cliente.
    """
    if not is_trusted_proxy(peer_ip, trusted_proxies):
        return peer_ip or "unknown"

    lowered = _lower(headers)
    forwarded = lowered.get("x-forwarded-for", "")
    for candidate in (part.strip() for part in forwarded.split(",")):
        if candidate and _is_public_ip(candidate):
            return candidate

    real_ip = (lowered.get("x-real-ip") or "").strip()
    if real_ip and _is_public_ip(real_ip):
        return real_ip

    return peer_ip or "unknown"


def is_suspicious_user_agent(user_agent: str | None) -> bool:
    """User-Agent ausente ou típico de automação."""
    if not user_agent:
        return True
    lowered = user_agent.lower()
    return any(marker in lowered for marker in SUSPICIOUS_USER_AGENT_MARKERS)
