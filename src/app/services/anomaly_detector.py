"""Detector de anomalias e escalonamento de eventos de segurança.

Contadores (janela fixa, via CounterStoreProtocol):
    rapid_fire:{ip}                  60s,  alerta acima de 20
    attack_pattern:{endpoint}:{m}    300s, alerta acima de 50
    sensitive_access:{ip}            1h,   alerta acima de 10
    access:{ip}                      300s, alerta acima de 50
    violation:{ip}                   300s, base do escalonamento

Escalonamento:
    violações >= 3 ou tentativas >= 100  -> critical (bloqueia o IP)
    violações >= 2 ou tentativas >= 50   -> high
    tentativas >= 20                     -> medium
    demais                               -> low

O único efeito síncrono sobre requisições é o bloqueio de IP, checado
na entrada antes de qualquer outro guard.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING, Any

from app.observability import record_security_event

if TYPE_CHECKING:
    from app.protocols.audit_store import SecurityAuditStoreProtocol
    from app.protocols.counters import CounterStoreProtocol

logger = logging.getLogger(__name__)


class Severity(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


@dataclass(frozen=True, slots=True)
class CounterRule:
    """Janela e limiar de alerta de um contador."""

    window_seconds: int
    warn_above: int


RAPID_FIRE = CounterRule(window_seconds=60, warn_above=20)
ATTACK_PATTERN = CounterRule(window_seconds=300, warn_above=50)
SENSITIVE_ACCESS = CounterRule(window_seconds=3600, warn_above=10)
GENERAL_ACCESS = CounterRule(window_seconds=300, warn_above=50)
VIOLATION_WINDOW_SECONDS = 300

CRITICAL_VIOLATIONS = 3
CRITICAL_ATTEMPTS = 100
HIGH_VIOLATIONS = 2
HIGH_ATTEMPTS = 50
MEDIUM_ATTEMPTS = 20

_LOG_LEVEL_BY_SEVERITY = {
    Severity.CRITICAL: logging.CRITICAL,
    Severity.HIGH: logging.WARNING,
    Severity.MEDIUM: logging.INFO,
    Severity.LOW: logging.DEBUG,
}


def classify_severity(violation_count: int, total_attempts: int) -> Severity:
    """Política de escalonamento (função pura)."""
    if violation_count >= CRITICAL_VIOLATIONS or total_attempts >= CRITICAL_ATTEMPTS:
        return Severity.CRITICAL
    if violation_count >= HIGH_VIOLATIONS or total_attempts >= HIGH_ATTEMPTS:
        return Severity.HIGH
    if total_attempts >= MEDIUM_ATTEMPTS:
        return Severity.MEDIUM
    return Severity.LOW


class SecurityEventMonitor:
    """Contadores de anomalias, escalonamento e bloqueio temporário de IP.

    Args:
        counters: Store de contadores atômicos
        audit_store: Trilha de auditoria (eventos críticos)
        block_duration_seconds: Duração do bloqueio aplicado em critical
    """

    def __init__(
        self,
        counters: CounterStoreProtocol,
        audit_store: SecurityAuditStoreProtocol | None = None,
        block_duration_seconds: int = 3600,
    ) -> None:
        self._counters = counters
        self._audit = audit_store
        self._block_duration = block_duration_seconds

    @staticmethod
    def _block_key(ip: str) -> str:
        return f"ip_block:{ip}"

    async def is_blocked(self, ip: str) -> tuple[bool, int]:
        """Checagem rápida de bloqueio. Retorna (bloqueado, retry_after)."""
        key = self._block_key(ip)
        if not await self._counters.has_flag(key):
            return False, 0
        return True, await self._counters.ttl_remaining(key) or self._block_duration

    async def block(self, ip: str, reason: str) -> None:
        await self._counters.set_flag(self._block_key(ip), self._block_duration)
        logger.critical(
            "security_ip_blocked",
            extra={
                "source_ip": ip,
                "reason": reason,
                "block_duration_seconds": self._block_duration,
            },
        )

    async def _bump(self, key: str, rule: CounterRule, event: str, context: dict[str, Any]) -> int:
        count = await self._counters.increment(key, rule.window_seconds)
        if count > rule.warn_above:
            logger.warning(event, extra={**context, "count": count})
        return count

    async def record_request(self, ip: str, endpoint: str, method: str) -> None:
        """Alimenta rapid-fire, padrão distribuído e acesso geral."""
        await self._bump(
            f"rapid_fire:{ip}",
            RAPID_FIRE,
            "security_rapid_fire_detected",
            {"source_ip": ip, "endpoint": endpoint},
        )
        await self._bump(
            f"attack_pattern:{endpoint}:{method}",
            ATTACK_PATTERN,
            "security_distributed_pattern_detected",
            {"endpoint": endpoint, "method": method},
        )
        await self._bump(
            f"access:{ip}",
            GENERAL_ACCESS,
            "security_excessive_access_detected",
            {"source_ip": ip},
        )

    async def record_sensitive_access(self, ip: str, resource: str) -> None:
        """Acesso a dados com PII (ex.: payloads em dead-letter)."""
        await self._bump(
            f"sensitive_access:{ip}",
            SENSITIVE_ACCESS,
            "security_sensitive_access_excessive",
            {"source_ip": ip, "resource": resource},
        )

    async def record_violation(self, ip: str, violation_type: str) -> Severity:
        """Registra falha de autenticidade e escalona pelo total da janela."""
        await self._counters.increment(
            f"violation:{ip}:{violation_type}", VIOLATION_WINDOW_SECONDS
        )
        total = await self._counters.increment(f"violation:{ip}", VIOLATION_WINDOW_SECONDS)
        return await self.escalate(
            ip,
            violation_count=total,
            total_attempts=await self._counters.get(f"rapid_fire:{ip}"),
            violation_type=violation_type,
        )

    async def escalate(
        self,
        ip: str,
        *,
        violation_count: int,
        total_attempts: int,
        violation_type: str,
        context: dict[str, Any] | None = None,
    ) -> Severity:
        """Classifica, loga no nível da severidade e bloqueia em critical."""
        severity = classify_severity(violation_count, total_attempts)
        extra = {
            **(context or {}),
            "source_ip": ip,
            "severity": str(severity),
            "violation_type": violation_type,
            "violation_count": violation_count,
            "total_attempts": total_attempts,
        }
        logger.log(_LOG_LEVEL_BY_SEVERITY[severity], "security_violation", extra=extra)
        record_security_event(str(severity), violation_type)

        if severity is Severity.CRITICAL:
            await self.block(ip, reason=violation_type)
            logger.critical("security_alert", extra=extra)
            if self._audit is not None:
                await self._audit.append(
                    {
                        "event_type": "critical_security_event",
                        "source_ip": ip,
                        "violation_type": violation_type,
                        "violation_count": violation_count,
                        "total_attempts": total_attempts,
                        "block_duration_seconds": self._block_duration,
                    }
                )
        return severity
