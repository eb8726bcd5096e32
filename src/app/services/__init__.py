"""Serviços de aplicação.

Unidades reutilizáveis sobre os protocolos de contadores e auditoria.
Implementações concretas de IO ficam em app/infra/.
"""

from app.services.anomaly_detector import SecurityEventMonitor, Severity, classify_severity
from app.services.rate_limiter import RateLimitDecision, WebhookRateLimiter, endpoint_key

__all__ = [
    "RateLimitDecision",
    "SecurityEventMonitor",
    "Severity",
    "WebhookRateLimiter",
    "classify_severity",
    "endpoint_key",
]
