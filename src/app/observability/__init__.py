"""Observabilidade: correlation id e métricas em log.

Uso:
    from app.observability import get_correlation_id, set_correlation_id
    from app.observability import record_latency, record_webhook_outcome
"""

from app.observability.correlation import (
    correlation_id_from_headers,
    generate_correlation_id,
    get_correlation_id,
    reset_correlation_id,
    set_correlation_id,
)
from app.observability.metrics import (
    record_job_outcome,
    record_latency,
    record_security_event,
    record_webhook_outcome,
)

__all__ = [
    "correlation_id_from_headers",
    "generate_correlation_id",
    "get_correlation_id",
    "record_job_outcome",
    "record_latency",
    "record_security_event",
    "record_webhook_outcome",
    "reset_correlation_id",
    "set_correlation_id",
]
