"""Métricas via structured logging.

As métricas são logs com prefixo `metric_` e podem ser agregadas
posteriormente (BigQuery, Cloud Logging, etc.).

Métricas suportadas:
- metric_latency: tempo de operação por componente
- metric_webhook_outcome: resultado do intake (accepted|duplicate|rejected)
- metric_job_outcome: resultado de tentativa (completed|retrying|dead_lettered)
- metric_security_event: escalonamento do detector de anomalias

Uso:
    start = time.perf_counter()
    ...
    record_latency("intake", "dispatch", (time.perf_counter() - start) * 1000)
"""

from __future__ import annotations

import logging

logger = logging.getLogger(__name__)


def record_latency(
    component: str,
    operation: str,
    latency_ms: float,
    correlation_id: str | None = None,
) -> None:
    """Registra latência de operação.

    Args:
        component: Nome do componente (ex: "intake", "executor")
        operation: Nome da operação (ex: "dispatch", "attempt")
        latency_ms: Latência em milissegundos
        correlation_id: ID de correlação para rastreamento
    """
    logger.info(
        "metric_latency",
        extra={
            "metric_type": "latency",
            "component": component,
            "operation": operation,
            "latency_ms": round(latency_ms, 2),
            "correlation_id": correlation_id,
        },
    )


def record_webhook_outcome(
    outcome: str,
    event_type: str | None,
    error_code: str | None = None,
) -> None:
    """Conta o resultado de uma entrega no intake."""
    logger.info(
        "metric_webhook_outcome",
        extra={
            "metric_type": "counter",
            "outcome": outcome,
            "event_type": event_type,
            "error_code": error_code,
        },
    )


def record_job_outcome(
    outcome: str,
    event_type: str,
    attempt: int,
    queue: str,
) -> None:
    """Conta o resultado de uma tentativa de job."""
    logger.info(
        "metric_job_outcome",
        extra={
            "metric_type": "counter",
            "outcome": outcome,
            "event_type": event_type,
            "attempt": attempt,
            "queue": queue,
        },
    )


def record_security_event(severity: str, violation_type: str) -> None:
    logger.info(
        "metric_security_event",
        extra={
            "metric_type": "counter",
            "severity": severity,
            "violation_type": violation_type,
        },
    )
