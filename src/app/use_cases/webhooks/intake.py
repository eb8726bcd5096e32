"""Dispatcher de intake de webhooks.

Orquestra os guards em ordem fixa e devolve um resultado tri-state
(IntakeAccepted | IntakeDuplicate | IntakeRejected), independente de
framework: entrada (headers, body, source_ip), saída via `to_http`.

Ordem:
    IP bloqueado -> rate limit -> tamanho -> headers -> assinatura
    -> timestamp -> JSON/schema -> dedupe -> enqueue

Idempotência: claim curto (SET NX) antes do enqueue e TTL completo só
depois do enqueue. Falha no enqueue libera o claim; uma queda entre o
enqueue e a marca deixa apenas o claim curto, que expira sozinho.
"""

from __future__ import annotations

import json
import logging
import time
import uuid
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from api.connectors.chatwoot.webhook import (
    check_declared_size,
    check_payload_size,
    extract_auth_headers,
    is_suspicious_user_agent,
    parse_content_length,
    parse_timestamp,
    read_bounded,
    validate_timestamp,
    verify_signature,
)
from app.domain.envelope import EventType, WebhookEnvelope, parse_event_type, route_for
from app.domain.events import dedupe_key, idempotency_key, validate_event
from app.domain.intake import (
    IntakeAccepted,
    IntakeDuplicate,
    IntakeOutcome,
    IntakeRejected,
)
from app.domain.job import QueuedJob
from app.observability import get_correlation_id, record_latency, record_webhook_outcome
from config.logging import mask_value
from fsm import DeliveryState, create_delivery_fsm
from utils.errors import (
    AuthenticityError,
    ConfigurationError,
    InfrastructureError,
    InvalidJsonError,
    MissingHeadersError,
    PayloadTooLargeError,
    PonteError,
    WebhookValidationError,
)

if TYPE_CHECKING:
    from collections.abc import AsyncIterable, Callable, Mapping

    from app.protocols.audit_store import SecurityAuditStoreProtocol
    from app.protocols.idempotency import IdempotencyStoreProtocol
    from app.protocols.job_queue import JobQueueProtocol
    from app.services.anomaly_detector import SecurityEventMonitor
    from app.services.rate_limiter import WebhookRateLimiter
    from config.settings.base.idempotency import IdempotencySettings
    from config.settings.queue import QueueSettings
    from config.settings.webhook import WebhookSecuritySettings
    from fsm import FSMStateMachine

logger = logging.getLogger(__name__)

DEFAULT_PATH = "/webhooks/chatwoot"
REQUIRED_HEADERS = ("X-Signature", "X-Timestamp")


class WebhookIntakeDispatcher:
    """Pipeline de guards + enqueue. Nunca executa a transformação de negócio.

    Args:
        webhook_settings: Secret, limite de payload e tolerância
        idempotency_settings: TTLs do claim e da marca
        queue_settings: max_attempts dos jobs criados
        idempotency_store: Store de ids aceitos
        job_queue: Fila de destino
        rate_limiter: Limiter do tier de webhooks (opcional)
        monitor: Detector de anomalias (opcional)
        audit_store: Trilha de auditoria (opcional)
        clock: Relógio em unix seconds (injetável em testes)
    """

    def __init__(
        self,
        *,
        webhook_settings: WebhookSecuritySettings,
        idempotency_settings: IdempotencySettings,
        queue_settings: QueueSettings,
        idempotency_store: IdempotencyStoreProtocol,
        job_queue: JobQueueProtocol,
        rate_limiter: WebhookRateLimiter | None = None,
        monitor: SecurityEventMonitor | None = None,
        audit_store: SecurityAuditStoreProtocol | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._webhook = webhook_settings
        self._idempotency = idempotency_settings
        self._queue_settings = queue_settings
        self._store = idempotency_store
        self._queue = job_queue
        self._rate_limiter = rate_limiter
        self._monitor = monitor
        self._audit = audit_store
        self._clock = clock

    async def dispatch(
        self,
        headers: Mapping[str, str],
        body: bytes | AsyncIterable[bytes],
        source_ip: str,
        *,
        method: str = "POST",
        path: str = DEFAULT_PATH,
        expected_event: EventType | None = None,
    ) -> IntakeOutcome:
        """Processa uma entrega e devolve o resultado tri-state.

        `body` pode ser o corpo já lido ou um stream de chunks; o stream só é
        consumido depois dos guards de entrada e do Content-Length declarado,
        e a leitura para no primeiro byte acima do limite.
        """
        started = time.perf_counter()
        fsm = create_delivery_fsm(get_correlation_id() or uuid.uuid4().hex)
        lowered = {key.lower(): value for key, value in headers.items()}
        user_agent = lowered.get("user-agent", "")

        outcome = await self._run(fsm, lowered, body, source_ip, method, path, expected_event)

        event_type = getattr(outcome, "event_type", None) or (
            str(expected_event) if expected_event else None
        )
        if isinstance(outcome, IntakeRejected):
            record_webhook_outcome("rejected", event_type, outcome.error_code)
        elif isinstance(outcome, IntakeDuplicate):
            record_webhook_outcome("duplicate", event_type)
        else:
            record_webhook_outcome("accepted", event_type)
        record_latency(
            "intake", "dispatch", (time.perf_counter() - started) * 1000, get_correlation_id()
        )
        logger.debug(
            "webhook_delivery_finished",
            extra={
                **fsm.get_state_summary(),
                "source_ip": source_ip,
                "user_agent": mask_value(user_agent, 40) if user_agent else None,
            },
        )
        return outcome

    async def _run(
        self,
        fsm: FSMStateMachine,
        headers: dict[str, str],
        body: bytes | AsyncIterable[bytes],
        source_ip: str,
        method: str,
        path: str,
        expected_event: EventType | None,
    ) -> IntakeOutcome:
        blocked = await self.check_entry(headers, source_ip, method, path)
        if blocked is not None:
            return self._reject(fsm, blocked)

        try:
            max_bytes = self._webhook.max_payload_bytes
            declared = parse_content_length(headers.get("content-length"))
            check_declared_size(declared, max_bytes)
            if not isinstance(body, bytes):
                body = await read_bounded(body, max_bytes)
            check_payload_size(declared, len(body), max_bytes)
            fsm.transition(DeliveryState.SIZE_CHECKED, trigger="size_ok")

            auth = extract_auth_headers(headers)
            verify_signature(body, auth.timestamp, auth.signature, self._webhook.webhook_secret)
            fsm.transition(DeliveryState.SIGNATURE_CHECKED, trigger="signature_ok")

            timestamp = parse_timestamp(auth.timestamp)
            if self._webhook.timestamp_enabled:
                validate_timestamp(
                    timestamp, int(self._clock()), self._webhook.timestamp_tolerance_seconds
                )
            fsm.transition(
                DeliveryState.TIMESTAMP_CHECKED,
                trigger="timestamp_ok",
                metadata={"skipped": not self._webhook.timestamp_enabled},
            )

            envelope = self._build_envelope(
                headers, body, source_ip, auth.signature, timestamp, expected_event
            )
            return await self._deduplicate_and_enqueue(fsm, envelope)
        except PayloadTooLargeError as exc:
            logger.warning(
                "webhook_payload_too_large",
                extra={"size": exc.size, "max_size": exc.max_bytes, "source_ip": source_ip},
            )
            return self._reject(
                fsm,
                _rejection(
                    exc,
                    "Payload too large",
                    {"max_size_bytes": exc.max_bytes, "received_bytes": exc.size},
                ),
            )
        except AuthenticityError as exc:
            await self._record_authenticity_failure(exc, source_ip)
            header_hint = (
                {"required_headers": list(REQUIRED_HEADERS)}
                if isinstance(exc, MissingHeadersError)
                else None
            )
            return self._reject(
                fsm, _rejection(exc, _AUTH_MESSAGES.get(exc.error_code, str(exc)), header_hint)
            )
        except ConfigurationError as exc:
            logger.error("webhook_secret_not_configured", extra={"source_ip": source_ip})
            return self._reject(fsm, _rejection(exc, "Webhook configuration error"))
        except WebhookValidationError as exc:
            logger.warning(
                "webhook_validation_failed",
                extra={"error_code": exc.error_code, "fields": sorted(exc.details)},
            )
            details: dict[str, Any] = {"details": exc.details} if exc.details else {}
            return self._reject(fsm, _rejection(exc, str(exc), details))
        except InfrastructureError as exc:
            logger.error(
                "webhook_intake_infra_failed",
                extra={"error_type": type(exc).__name__, "source_ip": source_ip},
            )
            return self._reject(
                fsm,
                IntakeRejected(
                    error_code="SERVICE_UNAVAILABLE",
                    http_status=503,
                    message="Temporarily unavailable",
                    headers={"Retry-After": "30"},
                ),
            )

    async def check_entry(
        self,
        headers: Mapping[str, str],
        source_ip: str,
        method: str,
        path: str,
    ) -> IntakeRejected | None:
        """IP bloqueado e rate limit. Retorna a rejeição ou None."""
        if self._monitor is not None:
            blocked, retry_after = await self._monitor.is_blocked(source_ip)
            if blocked:
                logger.warning("webhook_ip_blocked", extra={"source_ip": source_ip})
                return IntakeRejected(
                    error_code="IP_BLOCKED",
                    http_status=403,
                    message="IP temporarily blocked",
                    details={"retry_after": retry_after},
                    headers={"Retry-After": str(retry_after)},
                )
            await self._monitor.record_request(source_ip, path, method)

        user_agent = next(
            (value for key, value in headers.items() if key.lower() == "user-agent"), None
        )
        if is_suspicious_user_agent(user_agent):
            logger.info(
                "webhook_suspicious_user_agent",
                extra={
                    "source_ip": source_ip,
                    "user_agent": mask_value(user_agent, 40) if user_agent else None,
                },
            )

        if self._rate_limiter is None:
            return None
        decision = await self._rate_limiter.hit(source_ip, method, path)
        if decision.allowed:
            return None

        if self._monitor is not None:
            await self._monitor.escalate(
                source_ip,
                violation_count=len(decision.violations),
                total_attempts=decision.total_attempts,
                violation_type="rate_limit_exceeded",
                context={"violations": decision.violations, "endpoint": path},
            )
        retry_after = str(decision.retry_after)
        return IntakeRejected(
            error_code="RATE_LIMIT_EXCEEDED",
            http_status=429,
            message="Too many requests",
            details={"retry_after": decision.retry_after},
            headers={"Retry-After": retry_after, "X-RateLimit-Retry-After": retry_after},
        )

    def _build_envelope(
        self,
        headers: dict[str, str],
        body: bytes,
        source_ip: str,
        signature: str,
        timestamp: int,
        expected_event: EventType | None,
    ) -> WebhookEnvelope:
        try:
            payload = json.loads(body)
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise InvalidJsonError("Invalid JSON payload") from exc
        if not isinstance(payload, dict):
            raise InvalidJsonError("Payload must be a JSON object")

        event_type = parse_event_type(payload.get("event"))
        if event_type is None:
            raise WebhookValidationError(
                "Unsupported event", details={"event": ["unsupported event type"]}
            )
        if expected_event is not None and event_type is not expected_event:
            raise WebhookValidationError(
                "Event does not match endpoint",
                details={"event": [f"expected {expected_event}"]},
            )

        model = validate_event(event_type, payload)
        clean = model.model_dump(mode="json")
        return WebhookEnvelope(
            webhook_id=idempotency_key(clean),
            event_type=event_type,
            timestamp=timestamp,
            raw_payload=body,
            signature=signature,
            payload=clean,
            source_ip=source_ip,
            user_agent=headers.get("user-agent", ""),
        )

    async def _deduplicate_and_enqueue(
        self,
        fsm: FSMStateMachine,
        envelope: WebhookEnvelope,
    ) -> IntakeOutcome:
        key = envelope.webhook_id
        store_key = None if key is None else dedupe_key(envelope.event_type, key)
        if store_key is None:
            logger.info(
                "idempotency_bypassed",
                extra={"event_type": str(envelope.event_type), "deduplicable": False},
            )
        elif not await self._store.claim(store_key, self._idempotency.claim_ttl_seconds):
            fsm.transition(DeliveryState.DEDUP_CHECKED, trigger="duplicate")
            fsm.transition(DeliveryState.ACKNOWLEDGED, trigger="duplicate_ack")
            logger.info(
                "webhook_duplicate_ignored",
                extra={
                    "webhook_id": key,
                    "event_type": str(envelope.event_type),
                    "source_ip": envelope.source_ip,
                },
            )
            return IntakeDuplicate(webhook_id=key, event_type=str(envelope.event_type))
        fsm.transition(
            DeliveryState.DEDUP_CHECKED,
            trigger="claimed" if key else "bypassed",
            metadata={"deduplicable": envelope.deduplicable},
        )

        now = self._clock()
        route = route_for(envelope.event_type)
        job = QueuedJob(
            queue_name=route.queue,
            event_type=envelope.event_type,
            payload=envelope.payload,
            webhook_id=key,
            max_attempts=self._queue_settings.max_attempts,
            next_run_at=now + route.delay_seconds,
            created_at=now,
        )
        try:
            await self._queue.enqueue(job, route.queue, job.next_run_at)
        except Exception:
            if store_key is not None:
                await self._store.release(store_key)
            raise
        fsm.transition(DeliveryState.ENQUEUED, trigger="enqueued", metadata={"job_id": job.job_id})

        if store_key is not None:
            await self._store.mark_processed(store_key, self._idempotency.ttl_seconds)

        queued_at = datetime.fromtimestamp(now, UTC).isoformat()
        logger.info(
            "webhook_queued",
            extra={
                "webhook_id": key,
                "job_id": job.job_id,
                "event_type": str(envelope.event_type),
                "queue": str(route.queue),
                "delay_seconds": route.delay_seconds,
                "deduplicable": envelope.deduplicable,
            },
        )
        if self._audit is not None:
            await self._audit.append(
                {
                    "event_type": "webhook_received",
                    "webhook_id": key,
                    "job_id": job.job_id,
                    "webhook_event": str(envelope.event_type),
                    "source_ip": envelope.source_ip,
                    "queue": str(route.queue),
                    "received_at": queued_at,
                }
            )
        fsm.transition(DeliveryState.ACKNOWLEDGED, trigger="accepted")
        return IntakeAccepted(
            webhook_id=key,
            job_id=job.job_id,
            queue_name=str(route.queue),
            queued_at=queued_at,
            estimated_processing_seconds=route.estimated_processing_seconds,
            deduplicated=envelope.deduplicable,
            event_type=str(envelope.event_type),
        )

    async def _record_authenticity_failure(self, exc: AuthenticityError, source_ip: str) -> None:
        logger.warning(
            "webhook_authenticity_failed",
            extra={"error_code": exc.error_code, "source_ip": source_ip},
        )
        if self._monitor is not None:
            await self._monitor.record_violation(source_ip, exc.error_code.lower())

    def _reject(self, fsm: FSMStateMachine, rejection: IntakeRejected) -> IntakeRejected:
        fsm.transition(
            DeliveryState.REJECTED,
            trigger="guard_failed",
            metadata={"error_code": rejection.error_code},
        )
        return rejection


_AUTH_MESSAGES = {
    "MISSING_HEADERS": "Missing signature or timestamp",
    "INVALID_SIGNATURE": "Invalid signature",
    "TIMESTAMP_EXPIRED": "Timestamp expired",
    "INVALID_TIMESTAMP": "Invalid timestamp",
}


def _rejection(
    exc: PonteError,
    message: str,
    details: dict[str, Any] | None = None,
) -> IntakeRejected:
    return IntakeRejected(
        error_code=exc.error_code,
        http_status=exc.http_status,
        message=message,
        details=details or {},
    )
