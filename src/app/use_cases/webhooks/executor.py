"""Executor de jobs: uma tentativa por chamada, com retry e dead-letter.

Ciclo (fsm.JobState):
    pending|retrying -> running -> completed
                                -> retrying       (transitória, tentativas restantes)
                                -> dead-lettered  (permanente ou tentativas esgotadas)

Atraso após a tentativa n falha: backoff_schedule[min(n - 1, len - 1)].
Estouro do timeout por tentativa conta como falha transitória.
Cancelamento no shutdown devolve o job à fila sem consumir a tentativa.
Toda mudança de status passa pela FSM do job.
"""

from __future__ import annotations

import asyncio
import logging
import time
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

import httpx

from app.domain.dead_letter import DeadLetterRecord
from app.domain.envelope import EventType, QueueName, route_for
from app.domain.job import QueuedJob
from app.observability import (
    record_job_outcome,
    record_latency,
    reset_correlation_id,
    set_correlation_id,
)
from fsm import FSMStateMachine, JobState, create_job_fsm
from utils.errors import PonteError, TransientError

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Mapping

    from app.protocols.audit_store import SecurityAuditStoreProtocol
    from app.protocols.dead_letter_store import DeadLetterStoreProtocol
    from app.protocols.job_queue import JobQueueProtocol
    from config.settings.queue import QueueSettings

logger = logging.getLogger(__name__)

_MAX_ERROR_CHARS = 500


class AttemptTimeoutError(TransientError):
    """Tentativa excedeu o timeout configurado."""

    error_code = "ATTEMPT_TIMEOUT"


class AttemptCancelledError(TransientError):
    """Tentativa interrompida pelo shutdown do worker."""

    error_code = "ATTEMPT_CANCELLED"


class UnknownEventError(PonteError):
    """Job sem handler registrado."""

    error_code = "UNKNOWN_EVENT"


class InvalidJobTransitionError(PonteError):
    """Mudança de status fora do grafo JOB_TRANSITIONS."""

    error_code = "INVALID_JOB_TRANSITION"


def is_transient(exc: BaseException) -> bool:
    """Classifica a falha: True consome tentativa, False vai para dead-letter."""
    if isinstance(exc, (TransientError, TimeoutError, httpx.TransportError)):
        return True
    module_name = type(exc).__module__
    return module_name.startswith(("redis.", "google.api_core."))


def backoff_delay(attempt: int, schedule: tuple[int, ...]) -> int:
    """Atraso (s) após a tentativa `attempt` (1-based) falhar."""
    return schedule[min(max(attempt, 1) - 1, len(schedule) - 1)]


def _describe(exc: BaseException) -> str:
    return f"{type(exc).__name__}: {exc}"[:_MAX_ERROR_CHARS]


def _advance(
    fsm: FSMStateMachine,
    job: QueuedJob,
    target: JobState,
    trigger: str,
    **changes: Any,
) -> QueuedJob:
    """Aplica a transição na FSM e só então copia o job com o novo status."""
    result = fsm.transition(target, trigger=trigger)
    if not result.success:
        raise InvalidJobTransitionError(result.error_reason or f"{job.status} -> {target}")
    return job.with_status(target, **changes)


class JobExecutor:
    """Executa tentativas e decide o próximo estado do job.

    Args:
        queue: Fila para reagendamento
        dead_letters: Store de dead-letter
        handlers: Handler por tipo de evento
        settings: max_attempts, backoff e timeout
        audit_store: Trilha de auditoria (webhook_dead_lettered)
        clock: Relógio em unix seconds
    """

    def __init__(
        self,
        *,
        queue: JobQueueProtocol,
        dead_letters: DeadLetterStoreProtocol,
        handlers: Mapping[EventType, Callable[[QueuedJob], Awaitable[None]]],
        settings: QueueSettings,
        audit_store: SecurityAuditStoreProtocol | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._queue = queue
        self._dead_letters = dead_letters
        self._handlers = dict(handlers)
        self._settings = settings
        self._audit = audit_store
        self._clock = clock

    async def execute(self, job: QueuedJob) -> QueuedJob:
        """Roda uma tentativa e retorna o job no estado resultante."""
        fsm = create_job_fsm(job.job_id, initial_state=job.status)
        result = fsm.transition(JobState.RUNNING, trigger="dequeued")
        if not result.success:
            logger.warning(
                "job_not_runnable",
                extra={
                    "job_id": job.job_id,
                    "status": str(job.status),
                    "reason": result.error_reason,
                },
            )
            return job

        running = job.with_status(JobState.RUNNING, attempt=job.attempt + 1)
        token = set_correlation_id(f"job-{job.job_id}")
        started = time.perf_counter()
        try:
            return await self._attempt(fsm, running)
        finally:
            record_latency("executor", "attempt", (time.perf_counter() - started) * 1000)
            reset_correlation_id(token)

    async def _attempt(self, fsm: FSMStateMachine, job: QueuedJob) -> QueuedJob:
        log_extra = {
            "job_id": job.job_id,
            "webhook_id": job.webhook_id,
            "event_type": str(job.event_type),
            "attempt": job.attempt,
            "max_attempts": job.max_attempts,
        }
        logger.info("job_attempt_started", extra=log_extra)

        handler = self._handlers.get(job.event_type)
        if handler is None:
            return await self._dead_letter(
                fsm, job, UnknownEventError(f"no handler for {job.event_type}"), permanent=True
            )

        try:
            await asyncio.wait_for(handler(job), timeout=self._settings.attempt_timeout_seconds)
        except TimeoutError:
            timeout = self._settings.attempt_timeout_seconds
            return await self._handle_failure(
                fsm, job, AttemptTimeoutError(f"attempt exceeded {timeout}s")
            )
        except asyncio.CancelledError:
            await self._requeue_cancelled(fsm, job)
            raise
        except Exception as exc:
            return await self._handle_failure(fsm, job, exc)

        completed = _advance(fsm, job, JobState.COMPLETED, "handler_succeeded", last_error=None)
        record_job_outcome("completed", str(job.event_type), job.attempt, str(job.queue_name))
        logger.info("job_completed", extra={**log_extra, "path": fsm.path()})
        return completed

    async def _handle_failure(
        self, fsm: FSMStateMachine, job: QueuedJob, exc: BaseException
    ) -> QueuedJob:
        if not is_transient(exc):
            return await self._dead_letter(fsm, job, exc, permanent=True)
        if job.attempts_exhausted:
            return await self._dead_letter(fsm, job, exc, permanent=False)

        delay = backoff_delay(job.attempt, self._settings.backoff_schedule)
        retrying = _advance(
            fsm,
            job,
            JobState.RETRYING,
            "transient_failure",
            next_run_at=self._clock() + delay,
            last_error=_describe(exc),
        )
        await self._queue.enqueue(retrying, retrying.queue_name, retrying.next_run_at)
        record_job_outcome("retrying", str(job.event_type), job.attempt, str(job.queue_name))
        logger.warning(
            "job_retry_scheduled",
            extra={
                "job_id": job.job_id,
                "webhook_id": job.webhook_id,
                "event_type": str(job.event_type),
                "attempt": job.attempt,
                "delay_seconds": delay,
                "error_type": type(exc).__name__,
            },
        )
        return retrying

    async def _requeue_cancelled(self, fsm: FSMStateMachine, job: QueuedJob) -> QueuedJob:
        """Devolve à fila a tentativa interrompida pelo shutdown, sem consumi-la."""
        requeued = _advance(
            fsm,
            job,
            JobState.RETRYING,
            "worker_shutdown",
            attempt=job.attempt - 1,
            next_run_at=self._clock(),
            last_error=_describe(AttemptCancelledError("worker shutdown")),
        )
        await self._queue.enqueue(requeued, requeued.queue_name, requeued.next_run_at)
        record_job_outcome("cancelled", str(job.event_type), job.attempt, str(job.queue_name))
        logger.warning(
            "job_attempt_cancelled",
            extra={
                "job_id": job.job_id,
                "webhook_id": job.webhook_id,
                "event_type": str(job.event_type),
                "attempt": job.attempt,
            },
        )
        return requeued

    async def _dead_letter(
        self,
        fsm: FSMStateMachine,
        job: QueuedJob,
        exc: BaseException,
        *,
        permanent: bool,
    ) -> QueuedJob:
        error = _describe(exc)
        dead = _advance(
            fsm,
            job,
            JobState.DEAD_LETTERED,
            "permanent_failure" if permanent else "attempts_exhausted",
            last_error=error,
        )
        failed_at = datetime.fromtimestamp(self._clock(), UTC)
        record = DeadLetterRecord.from_job(dead, error, permanent=permanent, failed_at=failed_at)
        await self._dead_letters.save(record)

        record_job_outcome("dead_lettered", str(job.event_type), job.attempt, str(job.queue_name))
        logger.error(
            "job_dead_lettered",
            extra={
                "job_id": job.job_id,
                "webhook_id": job.webhook_id,
                "event_type": str(job.event_type),
                "attempts": job.attempt,
                "permanent": permanent,
                "error_type": type(exc).__name__,
                "path": fsm.path(),
            },
        )
        if self._audit is not None:
            await self._audit.append(
                {
                    "event_type": "webhook_dead_lettered",
                    "webhook_id": record.webhook_id,
                    "job_id": job.job_id,
                    "webhook_event": str(job.event_type),
                    "attempts": job.attempt,
                    "permanent": permanent,
                    "error_type": type(exc).__name__,
                    "failed_at": record.failed_at,
                }
            )
        return dead

    async def list_dead_letters(self, limit: int = 50) -> list[DeadLetterRecord]:
        return await self._dead_letters.list_recent(limit)

    async def replay(self, webhook_id: str) -> QueuedJob | None:
        """Reenfileira manualmente um dead-letter com tentativas zeradas.

        Returns:
            O novo job, ou None se não houver registro.
        """
        record = await self._dead_letters.get(webhook_id)
        if record is None:
            return None

        event_type = EventType(record.event_type)
        try:
            queue_name = QueueName(record.queue_name)
        except ValueError:
            queue_name = route_for(event_type).queue
        now = self._clock()
        job = QueuedJob(
            queue_name=queue_name,
            event_type=event_type,
            payload=record.payload,
            webhook_id=record.webhook_id if record.webhook_id != record.job_id else None,
            max_attempts=self._settings.max_attempts,
            next_run_at=now,
            created_at=now,
        )
        await self._queue.enqueue(job, queue_name, now)
        await self._dead_letters.delete(webhook_id)
        logger.info(
            "dead_letter_replayed",
            extra={"webhook_id": webhook_id, "job_id": job.job_id, "queue": str(queue_name)},
        )
        return job
