"""Pool de workers que drena as filas de jobs.

Cada worker é uma task asyncio que faz polling das filas em ordem de
prioridade (webhooks-high antes de webhooks-normal). No shutdown o
pool para de buscar jobs e aguarda as tentativas em andamento até o
timeout; as restantes são canceladas e reagendadas pelo executor.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import time
from typing import TYPE_CHECKING, Any

from app.domain.envelope import QUEUE_PRIORITY

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from app.domain.envelope import QueueName
    from app.domain.job import QueuedJob
    from app.protocols.job_queue import JobQueueProtocol
    from app.use_cases.webhooks.executor import JobExecutor

logger = logging.getLogger(__name__)


class WorkerPool:
    """Workers concorrentes sobre um JobQueueProtocol.

    Args:
        queue: Fila de origem
        executor: Executor de tentativas
        concurrency: Número de workers
        poll_interval_seconds: Espera com filas vazias
        clock: Relógio em unix seconds
        queue_names: Filas em ordem de prioridade
    """

    def __init__(
        self,
        *,
        queue: JobQueueProtocol,
        executor: JobExecutor,
        concurrency: int = 4,
        poll_interval_seconds: float = 1.0,
        clock: Callable[[], float] = time.time,
        queue_names: Sequence[QueueName] = QUEUE_PRIORITY,
    ) -> None:
        self._queue = queue
        self._executor = executor
        self._concurrency = concurrency
        self._poll_interval = poll_interval_seconds
        self._clock = clock
        self._queue_names = tuple(queue_names)
        self._stopping = asyncio.Event()
        self._workers: set[asyncio.Task[Any]] = set()
        self._in_flight = 0

    @property
    def running(self) -> bool:
        return bool(self._workers) and not self._stopping.is_set()

    @property
    def in_flight(self) -> int:
        return self._in_flight

    def start(self) -> None:
        """Cria as tasks dos workers no loop corrente."""
        if self._workers:
            return
        self._stopping.clear()
        for index in range(self._concurrency):
            task = asyncio.create_task(self._worker_loop(index), name=f"webhook-worker-{index}")
            self._workers.add(task)
            task.add_done_callback(self._on_worker_done)
        logger.info(
            "worker_pool_started",
            extra={"concurrency": self._concurrency, "queues": [str(q) for q in self._queue_names]},
        )

    async def run_once(self) -> QueuedJob | None:
        """Executa no máximo um job pronto. Retorna o job resultante."""
        job = await self._queue.dequeue(self._queue_names, self._clock())
        if job is None:
            return None
        self._in_flight += 1
        try:
            return await self._executor.execute(job)
        finally:
            self._in_flight -= 1

    async def _worker_loop(self, index: int) -> None:
        while not self._stopping.is_set():
            try:
                processed = await self.run_once()
            except asyncio.CancelledError:
                raise
            except Exception as exc:
                logger.exception(
                    "worker_job_failed",
                    extra={"worker": index, "error_type": type(exc).__name__},
                )
                processed = None
            if processed is None:
                with contextlib.suppress(TimeoutError):
                    await asyncio.wait_for(self._stopping.wait(), timeout=self._poll_interval)

    def _on_worker_done(self, task: asyncio.Task[Any]) -> None:
        self._workers.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error(
                "worker_task_crashed",
                extra={"worker": task.get_name(), "error_type": type(exc).__name__},
            )

    async def stop(self, timeout_seconds: float = 30.0) -> None:
        """Para o polling e drena tentativas em andamento."""
        self._stopping.set()
        if not self._workers:
            return

        pending_now = list(self._workers)
        logger.info(
            "worker_pool_shutdown_wait",
            extra={
                "workers": len(pending_now),
                "in_flight": self._in_flight,
                "timeout_seconds": timeout_seconds,
            },
        )
        _, pending = await asyncio.wait(pending_now, timeout=timeout_seconds)
        if not pending:
            logger.info("worker_pool_stopped")
            return

        for task in pending:
            task.cancel()
        await asyncio.gather(*pending, return_exceptions=True)
        logger.warning("worker_pool_shutdown_cancelled", extra={"cancelled_workers": len(pending)})
