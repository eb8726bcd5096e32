"""Protocolo da fila de jobs com agendamento (not_before)."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence

    from app.domain.envelope import QueueName
    from app.domain.job import QueuedJob


class JobQueueProtocol(ABC):
    """Fila com prioridade por nome e atraso explícito.

    O atraso é uma dica de agendamento: um executor que roda o job antes
    continua correto, apenas menos agrupado.
    """

    @abstractmethod
    async def enqueue(self, job: QueuedJob, queue_name: QueueName, not_before: float) -> None:
        """Agenda o job para rodar a partir de `not_before` (unix seconds)."""

    @abstractmethod
    async def dequeue(
        self,
        queue_names: Sequence[QueueName],
        now: float,
    ) -> QueuedJob | None:
        """Retira o próximo job vencido, respeitando a ordem de `queue_names`.

        Cada job é entregue a um único consumidor.
        """

    @abstractmethod
    async def size(self, queue_name: QueueName) -> int:
        """Quantidade de jobs agendados na fila."""
