"""
Estados do ciclo de vida de um job na fila.

COMPLETED e DEAD_LETTERED são terminais: um job em dead-letter nunca
é reexecutado automaticamente (o replay manual cria um job novo).
"""

from enum import StrEnum


class JobState(StrEnum):
    """Estados de um QueuedJob."""

    PENDING = "pending"
    RUNNING = "running"
    RETRYING = "retrying"
    COMPLETED = "completed"
    DEAD_LETTERED = "dead-lettered"

    def __str__(self) -> str:
        return self.value


JOB_TERMINAL_STATES: frozenset[JobState] = frozenset({
    JobState.COMPLETED,
    JobState.DEAD_LETTERED,
})

JOB_INITIAL_STATE: JobState = JobState.PENDING
