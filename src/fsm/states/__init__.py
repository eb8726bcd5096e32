"""
Exports públicos do módulo fsm/states.

Estados de entrega (intake) e de job (executor).
"""

from enum import StrEnum

from fsm.states.delivery import (
    DELIVERY_INITIAL_STATE,
    DELIVERY_TERMINAL_STATES,
    DeliveryState,
)
from fsm.states.job import JOB_INITIAL_STATE, JOB_TERMINAL_STATES, JobState

TERMINAL_STATES: frozenset[StrEnum] = DELIVERY_TERMINAL_STATES | JOB_TERMINAL_STATES


def is_terminal(state: StrEnum) -> bool:
    """Verifica se o estado é terminal em sua máquina."""
    return state in TERMINAL_STATES


__all__ = [
    "DELIVERY_INITIAL_STATE",
    "DELIVERY_TERMINAL_STATES",
    "JOB_INITIAL_STATE",
    "JOB_TERMINAL_STATES",
    "TERMINAL_STATES",
    "DeliveryState",
    "JobState",
    "is_terminal",
]
