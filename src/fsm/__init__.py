"""
Módulo FSM: máquinas de estado do pipeline de webhooks.

Duas máquinas determinísticas compartilham a mesma engine:
    - Entrega (intake): received → ... → acknowledged | rejected
    - Job (executor): pending → running → completed | retrying | dead-lettered

Estrutura:
    - states/: DeliveryState, JobState
    - transitions/: DELIVERY_TRANSITIONS, JOB_TRANSITIONS
    - rules/: Guards (terminal, reflexivo, mesma máquina)
    - manager/: FSMStateMachine e factories
    - types/: StateTransition, TransitionResult
"""

from fsm.manager import (
    FSMStateMachine,
    create_delivery_fsm,
    create_job_fsm,
)
from fsm.rules import GuardResult, evaluate_guards
from fsm.states import (
    DELIVERY_TERMINAL_STATES,
    JOB_TERMINAL_STATES,
    DeliveryState,
    JobState,
    is_terminal,
)
from fsm.transitions import (
    DELIVERY_TRANSITIONS,
    JOB_TRANSITIONS,
    get_valid_targets,
    is_transition_valid,
    validate_all_transition_maps,
)
from fsm.types import StateTransition, TransitionResult

__all__ = [
    "DELIVERY_TERMINAL_STATES",
    "DELIVERY_TRANSITIONS",
    "JOB_TERMINAL_STATES",
    "JOB_TRANSITIONS",
    "DeliveryState",
    "FSMStateMachine",
    "GuardResult",
    "JobState",
    "StateTransition",
    "TransitionResult",
    "create_delivery_fsm",
    "create_job_fsm",
    "evaluate_guards",
    "get_valid_targets",
    "is_terminal",
    "is_transition_valid",
    "validate_all_transition_maps",
]
