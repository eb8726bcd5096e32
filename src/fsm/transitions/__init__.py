"""
Exports públicos do módulo fsm/transitions.
"""

from fsm.transitions.rules import (
    DELIVERY_TRANSITIONS,
    JOB_TRANSITIONS,
    TransitionMap,
    get_valid_targets,
    is_transition_valid,
    validate_all_transition_maps,
    validate_transition_map,
)

__all__ = [
    "DELIVERY_TRANSITIONS",
    "JOB_TRANSITIONS",
    "TransitionMap",
    "get_valid_targets",
    "is_transition_valid",
    "validate_all_transition_maps",
    "validate_transition_map",
]
