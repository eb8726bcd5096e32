"""
Exports públicos do módulo fsm/manager.
"""

from fsm.manager.machine import (
    FSMStateMachine,
    create_delivery_fsm,
    create_job_fsm,
)

__all__ = [
    "FSMStateMachine",
    "create_delivery_fsm",
    "create_job_fsm",
]
