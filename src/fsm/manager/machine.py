"""
Máquina de estados genérica, parametrizada pelo grafo de transições.

Instâncias concretas:
    - create_delivery_fsm: uma por requisição de webhook (intake)
    - create_job_fsm: uma por tentativa de execução de job
"""

from enum import StrEnum
from typing import Any

from fsm.rules.guards import Guard, evaluate_guards
from fsm.states.delivery import (
    DELIVERY_INITIAL_STATE,
    DELIVERY_TERMINAL_STATES,
)
from fsm.states.job import JOB_INITIAL_STATE, JOB_TERMINAL_STATES
from fsm.transitions.rules import (
    DELIVERY_TRANSITIONS,
    JOB_TRANSITIONS,
    TransitionMap,
    get_valid_targets,
    is_transition_valid,
)
from fsm.types.transition import StateTransition, TransitionResult


class FSMStateMachine:
    """
    Máquina de estados com histórico rastreável.

    Attributes:
        current_state: Estado atual da máquina
        history: Histórico de transições realizadas
    """

    __slots__ = (
        "_current_state",
        "_guards",
        "_history",
        "_machine_id",
        "_terminal_states",
        "_transitions",
    )

    def __init__(
        self,
        transitions: TransitionMap,
        initial_state: StrEnum,
        terminal_states: frozenset[StrEnum],
        machine_id: str = "",
        guards: list[Guard] | None = None,
    ) -> None:
        self._transitions = transitions
        self._current_state = initial_state
        self._terminal_states = terminal_states
        self._machine_id = machine_id
        self._guards = guards
        self._history: list[StateTransition] = []

    @property
    def current_state(self) -> StrEnum:
        return self._current_state

    @property
    def history(self) -> list[StateTransition]:
        """Histórico de transições (cópia para evitar mutação externa)."""
        return list(self._history)

    @property
    def machine_id(self) -> str:
        return self._machine_id

    @property
    def is_terminal(self) -> bool:
        return self._current_state in self._terminal_states

    def can_transition_to(self, target: StrEnum) -> bool:
        """Verifica se pode transitar para o estado alvo."""
        if not is_transition_valid(self._transitions, self._current_state, target):
            return False
        return evaluate_guards(
            self._current_state, target, self._terminal_states, self._guards
        ).allowed

    def get_valid_targets(self) -> frozenset[StrEnum]:
        return get_valid_targets(self._transitions, self._current_state)

    def transition(
        self,
        target: StrEnum,
        trigger: str,
        metadata: dict[str, Any] | None = None,
    ) -> TransitionResult:
        """
        Tenta realizar uma transição de estado.

        Guards rodam antes da checagem do grafo para que a saída de um
        estado terminal seja reportada como tal.

        Args:
            target: Estado de destino
            trigger: Identificador do gatilho
            metadata: Dados adicionais para auditoria

        Returns:
            TransitionResult com sucesso/falha e dados da transição
        """
        guard_result = evaluate_guards(
            self._current_state, target, self._terminal_states, self._guards
        )
        if not guard_result.allowed:
            return TransitionResult(success=False, error_reason=guard_result.reason)

        if not is_transition_valid(self._transitions, self._current_state, target):
            return TransitionResult(
                success=False,
                error_reason=(
                    f"Transição inválida: {self._current_state.name} → {target.name}"
                ),
            )

        transition = StateTransition(
            from_state=self._current_state,
            to_state=target,
            trigger=trigger,
            metadata=metadata or {},
        )
        self._current_state = target
        self._history.append(transition)
        return TransitionResult(success=True, transition=transition)

    def path(self) -> list[str]:
        """Sequência de estados visitados (ex.: ['received', 'rejected'])."""
        if not self._history:
            return [str(self._current_state)]
        return [str(self._history[0].from_state)] + [
            str(t.to_state) for t in self._history
        ]

    def get_state_summary(self) -> dict[str, Any]:
        """Resumo do estado atual para observability."""
        return {
            "machine_id": self._machine_id,
            "current_state": str(self._current_state),
            "is_terminal": self.is_terminal,
            "transition_count": len(self._history),
            "path": self.path(),
        }


def create_delivery_fsm(delivery_id: str) -> FSMStateMachine:
    """FSM de uma requisição de webhook, iniciando em RECEIVED."""
    return FSMStateMachine(
        transitions=DELIVERY_TRANSITIONS,
        initial_state=DELIVERY_INITIAL_STATE,
        terminal_states=DELIVERY_TERMINAL_STATES,
        machine_id=delivery_id,
    )


def create_job_fsm(
    job_id: str,
    initial_state: StrEnum | None = None,
) -> FSMStateMachine:
    """FSM de um job, retomando do status persistido quando informado."""
    return FSMStateMachine(
        transitions=JOB_TRANSITIONS,
        initial_state=initial_state or JOB_INITIAL_STATE,
        terminal_states=JOB_TERMINAL_STATES,
        machine_id=job_id,
    )
