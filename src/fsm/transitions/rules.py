"""
Grafos de transição das máquinas de entrega e de job.

Chave: estado de origem. Valor: estados de destino permitidos.
Estados terminais mapeiam para conjunto vazio.
"""

from enum import StrEnum

from fsm.states.delivery import DELIVERY_TERMINAL_STATES, DeliveryState
from fsm.states.job import JOB_TERMINAL_STATES, JobState

TransitionMap = dict[StrEnum, frozenset[StrEnum]]

DELIVERY_TRANSITIONS: TransitionMap = {
    DeliveryState.RECEIVED: frozenset({
        DeliveryState.SIZE_CHECKED,
        DeliveryState.REJECTED,  # IP bloqueado, rate limit, tamanho
    }),
    DeliveryState.SIZE_CHECKED: frozenset({
        DeliveryState.SIGNATURE_CHECKED,
        DeliveryState.REJECTED,
    }),
    DeliveryState.SIGNATURE_CHECKED: frozenset({
        DeliveryState.TIMESTAMP_CHECKED,
        DeliveryState.REJECTED,
    }),
    DeliveryState.TIMESTAMP_CHECKED: frozenset({
        DeliveryState.DEDUP_CHECKED,
        DeliveryState.REJECTED,  # JSON/schema inválido
    }),
    DeliveryState.DEDUP_CHECKED: frozenset({
        DeliveryState.ENQUEUED,
        DeliveryState.ACKNOWLEDGED,  # duplicata
        DeliveryState.REJECTED,  # falha no enqueue
    }),
    DeliveryState.ENQUEUED: frozenset({
        DeliveryState.ACKNOWLEDGED,
    }),
    DeliveryState.ACKNOWLEDGED: frozenset(),
    DeliveryState.REJECTED: frozenset(),
}

JOB_TRANSITIONS: TransitionMap = {
    JobState.PENDING: frozenset({JobState.RUNNING}),
    JobState.RUNNING: frozenset({
        JobState.COMPLETED,
        JobState.RETRYING,
        JobState.DEAD_LETTERED,
    }),
    JobState.RETRYING: frozenset({JobState.RUNNING}),
    JobState.COMPLETED: frozenset(),
    JobState.DEAD_LETTERED: frozenset(),
}


def get_valid_targets(
    transitions: TransitionMap,
    state: StrEnum,
) -> frozenset[StrEnum]:
    """Retorna os destinos válidos (vazio se terminal ou desconhecido)."""
    return transitions.get(state, frozenset())


def is_transition_valid(
    transitions: TransitionMap,
    from_state: StrEnum,
    to_state: StrEnum,
) -> bool:
    """Verifica se a aresta from_state → to_state existe no grafo."""
    return to_state in get_valid_targets(transitions, from_state)


def validate_transition_map(
    transitions: TransitionMap,
    states: type[StrEnum],
    terminal_states: frozenset[StrEnum],
) -> list[str]:
    """
    Valida a integridade de um grafo de transições.

    Verifica:
    - Todos os estados do enum estão no mapa
    - Estados terminais têm conjunto vazio
    - Nenhuma transição aponta para estado de outro enum

    Returns:
        Lista de erros encontrados (vazia se válido)
    """
    errors: list[str] = []

    for state in states:
        if state not in transitions:
            errors.append(f"Estado {state.name} ausente no mapa de transições")

    for state in terminal_states:
        if transitions.get(state):
            errors.append(f"Estado terminal {state.name} não deveria ter transições")

    for from_state, targets in transitions.items():
        for target in targets:
            if not isinstance(target, states):
                errors.append(
                    f"Transição {from_state.name} → {target}: destino inválido"
                )

    return errors


def validate_all_transition_maps() -> list[str]:
    """Valida os grafos de entrega e de job."""
    return validate_transition_map(
        DELIVERY_TRANSITIONS, DeliveryState, DELIVERY_TERMINAL_STATES
    ) + validate_transition_map(JOB_TRANSITIONS, JobState, JOB_TERMINAL_STATES)
