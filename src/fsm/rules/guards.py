"""
Guards aplicados antes de cada transição.

Guards recebem (from_state, to_state, terminal_states) e retornam
GuardResult; o primeiro deny interrompe a avaliação.
"""

from collections.abc import Callable
from enum import StrEnum


class GuardResult:
    """
    Resultado da avaliação de um guard.

    Attributes:
        allowed: Se a transição é permitida
        reason: Motivo do bloqueio (se allowed=False)
    """

    __slots__ = ("allowed", "reason")

    def __init__(self, allowed: bool, reason: str | None = None) -> None:
        self.allowed = allowed
        self.reason = reason

    @classmethod
    def allow(cls) -> "GuardResult":
        return cls(allowed=True)

    @classmethod
    def deny(cls, reason: str) -> "GuardResult":
        return cls(allowed=False, reason=reason)


Guard = Callable[[StrEnum, StrEnum, frozenset[StrEnum]], GuardResult]


def guard_terminal_state(
    from_state: StrEnum,
    to_state: StrEnum,
    terminal_states: frozenset[StrEnum],
) -> GuardResult:
    """Estados terminais não permitem saída (dead-letter nunca volta a rodar)."""
    if from_state in terminal_states:
        return GuardResult.deny(
            f"Estado {from_state.name} é terminal, não permite transição"
        )
    return GuardResult.allow()


def guard_same_state(
    from_state: StrEnum,
    to_state: StrEnum,
    terminal_states: frozenset[StrEnum],
) -> GuardResult:
    """Transições reflexivas nunca são permitidas."""
    if from_state == to_state:
        return GuardResult.deny(
            f"Transição reflexiva não permitida: {from_state.name} → {to_state.name}"
        )
    return GuardResult.allow()


def guard_same_machine(
    from_state: StrEnum,
    to_state: StrEnum,
    terminal_states: frozenset[StrEnum],
) -> GuardResult:
    """Origem e destino precisam pertencer ao mesmo enum de estados."""
    if type(from_state) is not type(to_state):
        return GuardResult.deny(
            f"Estados de máquinas diferentes: {from_state!r} → {to_state!r}"
        )
    return GuardResult.allow()


DEFAULT_GUARDS: list[Guard] = [
    guard_same_machine,
    guard_terminal_state,
    guard_same_state,
]


def evaluate_guards(
    from_state: StrEnum,
    to_state: StrEnum,
    terminal_states: frozenset[StrEnum],
    guards: list[Guard] | None = None,
) -> GuardResult:
    """
    Avalia todos os guards para uma transição.

    Returns:
        GuardResult do primeiro guard que negar, ou allow() se todos passarem
    """
    for guard in guards if guards is not None else DEFAULT_GUARDS:
        result = guard(from_state, to_state, terminal_states)
        if not result.allowed:
            return result
    return GuardResult.allow()
