"""
Guards e invariantes para transições de estado.

Guards são regras adicionais ao grafo que podem bloquear uma transição.
Todos recebem o grafo do agregado para funcionar com frete e assinatura.
"""

from collections.abc import Callable
from enum import StrEnum

from fsm.types.transition import StateGraph


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
        """Cria resultado permitindo a transição."""
        return cls(allowed=True)

    @classmethod
    def deny(cls, reason: str) -> "GuardResult":
        """Cria resultado negando a transição."""
        return cls(allowed=False, reason=reason)


Guard = Callable[[StateGraph, StrEnum, StrEnum], GuardResult]


def guard_valid_state(
    graph: StateGraph,
    from_state: StrEnum,
    to_state: StrEnum,
) -> GuardResult:
    """Guard: ambos os estados pertencem ao grafo."""
    if from_state not in graph.transitions:
        return GuardResult.deny(f"Estado de origem inválido: {from_state}")

    if to_state not in graph.transitions:
        return GuardResult.deny(f"Estado de destino inválido: {to_state}")

    return GuardResult.allow()


def guard_terminal_state(
    graph: StateGraph,
    from_state: StrEnum,
    to_state: StrEnum,
) -> GuardResult:
    """Guard: estados terminais não permitem saída."""
    del to_state
    if from_state in graph.terminal_states:
        return GuardResult.deny(
            f"Estado {from_state.name} é terminal, não permite transição"
        )
    return GuardResult.allow()


def guard_same_state(
    graph: StateGraph,
    from_state: StrEnum,
    to_state: StrEnum,
) -> GuardResult:
    """
    Guard: transição reflexiva só onde o grafo declara.

    Ex.: ACTIVE → ACTIVE (reativação estende a janela), PAID → PAID (renovação).
    """
    if from_state != to_state:
        return GuardResult.allow()

    if from_state in graph.reflexive_states:
        return GuardResult.allow()

    return GuardResult.deny(
        f"Transição reflexiva não permitida: {from_state.name} → {to_state.name}"
    )


# Aplicados em ordem; todos devem retornar allow() para a transição prosseguir
DEFAULT_GUARDS: list[Guard] = [
    guard_valid_state,
    guard_terminal_state,
    guard_same_state,
]


def evaluate_guards(
    graph: StateGraph,
    from_state: StrEnum,
    to_state: StrEnum,
    guards: list[Guard] | None = None,
) -> GuardResult:
    """
    Avalia todos os guards para uma transição.

    Returns:
        GuardResult do primeiro guard que negar, ou allow() se todos passarem
    """
    guards_to_apply = guards if guards is not None else DEFAULT_GUARDS

    for guard in guards_to_apply:
        result = guard(graph, from_state, to_state)
        if not result.allowed:
            return result

    return GuardResult.allow()
