"""
Máquina de estados (FSMStateMachine) genérica sobre um StateGraph.

Os engines de frete e de assinatura instanciam uma máquina por operação,
partindo do estado DERIVADO (já considerando o relógio), e usam o
resultado para decidir se a escrita acontece. A transição devolvida é
o registro de auditoria que o engine loga depois da escrita.
"""

from datetime import datetime
from enum import StrEnum
from typing import Any

from fsm.rules.guards import GuardResult, evaluate_guards
from fsm.transitions.rules import is_transition_valid
from fsm.types.transition import StateGraph, StateTransition, TransitionResult


class FSMStateMachine:
    """
    Máquina de estados de um agregado (frete ou conta).

    Attributes:
        graph: Grafo de transições do agregado
        current_state: Estado atual da máquina
        entity_id: Identificador do agregado, carimbado na auditoria
    """

    __slots__ = ("_current_state", "_entity_id", "_graph")

    def __init__(
        self,
        graph: StateGraph,
        initial_state: StrEnum,
        entity_id: str = "",
    ) -> None:
        """
        Inicializa a máquina de estados.

        Args:
            graph: Grafo de transições
            initial_state: Estado de partida (derivado, não o armazenado)
            entity_id: Identificador do agregado para logs (ex: "freight:42")
        """
        self._graph = graph
        self._current_state = initial_state
        self._entity_id = entity_id

    @property
    def graph(self) -> StateGraph:
        return self._graph

    @property
    def current_state(self) -> StrEnum:
        """Estado atual da máquina."""
        return self._current_state

    @property
    def entity_id(self) -> str:
        return self._entity_id

    @property
    def is_terminal(self) -> bool:
        """Verifica se está em estado terminal."""
        return self._current_state in self._graph.terminal_states

    def transition(
        self,
        target: StrEnum,
        trigger: str,
        timestamp: datetime,
        metadata: dict[str, Any] | None = None,
    ) -> TransitionResult:
        """
        Tenta realizar uma transição de estado.

        Args:
            target: Estado de destino
            trigger: Identificador do gatilho (ex: 'reactivate', 'payment_refunded')
            timestamp: Instante da transição (do relógio injetado)
            metadata: Dados adicionais para auditoria (nunca PII)

        Returns:
            TransitionResult com sucesso/falha e dados da transição
        """
        if not is_transition_valid(self._graph, self._current_state, target):
            return TransitionResult(
                success=False,
                error_reason=(
                    f"Transição inválida: {self._current_state.name} → {target.name}"
                ),
            )

        guard_result: GuardResult = evaluate_guards(
            self._graph, self._current_state, target
        )
        if not guard_result.allowed:
            return TransitionResult(
                success=False,
                error_reason=guard_result.reason,
            )

        audit = {"graph": self._graph.name, **(metadata or {})}
        if self._entity_id:
            audit["entity_id"] = self._entity_id
        transition = StateTransition(
            from_state=self._current_state,
            to_state=target,
            trigger=trigger,
            timestamp=timestamp,
            metadata=audit,
        )

        self._current_state = target

        return TransitionResult(success=True, transition=transition)
