"""
Exports públicos do módulo fsm/types.

Tipos e estruturas de dados para transições de estado.
"""

from fsm.types.transition import StateGraph, StateTransition, TransitionResult

__all__ = [
    "StateGraph",
    "StateTransition",
    "TransitionResult",
]
