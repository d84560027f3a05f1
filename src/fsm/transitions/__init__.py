"""
Exports públicos do módulo fsm/transitions.

Grafos de transição de frete e de assinatura.
"""

from fsm.transitions.rules import (
    FREIGHT_GRAPH,
    SUBSCRIPTION_GRAPH,
    is_transition_valid,
    validate_graph,
)

__all__ = [
    "FREIGHT_GRAPH",
    "SUBSCRIPTION_GRAPH",
    "is_transition_valid",
    "validate_graph",
]
