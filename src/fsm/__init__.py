"""
Módulo FSM — Máquinas de estado de frete e de assinatura.

Implementa FSMs determinísticas que governam as transições
dos dois agregados do núcleo. Expiração não é uma escrita:
os engines partem sempre do estado derivado pelo relógio.

Estrutura:
    - states/: FreightStatus e SubscriptionState
    - transitions/: FREIGHT_GRAPH e SUBSCRIPTION_GRAPH
    - rules/: Guards e invariantes
    - manager/: Máquina de estados (FSMStateMachine)
    - types/: StateGraph, StateTransition, TransitionResult
"""

from fsm.manager import FSMStateMachine
from fsm.rules import GuardResult, evaluate_guards
from fsm.states import (
    FREIGHT_EXPIRABLE_STATES,
    FREIGHT_TERMINAL_STATES,
    SUBSCRIPTION_ACCESS_STATES,
    SUBSCRIPTION_EXPIRY_TARGETS,
    FreightStatus,
    SubscriptionState,
    is_freight_terminal,
)
from fsm.transitions import (
    FREIGHT_GRAPH,
    SUBSCRIPTION_GRAPH,
    is_transition_valid,
    validate_graph,
)
from fsm.types import StateGraph, StateTransition, TransitionResult

__all__ = [
    "FREIGHT_EXPIRABLE_STATES",
    "FREIGHT_GRAPH",
    "FREIGHT_TERMINAL_STATES",
    "SUBSCRIPTION_ACCESS_STATES",
    "SUBSCRIPTION_EXPIRY_TARGETS",
    "SUBSCRIPTION_GRAPH",
    "FSMStateMachine",
    "FreightStatus",
    "GuardResult",
    "StateGraph",
    "StateTransition",
    "SubscriptionState",
    "TransitionResult",
    "evaluate_guards",
    "is_freight_terminal",
    "is_transition_valid",
    "validate_graph",
]
