"""
Exports públicos do módulo fsm/states.

Estados canônicos de frete e de assinatura.
"""

from fsm.states.freight import (
    FREIGHT_EXPIRABLE_STATES,
    FREIGHT_TERMINAL_STATES,
    FreightStatus,
    is_freight_terminal,
)
from fsm.states.subscription import (
    SUBSCRIPTION_ACCESS_STATES,
    SUBSCRIPTION_EXPIRY_TARGETS,
    SubscriptionState,
)

__all__ = [
    "FREIGHT_EXPIRABLE_STATES",
    "FREIGHT_TERMINAL_STATES",
    "SUBSCRIPTION_ACCESS_STATES",
    "SUBSCRIPTION_EXPIRY_TARGETS",
    "FreightStatus",
    "SubscriptionState",
    "is_freight_terminal",
]
