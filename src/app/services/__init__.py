"""Serviços de aplicação.

Engines de ciclo de vida, reconciliador de pagamentos, ledger e guard.
Implementações concretas de IO ficam em app/infra/.
"""

from app.services.authorization_guard import can_mutate_account, can_mutate_freight
from app.services.freight_lifecycle import (
    FreightLifecycleEngine,
    FreightView,
    derive_status,
)
from app.services.idempotency_ledger import IdempotencyLedger
from app.services.payment_reconciler import (
    AckOutcome,
    PaymentEventReconciler,
    ReconcileAck,
)
from app.services.subscription_lifecycle import (
    SubscriptionLifecycleEngine,
    SubscriptionView,
    apply_payment,
    decide_payment,
    derive_state,
    has_access,
)

__all__ = [
    "AckOutcome",
    "FreightLifecycleEngine",
    "FreightView",
    "IdempotencyLedger",
    "PaymentEventReconciler",
    "ReconcileAck",
    "SubscriptionLifecycleEngine",
    "SubscriptionView",
    "apply_payment",
    "can_mutate_account",
    "can_mutate_freight",
    "decide_payment",
    "derive_state",
    "derive_status",
    "has_access",
]
