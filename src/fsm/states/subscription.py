"""
Estados canônicos de assinatura de conta.

Ciclo: none → trial_active → trial_used → paid → paid_expired → paid.
Nenhum estado é terminal: uma conta sempre pode voltar a pagar.
"""

from enum import StrEnum


class SubscriptionState(StrEnum):
    """
    Estados de assinatura.

    - NONE: Nunca assinou (trial ainda disponível)
    - TRIAL_ACTIVE: Período de teste de 7 dias em andamento
    - TRIAL_USED: Teste encerrado; não pode ser reativado
    - PAID: Plano pago vigente
    - PAID_EXPIRED: Plano pago vencido ou estornado
    """

    NONE = "none"
    TRIAL_ACTIVE = "trial_active"
    TRIAL_USED = "trial_used"
    PAID = "paid"
    PAID_EXPIRED = "paid_expired"

    def __str__(self) -> str:
        return self.value


# Estados que dão acesso à plataforma
SUBSCRIPTION_ACCESS_STATES: frozenset[SubscriptionState] = frozenset({
    SubscriptionState.TRIAL_ACTIVE,
    SubscriptionState.PAID,
})

# Estados com prazo: ao passar de expires_at viram o estado da direita
SUBSCRIPTION_EXPIRY_TARGETS: dict[SubscriptionState, SubscriptionState] = {
    SubscriptionState.TRIAL_ACTIVE: SubscriptionState.TRIAL_USED,
    SubscriptionState.PAID: SubscriptionState.PAID_EXPIRED,
}
