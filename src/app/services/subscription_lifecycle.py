"""Subscription Lifecycle Engine — assinatura de cada conta.

Mesmo padrão do frete: `derive_state` lê o estado efetivo pelo relógio
(paid vencido é paid_expired, teste vencido é trial_used) e as mutações
partem desse estado derivado.

`apply_payment` é pura: o reconciliador grava o resultado acoplado à
entrada do ledger, nunca este engine.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict

from app.domain.account import Account
from app.domain.payment_event import ChargeStatus
from app.domain.results import LifecycleError, LifecycleResult
from app.domain.time_policy import PlanType, has_elapsed, plan_expiration, trial_expiration
from app.observability import record_transition
from app.services.authorization_guard import can_mutate_account
from fsm import (
    SUBSCRIPTION_ACCESS_STATES,
    SUBSCRIPTION_EXPIRY_TARGETS,
    SUBSCRIPTION_GRAPH,
    FSMStateMachine,
    StateTransition,
    SubscriptionState,
)
from utils.errors import StaleWriteError

if TYPE_CHECKING:
    from app.domain.actor import Actor
    from app.protocols import ClockProtocol, EntityStoreProtocol
    from config.settings import StoreSettings

logger = logging.getLogger(__name__)

# Plano assumido quando a cobrança confirmada não informa planType
DEFAULT_PLAN = PlanType.MONTHLY


def derive_state(account: Account, now: datetime) -> SubscriptionState:
    """Estado efetivo da assinatura no instante `now`.

    Um cancelamento pendente não muda nada aqui: a conta segue paid até
    `expires_at`.
    """
    expired_state = SUBSCRIPTION_EXPIRY_TARGETS.get(account.subscription_state)
    if expired_state is not None and has_elapsed(account.expires_at, now):
        return expired_state
    return account.subscription_state


def has_access(account: Account, now: datetime) -> bool:
    """Acesso pago liberado (teste ativo ou plano vigente)."""
    return derive_state(account, now) in SUBSCRIPTION_ACCESS_STATES


def decide_payment(
    account: Account,
    charge_status: ChargeStatus,
    plan_type: PlanType | None,
    now: datetime,
    *,
    charge_id: str | None = None,
    event_id: str | None = None,
) -> tuple[Account, StateTransition | None]:
    """Calcula a conta após um evento de pagamento já deduplicado.

    - completed: paid, janela de 30d (mensal) ou 365d (anual) a partir de now
    - refunded: paid_expired com expires_at = now (revogação imediata)
    - demais status: conta inalterada (só auditoria no ledger)

    Returns:
        Conta calculada e o registro da transição (None sem mudança de estado).

    Raises:
        ValueError: Transição recusada pela FSM de assinatura.
    """
    if charge_status is ChargeStatus.COMPLETED:
        target = SubscriptionState.PAID
    elif charge_status is ChargeStatus.REFUNDED:
        target = SubscriptionState.PAID_EXPIRED
    else:
        return account, None

    derived = derive_state(account, now)
    fsm = FSMStateMachine(SUBSCRIPTION_GRAPH, derived, entity_id=f"account:{account.id}")
    result = fsm.transition(target, trigger=f"payment_{charge_status.value}", timestamp=now)
    if not result.success:
        raise ValueError(result.error_reason)

    changes: dict[str, object] = {
        "subscription_state": target,
        "last_applied_event_id": event_id or charge_id,
        "updated_at": now,
    }
    if target is SubscriptionState.PAID:
        plan = plan_type or DEFAULT_PLAN
        changes.update(
            plan_type=plan,
            expires_at=plan_expiration(now, plan),
            cancel_pending=False,
            basis_charge_id=charge_id,
        )
    else:
        changes.update(expires_at=now, cancel_pending=False)

    return account.model_copy(update=changes), result.transition


def apply_payment(
    account: Account,
    charge_status: ChargeStatus,
    plan_type: PlanType | None,
    now: datetime,
    *,
    charge_id: str | None = None,
    event_id: str | None = None,
) -> Account:
    """Como `decide_payment`, devolvendo só a conta."""
    updated, _ = decide_payment(
        account, charge_status, plan_type, now, charge_id=charge_id, event_id=event_id
    )
    return updated


class SubscriptionView(BaseModel):
    """Leitura de assinatura exposta às camadas de UI (estado derivado)."""

    model_config = ConfigDict(frozen=True)

    account_id: int
    state: SubscriptionState
    trial_used: bool
    expires_at: datetime | None
    plan_type: PlanType | None
    cancel_pending: bool
    has_access: bool


class SubscriptionLifecycleEngine:
    """Operações de ciclo de vida de assinaturas."""

    def __init__(
        self,
        store: EntityStoreProtocol,
        clock: ClockProtocol,
        settings: StoreSettings | None = None,
    ) -> None:
        self._store = store
        self._clock = clock
        self._max_retries = settings.cas_max_retries if settings else 3

    async def open_account(self, account_id: int) -> Account:
        """Cria o registro de assinatura (estado none) se ainda não existir.

        Idempotente: chamadas repetidas ou concorrentes devolvem o mesmo registro.
        """
        existing = await self._store.get_account(account_id)
        if existing is not None:
            return existing
        try:
            account = await self._store.insert_account(
                Account(id=account_id, updated_at=self._clock.now())
            )
        except StaleWriteError:
            # Outro request criou primeiro
            account = await self._store.get_account(account_id)
            if account is None:
                raise
            return account
        logger.info("account_opened", extra={"account_id": account_id})
        return account

    async def activate_trial(self, account_id: int, actor: Actor) -> LifecycleResult[Account]:
        """Ativa o período de teste de 7 dias.

        `trial_used` é gravado junto com a ativação e a escrita é CAS na
        versão da conta: de dois requests concorrentes, o perdedor
        recarrega, vê `trial_used` e recebe already_used.
        """
        last_error: StaleWriteError | None = None
        for attempt in range(1, self._max_retries + 1):
            account = await self._store.get_account(account_id)
            if account is None:
                return LifecycleResult.failure(LifecycleError.NOT_FOUND)
            if not can_mutate_account(actor, account):
                return LifecycleResult.failure(LifecycleError.FORBIDDEN)
            if account.trial_used:
                return LifecycleResult.failure(
                    LifecycleError.ALREADY_USED, "período de teste já utilizado"
                )

            now = self._clock.now()
            derived = derive_state(account, now)
            if derived is SubscriptionState.PAID:
                return LifecycleResult.failure(
                    LifecycleError.ALREADY_ACTIVE, "assinatura paga vigente"
                )

            fsm = FSMStateMachine(SUBSCRIPTION_GRAPH, derived, entity_id=f"account:{account_id}")
            result = fsm.transition(
                SubscriptionState.TRIAL_ACTIVE, trigger="activate_trial", timestamp=now
            )
            if not result.success:
                return LifecycleResult.failure(
                    LifecycleError.INVALID_TRANSITION, result.error_reason
                )

            updated = account.model_copy(
                update={
                    "subscription_state": SubscriptionState.TRIAL_ACTIVE,
                    "trial_used": True,
                    "expires_at": trial_expiration(now),
                    "updated_at": now,
                }
            )
            try:
                stored = await self._store.update_account(updated, account.version)
            except StaleWriteError as exc:
                last_error = exc
                logger.info(
                    "account_write_stale",
                    extra={"account_id": account_id, "attempt": attempt},
                )
                continue

            record_transition("subscription", result.transition)
            logger.info(
                "trial_activated",
                extra={"account_id": account_id, "expires_at": stored.expires_at.isoformat()},
            )
            return LifecycleResult.success(stored)

        raise last_error or StaleWriteError(f"account:{account_id}", -1)

    async def cancel_subscription(self, account_id: int, actor: Actor) -> LifecycleResult[Account]:
        """Marca a assinatura paga para não renovar.

        O acesso não é revogado: a conta segue paid até `expires_at`.
        Só uma assinatura paga vigente pode ser cancelada.
        """
        last_error: StaleWriteError | None = None
        for attempt in range(1, self._max_retries + 1):
            account = await self._store.get_account(account_id)
            if account is None:
                return LifecycleResult.failure(LifecycleError.NOT_FOUND)
            if not can_mutate_account(actor, account):
                return LifecycleResult.failure(LifecycleError.FORBIDDEN)

            now = self._clock.now()
            if derive_state(account, now) is not SubscriptionState.PAID:
                return LifecycleResult.failure(
                    LifecycleError.INVALID_TRANSITION, "nenhuma assinatura paga vigente"
                )
            if account.cancel_pending:
                return LifecycleResult.success(account)

            updated = account.model_copy(update={"cancel_pending": True, "updated_at": now})
            try:
                stored = await self._store.update_account(updated, account.version)
            except StaleWriteError as exc:
                last_error = exc
                logger.info(
                    "account_write_stale",
                    extra={"account_id": account_id, "attempt": attempt},
                )
                continue

            logger.info("subscription_cancel_requested", extra={"account_id": account_id})
            return LifecycleResult.success(stored)

        raise last_error or StaleWriteError(f"account:{account_id}", -1)

    def decide_payment(
        self,
        account: Account,
        charge_status: ChargeStatus,
        plan_type: PlanType | None,
        now: datetime,
        *,
        charge_id: str | None = None,
        event_id: str | None = None,
    ) -> tuple[Account, StateTransition | None]:
        return decide_payment(
            account, charge_status, plan_type, now, charge_id=charge_id, event_id=event_id
        )

    def has_access(self, account: Account) -> bool:
        return has_access(account, self._clock.now())

    async def get(self, account_id: int) -> Account | None:
        return await self._store.get_account(account_id)

    def view(self, account: Account) -> SubscriptionView:
        now = self._clock.now()
        return SubscriptionView(
            account_id=account.id,
            state=derive_state(account, now),
            trial_used=account.trial_used,
            expires_at=account.expires_at,
            plan_type=account.plan_type,
            cancel_pending=account.cancel_pending,
            has_access=has_access(account, now),
        )
