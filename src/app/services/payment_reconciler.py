"""Payment Event Reconciler — aplica notificações PIX de forma idempotente.

O provedor entrega pelo menos uma vez, sem ordem e por horas. Fluxo:

1. Valida o payload (malformed → ack, não adianta reentregar)
2. Resolve a conta pelo correlationId (desconhecida → ack)
3. Consulta o ledger por `(charge_id, status)` (presente → duplicate)
4. Grava entrada do ledger e conta na MESMA transação
5. Ack

Falhas de infraestrutura propagam para que o transporte devolva erro e o
provedor reentregue; a idempotência torna a reentrega segura.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING, Any

from app.domain.payment_event import (
    DEFAULT_CORRELATION_PREFIX,
    STATE_CHANGING_STATUSES,
    ChargeStatus,
    MalformedEventError,
    PaymentEvent,
    parse_correlation_account_id,
    parse_payment_event,
)
from app.observability import record_latency, record_transition, record_webhook_outcome
from config.logging import mask_identifier
from utils.errors import LedgerConflictError, StaleWriteError

if TYPE_CHECKING:
    from app.domain.account import Account
    from app.protocols import ClockProtocol, EntityStoreProtocol
    from app.services.idempotency_ledger import IdempotencyLedger
    from app.services.subscription_lifecycle import SubscriptionLifecycleEngine

logger = logging.getLogger(__name__)


class AckOutcome(StrEnum):
    """Desfecho de um evento. Todos são reconhecidos (ack) ao provedor."""

    APPLIED = "applied"
    RECORDED = "recorded"
    DUPLICATE = "duplicate"
    SUPERSEDED = "superseded"
    MALFORMED = "malformed"
    UNKNOWN_ACCOUNT = "unknown_account"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True, slots=True)
class ReconcileAck:
    """Resultado de handle_event.

    Attributes:
        outcome: Desfecho do processamento
        account_id: Conta resolvida (quando houver)
        charge_status: Status da cobrança (quando parseável)
        detail: Motivo para triagem de operador (sem PII)
    """

    outcome: AckOutcome
    account_id: int | None = None
    charge_status: ChargeStatus | None = None
    detail: str | None = None

    @property
    def changed_state(self) -> bool:
        return self.outcome is AckOutcome.APPLIED


class PaymentEventReconciler:
    """Consome eventos de cobrança e aplica na assinatura exatamente uma vez."""

    def __init__(
        self,
        *,
        store: EntityStoreProtocol,
        ledger: IdempotencyLedger,
        subscriptions: SubscriptionLifecycleEngine,
        clock: ClockProtocol,
        correlation_prefix: str = DEFAULT_CORRELATION_PREFIX,
        max_retries: int = 3,
    ) -> None:
        self._store = store
        self._ledger = ledger
        self._subscriptions = subscriptions
        self._clock = clock
        self._correlation_prefix = correlation_prefix
        self._max_retries = max_retries

    async def handle_event(self, raw: Any) -> ReconcileAck:
        """Processa um payload bruto. Seguro para chamar N vezes."""
        start = time.perf_counter()
        ack = await self._reconcile(raw)
        record_webhook_outcome(
            ack.outcome.value,
            ack.charge_status.value if ack.charge_status else None,
        )
        record_latency("payment_reconciler", "handle_event", (time.perf_counter() - start) * 1000)
        return ack

    async def _reconcile(self, raw: Any) -> ReconcileAck:
        try:
            event = parse_payment_event(raw)
        except MalformedEventError as exc:
            logger.warning("payment_event_malformed", extra={"reason": str(exc)})
            return ReconcileAck(AckOutcome.MALFORMED, detail=str(exc))

        log_extra = {
            "charge_id": mask_identifier(event.charge_id),
            "charge_status": event.charge_status.value,
        }

        account_id = parse_correlation_account_id(event.correlation_id, self._correlation_prefix)
        account = None if account_id is None else await self._store.get_account(account_id)
        if account is None:
            logger.warning(
                "payment_event_unknown_account",
                extra={**log_extra, "correlation_id": mask_identifier(event.correlation_id)},
            )
            return ReconcileAck(
                AckOutcome.UNKNOWN_ACCOUNT,
                account_id=account_id,
                charge_status=event.charge_status,
                detail="correlation_not_resolved",
            )
        log_extra["account_id"] = mask_identifier(account.id)

        if await self._ledger.has_processed(event.charge_id, event.charge_status):
            logger.info("payment_event_duplicate", extra=log_extra)
            return self._ack(AckOutcome.DUPLICATE, account.id, event)

        if event.charge_status not in STATE_CHANGING_STATUSES:
            return await self._record_only(event, account.id, AckOutcome.RECORDED, log_extra)

        if event.charge_status is ChargeStatus.COMPLETED and await self._ledger.has_processed(
            event.charge_id, ChargeStatus.REFUNDED
        ):
            # Estorno da mesma cobrança chegou antes: não ressuscita o acesso
            logger.warning("payment_event_superseded", extra=log_extra)
            return await self._record_only(event, account.id, AckOutcome.SUPERSEDED, log_extra)

        return await self._apply(event, account, log_extra)

    async def _record_only(
        self,
        event: PaymentEvent,
        account_id: int,
        outcome: AckOutcome,
        log_extra: dict[str, Any],
    ) -> ReconcileAck:
        try:
            await self._ledger.mark_processed(
                event.charge_id,
                event.charge_status,
                event.occurred_at,
                account_id=account_id,
                provider_event_id=event.provider_event_id,
            )
        except LedgerConflictError:
            logger.info("payment_event_duplicate", extra=log_extra)
            return self._ack(AckOutcome.DUPLICATE, account_id, event)
        logger.info("payment_event_recorded", extra={**log_extra, "outcome": outcome.value})
        return self._ack(outcome, account_id, event)

    async def _apply(
        self,
        event: PaymentEvent,
        account: Account,
        log_extra: dict[str, Any],
    ) -> ReconcileAck:
        entry = self._ledger.build_entry(
            event.charge_id,
            event.charge_status,
            event.occurred_at,
            account_id=account.id,
            provider_event_id=event.provider_event_id,
        )
        if (
            event.charge_status is ChargeStatus.REFUNDED
            and account.basis_charge_id is not None
            and account.basis_charge_id != event.charge_id
        ):
            # Estorno de cobrança que não é a base da janela atual:
            # aplicado mesmo assim, mas sinalizado para triagem
            logger.warning(
                "payment_ordering_conflict_suspected",
                extra={
                    **log_extra,
                    "basis_charge_id": mask_identifier(account.basis_charge_id),
                },
            )

        last_error: StaleWriteError | None = None
        for attempt in range(1, self._max_retries + 1):
            now = self._clock.now()
            updated, transition = self._subscriptions.decide_payment(
                account,
                event.charge_status,
                event.plan_type,
                now,
                charge_id=event.charge_id,
                event_id=event.provider_event_id,
            )
            try:
                stored = await self._ledger.mark_processed_with(entry, updated, account.version)
            except LedgerConflictError:
                logger.info("payment_event_duplicate", extra=log_extra)
                return self._ack(AckOutcome.DUPLICATE, account.id, event)
            except StaleWriteError as exc:
                last_error = exc
                logger.info("account_write_stale", extra={**log_extra, "attempt": attempt})
                reloaded = await self._store.get_account(account.id)
                if reloaded is None:
                    raise
                account = reloaded
                continue

            if transition is not None:
                record_transition("subscription", transition)
            logger.info(
                "payment_event_applied",
                extra={
                    **log_extra,
                    "subscription_state": stored.subscription_state.value,
                    "expires_at": stored.expires_at.isoformat() if stored.expires_at else None,
                },
            )
            return self._ack(AckOutcome.APPLIED, account.id, event)

        logger.error("payment_event_retries_exhausted", extra=log_extra)
        raise last_error or StaleWriteError(f"account:{account.id}", account.version)

    @staticmethod
    def _ack(outcome: AckOutcome, account_id: int, event: PaymentEvent) -> ReconcileAck:
        return ReconcileAck(outcome, account_id=account_id, charge_status=event.charge_status)
