"""Testes do PaymentEventReconciler (entregas repetidas, fora de ordem, concorrentes)."""

from __future__ import annotations

import asyncio
import logging
from datetime import UTC, datetime, timedelta
from typing import Any

import pytest
import pytest_asyncio

from app.domain.account import Account
from app.domain.ledger import LedgerEntry
from app.infra.clock import FrozenClock
from app.infra.stores import MemoryEntityStore
from app.services import (
    AckOutcome,
    IdempotencyLedger,
    PaymentEventReconciler,
    SubscriptionLifecycleEngine,
)
from fsm import SubscriptionState
from utils.errors import RedisConnectionError, StaleWriteError

D0 = datetime(2026, 3, 2, 12, 0, tzinfo=UTC)
CORRELATION = "querofretes-10-1772452800000"


def _event(charge_id: str = "ch1", status: str = "COMPLETED", **overrides: Any) -> dict[str, Any]:
    payload = {
        "chargeId": charge_id,
        "correlationId": CORRELATION,
        "status": status,
        "planType": "monthly",
        "occurredAt": "2026-03-02T11:59:00Z",
    }
    payload.update(overrides)
    return payload


def _reconciler(store: MemoryEntityStore, clock: FrozenClock) -> PaymentEventReconciler:
    return PaymentEventReconciler(
        store=store,
        ledger=IdempotencyLedger(store, clock),
        subscriptions=SubscriptionLifecycleEngine(store, clock),
        clock=clock,
    )


@pytest_asyncio.fixture
async def reconciler(store, clock) -> PaymentEventReconciler:
    await store.insert_account(Account(id=10))
    return _reconciler(store, clock)


class TestApply:
    @pytest.mark.asyncio
    async def test_completed_grants_paid_window(self, reconciler, store) -> None:
        ack = await reconciler.handle_event(_event())

        assert ack.outcome is AckOutcome.APPLIED
        assert ack.changed_state is True
        account = await store.get_account(10)
        assert account.subscription_state is SubscriptionState.PAID
        assert account.expires_at == D0 + timedelta(days=30)
        assert account.basis_charge_id == "ch1"

    @pytest.mark.asyncio
    async def test_repeated_delivery_applies_once(self, reconciler, store) -> None:
        outcomes = [(await reconciler.handle_event(_event())).outcome for _ in range(5)]

        assert outcomes == [AckOutcome.APPLIED] + [AckOutcome.DUPLICATE] * 4
        assert store.ledger_size() == 1
        assert (await store.get_account(10)).version == 2

    @pytest.mark.asyncio
    async def test_concurrent_delivery_applies_once(self, interleaving_store, clock) -> None:
        await interleaving_store.insert_account(Account(id=10))
        reconciler = _reconciler(interleaving_store, clock)

        acks = await asyncio.gather(*(reconciler.handle_event(_event()) for _ in range(3)))

        # Todas as entregas leram a conta antes do primeiro commit
        assert [a.version for a in interleaving_store.account_reads] == [1, 1, 1]
        outcomes = sorted(a.outcome.value for a in acks)
        assert outcomes == ["applied", "duplicate", "duplicate"]
        assert interleaving_store.ledger_size() == 1
        assert (await interleaving_store.get_account(10)).version == 2

    @pytest.mark.asyncio
    async def test_refund_revokes_immediately(self, reconciler, store, clock) -> None:
        await reconciler.handle_event(_event())
        clock.advance(timedelta(days=3))

        ack = await reconciler.handle_event(_event(status="REFUNDED"))

        account = await store.get_account(10)
        assert ack.outcome is AckOutcome.APPLIED
        assert account.subscription_state is SubscriptionState.PAID_EXPIRED
        assert account.expires_at == D0 + timedelta(days=3)

    @pytest.mark.asyncio
    async def test_redelivery_after_prune_of_old_charge_is_duplicate(
        self, reconciler, store, clock
    ) -> None:
        """occurredAt antigo do provedor não antecipa a poda da entrada."""
        ledger = IdempotencyLedger(store, clock)
        first = await reconciler.handle_event(_event(occurredAt="2024-01-01T00:00:00Z"))
        assert first.outcome is AckOutcome.APPLIED

        await ledger.prune()
        clock.advance(timedelta(hours=1))
        again = await reconciler.handle_event(_event(occurredAt="2024-01-01T00:00:00Z"))

        assert again.outcome is AckOutcome.DUPLICATE
        account = await store.get_account(10)
        assert account.version == 2
        assert account.expires_at == D0 + timedelta(days=30)


class TestOutOfOrder:
    @pytest.mark.asyncio
    async def test_completed_after_refund_is_superseded(self, reconciler, store) -> None:
        await reconciler.handle_event(_event(status="REFUNDED"))

        ack = await reconciler.handle_event(_event())

        assert ack.outcome is AckOutcome.SUPERSEDED
        assert (await store.get_account(10)).subscription_state is SubscriptionState.PAID_EXPIRED
        assert store.ledger_size() == 2

    @pytest.mark.asyncio
    async def test_refund_of_other_charge_is_flagged(self, reconciler, store, caplog) -> None:
        caplog.set_level(logging.WARNING, logger="app.services.payment_reconciler")
        await reconciler.handle_event(_event("ch1"))

        ack = await reconciler.handle_event(_event("ch0", status="REFUNDED"))

        assert ack.outcome is AckOutcome.APPLIED
        assert "payment_ordering_conflict_suspected" in [r.getMessage() for r in caplog.records]


class TestAcknowledgedWithoutChange:
    @pytest.mark.asyncio
    async def test_audit_status_is_recorded(self, reconciler, store) -> None:
        ack = await reconciler.handle_event(_event(status="CREATED"))
        again = await reconciler.handle_event(_event(status="CREATED"))

        assert ack.outcome is AckOutcome.RECORDED
        assert again.outcome is AckOutcome.DUPLICATE
        assert (await store.get_account(10)).version == 1

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "raw",
        [
            "not-an-object",
            {"chargeId": "ch1"},
            _event(status="PAID_TWICE"),
            _event(occurredAt="ontem"),
        ],
    )
    async def test_malformed_is_acknowledged(self, reconciler, store, raw) -> None:
        ack = await reconciler.handle_event(raw)

        assert ack.outcome is AckOutcome.MALFORMED
        assert store.ledger_size() == 0

    @pytest.mark.asyncio
    @pytest.mark.parametrize("correlation_id", ["pedido-10", "querofretes-99-1772452800000"])
    async def test_unknown_account(self, reconciler, store, correlation_id) -> None:
        ack = await reconciler.handle_event(_event(correlationId=correlation_id))

        assert ack.outcome is AckOutcome.UNKNOWN_ACCOUNT
        assert store.ledger_size() == 0


class _StaleOnceStore(MemoryEntityStore):
    """Simula outra escrita na conta entre a leitura e o commit."""

    def __init__(self) -> None:
        super().__init__()
        self.stale_commits = 1

    async def commit_account_with_ledger(
        self, account: Account, expected_version: int, entry: LedgerEntry
    ) -> Account:
        if self.stale_commits > 0:
            self.stale_commits -= 1
            raise StaleWriteError(f"account:{account.id}", expected_version)
        return await super().commit_account_with_ledger(account, expected_version, entry)


class _UnavailableStore(MemoryEntityStore):
    async def get_account(self, account_id: int) -> Account | None:
        raise RedisConnectionError("Redis indisponível")


class TestInfrastructure:
    @pytest.mark.asyncio
    async def test_stale_account_is_reloaded(self) -> None:
        store = _StaleOnceStore()
        await store.insert_account(Account(id=10))
        reconciler = _reconciler(store, FrozenClock(D0))

        ack = await reconciler.handle_event(_event())

        assert ack.outcome is AckOutcome.APPLIED
        assert store.ledger_size() == 1

    @pytest.mark.asyncio
    async def test_store_failure_propagates_for_redelivery(self) -> None:
        reconciler = _reconciler(_UnavailableStore(), FrozenClock(D0))

        with pytest.raises(RedisConnectionError):
            await reconciler.handle_event(_event())

    @pytest.mark.asyncio
    async def test_ordering_warning_emitted_once_across_retries(self, caplog) -> None:
        store = _StaleOnceStore()
        await store.insert_account(Account(id=10))
        reconciler = _reconciler(store, FrozenClock(D0))
        await reconciler.handle_event(_event("ch1"))
        store.stale_commits = 1
        caplog.set_level(logging.WARNING, logger="app.services.payment_reconciler")

        ack = await reconciler.handle_event(_event("ch0", status="REFUNDED"))

        assert ack.outcome is AckOutcome.APPLIED
        messages = [r.getMessage() for r in caplog.records]
        assert messages.count("payment_ordering_conflict_suspected") == 1


class TestTransitionAudit:
    @pytest.mark.asyncio
    async def test_transition_origin_is_derived_state(self, store, clock, caplog) -> None:
        await store.insert_account(
            Account(
                id=10,
                subscription_state=SubscriptionState.PAID,
                expires_at=D0 - timedelta(days=1),
            )
        )
        reconciler = _reconciler(store, clock)
        caplog.set_level(logging.INFO, logger="app.observability.metrics")

        await reconciler.handle_event(_event())

        [record] = [r for r in caplog.records if r.getMessage() == "metric_transition"]
        assert (record.from_state, record.to_state, record.trigger) == (
            "paid_expired",
            "paid",
            "payment_completed",
        )
        assert record.metadata["entity_id"] == "account:10"
