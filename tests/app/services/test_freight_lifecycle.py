"""Testes do FreightLifecycleEngine (relógio congelado + store em memória)."""

from __future__ import annotations

import logging
from datetime import UTC, datetime, timedelta

import pytest

from app.domain.actor import Actor, Role
from app.domain.freight import Freight, FreightDraft
from app.domain.results import LifecycleError
from app.infra.clock import FrozenClock
from app.infra.stores import MemoryEntityStore
from app.services import FreightLifecycleEngine, derive_status
from fsm import FreightStatus
from utils.errors import StaleWriteError

D0 = datetime(2026, 3, 2, 12, 0, tzinfo=UTC)
DRAFT = FreightDraft(origin="Campinas/SP", destination="Curitiba/PR")


@pytest.fixture
def engine(store, clock) -> FreightLifecycleEngine:
    return FreightLifecycleEngine(store, clock)


async def _published(engine: FreightLifecycleEngine, actor: Actor) -> Freight:
    result = await engine.create(DRAFT, actor)
    assert result.ok
    return result.value


class TestDeriveStatus:
    def test_active_expires_strictly_after_deadline(self) -> None:
        freight = Freight(
            id=1,
            origin="a",
            destination="b",
            expiration_instant=D0,
            created_at=D0,
            updated_at=D0,
        )

        assert derive_status(freight, D0) is FreightStatus.ACTIVE
        assert derive_status(freight, D0 + timedelta(microseconds=1)) is FreightStatus.EXPIRED

    def test_open_without_deadline_never_expires(self) -> None:
        freight = Freight(
            id=1, origin="a", destination="b", status=FreightStatus.OPEN,
            created_at=D0, updated_at=D0,
        )

        assert derive_status(freight, D0 + timedelta(days=3650)) is FreightStatus.OPEN

    def test_terminal_ignores_deadline(self) -> None:
        freight = Freight(
            id=1, origin="a", destination="b", status=FreightStatus.COMPLETED,
            expiration_instant=D0, created_at=D0, updated_at=D0,
        )

        assert derive_status(freight, D0 + timedelta(days=1)) is FreightStatus.COMPLETED


class TestCreate:
    @pytest.mark.asyncio
    async def test_create_active_with_24h_window(self, engine, owner) -> None:
        freight = await _published(engine, owner)

        assert freight.status is FreightStatus.ACTIVE
        assert freight.expiration_instant == D0 + timedelta(hours=24)
        assert freight.owner_account_id == 10
        assert freight.owner_client_id == 7

    @pytest.mark.asyncio
    async def test_create_no_expiry_is_open(self, engine, owner) -> None:
        result = await engine.create(DRAFT.model_copy(update={"no_expiry": True}), owner)

        assert result.value.status is FreightStatus.OPEN
        assert result.value.expiration_instant is None

    @pytest.mark.asyncio
    async def test_driver_cannot_create(self, engine, driver, store) -> None:
        result = await engine.create(DRAFT, driver)

        assert result.error is LifecycleError.FORBIDDEN
        assert await store.get_freight(1) is None


class TestReactivationCycle:
    @pytest.mark.asyncio
    async def test_expired_freight_reactivates_from_now(self, engine, owner, clock) -> None:
        freight = await _published(engine, owner)

        clock.set(D0 + timedelta(hours=25))
        assert engine.view(freight).status is FreightStatus.EXPIRED

        result = await engine.reactivate(freight.id, owner)

        assert result.ok
        assert result.value.expiration_instant == D0 + timedelta(hours=49)
        assert engine.view(result.value).status is FreightStatus.ACTIVE

    @pytest.mark.asyncio
    async def test_reactivating_active_extends_window(self, engine, owner, clock) -> None:
        freight = await _published(engine, owner)
        clock.advance(timedelta(hours=2))

        result = await engine.reactivate(freight.id, owner)

        assert result.value.expiration_instant == D0 + timedelta(hours=26)

    @pytest.mark.asyncio
    async def test_reactivating_open_gains_window(self, engine, owner) -> None:
        created = await engine.create(DRAFT.model_copy(update={"no_expiry": True}), owner)

        result = await engine.reactivate(created.value.id, owner)

        assert result.value.status is FreightStatus.ACTIVE
        assert result.value.expiration_instant == D0 + timedelta(hours=24)


class TestTerminalStates:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("operation", ["reactivate", "complete", "cancel"])
    async def test_completed_freight_is_immutable(self, engine, owner, admin, operation) -> None:
        freight = await _published(engine, owner)
        await engine.complete(freight.id, owner)

        result = await getattr(engine, operation)(freight.id, admin)

        assert result.error is LifecycleError.INVALID_TRANSITION

    @pytest.mark.asyncio
    async def test_cancelled_freight_rejects_edit(self, engine, owner) -> None:
        freight = await _published(engine, owner)
        await engine.cancel(freight.id, owner)

        result = await engine.edit(freight.id, owner, origin="Santos/SP")

        assert result.error is LifecycleError.INVALID_TRANSITION

    @pytest.mark.asyncio
    async def test_expired_freight_can_be_completed(self, engine, owner, clock) -> None:
        freight = await _published(engine, owner)
        clock.advance(timedelta(days=2))

        result = await engine.complete(freight.id, owner)

        assert result.value.status is FreightStatus.COMPLETED


class TestAuthorization:
    @pytest.mark.asyncio
    async def test_other_shipper_forbidden(self, engine, owner) -> None:
        freight = await _published(engine, owner)

        result = await engine.cancel(freight.id, Actor(11, Role.SHIPPER, 99))

        assert result.error is LifecycleError.FORBIDDEN

    @pytest.mark.asyncio
    async def test_driver_forbidden(self, engine, owner, driver) -> None:
        freight = await _published(engine, owner)

        result = await engine.reactivate(freight.id, driver)

        assert result.error is LifecycleError.FORBIDDEN

    @pytest.mark.asyncio
    async def test_admin_may_mutate(self, engine, owner, admin) -> None:
        freight = await _published(engine, owner)

        result = await engine.cancel(freight.id, admin)

        assert result.value.status is FreightStatus.CANCELLED

    @pytest.mark.asyncio
    async def test_missing_freight_not_found(self, engine, admin) -> None:
        result = await engine.complete(404, admin)

        assert result.error is LifecycleError.NOT_FOUND


class TestEdit:
    @pytest.mark.asyncio
    async def test_edit_keeps_status_and_deadline(self, engine, owner, clock) -> None:
        freight = await _published(engine, owner)
        clock.advance(timedelta(hours=1))

        result = await engine.edit(freight.id, owner, destination="Joinville/SC")

        assert result.value.destination == "Joinville/SC"
        assert result.value.origin == freight.origin
        assert result.value.expiration_instant == freight.expiration_instant
        assert result.value.version == freight.version + 1

    @pytest.mark.asyncio
    async def test_edit_without_changes_does_not_write(self, engine, owner, store) -> None:
        freight = await _published(engine, owner)

        result = await engine.edit(freight.id, owner)

        assert result.ok
        assert (await store.get_freight(freight.id)).version == freight.version


class TestListing:
    @pytest.mark.asyncio
    async def test_lists_by_owner_with_derived_status(self, engine, owner, clock) -> None:
        other = Actor(11, Role.SHIPPER)
        first = await _published(engine, owner)
        await _published(engine, other)
        clock.set(D0 + timedelta(hours=25))

        views = await engine.list_freights(owner_account_id=owner.id)

        assert [v.id for v in views] == [first.id]
        assert views[0].status is FreightStatus.EXPIRED
        assert len(await engine.list_freights()) == 2

    @pytest.mark.asyncio
    async def test_status_filter_uses_derived_status(self, engine, owner, clock) -> None:
        stale = await _published(engine, owner)
        clock.set(D0 + timedelta(hours=25))
        fresh = await _published(engine, owner)

        active = await engine.list_freights(status=FreightStatus.ACTIVE)
        expired = await engine.list_freights(status=FreightStatus.EXPIRED)

        assert [v.id for v in active] == [fresh.id]
        assert [v.id for v in expired] == [stale.id]


class TestAuditTrail:
    @pytest.mark.asyncio
    async def test_transition_logged_from_derived_status(
        self, engine, owner, clock, caplog
    ) -> None:
        freight = await _published(engine, owner)
        clock.set(D0 + timedelta(hours=25))
        caplog.set_level(logging.INFO, logger="app.observability.metrics")

        await engine.reactivate(freight.id, owner)

        [record] = [r for r in caplog.records if r.getMessage() == "metric_transition"]
        assert record.component == "freight"
        assert (record.from_state, record.to_state, record.trigger) == (
            "expired",
            "active",
            "reactivate",
        )
        assert record.timestamp == clock.now().isoformat()
        assert record.metadata == {"graph": "freight", "entity_id": f"freight:{freight.id}"}

    @pytest.mark.asyncio
    async def test_edit_logs_no_transition(self, engine, owner, caplog) -> None:
        freight = await _published(engine, owner)
        caplog.set_level(logging.INFO, logger="app.observability.metrics")

        await engine.edit(freight.id, owner, origin="Santos/SP")

        assert "metric_transition" not in [r.getMessage() for r in caplog.records]


class _FlakyStore(MemoryEntityStore):
    """Perde a corrida de escrita nas primeiras `failures` tentativas."""

    def __init__(self, failures: int) -> None:
        super().__init__()
        self.failures = failures

    async def update_freight(self, freight: Freight, expected_version: int) -> Freight:
        if self.failures > 0:
            self.failures -= 1
            raise StaleWriteError(f"freight:{freight.id}", expected_version)
        return await super().update_freight(freight, expected_version)


class TestConcurrency:
    @pytest.mark.asyncio
    async def test_stale_write_is_retried(self, owner) -> None:
        store = _FlakyStore(failures=1)
        engine = FreightLifecycleEngine(store, FrozenClock(D0))
        freight = await _published(engine, owner)

        result = await engine.cancel(freight.id, owner)

        assert result.value.status is FreightStatus.CANCELLED

    @pytest.mark.asyncio
    async def test_retries_exhausted_propagates(self, owner) -> None:
        store = _FlakyStore(failures=10)
        engine = FreightLifecycleEngine(store, FrozenClock(D0))
        freight = await _published(engine, owner)

        with pytest.raises(StaleWriteError):
            await engine.cancel(freight.id, owner)
