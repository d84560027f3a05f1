"""Testes do MemoryEntityStore."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest

from app.domain.account import Account
from app.domain.freight import Freight
from app.domain.ledger import LedgerEntry
from app.domain.payment_event import ChargeStatus
from app.infra.stores import MemoryEntityStore
from utils.errors import LedgerConflictError, StaleWriteError

NOW = datetime(2026, 3, 2, 12, 0, tzinfo=UTC)


def _freight() -> Freight:
    return Freight(origin="a", destination="b", created_at=NOW, updated_at=NOW)


def _entry(
    charge_id: str = "c1",
    *,
    occurred_at: datetime = NOW,
    recorded_at: datetime = NOW,
    account_id: int | None = None,
) -> LedgerEntry:
    return LedgerEntry(
        charge_id=charge_id,
        charge_status=ChargeStatus.COMPLETED,
        occurred_at=occurred_at,
        recorded_at=recorded_at,
        account_id=account_id,
    )


class TestFreights:
    @pytest.mark.asyncio
    async def test_insert_assigns_sequential_ids(self) -> None:
        store = MemoryEntityStore()

        first = await store.insert_freight(_freight())
        second = await store.insert_freight(_freight())

        assert (first.id, second.id) == (1, 2)
        assert first.version == 1
        assert await store.get_freight(1) == first

    @pytest.mark.asyncio
    async def test_update_is_compare_and_set(self) -> None:
        store = MemoryEntityStore()
        stored = await store.insert_freight(_freight())

        updated = await store.update_freight(stored.model_copy(update={"origin": "x"}), 1)

        assert updated.version == 2
        with pytest.raises(StaleWriteError):
            await store.update_freight(stored.model_copy(update={"origin": "y"}), 1)
        assert (await store.get_freight(stored.id)).origin == "x"

    @pytest.mark.asyncio
    async def test_list_filters_by_owner_in_id_order(self) -> None:
        store = MemoryEntityStore()
        await store.insert_freight(_freight().model_copy(update={"owner_account_id": 10}))
        await store.insert_freight(_freight().model_copy(update={"owner_account_id": 11}))
        await store.insert_freight(_freight().model_copy(update={"owner_account_id": 10}))

        assert [f.id for f in await store.list_freights()] == [1, 2, 3]
        assert [f.id for f in await store.list_freights(10)] == [1, 3]
        assert await store.list_freights(99) == []


class TestAccounts:
    @pytest.mark.asyncio
    async def test_insert_twice_is_stale(self) -> None:
        store = MemoryEntityStore()
        await store.insert_account(Account(id=5))

        with pytest.raises(StaleWriteError):
            await store.insert_account(Account(id=5))


class TestLedger:
    @pytest.mark.asyncio
    async def test_unique_insert(self) -> None:
        store = MemoryEntityStore()
        await store.insert_ledger_entry(_entry())

        with pytest.raises(LedgerConflictError):
            await store.insert_ledger_entry(_entry())
        assert store.ledger_size() == 1

    @pytest.mark.asyncio
    async def test_commit_with_ledger_writes_both(self) -> None:
        store = MemoryEntityStore()
        account = await store.insert_account(Account(id=5))

        stored = await store.commit_account_with_ledger(
            account.model_copy(update={"trial_used": True}), 1, _entry()
        )

        assert stored.version == 2
        assert (await store.get_account(5)).trial_used is True
        assert await store.get_ledger_entry(_entry().key) is not None

    @pytest.mark.asyncio
    async def test_commit_with_ledger_writes_nothing_when_stale(self) -> None:
        store = MemoryEntityStore()
        account = await store.insert_account(Account(id=5))

        with pytest.raises(StaleWriteError):
            await store.commit_account_with_ledger(account, 7, _entry())

        assert store.ledger_size() == 0

    @pytest.mark.asyncio
    async def test_commit_with_ledger_conflict_leaves_account(self) -> None:
        store = MemoryEntityStore()
        account = await store.insert_account(Account(id=5))
        await store.insert_ledger_entry(_entry())

        with pytest.raises(LedgerConflictError):
            await store.commit_account_with_ledger(
                account.model_copy(update={"trial_used": True}), 1, _entry()
            )

        assert (await store.get_account(5)).version == 1

    @pytest.mark.asyncio
    async def test_delete_before_cutoff_uses_recorded_at(self) -> None:
        store = MemoryEntityStore()
        await store.insert_ledger_entry(_entry("old", recorded_at=NOW - timedelta(days=400)))
        # Evento antigo no provedor, mas gravado agora: fica
        await store.insert_ledger_entry(
            _entry("late", occurred_at=NOW - timedelta(days=800), recorded_at=NOW)
        )

        deleted = await store.delete_ledger_entries_before(NOW - timedelta(days=365))

        assert deleted == 1
        assert store.ledger_size() == 1
        assert await store.get_ledger_entry(_entry("late").key) is not None

    @pytest.mark.asyncio
    async def test_list_entries_by_account(self) -> None:
        store = MemoryEntityStore()
        await store.insert_ledger_entry(_entry("c1", account_id=5))
        await store.insert_ledger_entry(_entry("c2", account_id=5))
        await store.insert_ledger_entry(_entry("c3", account_id=6))
        await store.insert_ledger_entry(_entry("c4"))

        entries = await store.list_ledger_entries(5)

        assert sorted(e.charge_id for e in entries) == ["c1", "c2"]
