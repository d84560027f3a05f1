"""Entity Store em memória — apenas para desenvolvimento e testes.

ATENÇÃO: Não usar em staging/production. Sem persistência entre reinícios.

Um único asyncio.Lock serializa mutações, o que reproduz a atomicidade
que Redis (MULTI/EXEC) e Firestore (transações) oferecem em produção.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

from app.domain.account import Account
from app.domain.freight import Freight
from app.domain.ledger import LedgerEntry
from app.protocols.entity_store import EntityStoreProtocol
from utils.errors import LedgerConflictError, StaleWriteError

if TYPE_CHECKING:
    from datetime import datetime


class MemoryEntityStore(EntityStoreProtocol):
    """Store de fretes, contas e ledger em memória — apenas para dev/test."""

    def __init__(self) -> None:
        self._freights: dict[int, Freight] = {}
        self._accounts: dict[int, Account] = {}
        self._ledger: dict[str, LedgerEntry] = {}
        self._freight_seq = 0
        self._lock = asyncio.Lock()

    # Freight

    async def get_freight(self, freight_id: int) -> Freight | None:
        return self._freights.get(freight_id)

    async def insert_freight(self, freight: Freight) -> Freight:
        async with self._lock:
            self._freight_seq += 1
            stored = freight.model_copy(update={"id": self._freight_seq, "version": 1})
            self._freights[self._freight_seq] = stored
            return stored

    async def list_freights(self, owner_account_id: int | None = None) -> list[Freight]:
        return [
            f
            for _, f in sorted(self._freights.items())
            if owner_account_id is None or f.owner_account_id == owner_account_id
        ]

    async def update_freight(self, freight: Freight, expected_version: int) -> Freight:
        if freight.id is None:
            raise ValueError("update_freight exige freight.id")
        async with self._lock:
            current = self._freights.get(freight.id)
            if current is None or current.version != expected_version:
                raise StaleWriteError(f"freight:{freight.id}", expected_version)
            stored = freight.model_copy(update={"version": expected_version + 1})
            self._freights[freight.id] = stored
            return stored

    # Account

    async def get_account(self, account_id: int) -> Account | None:
        return self._accounts.get(account_id)

    async def insert_account(self, account: Account) -> Account:
        async with self._lock:
            if account.id in self._accounts:
                raise StaleWriteError(f"account:{account.id}", 0)
            stored = account.model_copy(update={"version": 1})
            self._accounts[account.id] = stored
            return stored

    async def update_account(self, account: Account, expected_version: int) -> Account:
        async with self._lock:
            return self._write_account(account, expected_version)

    def _write_account(self, account: Account, expected_version: int) -> Account:
        current = self._accounts.get(account.id)
        if current is None or current.version != expected_version:
            raise StaleWriteError(f"account:{account.id}", expected_version)
        stored = account.model_copy(update={"version": expected_version + 1})
        self._accounts[account.id] = stored
        return stored

    # Ledger

    async def get_ledger_entry(self, key: str) -> LedgerEntry | None:
        return self._ledger.get(key)

    async def insert_ledger_entry(self, entry: LedgerEntry) -> None:
        async with self._lock:
            if entry.key in self._ledger:
                raise LedgerConflictError(entry.key)
            self._ledger[entry.key] = entry

    async def commit_account_with_ledger(
        self,
        account: Account,
        expected_version: int,
        entry: LedgerEntry,
    ) -> Account:
        async with self._lock:
            if entry.key in self._ledger:
                raise LedgerConflictError(entry.key)
            stored = self._write_account(account, expected_version)
            self._ledger[entry.key] = entry
            return stored

    async def list_ledger_entries(self, account_id: int) -> list[LedgerEntry]:
        return [e for e in self._ledger.values() if e.account_id == account_id]

    async def delete_ledger_entries_before(self, cutoff: datetime) -> int:
        async with self._lock:
            expired = [k for k, v in self._ledger.items() if v.recorded_at < cutoff]
            for key in expired:
                del self._ledger[key]
            return len(expired)

    async def ping(self) -> None:
        return None

    def ledger_size(self) -> int:
        """Quantidade de entradas (apenas para testes)."""
        return len(self._ledger)
