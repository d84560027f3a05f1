"""Firestore Entity Store — fretes, contas e ledger de pagamentos.

O cliente Firestore é síncrono; chamadas vão para thread via
asyncio.to_thread para não bloquear o event loop.

Concorrência:
- IDs de frete vêm de contador incrementado em transação
- Compare-and-set de agregados lê e grava na mesma transação
- Ledger: `DocumentReference.create` falha com AlreadyExists (unicidade)
- Conta + ledger: `transaction.create` + `transaction.set` na mesma transação
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any

from google.api_core.exceptions import AlreadyExists, GoogleAPICallError
from google.cloud import firestore
from google.cloud.firestore_v1.base_query import FieldFilter

from app.domain.account import Account
from app.domain.freight import Freight
from app.domain.ledger import LedgerEntry
from app.protocols.entity_store import EntityStoreProtocol
from utils.errors import FirestoreUnavailableError, LedgerConflictError, StaleWriteError

if TYPE_CHECKING:
    from collections.abc import Callable
    from datetime import datetime

    from google.cloud.firestore import Client as FirestoreClient
    from google.cloud.firestore import DocumentReference, Transaction

logger = logging.getLogger(__name__)

FREIGHTS_COLLECTION = "freights"
ACCOUNTS_COLLECTION = "accounts"
LEDGER_COLLECTION = "payment_ledger"
COUNTERS_COLLECTION = "_counters"
PRUNE_BATCH_SIZE = 400


# ──────────────────────────────────────────────────────────────────────────────
# Corpos transacionais (funções puras sobre Transaction, testáveis com mock)
# ──────────────────────────────────────────────────────────────────────────────


def increment_counter(transaction: Transaction, counter_ref: DocumentReference) -> int:
    snapshot = counter_ref.get(transaction=transaction)
    current = int((snapshot.to_dict() or {}).get("value", 0)) if snapshot.exists else 0
    next_value = current + 1
    transaction.set(counter_ref, {"value": next_value})
    return next_value


def compare_and_set(
    transaction: Transaction,
    doc_ref: DocumentReference,
    entity: str,
    expected_version: int,
    data: dict[str, Any],
) -> None:
    snapshot = doc_ref.get(transaction=transaction)
    current = (snapshot.to_dict() or {}).get("version") if snapshot.exists else None
    if current != expected_version:
        raise StaleWriteError(entity, expected_version)
    transaction.set(doc_ref, data)


def commit_with_ledger(
    transaction: Transaction,
    account_ref: DocumentReference,
    ledger_ref: DocumentReference,
    expected_version: int,
    account_data: dict[str, Any],
    entry_data: dict[str, Any],
) -> None:
    # Firestore exige todas as leituras antes das escritas
    ledger_snapshot = ledger_ref.get(transaction=transaction)
    account_snapshot = account_ref.get(transaction=transaction)
    if ledger_snapshot.exists:
        raise LedgerConflictError(ledger_ref.id)
    current = (
        (account_snapshot.to_dict() or {}).get("version")
        if account_snapshot.exists
        else None
    )
    if current != expected_version:
        raise StaleWriteError(f"account:{account_ref.id}", expected_version)
    transaction.create(ledger_ref, entry_data)
    transaction.set(account_ref, account_data)


class FirestoreEntityStore(EntityStoreProtocol):
    """Entity Store usando Firestore."""

    def __init__(self, firestore_client: FirestoreClient) -> None:
        self._db = firestore_client

    def _run_transaction(self, body: Callable[..., Any], *args: Any) -> Any:
        return firestore.transactional(body)(self._db.transaction(), *args)

    async def _call(self, operation: str, fn: Callable[..., Any], *args: Any) -> Any:
        try:
            return await asyncio.to_thread(fn, *args)
        except GoogleAPICallError as exc:
            logger.error(
                "firestore_operation_failed",
                extra={"operation": operation, "error_type": type(exc).__name__},
            )
            raise FirestoreUnavailableError(f"Firestore indisponível em {operation}") from exc

    # ── Freight ───────────────────────────────────────────────────

    async def get_freight(self, freight_id: int) -> Freight | None:
        data = await self._call("get_freight", self._get_sync, FREIGHTS_COLLECTION, str(freight_id))
        return Freight.from_store_dict(data) if data is not None else None

    async def insert_freight(self, freight: Freight) -> Freight:
        return await self._call("insert_freight", self._insert_freight_sync, freight)

    def _insert_freight_sync(self, freight: Freight) -> Freight:
        counter_ref = self._db.collection(COUNTERS_COLLECTION).document(FREIGHTS_COLLECTION)
        freight_id = self._run_transaction(increment_counter, counter_ref)
        stored = freight.model_copy(update={"id": freight_id, "version": 1})
        self._db.collection(FREIGHTS_COLLECTION).document(str(freight_id)).create(
            stored.to_store_dict()
        )
        return stored

    async def list_freights(self, owner_account_id: int | None = None) -> list[Freight]:
        docs = await self._call(
            "list_freights",
            self._query_sync,
            FREIGHTS_COLLECTION,
            "owner_account_id",
            owner_account_id,
        )
        freights = [Freight.from_store_dict(data) for data in docs]
        return sorted(freights, key=lambda f: f.id or 0)

    async def update_freight(self, freight: Freight, expected_version: int) -> Freight:
        if freight.id is None:
            raise ValueError("update_freight exige freight.id")
        stored = freight.model_copy(update={"version": expected_version + 1})
        doc_ref = self._db.collection(FREIGHTS_COLLECTION).document(str(freight.id))
        await self._call(
            "update_freight",
            self._run_transaction,
            compare_and_set,
            doc_ref,
            f"freight:{freight.id}",
            expected_version,
            stored.to_store_dict(),
        )
        return stored

    # ── Account ───────────────────────────────────────────────────

    async def get_account(self, account_id: int) -> Account | None:
        data = await self._call("get_account", self._get_sync, ACCOUNTS_COLLECTION, str(account_id))
        return Account.from_store_dict(data) if data is not None else None

    async def insert_account(self, account: Account) -> Account:
        stored = account.model_copy(update={"version": 1})
        await self._call("insert_account", self._create_account_sync, stored)
        return stored

    def _create_account_sync(self, account: Account) -> None:
        doc_ref = self._db.collection(ACCOUNTS_COLLECTION).document(str(account.id))
        try:
            doc_ref.create(account.to_store_dict())
        except AlreadyExists as exc:
            raise StaleWriteError(f"account:{account.id}", 0) from exc

    async def update_account(self, account: Account, expected_version: int) -> Account:
        stored = account.model_copy(update={"version": expected_version + 1})
        doc_ref = self._db.collection(ACCOUNTS_COLLECTION).document(str(account.id))
        await self._call(
            "update_account",
            self._run_transaction,
            compare_and_set,
            doc_ref,
            f"account:{account.id}",
            expected_version,
            stored.to_store_dict(),
        )
        return stored

    # ── Ledger ────────────────────────────────────────────────────

    async def get_ledger_entry(self, key: str) -> LedgerEntry | None:
        data = await self._call("get_ledger_entry", self._get_sync, LEDGER_COLLECTION, key)
        return LedgerEntry.from_store_dict(data) if data is not None else None

    async def insert_ledger_entry(self, entry: LedgerEntry) -> None:
        await self._call("insert_ledger_entry", self._insert_ledger_sync, entry)

    def _insert_ledger_sync(self, entry: LedgerEntry) -> None:
        doc_ref = self._db.collection(LEDGER_COLLECTION).document(entry.key)
        try:
            doc_ref.create(entry.to_store_dict())
        except AlreadyExists as exc:
            raise LedgerConflictError(entry.key) from exc

    async def commit_account_with_ledger(
        self,
        account: Account,
        expected_version: int,
        entry: LedgerEntry,
    ) -> Account:
        stored = account.model_copy(update={"version": expected_version + 1})
        account_ref = self._db.collection(ACCOUNTS_COLLECTION).document(str(account.id))
        ledger_ref = self._db.collection(LEDGER_COLLECTION).document(entry.key)
        try:
            await self._call(
                "commit_account_with_ledger",
                self._run_transaction,
                commit_with_ledger,
                account_ref,
                ledger_ref,
                expected_version,
                stored.to_store_dict(),
                entry.to_store_dict(),
            )
        except FirestoreUnavailableError as exc:
            # create() na transação também falha com AlreadyExists no commit
            if isinstance(exc.__cause__, AlreadyExists):
                raise LedgerConflictError(entry.key) from exc
            raise
        return stored

    async def list_ledger_entries(self, account_id: int) -> list[LedgerEntry]:
        docs = await self._call(
            "list_ledger_entries", self._query_sync, LEDGER_COLLECTION, "account_id", account_id
        )
        return [LedgerEntry.from_store_dict(data) for data in docs]

    async def delete_ledger_entries_before(self, cutoff: datetime) -> int:
        return await self._call("delete_ledger_entries_before", self._prune_sync, cutoff)

    def _prune_sync(self, cutoff: datetime) -> int:
        query = (
            self._db.collection(LEDGER_COLLECTION)
            .where(filter=FieldFilter("recorded_at_ts", "<", cutoff.timestamp()))
            .limit(PRUNE_BATCH_SIZE)
        )
        deleted = 0
        while True:
            docs = list(query.stream())
            if not docs:
                return deleted
            batch = self._db.batch()
            for doc in docs:
                batch.delete(doc.reference)
            batch.commit()
            deleted += len(docs)

    async def ping(self) -> None:
        await self._call("ping", self._get_sync, COUNTERS_COLLECTION, FREIGHTS_COLLECTION)

    # ── Helpers ───────────────────────────────────────────────────

    def _get_sync(self, collection: str, doc_id: str) -> dict[str, Any] | None:
        doc = self._db.collection(collection).document(doc_id).get()
        if not doc.exists:
            return None
        return doc.to_dict() or {}

    def _query_sync(
        self, collection: str, field: str, value: int | None
    ) -> list[dict[str, Any]]:
        query: Any = self._db.collection(collection)
        if value is not None:
            query = query.where(filter=FieldFilter(field, "==", value))
        return [doc.to_dict() or {} for doc in query.stream()]
