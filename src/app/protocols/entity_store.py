"""Protocolo do Entity Store — persistência de Freight, Account e ledger.

Todas as escritas de agregados são compare-and-set por `version`.
O ledger exige inserção com restrição de unicidade.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from datetime import datetime

    from app.domain.account import Account
    from app.domain.freight import Freight
    from app.domain.ledger import LedgerEntry


class EntityStoreProtocol(ABC):
    """Contrato assíncrono do Entity Store.

    Falhas de backend levantam subclasses de InfrastructureError.
    """

    # ── Freight ───────────────────────────────────────────────────

    @abstractmethod
    async def get_freight(self, freight_id: int) -> Freight | None: ...

    @abstractmethod
    async def insert_freight(self, freight: Freight) -> Freight:
        """Persiste frete novo; atribui `id` e `version=1`."""

    @abstractmethod
    async def list_freights(self, owner_account_id: int | None = None) -> list[Freight]:
        """Fretes em ordem de `id`; filtrados pelo dono quando informado."""

    @abstractmethod
    async def update_freight(self, freight: Freight, expected_version: int) -> Freight:
        """Grava se a versão atual for `expected_version`; retorna com versão+1.

        Raises:
            StaleWriteError: Versão divergente ou registro inexistente.
        """

    # ── Account ───────────────────────────────────────────────────

    @abstractmethod
    async def get_account(self, account_id: int) -> Account | None: ...

    @abstractmethod
    async def insert_account(self, account: Account) -> Account:
        """Persiste conta nova com `version=1`.

        Raises:
            StaleWriteError: Conta com este ID já existe.
        """

    @abstractmethod
    async def update_account(self, account: Account, expected_version: int) -> Account: ...

    # ── Ledger ────────────────────────────────────────────────────

    @abstractmethod
    async def get_ledger_entry(self, key: str) -> LedgerEntry | None: ...

    @abstractmethod
    async def insert_ledger_entry(self, entry: LedgerEntry) -> None:
        """Insere entrada única.

        Raises:
            LedgerConflictError: Chave já presente.
        """

    @abstractmethod
    async def commit_account_with_ledger(
        self,
        account: Account,
        expected_version: int,
        entry: LedgerEntry,
    ) -> Account:
        """Insere entrada no ledger E grava a conta numa única unidade atômica.

        Raises:
            LedgerConflictError: Chave já presente (nada foi gravado).
            StaleWriteError: Versão da conta divergente (nada foi gravado).
        """

    @abstractmethod
    async def list_ledger_entries(self, account_id: int) -> list[LedgerEntry]:
        """Entradas atribuídas à conta, sem ordem garantida."""

    @abstractmethod
    async def delete_ledger_entries_before(self, cutoff: datetime) -> int:
        """Remove entradas com recorded_at < cutoff; retorna quantidade."""

    @abstractmethod
    async def ping(self) -> None:
        """Verifica conectividade (readiness)."""
