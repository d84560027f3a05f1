"""Configuração do pytest para o projeto QueroFretes Core."""

import asyncio
import sys
from datetime import UTC, datetime
from pathlib import Path

import pytest

# Adiciona src/ ao PYTHONPATH para permitir imports absolutos
src_path = Path(__file__).parent.parent / "src"
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))

from app.domain.account import Account  # noqa: E402
from app.domain.actor import Actor, Role  # noqa: E402
from app.domain.ledger import LedgerEntry  # noqa: E402
from app.infra.clock import FrozenClock  # noqa: E402
from app.infra.stores import MemoryEntityStore  # noqa: E402

D0 = datetime(2026, 3, 2, 12, 0, tzinfo=UTC)


class InterleavingEntityStore(MemoryEntityStore):
    """Cede o event loop depois de cada leitura.

    Com asyncio.gather, todas as corrotinas leem o mesmo estado antes da
    primeira escrita, o que exercita o caminho de compare-and-set perdido.
    """

    def __init__(self) -> None:
        super().__init__()
        self.account_reads: list[Account | None] = []

    async def get_account(self, account_id: int) -> Account | None:
        account = await super().get_account(account_id)
        self.account_reads.append(account)
        await asyncio.sleep(0)
        return account

    async def get_ledger_entry(self, key: str) -> LedgerEntry | None:
        entry = await super().get_ledger_entry(key)
        await asyncio.sleep(0)
        return entry


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock(D0)


@pytest.fixture
def store() -> MemoryEntityStore:
    return MemoryEntityStore()


@pytest.fixture
def owner() -> Actor:
    return Actor(id=10, role=Role.SHIPPER, client_id=7)


@pytest.fixture
def admin() -> Actor:
    return Actor(id=1, role=Role.ADMIN)


@pytest.fixture
def driver() -> Actor:
    return Actor(id=30, role=Role.DRIVER)


@pytest.fixture
def interleaving_store() -> InterleavingEntityStore:
    return InterleavingEntityStore()
