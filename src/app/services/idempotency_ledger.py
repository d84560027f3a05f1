"""Idempotency Ledger — registro durável de eventos de pagamento aplicados.

A unicidade de `(charge_id, charge_status)` no Entity Store é o ponto de
exclusão mútua entre entregas concorrentes do mesmo evento. Um
LedgerConflictError significa "já processado" e deve ser tratado assim
pelo chamador.
"""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import TYPE_CHECKING

from app.domain.ledger import LedgerEntry, ledger_key

if TYPE_CHECKING:
    from datetime import datetime

    from app.domain.account import Account
    from app.domain.payment_event import ChargeStatus
    from app.protocols import ClockProtocol, EntityStoreProtocol
    from config.settings import LedgerSettings

logger = logging.getLogger(__name__)

DEFAULT_RETENTION_DAYS = 365


class IdempotencyLedger:
    """Fachada do ledger sobre o Entity Store."""

    def __init__(
        self,
        store: EntityStoreProtocol,
        clock: ClockProtocol,
        settings: LedgerSettings | None = None,
    ) -> None:
        self._store = store
        self._clock = clock
        self._retention = timedelta(
            days=settings.retention_days if settings else DEFAULT_RETENTION_DAYS
        )

    def build_entry(
        self,
        charge_id: str,
        charge_status: ChargeStatus,
        occurred_at: datetime,
        *,
        account_id: int | None = None,
        provider_event_id: str | None = None,
    ) -> LedgerEntry:
        return LedgerEntry(
            charge_id=charge_id,
            charge_status=charge_status,
            occurred_at=occurred_at,
            recorded_at=self._clock.now(),
            account_id=account_id,
            provider_event_id=provider_event_id,
        )

    async def has_processed(self, charge_id: str, charge_status: ChargeStatus) -> bool:
        entry = await self._store.get_ledger_entry(ledger_key(charge_id, charge_status))
        return entry is not None

    async def mark_processed(
        self,
        charge_id: str,
        charge_status: ChargeStatus,
        occurred_at: datetime,
        *,
        account_id: int | None = None,
        provider_event_id: str | None = None,
    ) -> LedgerEntry:
        """Registra o par sem tocar em conta (eventos só de auditoria).

        Raises:
            LedgerConflictError: Outro escritor já registrou o par.
        """
        entry = self.build_entry(
            charge_id,
            charge_status,
            occurred_at,
            account_id=account_id,
            provider_event_id=provider_event_id,
        )
        await self._store.insert_ledger_entry(entry)
        return entry

    async def mark_processed_with(
        self,
        entry: LedgerEntry,
        account: Account,
        expected_version: int,
    ) -> Account:
        """Registra o par e grava a conta na mesma transação.

        Raises:
            LedgerConflictError: Par já registrado (nada foi gravado).
            StaleWriteError: Conta mudou desde a leitura (nada foi gravado).
        """
        return await self._store.commit_account_with_ledger(account, expected_version, entry)

    async def history(self, account_id: int) -> list[LedgerEntry]:
        """Eventos de pagamento da conta, do mais antigo ao mais recente.

        Cada `(charge_id, status)` aparece uma vez: a deduplicação já
        aconteceu na ingestão.
        """
        entries = await self._store.list_ledger_entries(account_id)
        return sorted(entries, key=lambda e: (e.occurred_at, e.recorded_at))

    async def prune(self, now: datetime | None = None) -> int:
        """Remove entradas gravadas há mais tempo que a retenção.

        A idade conta do `recorded_at` (relógio local). O `occurred_at` vem
        do provedor e pode ser antigo: um estorno de cobrança paga há mais
        de um ano seria podado antes da reentrega e reaplicado.
        """
        cutoff = (now or self._clock.now()) - self._retention
        deleted = await self._store.delete_ledger_entries_before(cutoff)
        logger.info(
            "payment_ledger_pruned",
            extra={"cutoff": cutoff.isoformat(), "deleted": deleted},
        )
        return deleted
