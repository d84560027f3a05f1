#!/usr/bin/env python3
"""Poda entradas antigas do ledger de idempotência de pagamentos.

Entradas mais antigas que LEDGER_RETENTION_DAYS (pelo recorded_at) podem
sair: o provedor não reentrega eventos indefinidamente.

Uso:
    python scripts/prune_payment_ledger.py --apply
    python scripts/prune_payment_ledger.py --retention-days 400 --apply

Padrao: dry-run (nao apaga nada). Usa o STORE_BACKEND do ambiente.
"""

from __future__ import annotations

import argparse
import asyncio
from dataclasses import dataclass
from datetime import datetime, timedelta

from app.bootstrap import get_clock, get_entity_store, initialize_app
from app.services import IdempotencyLedger
from config.settings import LedgerSettings, get_ledger_settings, get_store_settings


@dataclass(frozen=True)
class PruneStats:
    backend: str
    cutoff: datetime
    deleted: int = 0


async def prune_ledger(*, retention_days: int | None, apply: bool) -> PruneStats:
    settings = get_ledger_settings()
    if retention_days is not None:
        settings = LedgerSettings(retention_days=retention_days)
    errors = settings.validate()
    if errors:
        raise SystemExit("; ".join(errors))

    clock = get_clock()
    backend = get_store_settings().backend
    cutoff = clock.now() - timedelta(days=settings.retention_days)
    if not apply:
        return PruneStats(backend=backend, cutoff=cutoff)

    ledger = IdempotencyLedger(get_entity_store(), clock, settings)
    deleted = await ledger.prune()
    return PruneStats(backend=backend, cutoff=cutoff, deleted=deleted)


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--retention-days",
        type=int,
        default=None,
        help="Sobrescreve LEDGER_RETENTION_DAYS (minimo 30).",
    )
    parser.add_argument(
        "--apply",
        action="store_true",
        help="Apaga as entradas. Sem esta flag executa dry-run.",
    )
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    initialize_app()
    stats = asyncio.run(prune_ledger(retention_days=args.retention_days, apply=args.apply))
    mode = "apply" if args.apply else "dry-run"
    print(
        f"[{mode}] backend={stats.backend} "
        f"cutoff={stats.cutoff.isoformat()} deleted={stats.deleted}"
    )


if __name__ == "__main__":
    main()
