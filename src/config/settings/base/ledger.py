"""Settings do ledger de idempotência de pagamentos."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache


@dataclass(frozen=True)
class LedgerSettings:
    """Configurações do ledger.

    Attributes:
        retention_days: Idade (pelo recorded_at) a partir da qual entradas
            podem ser podadas. Provedores não reentregam indefinidamente.
    """

    retention_days: int = 365

    def validate(self) -> list[str]:
        errors: list[str] = []
        # Abaixo de 30 dias uma reentrega tardia poderia ser reaplicada
        if self.retention_days < 30:
            errors.append("LEDGER_RETENTION_DAYS deve ser >= 30")
        return errors


@lru_cache(maxsize=1)
def get_ledger_settings() -> LedgerSettings:
    """Retorna instância cacheada de LedgerSettings."""
    return LedgerSettings(
        retention_days=int(os.getenv("LEDGER_RETENTION_DAYS", "365")),
    )
