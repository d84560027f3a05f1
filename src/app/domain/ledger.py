"""LedgerEntry — registro durável de um evento de pagamento já aplicado."""

from __future__ import annotations

import hashlib
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict

from app.domain.payment_event import ChargeStatus

# Campos numéricos gravados só para consultas por faixa no backend
_STORE_ONLY_FIELDS = frozenset({"recorded_at_ts", "occurred_at_ts"})


def ledger_key(charge_id: str, charge_status: ChargeStatus) -> str:
    """Chave opaca de `(charge_id, charge_status)`.

    Hash evita caracteres inválidos em IDs de documento e PII em chaves.
    """
    digest = hashlib.sha256(f"{charge_id}\x1f{charge_status.value}".encode()).hexdigest()
    return f"{charge_status.value}-{digest[:40]}"


class LedgerEntry(BaseModel):
    """Entrada do ledger de idempotência."""

    model_config = ConfigDict(frozen=True)

    charge_id: str
    charge_status: ChargeStatus
    occurred_at: datetime
    recorded_at: datetime
    account_id: int | None = None
    provider_event_id: str | None = None

    @property
    def key(self) -> str:
        return ledger_key(self.charge_id, self.charge_status)

    def to_store_dict(self) -> dict[str, Any]:
        data = self.model_dump(mode="json")
        # Retenção conta pelo relógio local, nunca pelo horário do provedor
        data["recorded_at_ts"] = self.recorded_at.timestamp()
        return data

    @classmethod
    def from_store_dict(cls, data: dict[str, Any]) -> LedgerEntry:
        payload = {k: v for k, v in data.items() if k not in _STORE_ONLY_FIELDS}
        return cls.model_validate(payload)
