"""Account — estado de assinatura de uma conta de usuário (1:1).

Invariantes:
- `trial_used` é monotônico: marcado na primeira ativação de teste, nunca limpo
- `subscription_state` armazenado pode estar defasado; leitores usam o
  estado derivado (`app.services.subscription_lifecycle.derive_state`)
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.domain.time_policy import PlanType
from fsm.states.subscription import SubscriptionState


class Account(BaseModel):
    """Registro persistido de assinatura."""

    model_config = ConfigDict(frozen=True)

    id: int
    subscription_state: SubscriptionState = SubscriptionState.NONE
    trial_used: bool = False
    expires_at: datetime | None = None
    plan_type: PlanType | None = None
    cancel_pending: bool = False
    last_applied_event_id: str | None = None
    # Cobrança que definiu a janela paga atual (diagnóstico de ordenação)
    basis_charge_id: str | None = None
    updated_at: datetime | None = None
    version: int = Field(default=0, ge=0)

    @field_validator("expires_at", "updated_at")
    @classmethod
    def _require_timezone(cls, value: datetime | None) -> datetime | None:
        if value is not None and value.tzinfo is None:
            raise ValueError("datetime deve ter timezone")
        return value

    def to_store_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json")

    @classmethod
    def from_store_dict(cls, data: dict[str, Any]) -> Account:
        return cls.model_validate(data)


__all__ = ["Account", "PlanType"]
