"""Política temporal do núcleo — funções puras sobre instantes.

Durações:
- Janela de disponibilidade de frete: 24h a partir da (re)ativação
- Período de teste: 7 dias
- Plano mensal: 30 dias; plano anual: 365 dias

Expiração é sempre estrita: um prazo `t` ainda vale em `now == t`
e passa a valer como expirado em `now > t`.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from enum import StrEnum

FREIGHT_WINDOW = timedelta(hours=24)
TRIAL_PERIOD = timedelta(days=7)


class PlanType(StrEnum):
    """Planos pagos disponíveis."""

    MONTHLY = "monthly"
    ANNUAL = "annual"

    def __str__(self) -> str:
        return self.value


PLAN_PERIODS: dict[PlanType, timedelta] = {
    PlanType.MONTHLY: timedelta(days=30),
    PlanType.ANNUAL: timedelta(days=365),
}


def _require_aware(instant: datetime) -> datetime:
    if instant.tzinfo is None:
        raise ValueError("datetime sem timezone não é aceito pela política temporal")
    return instant


def freight_expiration(now: datetime) -> datetime:
    """Fim da janela de um frete ativado/reativado em `now`."""
    return _require_aware(now) + FREIGHT_WINDOW


def trial_expiration(now: datetime) -> datetime:
    """Fim do período de teste iniciado em `now`."""
    return _require_aware(now) + TRIAL_PERIOD


def plan_expiration(now: datetime, plan: PlanType) -> datetime:
    """Fim do período pago iniciado em `now`."""
    return _require_aware(now) + PLAN_PERIODS[plan]


def has_elapsed(instant: datetime | None, now: datetime) -> bool:
    """True se `instant` existe e já ficou para trás (`now > instant`)."""
    if instant is None:
        return False
    return _require_aware(now) > _require_aware(instant)
