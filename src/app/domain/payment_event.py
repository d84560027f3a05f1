"""PaymentEvent — notificação de cobrança PIX recebida do provedor.

Contrato do webhook (JSON):
    chargeId       str   — identificador da cobrança no provedor
    correlationId  str   — ecoado pelo provedor; liga a cobrança à conta
    status         str   — created|active|completed|expired|refunded
    planType       str?  — monthly|annual (aliases mensal|anual)
    occurredAt     str   — ISO-8601
    eventId        str?  — ID de entrega do provedor (não é único entre reentregas)

Eventos são imutáveis depois de recebidos.
"""

from __future__ import annotations

import re
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from app.domain.time_policy import PlanType

DEFAULT_CORRELATION_PREFIX = "querofretes"


class ChargeStatus(StrEnum):
    """Status de cobrança reportados pelo provedor."""

    CREATED = "created"
    ACTIVE = "active"
    COMPLETED = "completed"
    EXPIRED = "expired"
    REFUNDED = "refunded"

    def __str__(self) -> str:
        return self.value


# Apenas estes status mudam o estado da assinatura; os demais são auditoria
STATE_CHANGING_STATUSES: frozenset[ChargeStatus] = frozenset({
    ChargeStatus.COMPLETED,
    ChargeStatus.REFUNDED,
})

_PLAN_ALIASES: dict[str, PlanType] = {
    "monthly": PlanType.MONTHLY,
    "mensal": PlanType.MONTHLY,
    "annual": PlanType.ANNUAL,
    "anual": PlanType.ANNUAL,
}


class MalformedEventError(ValueError):
    """Payload de webhook inválido — não adianta reentregar."""


class PaymentEvent(BaseModel):
    """Evento de pagamento já validado."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    charge_id: str = Field(..., alias="chargeId", min_length=1, max_length=256)
    correlation_id: str = Field(..., alias="correlationId", min_length=1, max_length=256)
    charge_status: ChargeStatus = Field(..., alias="status")
    plan_type: PlanType | None = Field(None, alias="planType")
    occurred_at: datetime = Field(..., alias="occurredAt")
    provider_event_id: str | None = Field(None, alias="eventId", max_length=256)

    @field_validator("charge_id", "correlation_id", mode="before")
    @classmethod
    def _strip_identifier(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip()
        return value

    @field_validator("charge_status", mode="before")
    @classmethod
    def _normalize_status(cls, value: Any) -> Any:
        # Provedor envia "COMPLETED"; contrato interno é minúsculo
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @field_validator("plan_type", mode="before")
    @classmethod
    def _normalize_plan(cls, value: Any) -> Any:
        if value is None or (isinstance(value, str) and not value.strip()):
            return None
        if isinstance(value, str):
            plan = _PLAN_ALIASES.get(value.strip().lower())
            if plan is None:
                raise ValueError(f"planType desconhecido: {value}")
            return plan
        return value

    @field_validator("occurred_at")
    @classmethod
    def _assume_utc(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value


def parse_payment_event(raw: Any) -> PaymentEvent:
    """Valida o payload bruto do webhook.

    Raises:
        MalformedEventError: Payload não é objeto ou viola o contrato.
    """
    if not isinstance(raw, dict):
        raise MalformedEventError("payload_not_object")
    try:
        return PaymentEvent.model_validate(raw)
    except ValidationError as exc:
        fields = sorted({".".join(str(p) for p in err["loc"]) for err in exc.errors()})
        raise MalformedEventError(f"invalid_fields: {', '.join(fields)}") from exc


def parse_correlation_account_id(
    correlation_id: str,
    prefix: str = DEFAULT_CORRELATION_PREFIX,
) -> int | None:
    """Extrai o ID da conta do correlationID; None se fora do formato.

    Formato gerado por quem cria a cobrança: `{prefix}-{account_id}-{epoch_ms}`.
    """
    match = re.match(rf"^{re.escape(prefix)}-(\d+)-\d+$", correlation_id)
    if match is None:
        return None
    return int(match.group(1))
