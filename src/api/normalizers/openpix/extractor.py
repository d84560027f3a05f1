"""Extrator de payloads de webhook OpenPix.

O provedor envia um envelope `{"event", "charge": {...}}`; o reconciliador
consome o contrato plano (chargeId, correlationId, status, planType,
occurredAt, eventId). Payloads já planos passam sem alteração.

Não faz validação - apenas extração estrutural.
"""

from __future__ import annotations

import logging
from typing import Any

logger = logging.getLogger(__name__)

# Eventos cujo nome define o status melhor que charge.status
_EVENT_STATUS = {
    "OPENPIX:CHARGE_COMPLETED": "completed",
    "OPENPIX:CHARGE_EXPIRED": "expired",
    "OPENPIX:CHARGE_CREATED": "created",
    "OPENPIX:TRANSACTION_REFUND_RECEIVED": "refunded",
    "PIX_TRANSACTION_REFUND_RECEIVED": "refunded",
}

_PLAN_INFO_KEY = "planType"


def is_envelope(payload: dict[str, Any]) -> bool:
    return isinstance(payload.get("charge"), dict)


def _additional_info(charge: dict[str, Any], key: str) -> Any:
    for item in charge.get("additionalInfo") or []:
        if isinstance(item, dict) and item.get("key") == key:
            return item.get("value")
    return None


def extract_payment_payload(payload: dict[str, Any]) -> dict[str, Any]:
    """Converte o envelope OpenPix no contrato plano do reconciliador."""
    if not is_envelope(payload):
        return payload

    charge: dict[str, Any] = payload["charge"]
    event_name = payload.get("event")
    status = _EVENT_STATUS.get(event_name) if isinstance(event_name, str) else None
    if status is None:
        status = charge.get("status")
        if event_name:
            logger.info("openpix_event_status_from_charge", extra={"event": event_name})

    return {
        "chargeId": charge.get("identifier") or charge.get("transactionID"),
        "correlationId": charge.get("correlationID"),
        "status": status,
        "planType": _additional_info(charge, _PLAN_INFO_KEY),
        "occurredAt": charge.get("paidAt") or charge.get("updatedAt") or charge.get("createdAt"),
        "eventId": payload.get("eventId"),
    }
