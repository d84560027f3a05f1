"""Endpoint de webhook do OpenPix.

Endpoints:
- POST /webhook/openpix: notificações de cobrança PIX

Respostas:
- 200 para todo desfecho em que reentregar não ajuda (inclusive payload
  malformado e conta desconhecida), evitando tempestade de retries
- 401 para assinatura inválida
- 503 quando o store está indisponível: o provedor reentrega e a
  idempotência torna a reentrega segura
"""

from __future__ import annotations

import logging
from typing import Annotated, Any

from fastapi import APIRouter, Depends, Request, Response, status
from fastapi.responses import JSONResponse

from api.connectors.openpix import (
    InvalidJsonError,
    InvalidSignatureError,
    parse_webhook_request,
)
from api.normalizers.openpix import extract_payment_payload
from app.bootstrap import get_payment_reconciler
from app.observability import record_webhook_outcome
from app.services import PaymentEventReconciler
from config.settings import get_openpix_settings
from utils.errors import InfrastructureError, StaleWriteError

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("", response_model=None)
async def receive_webhook(
    request: Request,
    reconciler: Annotated[PaymentEventReconciler, Depends(get_payment_reconciler)],
) -> Response | dict[str, Any]:
    """Recebe notificação de cobrança e reconcilia de forma idempotente."""
    settings = get_openpix_settings()
    raw_body = await request.body()

    try:
        payload, signature_result = parse_webhook_request(
            raw_body=raw_body,
            headers=dict(request.headers),
            secret=settings.webhook_secret or None,
            signature_header=settings.signature_header,
        )
    except InvalidSignatureError as exc:
        logger.warning(
            "webhook_signature_rejected",
            extra={"channel": "openpix", "reason": str(exc)},
        )
        return JSONResponse(
            status_code=status.HTTP_401_UNAUTHORIZED,
            content={"status": "rejected", "reason": str(exc)},
        )
    except InvalidJsonError as exc:
        logger.warning("webhook_invalid_json", extra={"channel": "openpix", "reason": str(exc)})
        record_webhook_outcome("malformed")
        return {"status": "ok", "outcome": "malformed"}

    logger.info(
        "webhook_received",
        extra={"channel": "openpix", "signature_skipped": signature_result.skipped},
    )

    try:
        ack = await reconciler.handle_event(extract_payment_payload(payload))
    except (InfrastructureError, StaleWriteError) as exc:
        logger.error(
            "webhook_processing_failed",
            extra={"channel": "openpix", "error_type": type(exc).__name__},
        )
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "retry"},
        )

    return {"status": "ok", "outcome": ack.outcome.value}
