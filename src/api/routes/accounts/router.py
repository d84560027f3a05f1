"""Endpoints de conta e assinatura.

Endpoints:
- POST /accounts/{account_id}: abre o registro de assinatura (idempotente)
- GET /accounts/{account_id}/subscription
- GET /accounts/{account_id}/payments: eventos de pagamento já deduplicados
- POST /accounts/{account_id}/trial
- POST /accounts/{account_id}/subscription/cancel
"""

from __future__ import annotations

from datetime import datetime
from typing import Annotated

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict

from api.auth import get_actor
from api.routes.errors import error_response, failure_response
from app.bootstrap import get_idempotency_ledger, get_subscription_engine
from app.domain.actor import Actor
from app.domain.payment_event import ChargeStatus
from app.domain.results import LifecycleError
from app.services import IdempotencyLedger, SubscriptionLifecycleEngine, SubscriptionView

router = APIRouter()

ActorDep = Annotated[Actor, Depends(get_actor)]
EngineDep = Annotated[SubscriptionLifecycleEngine, Depends(get_subscription_engine)]
LedgerDep = Annotated[IdempotencyLedger, Depends(get_idempotency_ledger)]


class PaymentHistoryItem(BaseModel):
    """Evento de cobrança aplicado ou registrado para a conta."""

    model_config = ConfigDict(frozen=True)

    charge_id: str
    charge_status: ChargeStatus
    occurred_at: datetime
    recorded_at: datetime


def _is_self_or_admin(actor: Actor, account_id: int) -> bool:
    return actor.is_admin or actor.id == account_id


@router.post("/{account_id}", response_model=SubscriptionView)
async def open_account(
    account_id: int, actor: ActorDep, engine: EngineDep
) -> SubscriptionView | JSONResponse:
    if not _is_self_or_admin(actor, account_id):
        return error_response(LifecycleError.FORBIDDEN)
    account = await engine.open_account(account_id)
    return engine.view(account)


@router.get("/{account_id}/subscription", response_model=SubscriptionView)
async def get_subscription(
    account_id: int, actor: ActorDep, engine: EngineDep
) -> SubscriptionView | JSONResponse:
    if not _is_self_or_admin(actor, account_id):
        return error_response(LifecycleError.FORBIDDEN)
    account = await engine.get(account_id)
    if account is None:
        return error_response(LifecycleError.NOT_FOUND)
    return engine.view(account)


@router.post("/{account_id}/trial", response_model=SubscriptionView)
async def activate_trial(
    account_id: int, actor: ActorDep, engine: EngineDep
) -> SubscriptionView | JSONResponse:
    result = await engine.activate_trial(account_id, actor)
    if not result.ok:
        return failure_response(result)
    return engine.view(result.value)


@router.post("/{account_id}/subscription/cancel", response_model=SubscriptionView)
async def cancel_subscription(
    account_id: int, actor: ActorDep, engine: EngineDep
) -> SubscriptionView | JSONResponse:
    result = await engine.cancel_subscription(account_id, actor)
    if not result.ok:
        return failure_response(result)
    return engine.view(result.value)


@router.get("/{account_id}/payments", response_model=list[PaymentHistoryItem])
async def list_payments(
    account_id: int, actor: ActorDep, ledger: LedgerDep
) -> list[PaymentHistoryItem] | JSONResponse:
    if not _is_self_or_admin(actor, account_id):
        return error_response(LifecycleError.FORBIDDEN)
    entries = await ledger.history(account_id)
    return [
        PaymentHistoryItem(
            charge_id=entry.charge_id,
            charge_status=entry.charge_status,
            occurred_at=entry.occurred_at,
            recorded_at=entry.recorded_at,
        )
        for entry in entries
    ]
