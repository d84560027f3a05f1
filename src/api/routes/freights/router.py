"""Endpoints de fretes.

Toda leitura devolve o status DERIVADO; a UI nunca precisa tratar
expiração por conta própria.

Endpoints:
- POST /freights
- GET /freights (filtros: owner_account_id, status)
- GET /freights/{freight_id}
- PATCH /freights/{freight_id}
- POST /freights/{freight_id}/reactivate
- POST /freights/{freight_id}/complete
- POST /freights/{freight_id}/cancel
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from api.auth import get_actor
from api.routes.errors import error_response, failure_response
from app.bootstrap import get_freight_engine
from app.domain.actor import Actor
from app.domain.freight import FreightDraft
from app.domain.results import LifecycleError, LifecycleResult
from app.services import FreightLifecycleEngine, FreightView
from fsm import FreightStatus

router = APIRouter()

ActorDep = Annotated[Actor, Depends(get_actor)]
EngineDep = Annotated[FreightLifecycleEngine, Depends(get_freight_engine)]


class FreightPatch(BaseModel):
    """Campos editáveis de um frete."""

    model_config = ConfigDict(extra="forbid")

    origin: str | None = Field(None, min_length=1, max_length=200)
    destination: str | None = Field(None, min_length=1, max_length=200)


def _respond(engine: FreightLifecycleEngine, result: LifecycleResult) -> FreightView | JSONResponse:
    if not result.ok:
        return failure_response(result)
    return engine.view(result.value)


@router.post("", response_model=FreightView, status_code=status.HTTP_201_CREATED)
async def create_freight(
    draft: FreightDraft, actor: ActorDep, engine: EngineDep
) -> FreightView | JSONResponse:
    return _respond(engine, await engine.create(draft, actor))


@router.get("", response_model=list[FreightView])
async def list_freights(
    actor: ActorDep,
    engine: EngineDep,
    owner_account_id: Annotated[int | None, Query()] = None,
    status_filter: Annotated[FreightStatus | None, Query(alias="status")] = None,
) -> list[FreightView]:
    return await engine.list_freights(owner_account_id=owner_account_id, status=status_filter)


@router.get("/{freight_id}", response_model=FreightView)
async def get_freight(
    freight_id: int, actor: ActorDep, engine: EngineDep
) -> FreightView | JSONResponse:
    freight = await engine.get(freight_id)
    if freight is None:
        return error_response(LifecycleError.NOT_FOUND)
    return engine.view(freight)


@router.patch("/{freight_id}", response_model=FreightView)
async def edit_freight(
    freight_id: int, patch: FreightPatch, actor: ActorDep, engine: EngineDep
) -> FreightView | JSONResponse:
    result = await engine.edit(
        freight_id, actor, origin=patch.origin, destination=patch.destination
    )
    return _respond(engine, result)


@router.post("/{freight_id}/reactivate", response_model=FreightView)
async def reactivate_freight(
    freight_id: int, actor: ActorDep, engine: EngineDep
) -> FreightView | JSONResponse:
    return _respond(engine, await engine.reactivate(freight_id, actor))


@router.post("/{freight_id}/complete", response_model=FreightView)
async def complete_freight(
    freight_id: int, actor: ActorDep, engine: EngineDep
) -> FreightView | JSONResponse:
    return _respond(engine, await engine.complete(freight_id, actor))


@router.post("/{freight_id}/cancel", response_model=FreightView)
async def cancel_freight(
    freight_id: int, actor: ActorDep, engine: EngineDep
) -> FreightView | JSONResponse:
    return _respond(engine, await engine.cancel(freight_id, actor))
