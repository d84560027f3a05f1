"""Agregador de rotas — registra todos os routers da API.

Uso:
    from api.routes import create_api_router

    app = FastAPI()
    app.include_router(create_api_router())
"""

from __future__ import annotations

from fastapi import APIRouter

from api.routes.accounts import router as accounts_router
from api.routes.freights import router as freights_router
from api.routes.health.router import router as health_router
from api.routes.openpix import router as openpix_router


def create_api_router() -> APIRouter:
    """Cria router principal com todos os sub-routers registrados."""
    api_router = APIRouter()

    # Health checks (sem prefixo para /health e /ready na raiz)
    api_router.include_router(health_router, tags=["health"])

    api_router.include_router(openpix_router, prefix="/webhook/openpix", tags=["openpix"])
    api_router.include_router(freights_router, prefix="/freights", tags=["freights"])
    api_router.include_router(accounts_router, prefix="/accounts", tags=["accounts"])

    return api_router
