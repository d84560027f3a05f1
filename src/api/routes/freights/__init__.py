"""Rotas de fretes."""

from api.routes.freights.router import router

__all__ = ["router"]
