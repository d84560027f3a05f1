"""Rotas OpenPix (webhook de cobranças)."""

from api.routes.openpix.webhook import router

__all__ = ["router"]
