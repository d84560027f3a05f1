"""Rotas de conta e assinatura."""

from api.routes.accounts.router import router

__all__ = ["router"]
