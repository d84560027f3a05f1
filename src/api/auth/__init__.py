"""Autenticação — conversão de headers do gateway em Actor."""

from api.auth.actor import get_actor

__all__ = ["get_actor"]
