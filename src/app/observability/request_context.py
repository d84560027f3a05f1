"""Gerenciamento de request_id para rastreamento de requisições.

O request_id vem do header x-request-id (ou é gerado) e é injetado
em todos os logs via RequestIdFilter. Usa ContextVar para ser async-safe.

Uso:
    token = set_request_id(request.headers.get("x-request-id"))
    try:
        ...
    finally:
        reset_request_id(token)
"""

from __future__ import annotations

import uuid
from contextvars import ContextVar, Token

_request_id: ContextVar[str] = ContextVar("request_id", default="")


def get_request_id() -> str:
    """Retorna o request_id do contexto atual (ou string vazia)."""
    return _request_id.get()


def set_request_id(request_id: str | None = None) -> Token[str]:
    """Define o request_id no contexto atual.

    Args:
        request_id: ID a definir. Se None, gera um novo UUID.

    Returns:
        Token para reset posterior via reset_request_id().
    """
    return _request_id.set(request_id or generate_request_id())


def reset_request_id(token: Token[str]) -> None:
    _request_id.reset(token)


def generate_request_id() -> str:
    return str(uuid.uuid4())
