"""Ator autenticado a partir dos headers do gateway de autenticação.

O gateway já verificou a identidade; aqui só convertemos os headers
para `Actor`. É o único ponto onde o papel textual vira `Role`.
"""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import Header, HTTPException, status

from app.domain.actor import Actor, UnknownRoleError, normalize_role

logger = logging.getLogger(__name__)


def _parse_int(raw: str | None, field: str) -> int | None:
    if raw is None or not raw.strip():
        return None
    try:
        return int(raw.strip())
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"{field} inválido",
        ) from exc


def get_actor(
    x_actor_id: Annotated[str | None, Header()] = None,
    x_actor_role: Annotated[str | None, Header()] = None,
    x_actor_client_id: Annotated[str | None, Header()] = None,
) -> Actor:
    """Dependency FastAPI que monta o Actor.

    Raises:
        HTTPException: 401 se id ausente/inválido ou papel desconhecido.
    """
    actor_id = _parse_int(x_actor_id, "x-actor-id")
    if actor_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="x-actor-id ausente",
        )
    try:
        role = normalize_role(x_actor_role)
    except UnknownRoleError as exc:
        logger.warning("actor_role_rejected", extra={"reason": str(exc)})
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="x-actor-role inválido",
        ) from exc

    client_id = _parse_int(x_actor_client_id, "x-actor-client-id")
    # clientId 0 é o "sem cliente" legado
    return Actor(id=actor_id, role=role, client_id=client_id or None)


