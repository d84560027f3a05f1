"""Actor — identidade autenticada que executa uma operação.

O papel chega como string livre da camada de autenticação ("admin",
"administrador", "motorista"...). `normalize_role` é a ÚNICA fronteira
de normalização; o resto do código só conhece `Role`.
"""

from __future__ import annotations

import unicodedata
from dataclasses import dataclass
from enum import StrEnum


class Role(StrEnum):
    """Papéis fechados da plataforma."""

    ADMIN = "admin"
    SHIPPER = "shipper"
    AGENT = "agent"
    DRIVER = "driver"

    def __str__(self) -> str:
        return self.value


class UnknownRoleError(ValueError):
    """Papel recebido da autenticação não mapeia para nenhum Role."""


_ROLE_ALIASES: dict[str, Role] = {
    "admin": Role.ADMIN,
    "administrador": Role.ADMIN,
    "shipper": Role.SHIPPER,
    "embarcador": Role.SHIPPER,
    "client": Role.SHIPPER,
    "cliente": Role.SHIPPER,
    "agent": Role.AGENT,
    "agenciador": Role.AGENT,
    "transportador": Role.AGENT,
    "driver": Role.DRIVER,
    "motorista": Role.DRIVER,
}


def _fold(raw: str) -> str:
    decomposed = unicodedata.normalize("NFKD", raw.strip().lower())
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def normalize_role(raw: str | None) -> Role:
    """Converte o papel textual da autenticação em Role.

    Raises:
        UnknownRoleError: Papel ausente ou desconhecido.
    """
    if not raw or not raw.strip():
        raise UnknownRoleError("role ausente")
    role = _ROLE_ALIASES.get(_fold(raw))
    if role is None:
        raise UnknownRoleError(f"role desconhecido: {raw!r}")
    return role


@dataclass(frozen=True, slots=True)
class Actor:
    """Usuário autenticado.

    Attributes:
        id: ID da conta do usuário
        role: Papel normalizado
        client_id: Cliente (empresa) associado, se houver
    """

    id: int
    role: Role
    client_id: int | None = None

    @property
    def is_admin(self) -> bool:
        return self.role is Role.ADMIN

    @property
    def is_driver(self) -> bool:
        return self.role is Role.DRIVER
