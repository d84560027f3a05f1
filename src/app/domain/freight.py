"""Freight — anúncio de carga publicado por um cliente.

Origem e destino são descritores opacos: o núcleo não os interpreta.
`status` armazenado não é a fonte da verdade para expiração; use
`app.services.freight_lifecycle.derive_status`.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from fsm.states.freight import FreightStatus


class FreightDraft(BaseModel):
    """Dados de criação de um frete."""

    model_config = ConfigDict(frozen=True)

    origin: str = Field(..., min_length=1, max_length=200)
    destination: str = Field(..., min_length=1, max_length=200)
    no_expiry: bool = False


class Freight(BaseModel):
    """Registro persistido de frete."""

    model_config = ConfigDict(frozen=True)

    id: int | None = None
    origin: str
    destination: str
    status: FreightStatus = FreightStatus.ACTIVE
    expiration_instant: datetime | None = None
    owner_account_id: int | None = None
    owner_client_id: int | None = None
    created_at: datetime
    updated_at: datetime
    version: int = Field(default=0, ge=0)

    @field_validator("owner_client_id")
    @classmethod
    def _zero_client_is_absent(cls, value: int | None) -> int | None:
        # Registros legados usam clientId=0 para "sem cliente"
        return None if value == 0 else value

    @field_validator("expiration_instant", "created_at", "updated_at")
    @classmethod
    def _require_timezone(cls, value: datetime | None) -> datetime | None:
        if value is not None and value.tzinfo is None:
            raise ValueError("datetime deve ter timezone")
        return value

    def to_store_dict(self) -> dict[str, Any]:
        """Serializa para backends (datas ISO-8601, enums como string)."""
        return self.model_dump(mode="json")

    @classmethod
    def from_store_dict(cls, data: dict[str, Any]) -> Freight:
        return cls.model_validate(data)
