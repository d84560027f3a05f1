"""Protocolos (ABCs) dependidos pela camada de aplicação."""

from app.protocols.clock import ClockProtocol
from app.protocols.entity_store import EntityStoreProtocol

__all__ = [
    "ClockProtocol",
    "EntityStoreProtocol",
]
