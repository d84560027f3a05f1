"""Exceções utilitárias compartilhadas."""

from .exceptions import (
    FirestoreUnavailableError,
    InfrastructureError,
    LedgerConflictError,
    RedisConnectionError,
    StaleWriteError,
)

__all__ = [
    "FirestoreUnavailableError",
    "InfrastructureError",
    "LedgerConflictError",
    "RedisConnectionError",
    "StaleWriteError",
]
