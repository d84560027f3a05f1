"""Relógios concretos.

SystemClock é o único lugar do núcleo que lê o relógio da máquina.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

from app.protocols.clock import ClockProtocol


class SystemClock(ClockProtocol):
    """Relógio de parede em UTC."""

    def now(self) -> datetime:
        return datetime.now(UTC)


class FrozenClock(ClockProtocol):
    """Relógio parado, avançado manualmente — apenas para dev/test."""

    def __init__(self, instant: datetime) -> None:
        if instant.tzinfo is None:
            raise ValueError("FrozenClock exige datetime com timezone")
        self._instant = instant

    def now(self) -> datetime:
        return self._instant

    def set(self, instant: datetime) -> None:
        if instant.tzinfo is None:
            raise ValueError("FrozenClock exige datetime com timezone")
        self._instant = instant

    def advance(self, delta: timedelta) -> datetime:
        """Avança o relógio e retorna o novo instante."""
        self._instant = self._instant + delta
        return self._instant
