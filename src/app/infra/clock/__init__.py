"""Implementações de relógio (sistema e congelado para testes)."""

from app.infra.clock.clocks import FrozenClock, SystemClock

__all__ = [
    "FrozenClock",
    "SystemClock",
]
