"""Resultados tipados das operações de ciclo de vida.

Falhas de domínio (autorização, transição inválida, trial) são valores,
não exceções. Apenas falhas de infraestrutura propagam como exceção.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Generic, TypeVar

T = TypeVar("T")


class LifecycleError(StrEnum):
    """Códigos de erro estáveis expostos aos chamadores."""

    FORBIDDEN = "forbidden"
    NOT_FOUND = "not_found"
    INVALID_TRANSITION = "invalid_transition"
    ALREADY_USED = "already_used"
    ALREADY_ACTIVE = "already_active"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True, slots=True)
class LifecycleResult(Generic[T]):
    """
    Resultado de uma operação de ciclo de vida.

    Attributes:
        ok: Se a operação foi aplicada
        value: Registro resultante (se ok=True)
        error: Código de erro (se ok=False)
        detail: Texto livre para logs/mensagens (sem PII)
    """

    ok: bool
    value: T | None = None
    error: LifecycleError | None = None
    detail: str | None = None

    def __post_init__(self) -> None:
        if self.ok and self.error is not None:
            raise ValueError("Resultado ok não pode carregar error")
        if not self.ok and self.error is None:
            raise ValueError("Resultado com falha deve incluir error")

    @classmethod
    def success(cls, value: T) -> LifecycleResult[T]:
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, error: LifecycleError, detail: str | None = None) -> LifecycleResult[T]:
        return cls(ok=False, error=error, detail=detail)
