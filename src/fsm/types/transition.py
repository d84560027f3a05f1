"""
Tipos e estruturas de dados para transições de estado.

Este módulo define o grafo de estados e os registros usados para
rastrear transições de frete e de assinatura.

Referência: Determinismo e previsibilidade — toda transição é auditável
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from typing import Any


@dataclass(frozen=True, slots=True)
class StateGraph:
    """
    Grafo de transições de uma máquina de estados.

    Attributes:
        name: Nome do agregado (ex: "freight", "subscription")
        transitions: Estado de origem → estados de destino permitidos
        terminal_states: Estados sem saída
        reflexive_states: Estados que podem transitar para si mesmos
    """

    name: str
    transitions: Mapping[StrEnum, frozenset[StrEnum]]
    terminal_states: frozenset[StrEnum] = frozenset()
    reflexive_states: frozenset[StrEnum] = frozenset()

    def targets(self, state: StrEnum) -> frozenset[StrEnum]:
        """Destinos válidos a partir de `state` (vazio se desconhecido)."""
        return self.transitions.get(state, frozenset())


@dataclass(frozen=True, slots=True)
class StateTransition:
    """
    Representa uma transição de estado.

    Registro imutável de uma mudança de estado, incluindo:
    - Estados de origem e destino
    - Gatilho que causou a transição
    - Metadados para auditoria (sem PII)
    - Instante da transição, vindo do relógio injetado

    Attributes:
        from_state: Estado de origem da transição
        to_state: Estado de destino da transição
        trigger: Identificador do gatilho (ex: "reactivate", "payment_completed")
        timestamp: Momento da transição (UTC)
        metadata: Dados adicionais para auditoria (nunca conter PII)
    """

    from_state: StrEnum
    to_state: StrEnum
    trigger: str
    timestamp: datetime
    metadata: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        """Valida invariantes do objeto após inicialização."""
        if not self.trigger or not self.trigger.strip():
            raise ValueError("trigger não pode ser vazio")

        if self.timestamp.tzinfo is None:
            raise ValueError("timestamp deve ter timezone (UTC)")

    def to_log_dict(self) -> dict[str, Any]:
        """
        Retorna representação segura para logs (sem PII).

        Returns:
            Dict com dados seguros para logging estruturado
        """
        return {
            "from_state": self.from_state.value,
            "to_state": self.to_state.value,
            "trigger": self.trigger,
            "timestamp": self.timestamp.isoformat(),
            "metadata": self.metadata,
        }


@dataclass(frozen=True, slots=True)
class TransitionResult:
    """
    Resultado de uma tentativa de transição.

    Attributes:
        success: Se a transição foi bem-sucedida
        transition: Dados da transição (se success=True)
        error_reason: Motivo da falha (se success=False)
    """

    success: bool
    transition: StateTransition | None = None
    error_reason: str | None = None

    def __post_init__(self) -> None:
        """Valida consistência do resultado."""
        if self.success and self.transition is None:
            raise ValueError("Transição bem-sucedida deve incluir transition")
        if not self.success and self.error_reason is None:
            raise ValueError("Transição falha deve incluir error_reason")
