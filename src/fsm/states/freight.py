"""
Estados canônicos de frete (anúncio de carga).

O status armazenado é apenas parte da verdade: a expiração é derivada
no momento da leitura a partir de `expiration_instant`.

Referência: ciclo de vida de frete — open/active → expired → active
"""

from enum import StrEnum


class FreightStatus(StrEnum):
    """
    Estados de um frete.

    Estados não-terminais:
        - OPEN: Publicado sem janela de disponibilidade
        - ACTIVE: Publicado com janela de 24h em andamento
        - EXPIRED: Janela encerrada (normalmente derivado, não gravado)

    Estados terminais:
        - COMPLETED: Frete concluído
        - CANCELLED: Frete cancelado pelo dono
    """

    OPEN = "open"
    ACTIVE = "active"
    EXPIRED = "expired"

    COMPLETED = "completed"
    CANCELLED = "cancelled"

    def __str__(self) -> str:
        return self.value


FREIGHT_TERMINAL_STATES: frozenset[FreightStatus] = frozenset({
    FreightStatus.COMPLETED,
    FreightStatus.CANCELLED,
})

# Estados sujeitos à derivação temporal
FREIGHT_EXPIRABLE_STATES: frozenset[FreightStatus] = frozenset({
    FreightStatus.OPEN,
    FreightStatus.ACTIVE,
})


def is_freight_terminal(status: FreightStatus) -> bool:
    """Verifica se o status de frete é terminal."""
    return status in FREIGHT_TERMINAL_STATES
