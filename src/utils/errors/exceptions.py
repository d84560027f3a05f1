"""Exceções compartilhadas entre domínio e infraestrutura.

Falhas de domínio dos engines NÃO são exceções (ver app.domain.results);
aqui ficam apenas falhas de infraestrutura e de concorrência.
"""

from __future__ import annotations


class InfrastructureError(RuntimeError):
    """Base para falhas de infraestrutura transitórias (store indisponível)."""


class RedisConnectionError(InfrastructureError):
    """Falha de conexão/timeout ao acessar Redis."""


class FirestoreUnavailableError(InfrastructureError):
    """Falha de indisponibilidade ao acessar Firestore."""


class StaleWriteError(RuntimeError):
    """Compare-and-set perdeu a corrida: a versão gravada mudou."""

    def __init__(self, entity: str, expected_version: int) -> None:
        super().__init__(f"{entity}: versão esperada {expected_version} não confere")
        self.entity = entity
        self.expected_version = expected_version


class LedgerConflictError(RuntimeError):
    """Chave já presente no ledger de idempotência.

    Quem chama deve tratar exatamente como "já processado".
    """

    def __init__(self, key: str) -> None:
        super().__init__("ledger_key_already_present")
        self.key = key
