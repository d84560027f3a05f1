"""Settings do Entity Store (fretes, contas e ledger).

Conta e ledger precisam viver no mesmo backend: a gravação acoplada
das duas é o que garante idempotência dos webhooks.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import TYPE_CHECKING, Literal

if TYPE_CHECKING:
    from config.settings.base.core import BaseSettings

StoreBackend = Literal["memory", "redis", "firestore"]

_VALID_BACKENDS = ("memory", "redis", "firestore")


@dataclass(frozen=True)
class StoreSettings:
    """Configurações de persistência.

    Attributes:
        backend: Backend (memory|redis|firestore)
        cas_max_retries: Tentativas de compare-and-set antes de desistir
    """

    backend: StoreBackend = "memory"
    cas_max_retries: int = 3

    def validate(self, base: BaseSettings) -> list[str]:
        """Valida configurações de persistência.

        Args:
            base: BaseSettings para verificar ambiente.

        Returns:
            Lista de erros de validação.
        """
        errors: list[str] = []

        if self.backend not in _VALID_BACKENDS:
            errors.append(f"STORE_BACKEND inválido: {self.backend}")

        if self.backend == "memory" and not base.is_development:
            errors.append(
                "STORE_BACKEND=memory proibido em staging/production. "
                "Use Firestore ou Redis."
            )

        if self.backend == "redis" and not base.redis_url:
            errors.append("STORE_BACKEND=redis requer REDIS_URL configurado")

        if self.backend == "firestore" and not base.gcp_project:
            errors.append("STORE_BACKEND=firestore requer GCP_PROJECT configurado")

        if self.cas_max_retries < 1:
            errors.append("STORE_CAS_MAX_RETRIES deve ser >= 1")

        return errors


def _default_backend(environment: str) -> str:
    return "firestore" if environment in ("staging", "production") else "memory"


def _load_store_from_env() -> StoreSettings:
    environment = os.getenv("ENVIRONMENT", "development").lower()
    backend_str = os.getenv("STORE_BACKEND", _default_backend(environment)).lower()
    backend: StoreBackend = backend_str if backend_str in _VALID_BACKENDS else "memory"
    return StoreSettings(
        backend=backend,
        cas_max_retries=int(os.getenv("STORE_CAS_MAX_RETRIES", "3")),
    )


@lru_cache(maxsize=1)
def get_store_settings() -> StoreSettings:
    """Retorna instância cacheada de StoreSettings."""
    return _load_store_from_env()
