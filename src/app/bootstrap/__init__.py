"""Bootstrap da aplicação — inicialização e wiring.

Este módulo é o composition root: configura logging, valida settings e
conecta implementações concretas aos protocolos.

Uso:
    from app.bootstrap import initialize_app, get_payment_reconciler

    # Na inicialização do serviço
    initialize_app()

    reconciler = get_payment_reconciler()
"""

from __future__ import annotations

import logging
import os
from functools import lru_cache
from typing import TYPE_CHECKING

from app.observability import get_request_id
from config.logging import configure_logging
from config.settings import (
    get_base_settings,
    get_ledger_settings,
    get_openpix_settings,
    get_store_settings,
)

if TYPE_CHECKING:
    from app.protocols import ClockProtocol, EntityStoreProtocol
    from app.services import (
        FreightLifecycleEngine,
        IdempotencyLedger,
        PaymentEventReconciler,
        SubscriptionLifecycleEngine,
    )

# Nível de log padrão (pode ser sobrescrito por env)
DEFAULT_LOG_LEVEL = "INFO"
STRICT_VALIDATION_ENVS = {"staging", "production"}

logger = logging.getLogger(__name__)


def initialize_app() -> None:
    """Inicializa logging estruturado JSON com request_id.

    Deve ser chamada uma vez no início do serviço.
    """
    configure_logging(
        level=os.getenv("LOG_LEVEL", DEFAULT_LOG_LEVEL).upper(),
        service_name=get_base_settings().service_name,
        request_id_getter=get_request_id,
    )


def validate_runtime_settings() -> None:
    """Valida settings obrigatórias no startup.

    Em `staging`/`production` falha rápido para impedir boot inválido.
    Em `development` mantém alerta sem bloquear execução local.
    """
    base = get_base_settings()
    strict_mode = base.environment in STRICT_VALIDATION_ENVS
    errors: list[str] = []

    errors.extend(f"base: {error}" for error in base.validate())
    errors.extend(f"store: {error}" for error in get_store_settings().validate(base))
    errors.extend(f"ledger: {error}" for error in get_ledger_settings().validate())
    errors.extend(
        f"openpix: {error}" for error in get_openpix_settings().validate(strict=strict_mode)
    )

    if not errors:
        logger.info(
            "settings_validated",
            extra={"component": "bootstrap", "result": "ok", "environment": base.environment},
        )
        return

    logger.warning(
        "settings_validation_failed",
        extra={
            "component": "bootstrap",
            "result": "failed",
            "environment": base.environment,
            "error_count": len(errors),
            "errors": errors,
        },
    )
    if strict_mode:
        details = "\n".join(f"- {error}" for error in errors)
        raise RuntimeError(f"Configuração inválida para {base.environment}:\n{details}")


# ──────────────────────────────────────────────────────────────────────────────
# Getters (lazy initialization com cache)
# ──────────────────────────────────────────────────────────────────────────────


@lru_cache(maxsize=1)
def get_entity_store() -> EntityStoreProtocol:
    """Obtém o Entity Store (singleton) configurado conforme env."""
    from app.bootstrap.dependencies import create_entity_store

    return create_entity_store()


@lru_cache(maxsize=1)
def get_clock() -> ClockProtocol:
    from app.bootstrap.dependencies import create_clock

    return create_clock()


@lru_cache(maxsize=1)
def get_freight_engine() -> FreightLifecycleEngine:
    from app.bootstrap.dependencies import create_freight_engine

    return create_freight_engine(get_entity_store(), get_clock())


@lru_cache(maxsize=1)
def get_subscription_engine() -> SubscriptionLifecycleEngine:
    from app.bootstrap.dependencies import create_subscription_engine

    return create_subscription_engine(get_entity_store(), get_clock())


@lru_cache(maxsize=1)
def get_idempotency_ledger() -> IdempotencyLedger:
    from app.bootstrap.dependencies import create_idempotency_ledger

    return create_idempotency_ledger(get_entity_store(), get_clock())


@lru_cache(maxsize=1)
def get_payment_reconciler() -> PaymentEventReconciler:
    """Obtém o reconciliador de pagamentos (singleton)."""
    from app.bootstrap.dependencies import create_payment_reconciler

    return create_payment_reconciler(
        get_entity_store(),
        get_clock(),
        get_idempotency_ledger(),
        get_subscription_engine(),
    )
