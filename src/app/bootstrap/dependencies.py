"""Factories de componentes — criação de implementações concretas.

Centraliza a escolha do backend do Entity Store e o wiring dos engines,
do ledger e do reconciliador sobre um único store e um único relógio.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from app.bootstrap.clients import create_async_redis_client, create_firestore_client
from app.infra.clock import SystemClock
from app.infra.stores import FirestoreEntityStore, MemoryEntityStore, RedisEntityStore
from app.services import (
    FreightLifecycleEngine,
    IdempotencyLedger,
    PaymentEventReconciler,
    SubscriptionLifecycleEngine,
)
from config.settings import (
    get_base_settings,
    get_ledger_settings,
    get_openpix_settings,
    get_store_settings,
)

if TYPE_CHECKING:
    from app.protocols import ClockProtocol, EntityStoreProtocol
    from config.settings import StoreSettings

logger = logging.getLogger(__name__)


# ──────────────────────────────────────────────────────────────────────────────
# Entity Store Factory
# ──────────────────────────────────────────────────────────────────────────────


def create_entity_store(settings: StoreSettings | None = None) -> EntityStoreProtocol:
    """Cria o Entity Store conforme STORE_BACKEND.

    - "memory": MemoryEntityStore (dev only)
    - "redis": RedisEntityStore
    - "firestore": FirestoreEntityStore

    Raises:
        ValueError: Backend inválido.
    """
    settings = settings or get_store_settings()
    backend = settings.backend

    if backend == "firestore":
        store: EntityStoreProtocol = FirestoreEntityStore(create_firestore_client())
    elif backend == "redis":
        store = RedisEntityStore(create_async_redis_client())
    elif backend == "memory":
        environment = get_base_settings().environment
        if environment != "development":
            logger.warning(
                "memory_store_in_non_dev",
                extra={"backend": "memory", "environment": environment},
            )
        store = MemoryEntityStore()
    else:
        msg = f"STORE_BACKEND inválido: {backend}"
        raise ValueError(msg)

    logger.info("entity_store_created", extra={"backend": backend})
    return store


def create_clock() -> ClockProtocol:
    return SystemClock()


# ──────────────────────────────────────────────────────────────────────────────
# Service Factories
# ──────────────────────────────────────────────────────────────────────────────


def create_freight_engine(
    store: EntityStoreProtocol, clock: ClockProtocol
) -> FreightLifecycleEngine:
    return FreightLifecycleEngine(store, clock, get_store_settings())


def create_subscription_engine(
    store: EntityStoreProtocol, clock: ClockProtocol
) -> SubscriptionLifecycleEngine:
    return SubscriptionLifecycleEngine(store, clock, get_store_settings())


def create_idempotency_ledger(
    store: EntityStoreProtocol, clock: ClockProtocol
) -> IdempotencyLedger:
    return IdempotencyLedger(store, clock, get_ledger_settings())


def create_payment_reconciler(
    store: EntityStoreProtocol,
    clock: ClockProtocol,
    ledger: IdempotencyLedger,
    subscriptions: SubscriptionLifecycleEngine,
) -> PaymentEventReconciler:
    """Monta o reconciliador sobre o MESMO store de contas e ledger."""
    return PaymentEventReconciler(
        store=store,
        ledger=ledger,
        subscriptions=subscriptions,
        clock=clock,
        correlation_prefix=get_openpix_settings().correlation_prefix,
        max_retries=get_store_settings().cas_max_retries,
    )
