"""Fixtures das rotas HTTP: app FastAPI com engines sobre store em memória."""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from api.routes import create_api_router
from app.bootstrap import (
    get_entity_store,
    get_freight_engine,
    get_idempotency_ledger,
    get_payment_reconciler,
    get_subscription_engine,
)
from app.services import (
    FreightLifecycleEngine,
    IdempotencyLedger,
    PaymentEventReconciler,
    SubscriptionLifecycleEngine,
)
from config.settings import get_openpix_settings


@pytest.fixture
def api_app(store, clock) -> FastAPI:
    subscriptions = SubscriptionLifecycleEngine(store, clock)
    ledger = IdempotencyLedger(store, clock)
    reconciler = PaymentEventReconciler(
        store=store,
        ledger=ledger,
        subscriptions=subscriptions,
        clock=clock,
    )
    app = FastAPI()
    app.include_router(create_api_router())
    app.dependency_overrides[get_entity_store] = lambda: store
    app.dependency_overrides[get_freight_engine] = lambda: FreightLifecycleEngine(store, clock)
    app.dependency_overrides[get_subscription_engine] = lambda: subscriptions
    app.dependency_overrides[get_payment_reconciler] = lambda: reconciler
    app.dependency_overrides[get_idempotency_ledger] = lambda: ledger
    return app


@pytest.fixture
def client(api_app: FastAPI) -> TestClient:
    return TestClient(api_app)


@pytest.fixture(autouse=True)
def _openpix_settings(monkeypatch):
    """Sem secret por padrão; testes de assinatura definem o próprio."""
    monkeypatch.delenv("OPENPIX_WEBHOOK_SECRET", raising=False)
    get_openpix_settings.cache_clear()
    yield
    get_openpix_settings.cache_clear()
