"""Agregador de settings base.

Re-exporta todas as settings base para uso externo.
"""

from __future__ import annotations

from config.settings.base.core import (
    BaseSettings,
    Environment,
    get_base_settings,
)
from config.settings.base.ledger import (
    LedgerSettings,
    get_ledger_settings,
)
from config.settings.base.store import (
    StoreBackend,
    StoreSettings,
    get_store_settings,
)

__all__ = [
    "BaseSettings",
    "Environment",
    "LedgerSettings",
    "StoreBackend",
    "StoreSettings",
    "get_base_settings",
    "get_ledger_settings",
    "get_store_settings",
]
