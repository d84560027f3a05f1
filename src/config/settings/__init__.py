"""Agregador de settings do QueroFretes Core.

Re-exporta todas as settings e funções de cada módulo.
Organização por domínio para isolamento de mudanças.
"""

from __future__ import annotations

from config.settings.base import (
    BaseSettings,
    Environment,
    LedgerSettings,
    StoreBackend,
    StoreSettings,
    get_base_settings,
    get_ledger_settings,
    get_store_settings,
)
from config.settings.openpix import (
    OpenPixSettings,
    get_openpix_settings,
)

__all__ = [
    "BaseSettings",
    "Environment",
    "LedgerSettings",
    "OpenPixSettings",
    "StoreBackend",
    "StoreSettings",
    "get_base_settings",
    "get_ledger_settings",
    "get_openpix_settings",
    "get_store_settings",
]
