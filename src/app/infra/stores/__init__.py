"""Stores — implementações concretas do Entity Store.

Módulos disponíveis:
    - memory_stores: Store em memória para desenvolvimento/testes
    - redis_entity_store: Store usando Redis (WATCH/MULTI)
    - firestore_entity_store: Store usando Firestore (transações)
"""

from __future__ import annotations

from app.infra.stores.firestore_entity_store import FirestoreEntityStore
from app.infra.stores.memory_stores import MemoryEntityStore
from app.infra.stores.redis_entity_store import RedisEntityStore

__all__ = [
    "FirestoreEntityStore",
    "MemoryEntityStore",
    "RedisEntityStore",
]
