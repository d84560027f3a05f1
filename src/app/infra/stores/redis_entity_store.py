"""Redis Entity Store — fretes, contas e ledger em Redis (Upstash compatível).

Concorrência:
- Compare-and-set via WATCH/MULTI/EXEC sobre o campo `version` do JSON
- Inserção única no ledger via SET NX dentro de MULTI
- Ledger + conta: WATCH nas duas chaves, EXEC grava ambas ou nenhuma

Contrato de Keys:
    Chaves do ledger são hashes opacos (ver app.domain.ledger.ledger_key).
    Índices: freight:index (zset por id), freight:owner:{id} (set),
    ledger:index e ledger:account:{id} (zsets pelo recorded_at).
    Nunca logar correlationId/chargeId completos.
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING

from redis.exceptions import RedisError, WatchError

from app.domain.account import Account
from app.domain.freight import Freight
from app.domain.ledger import LedgerEntry
from app.protocols.entity_store import EntityStoreProtocol
from utils.errors import LedgerConflictError, RedisConnectionError, StaleWriteError

if TYPE_CHECKING:
    from datetime import datetime

    from redis.asyncio import Redis as AsyncRedis
    from redis.asyncio.client import Pipeline

logger = logging.getLogger(__name__)

KEY_PREFIX = "querofretes:"
LEDGER_INDEX_KEY = f"{KEY_PREFIX}ledger:index"
FREIGHT_INDEX_KEY = f"{KEY_PREFIX}freight:index"


def _stored_version(raw: bytes | str | None) -> int | None:
    if raw is None:
        return None
    return int(json.loads(raw).get("version", 0))


class RedisEntityStore(EntityStoreProtocol):
    """Entity Store usando redis.asyncio.

    Args:
        redis_client: Cliente Redis assíncrono
    """

    def __init__(self, redis_client: AsyncRedis[bytes]) -> None:
        self._redis = redis_client

    def _freight_key(self, freight_id: int) -> str:
        return f"{KEY_PREFIX}freight:{freight_id}"

    def _account_key(self, account_id: int) -> str:
        return f"{KEY_PREFIX}account:{account_id}"

    def _ledger_key(self, key: str) -> str:
        return f"{KEY_PREFIX}ledger:{key}"

    def _owner_index_key(self, owner_account_id: int) -> str:
        return f"{KEY_PREFIX}freight:owner:{owner_account_id}"

    def _account_ledger_index_key(self, account_id: int) -> str:
        return f"{KEY_PREFIX}ledger:account:{account_id}"

    def _index_ledger_entry(self, pipe: Pipeline, entry: LedgerEntry) -> None:
        """Enfileira os índices da entrada (retenção e histórico por conta).

        ZADD NX: uma reentrega nunca reescreve o score de entrada existente.
        """
        score = entry.recorded_at.timestamp()
        pipe.zadd(LEDGER_INDEX_KEY, {entry.key: score}, nx=True)
        if entry.account_id is not None:
            pipe.zadd(
                self._account_ledger_index_key(entry.account_id), {entry.key: score}, nx=True
            )

    # ──────────────────────────────────────────────────────────────
    # Freight
    # ──────────────────────────────────────────────────────────────

    async def get_freight(self, freight_id: int) -> Freight | None:
        try:
            raw = await self._redis.get(self._freight_key(freight_id))
        except RedisError as exc:
            raise RedisConnectionError("Falha ao ler frete no Redis") from exc
        if raw is None:
            return None
        return Freight.model_validate_json(raw)

    async def insert_freight(self, freight: Freight) -> Freight:
        try:
            freight_id = int(await self._redis.incr(f"{KEY_PREFIX}seq:freight"))
            stored = freight.model_copy(update={"id": freight_id, "version": 1})
            pipe = self._redis.pipeline(transaction=True)
            pipe.set(self._freight_key(freight_id), stored.model_dump_json())
            pipe.zadd(FREIGHT_INDEX_KEY, {str(freight_id): freight_id})
            if stored.owner_account_id is not None:
                pipe.sadd(self._owner_index_key(stored.owner_account_id), freight_id)
            await pipe.execute()
        except RedisError as exc:
            raise RedisConnectionError("Falha ao inserir frete no Redis") from exc
        return stored

    async def list_freights(self, owner_account_id: int | None = None) -> list[Freight]:
        try:
            if owner_account_id is None:
                ids = await self._redis.zrange(FREIGHT_INDEX_KEY, 0, -1)
            else:
                ids = await self._redis.smembers(self._owner_index_key(owner_account_id))
            if not ids:
                return []
            raws = await self._redis.mget([self._freight_key(int(i)) for i in ids])
        except RedisError as exc:
            raise RedisConnectionError("Falha ao listar fretes no Redis") from exc
        freights = [Freight.model_validate_json(raw) for raw in raws if raw is not None]
        return sorted(freights, key=lambda f: f.id or 0)

    async def update_freight(self, freight: Freight, expected_version: int) -> Freight:
        if freight.id is None:
            raise ValueError("update_freight exige freight.id")
        stored = freight.model_copy(update={"version": expected_version + 1})
        await self._compare_and_set(
            self._freight_key(freight.id),
            f"freight:{freight.id}",
            expected_version,
            stored.model_dump_json(),
        )
        return stored

    # ──────────────────────────────────────────────────────────────
    # Account
    # ──────────────────────────────────────────────────────────────

    async def get_account(self, account_id: int) -> Account | None:
        try:
            raw = await self._redis.get(self._account_key(account_id))
        except RedisError as exc:
            raise RedisConnectionError("Falha ao ler conta no Redis") from exc
        if raw is None:
            return None
        return Account.model_validate_json(raw)

    async def insert_account(self, account: Account) -> Account:
        stored = account.model_copy(update={"version": 1})
        try:
            created = await self._redis.set(
                self._account_key(account.id), stored.model_dump_json(), nx=True
            )
        except RedisError as exc:
            raise RedisConnectionError("Falha ao inserir conta no Redis") from exc
        if not created:
            raise StaleWriteError(f"account:{account.id}", 0)
        return stored

    async def update_account(self, account: Account, expected_version: int) -> Account:
        stored = account.model_copy(update={"version": expected_version + 1})
        await self._compare_and_set(
            self._account_key(account.id),
            f"account:{account.id}",
            expected_version,
            stored.model_dump_json(),
        )
        return stored

    async def _compare_and_set(
        self,
        redis_key: str,
        entity: str,
        expected_version: int,
        payload: str,
    ) -> None:
        try:
            async with self._redis.pipeline(transaction=True) as pipe:
                await pipe.watch(redis_key)
                current = _stored_version(await pipe.get(redis_key))
                if current != expected_version:
                    raise StaleWriteError(entity, expected_version)
                pipe.multi()
                pipe.set(redis_key, payload)
                await pipe.execute()
        except WatchError as exc:
            raise StaleWriteError(entity, expected_version) from exc
        except RedisError as exc:
            raise RedisConnectionError("Falha no compare-and-set do Redis") from exc

    # ──────────────────────────────────────────────────────────────
    # Ledger
    # ──────────────────────────────────────────────────────────────

    async def get_ledger_entry(self, key: str) -> LedgerEntry | None:
        try:
            raw = await self._redis.get(self._ledger_key(key))
        except RedisError as exc:
            raise RedisConnectionError("Falha ao consultar ledger no Redis") from exc
        if raw is None:
            return None
        return LedgerEntry.from_store_dict(json.loads(raw))

    async def insert_ledger_entry(self, entry: LedgerEntry) -> None:
        redis_key = self._ledger_key(entry.key)
        try:
            pipe = self._redis.pipeline(transaction=True)
            pipe.set(redis_key, json.dumps(entry.to_store_dict()), nx=True)
            self._index_ledger_entry(pipe, entry)
            was_set = (await pipe.execute())[0]
        except RedisError as exc:
            raise RedisConnectionError("Falha ao inserir no ledger do Redis") from exc
        if not was_set:
            logger.debug("ledger_conflict", extra={"ledger_key": entry.key[:16]})
            raise LedgerConflictError(entry.key)

    async def commit_account_with_ledger(
        self,
        account: Account,
        expected_version: int,
        entry: LedgerEntry,
    ) -> Account:
        account_key = self._account_key(account.id)
        redis_ledger_key = self._ledger_key(entry.key)
        stored = account.model_copy(update={"version": expected_version + 1})
        try:
            async with self._redis.pipeline(transaction=True) as pipe:
                await pipe.watch(account_key, redis_ledger_key)
                if await pipe.exists(redis_ledger_key):
                    raise LedgerConflictError(entry.key)
                current = _stored_version(await pipe.get(account_key))
                if current != expected_version:
                    raise StaleWriteError(f"account:{account.id}", expected_version)
                pipe.multi()
                pipe.set(account_key, stored.model_dump_json())
                pipe.set(redis_ledger_key, json.dumps(entry.to_store_dict()))
                self._index_ledger_entry(pipe, entry)
                await pipe.execute()
        except WatchError as exc:
            # Alguém tocou uma das chaves: descobrir qual para o chamador
            if await self._ledger_exists(redis_ledger_key):
                raise LedgerConflictError(entry.key) from exc
            raise StaleWriteError(f"account:{account.id}", expected_version) from exc
        except RedisError as exc:
            raise RedisConnectionError("Falha ao gravar conta+ledger no Redis") from exc
        return stored

    async def _ledger_exists(self, redis_ledger_key: str) -> bool:
        try:
            return bool(await self._redis.exists(redis_ledger_key))
        except RedisError as exc:
            raise RedisConnectionError("Falha ao consultar ledger no Redis") from exc

    async def delete_ledger_entries_before(self, cutoff: datetime) -> int:
        try:
            members = await self._redis.zrangebyscore(
                LEDGER_INDEX_KEY, "-inf", f"({cutoff.timestamp()}"
            )
            if not members:
                return 0
            keys = [m.decode() if isinstance(m, bytes) else m for m in members]
            raws = await self._redis.mget([self._ledger_key(k) for k in keys])
            pipe = self._redis.pipeline(transaction=True)
            pipe.delete(*[self._ledger_key(k) for k in keys])
            pipe.zrem(LEDGER_INDEX_KEY, *keys)
            for key, raw in zip(keys, raws, strict=True):
                account_id = json.loads(raw).get("account_id") if raw is not None else None
                if account_id is not None:
                    pipe.zrem(self._account_ledger_index_key(account_id), key)
            await pipe.execute()
        except RedisError as exc:
            raise RedisConnectionError("Falha ao podar ledger no Redis") from exc
        return len(keys)

    async def list_ledger_entries(self, account_id: int) -> list[LedgerEntry]:
        try:
            keys = await self._redis.zrange(self._account_ledger_index_key(account_id), 0, -1)
            if not keys:
                return []
            raws = await self._redis.mget(
                [self._ledger_key(k.decode() if isinstance(k, bytes) else k) for k in keys]
            )
        except RedisError as exc:
            raise RedisConnectionError("Falha ao listar ledger no Redis") from exc
        return [LedgerEntry.from_store_dict(json.loads(raw)) for raw in raws if raw is not None]

    async def ping(self) -> None:
        try:
            await self._redis.ping()
        except RedisError as exc:
            raise RedisConnectionError("Redis indisponível") from exc
