"""
Ledger Store — Snapshot persistence

The ledger is mirrored to four independent key/value entries:

    <prefix>wallet-balance   decimal as text
    <prefix>gift-cards       JSON array of gift cards
    <prefix>pickups          JSON array of pickup orders
    <prefix>transactions     JSON array of transactions (newest first)

Each entry is decoded on its own; a missing or unreadable entry falls back
to its seed default without affecting the other three.
"""
import logging
import os
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Callable, Protocol, TypeVar

import aiofiles
import aiofiles.os
import redis.asyncio as aioredis
from pydantic import TypeAdapter, ValidationError

from ledger_store.core.money import to_money
from ledger_store.core.redis_client import get_redis
from ledger_store.models.ledger import GiftCard, PickupOrder, Transaction

logger = logging.getLogger(__name__)

T = TypeVar("T")

_gift_cards_adapter = TypeAdapter(list[GiftCard])
_pickups_adapter = TypeAdapter(list[PickupOrder])
_transactions_adapter = TypeAdapter(list[Transaction])


@dataclass(frozen=True)
class SnapshotKeys:
    prefix: str = "coffee-"

    @property
    def balance(self) -> str:
        return f"{self.prefix}wallet-balance"

    @property
    def gift_cards(self) -> str:
        return f"{self.prefix}gift-cards"

    @property
    def pickups(self) -> str:
        return f"{self.prefix}pickups"

    @property
    def transactions(self) -> str:
        return f"{self.prefix}transactions"

    def all(self) -> tuple[str, str, str, str]:
        return (self.balance, self.gift_cards, self.pickups, self.transactions)


@dataclass
class LedgerSnapshot:
    balance: Decimal
    gift_cards: list[GiftCard] = field(default_factory=list)
    pickups: list[PickupOrder] = field(default_factory=list)
    transactions: list[Transaction] = field(default_factory=list)


# ── Storage backends ──────────────────────────────────────────────────────────
class SnapshotStorage(Protocol):
    name: str

    async def get(self, key: str) -> str | None: ...

    async def set_many(self, entries: dict[str, str]) -> None: ...

    async def ping(self) -> bool: ...

    async def close(self) -> None: ...


class MemorySnapshotStorage:
    """Dict-backed storage. Survives store reloads, not process restarts."""

    name = "memory"

    def __init__(self, initial: dict[str, str] | None = None):
        self.entries: dict[str, str] = dict(initial or {})

    async def get(self, key: str) -> str | None:
        return self.entries.get(key)

    async def set_many(self, entries: dict[str, str]) -> None:
        self.entries.update(entries)

    async def ping(self) -> bool:
        return True

    async def close(self) -> None:
        pass


class FileSnapshotStorage:
    """One file per key; each write goes to a temp file and is renamed in place."""

    name = "file"

    def __init__(self, directory: str):
        self.directory = directory

    def _path(self, key: str) -> str:
        return os.path.join(self.directory, f"{key}.json")

    async def get(self, key: str) -> str | None:
        try:
            async with aiofiles.open(self._path(key), "r", encoding="utf-8") as f:
                return await f.read()
        except FileNotFoundError:
            return None

    async def set_many(self, entries: dict[str, str]) -> None:
        await aiofiles.os.makedirs(self.directory, exist_ok=True)
        for key, value in entries.items():
            path = self._path(key)
            tmp_path = f"{path}.tmp"
            async with aiofiles.open(tmp_path, "w", encoding="utf-8") as f:
                await f.write(value)
            await aiofiles.os.replace(tmp_path, path)

    async def ping(self) -> bool:
        await aiofiles.os.makedirs(self.directory, exist_ok=True)
        return os.access(self.directory, os.W_OK)

    async def close(self) -> None:
        pass


class RedisSnapshotStorage:
    """All four keys are written in a single MULTI/EXEC pipeline."""

    name = "redis"

    def __init__(self, redis: aioredis.Redis):
        self._redis = redis

    async def get(self, key: str) -> str | None:
        return await self._redis.get(key)

    async def set_many(self, entries: dict[str, str]) -> None:
        async with self._redis.pipeline(transaction=True) as pipe:
            for key, value in entries.items():
                pipe.set(key, value)
            await pipe.execute()

    async def ping(self) -> bool:
        return bool(await self._redis.ping())

    async def close(self) -> None:
        # The shared client is closed by the app lifespan.
        pass


# ── Encoding ──────────────────────────────────────────────────────────────────
def encode_snapshot(snapshot: LedgerSnapshot, keys: SnapshotKeys) -> dict[str, str]:
    return {
        keys.balance: str(snapshot.balance),
        keys.gift_cards: _gift_cards_adapter.dump_json(snapshot.gift_cards, by_alias=True).decode(),
        keys.pickups: _pickups_adapter.dump_json(snapshot.pickups, by_alias=True).decode(),
        keys.transactions: _transactions_adapter.dump_json(snapshot.transactions, by_alias=True).decode(),
    }


async def _read_entry(
    storage: SnapshotStorage,
    key: str,
    parse: Callable[[str], T],
    default: Callable[[], T],
) -> T:
    try:
        raw = await storage.get(key)
    except Exception as e:
        logger.error("Snapshot read failed for %s, using default: %s", key, e)
        return default()
    if raw is None or raw == "":
        logger.info("Snapshot entry %s absent, using default", key)
        return default()
    try:
        return parse(raw)
    except (ValidationError, ValueError) as e:
        logger.error("Snapshot entry %s is unreadable, using default: %s", key, e)
        return default()


def _parse_balance(raw: str) -> Decimal:
    balance = to_money(raw.strip())
    if balance < 0:
        raise ValueError(f"negative balance {balance}")
    return balance


async def read_snapshot(
    storage: SnapshotStorage,
    keys: SnapshotKeys,
    defaults: Callable[[], LedgerSnapshot],
) -> LedgerSnapshot:
    """Rehydrate each entry independently; ``defaults`` supplies fallbacks."""
    seed: LedgerSnapshot | None = None

    def fallback(attr: str):
        def _get():
            nonlocal seed
            if seed is None:
                seed = defaults()
            return getattr(seed, attr)
        return _get

    return LedgerSnapshot(
        balance=await _read_entry(storage, keys.balance, _parse_balance, fallback("balance")),
        gift_cards=await _read_entry(
            storage, keys.gift_cards, _gift_cards_adapter.validate_json, fallback("gift_cards")
        ),
        pickups=await _read_entry(
            storage, keys.pickups, _pickups_adapter.validate_json, fallback("pickups")
        ),
        transactions=await _read_entry(
            storage, keys.transactions, _transactions_adapter.validate_json, fallback("transactions")
        ),
    )


async def write_snapshot(storage: SnapshotStorage, keys: SnapshotKeys, snapshot: LedgerSnapshot) -> None:
    await storage.set_many(encode_snapshot(snapshot, keys))


def storage_from_settings(settings) -> SnapshotStorage:
    """Pick the backend named by ``SNAPSHOT_BACKEND``."""
    if settings.SNAPSHOT_BACKEND == "redis":
        return RedisSnapshotStorage(get_redis())
    if settings.SNAPSHOT_BACKEND == "file":
        return FileSnapshotStorage(settings.SNAPSHOT_DIR)
    return MemorySnapshotStorage()
