"""
Shared fixtures: a memory-backed ledger, a fixed clock and a small catalog
with round prices.
"""
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest
import pytest_asyncio

from ledger_store.core.config import Settings
from ledger_store.db.ledger_store import LedgerStore
from ledger_store.db.snapshot import LedgerSnapshot, MemorySnapshotStorage
from ledger_store.models.catalog import Catalog, Category, MenuItem, PICKUP_LOCATIONS
from ledger_store.models.ledger import OrderLine

NOW = datetime(2025, 3, 14, 9, 0, tzinfo=timezone.utc)

ESPRESSO = MenuItem(id="espresso", name="Espresso", description="Double shot",
                    price=Decimal("4.00"), category=Category.COFFEE)
SCONE = MenuItem(id="scone", name="Scone", description="Cream scone",
                 price=Decimal("2.00"), category=Category.PASTRY)


def lines(*pairs: tuple[MenuItem, int]) -> list[OrderLine]:
    return [OrderLine(menu_item=item, quantity=qty) for item, qty in pairs]


def minutes_from_now(minutes: int) -> datetime:
    return NOW + timedelta(minutes=minutes)


@pytest.fixture
def settings() -> Settings:
    return Settings(SNAPSHOT_BACKEND="memory", _env_file=None)


@pytest.fixture
def catalog() -> Catalog:
    return Catalog(items=(ESPRESSO, SCONE), locations=PICKUP_LOCATIONS)


@pytest.fixture
def storage() -> MemorySnapshotStorage:
    return MemorySnapshotStorage()


@pytest_asyncio.fixture
async def ledger(storage, settings, catalog):
    """Fresh first-run ledger: 25.00 balance, welcome card, sample history."""
    store = await LedgerStore.load(storage, now=NOW, settings=settings, catalog=catalog)
    yield store
    await store.close()


@pytest.fixture
def make_ledger(storage, catalog):
    """Build a ledger with an exact starting balance and nothing else."""
    def _make(balance: str) -> LedgerStore:
        return LedgerStore(storage, LedgerSnapshot(balance=Decimal(balance)), catalog=catalog)
    return _make
