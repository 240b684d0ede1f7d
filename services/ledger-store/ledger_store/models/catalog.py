"""
Ledger Store — Menu catalog

[CONFIG DATA] — built once at startup, never mutated during a session.
"""
from decimal import Decimal
from enum import Enum as PyEnum

from pydantic import ConfigDict, Field

from ledger_store.models.base import LedgerModel


class Category(str, PyEnum):
    COFFEE = "coffee"
    TEA = "tea"
    PASTRY = "pastry"
    SANDWICH = "sandwich"


class MenuItem(LedgerModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    description: str
    price: Decimal = Field(..., ge=0)
    image: str = "/placeholder.svg"
    category: Category


PICKUP_LOCATIONS: tuple[str, ...] = (
    "Downtown Cafe",
    "Westside Shop",
    "Riverside Cafe",
    "University Hub",
)


MENU: tuple[MenuItem, ...] = (
    MenuItem(
        id="1",
        name="Signature Latte",
        description="Our signature espresso with steamed milk and a light layer of foam",
        price=Decimal("4.95"),
        category=Category.COFFEE,
    ),
    MenuItem(
        id="2",
        name="Cold Brew",
        description="Smooth, cold-steeped coffee served over ice",
        price=Decimal("4.50"),
        category=Category.COFFEE,
    ),
    MenuItem(
        id="3",
        name="Chai Tea Latte",
        description="Black tea infused with cinnamon, clove and other warming spices",
        price=Decimal("4.75"),
        category=Category.TEA,
    ),
    MenuItem(
        id="4",
        name="Almond Croissant",
        description="Buttery croissant filled with almond cream",
        price=Decimal("3.95"),
        category=Category.PASTRY,
    ),
    MenuItem(
        id="5",
        name="Avocado Toast",
        description="Multigrain toast topped with avocado, sea salt, and red pepper flakes",
        price=Decimal("7.95"),
        category=Category.SANDWICH,
    ),
)


class Catalog:
    """Read-only lookup over the menu."""

    def __init__(self, items=MENU, locations=PICKUP_LOCATIONS):
        self._items: dict[str, MenuItem] = {item.id: item for item in items}
        if len(self._items) != len(items):
            raise ValueError("Menu item ids must be unique")
        self.locations = tuple(locations)

    def __iter__(self):
        return iter(self._items.values())

    def __len__(self) -> int:
        return len(self._items)

    def get(self, menu_item_id: str) -> MenuItem | None:
        return self._items.get(menu_item_id)

    def by_category(self, category: Category | str | None = None) -> list[MenuItem]:
        if category is None or category == "all":
            return list(self._items.values())
        return [item for item in self._items.values() if item.category == Category(category)]
