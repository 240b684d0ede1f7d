"""
Ledger Store — In-progress order cart

[EPHEMERAL] — owned by a single order flow, discarded on submit or abandon.
"""
import logging
from dataclasses import dataclass
from decimal import Decimal

from ledger_store.core.errors import UnknownMenuItem
from ledger_store.models.catalog import Catalog, MenuItem
from ledger_store.models.ledger import OrderLine

logger = logging.getLogger(__name__)


@dataclass
class CartLine:
    menu_item: MenuItem
    quantity: int = 1
    customizations: str | None = None

    @property
    def subtotal(self) -> Decimal:
        return self.menu_item.price * self.quantity


class Cart:
    def __init__(self, catalog: Catalog):
        self._catalog = catalog
        self._lines: dict[str, CartLine] = {}

    def __iter__(self):
        return iter(self._lines.values())

    def __len__(self) -> int:
        return len(self._lines)

    @property
    def lines(self) -> list[CartLine]:
        return list(self._lines.values())

    @property
    def total(self) -> Decimal:
        return sum((line.subtotal for line in self._lines.values()), Decimal("0.00"))

    def _lookup(self, menu_item_id: str) -> MenuItem:
        item = self._catalog.get(menu_item_id)
        if item is None:
            raise UnknownMenuItem(menu_item_id)
        return item

    def add(self, menu_item_id: str, quantity: int = 1, customizations: str | None = None) -> CartLine:
        """Add an item; an item already in the cart has its quantity bumped."""
        if quantity < 1:
            raise ValueError(f"Quantity must be positive, got {quantity}")
        item = self._lookup(menu_item_id)
        line = self._lines.get(item.id)
        if line is None:
            line = CartLine(menu_item=item, quantity=quantity, customizations=customizations or None)
            self._lines[item.id] = line
        else:
            line.quantity += quantity
            if customizations:
                line.customizations = customizations
        logger.debug("Cart: %s x%d", item.name, line.quantity)
        return line

    def set_quantity(self, menu_item_id: str, quantity: int) -> None:
        """Quantity <= 0 drops the line."""
        if menu_item_id not in self._lines:
            self._lookup(menu_item_id)
            if quantity <= 0:
                return
            self.add(menu_item_id, quantity)
            return
        if quantity <= 0:
            del self._lines[menu_item_id]
        else:
            self._lines[menu_item_id].quantity = quantity

    def set_customizations(self, menu_item_id: str, customizations: str | None) -> None:
        line = self._lines.get(menu_item_id)
        if line is None:
            raise UnknownMenuItem(menu_item_id)
        line.customizations = customizations or None

    def clear(self) -> None:
        self._lines.clear()

    def to_order_lines(self) -> list[OrderLine]:
        return [
            OrderLine(menu_item=line.menu_item, quantity=line.quantity, customizations=line.customizations)
            for line in self._lines.values()
            if line.quantity > 0
        ]
