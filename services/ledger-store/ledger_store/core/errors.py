"""
Ledger Store — Error taxonomy

Every error carries a short title and a human-readable message so callers
can surface it directly as a toast. Store operations raise these before
touching any state.
"""
from decimal import Decimal


class LedgerError(Exception):
    """Base class for rejected ledger operations."""

    title = "Request Failed"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InsufficientFunds(LedgerError):
    title = "Insufficient Funds"

    def __init__(self, requested: Decimal, available: Decimal):
        super().__init__("You don't have enough balance for this transaction")
        self.requested = requested
        self.available = available


class InvalidOrDepletedCode(LedgerError):
    title = "Invalid Gift Card"

    def __init__(self, code: str):
        super().__init__("The gift card code is invalid or has already been redeemed")
        self.code = code


class NotFound(LedgerError):
    title = "Not Found"

    def __init__(self, entity: str, entity_id: str):
        super().__init__(f"{entity} '{entity_id}' was not found")
        self.entity = entity
        self.entity_id = entity_id


class InvalidAmount(LedgerError):
    title = "Invalid Amount"

    def __init__(self, amount, reason: str = "Please enter a valid amount"):
        super().__init__(reason)
        self.amount = amount


class IllegalTransition(LedgerError):
    title = "Order Not Updated"

    def __init__(self, order_id: str, current: str, requested: str):
        super().__init__(f"Order {order_id} cannot move from '{current}' to '{requested}'")
        self.order_id = order_id
        self.current = current
        self.requested = requested


class DuplicateCode(LedgerError):
    title = "Duplicate Gift Card"

    def __init__(self, code: str):
        super().__init__(f"A gift card with code '{code}' already exists")
        self.code = code


class EmptyOrder(LedgerError):
    title = "Empty Order"

    def __init__(self):
        super().__init__("Your cart is empty")


class UnknownMenuItem(LedgerError):
    title = "Unknown Item"

    def __init__(self, menu_item_id: str):
        super().__init__(f"Menu item '{menu_item_id}' is not on the menu")
        self.menu_item_id = menu_item_id


class UnknownLocation(LedgerError):
    title = "Unknown Location"

    def __init__(self, location: str):
        super().__init__(f"'{location}' is not a pickup location")
        self.location = location
