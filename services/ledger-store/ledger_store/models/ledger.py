"""
Ledger Store — Ledger records

[TRANSACTIONAL DATA] — gift cards, pickup orders and the transaction log,
persisted as one snapshot after every mutation.
"""
from datetime import datetime
from decimal import Decimal
from enum import Enum as PyEnum

from pydantic import ConfigDict, Field

from ledger_store.models.base import LedgerModel
from ledger_store.models.catalog import MenuItem


class TransactionType(str, PyEnum):
    PURCHASE = "purchase"
    RELOAD = "reload"
    GIFT = "gift"
    REFUND = "refund"
    REDEMPTION = "redemption"


class TransactionStatus(str, PyEnum):
    COMPLETED = "completed"
    PENDING = "pending"
    FAILED = "failed"


class PickupStatus(str, PyEnum):
    SCHEDULED = "scheduled"
    READY = "ready"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class GiftCardTheme(str, PyEnum):
    CLASSIC = "classic"
    BIRTHDAY = "birthday"
    HOLIDAY = "holiday"
    THANK_YOU = "thank-you"


# ── Pickup state machine ──────────────────────────────────────────────────────
ALLOWED_TRANSITIONS: dict[PickupStatus, frozenset[PickupStatus]] = {
    PickupStatus.SCHEDULED: frozenset({PickupStatus.READY, PickupStatus.CANCELLED}),
    PickupStatus.READY:     frozenset({PickupStatus.COMPLETED, PickupStatus.CANCELLED}),
    PickupStatus.COMPLETED: frozenset(),
    PickupStatus.CANCELLED: frozenset(),
}

# Shown on the wallet page; purchases and gift purchases are listed elsewhere.
WALLET_TRANSACTION_TYPES = frozenset({
    TransactionType.RELOAD,
    TransactionType.REDEMPTION,
    TransactionType.REFUND,
})


class Transaction(LedgerModel):
    """Append-only audit record. ``amount`` is always positive."""
    model_config = ConfigDict(frozen=True)

    id: str
    amount: Decimal = Field(..., gt=0)
    kind: TransactionType = Field(..., alias="type")
    description: str
    date: datetime
    status: TransactionStatus = TransactionStatus.COMPLETED


class GiftCard(LedgerModel):
    id: str
    code: str
    balance: Decimal = Field(..., ge=0)
    initial_amount: Decimal = Field(..., gt=0)
    expiry_date: datetime
    is_active: bool = True
    created_at: datetime
    purchased_by: str | None = None
    theme: GiftCardTheme = GiftCardTheme.CLASSIC

    @property
    def redeemable(self) -> bool:
        return self.is_active and self.balance > 0

    def matches(self, code: str) -> bool:
        return self.code.casefold() == code.strip().casefold()


class OrderLine(LedgerModel):
    """A menu item as priced at order time, not a live reference."""
    model_config = ConfigDict(frozen=True)

    menu_item: MenuItem
    quantity: int = Field(..., ge=1)
    customizations: str | None = None

    @property
    def subtotal(self) -> Decimal:
        return self.menu_item.price * self.quantity


class PickupOrder(LedgerModel):
    id: str
    user_id: str
    items: list[OrderLine]
    pickup_time: datetime
    pickup_location: str
    status: PickupStatus = PickupStatus.SCHEDULED
    created_at: datetime
    total: Decimal = Field(..., ge=0)

    @property
    def is_active(self) -> bool:
        return self.status not in (PickupStatus.COMPLETED, PickupStatus.CANCELLED)

    def can_become(self, status: PickupStatus) -> bool:
        return status in ALLOWED_TRANSITIONS[self.status]
