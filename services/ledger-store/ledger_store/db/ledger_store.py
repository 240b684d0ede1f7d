"""
Ledger Store — Wallet, gift card and pickup-order bookkeeping

Single authority over the wallet balance, gift cards, pickup orders and the
transaction log. Every mutation:

  1. validates its preconditions and raises a LedgerError before touching state,
  2. changes the balance and appends exactly one Transaction as one step,
  3. writes the full snapshot back to storage.

Mutations are serialised by one asyncio.Lock, so the in-memory state seen by
the next call always includes the previous call's effects, whether or not
its snapshot write has finished.
"""
import asyncio
import logging
import secrets
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Iterable

from ledger_store.core.config import Settings, get_settings
from ledger_store.core.errors import (
    DuplicateCode,
    EmptyOrder,
    IllegalTransition,
    InsufficientFunds,
    InvalidAmount,
    InvalidOrDepletedCode,
    NotFound,
    UnknownLocation,
)
from ledger_store.core.money import ZERO, format_money, to_money
from ledger_store.core.scheduling import ensure_aware, minutes_until, resolve_pickup_time
from ledger_store.db.seed import default_snapshot
from ledger_store.db.snapshot import (
    LedgerSnapshot,
    SnapshotKeys,
    SnapshotStorage,
    read_snapshot,
    write_snapshot,
)
from ledger_store.models.cart import CartLine
from ledger_store.models.catalog import Catalog
from ledger_store.models.ledger import (
    WALLET_TRANSACTION_TYPES,
    GiftCard,
    GiftCardTheme,
    OrderLine,
    PickupOrder,
    PickupStatus,
    Transaction,
    TransactionType,
)

logger = logging.getLogger(__name__)

GIFT_CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
GIFT_CODE_LENGTH = 12
GIFT_CODE_GROUP = 4

_DEBIT_KINDS = frozenset({TransactionType.PURCHASE, TransactionType.GIFT})


def generate_gift_card_code() -> str:
    """Random ``XXXX-XXXX-XXXX`` code without look-alike characters (0/O, 1/I)."""
    chars = [secrets.choice(GIFT_CODE_ALPHABET) for _ in range(GIFT_CODE_LENGTH)]
    groups = [
        "".join(chars[i:i + GIFT_CODE_GROUP])
        for i in range(0, GIFT_CODE_LENGTH, GIFT_CODE_GROUP)
    ]
    return "-".join(groups)


@dataclass(frozen=True)
class Cancellation:
    order: PickupOrder
    refund: Transaction | None = None

    @property
    def refunded(self) -> Decimal:
        return self.refund.amount if self.refund else ZERO


class LedgerStore:
    """
    Construct with ``await LedgerStore.load(storage, now=...)`` once at
    startup, hand the instance to every consumer, and ``await close()`` on
    shutdown.
    """

    def __init__(
        self,
        storage: SnapshotStorage,
        snapshot: LedgerSnapshot,
        *,
        catalog: Catalog | None = None,
        keys: SnapshotKeys | None = None,
        user_id: str = "Coffee Lover",
        refund_cutoff_minutes: int = 30,
        asap_lead_minutes: int = 20,
        gift_card_valid_days: int = 365,
        min_gift_card_amount: Decimal = Decimal("5.00"),
    ):
        self._storage = storage
        self._keys = keys or SnapshotKeys()
        self.catalog = catalog or Catalog()
        self.user_id = user_id
        self.refund_cutoff_minutes = refund_cutoff_minutes
        self.asap_lead_minutes = asap_lead_minutes
        self.gift_card_valid_days = gift_card_valid_days
        self.min_gift_card_amount = to_money(min_gift_card_amount)

        self._balance = to_money(snapshot.balance)
        self._gift_cards: list[GiftCard] = list(snapshot.gift_cards)
        self._orders: list[PickupOrder] = list(snapshot.pickups)
        self._transactions: list[Transaction] = list(snapshot.transactions)
        self._lock = asyncio.Lock()

    # ── Lifecycle ─────────────────────────────────────────────────────────────
    @classmethod
    async def load(
        cls,
        storage: SnapshotStorage,
        *,
        now: datetime,
        settings: Settings | None = None,
        catalog: Catalog | None = None,
    ) -> "LedgerStore":
        settings = settings or get_settings()
        now = ensure_aware(now)
        keys = SnapshotKeys(settings.SNAPSHOT_KEY_PREFIX)
        snapshot = await read_snapshot(storage, keys, lambda: default_snapshot(settings, now))
        store = cls(
            storage,
            snapshot,
            catalog=catalog,
            keys=keys,
            user_id=settings.USER_NAME,
            refund_cutoff_minutes=settings.REFUND_CUTOFF_MINUTES,
            asap_lead_minutes=settings.ASAP_LEAD_MINUTES,
            gift_card_valid_days=settings.GIFT_CARD_VALID_DAYS,
            min_gift_card_amount=settings.MIN_GIFT_CARD_AMOUNT,
        )
        logger.info(
            "Ledger loaded from %s storage: balance=%s, %d gift cards, %d orders, %d transactions",
            storage.name, store.balance, len(store._gift_cards), len(store._orders), len(store._transactions),
        )
        return store

    async def close(self) -> None:
        async with self._lock:
            await self._persist()
            await self._storage.close()

    # ── Read side ─────────────────────────────────────────────────────────────
    @property
    def balance(self) -> Decimal:
        return self._balance

    @property
    def gift_cards(self) -> list[GiftCard]:
        return list(self._gift_cards)

    @property
    def orders(self) -> list[PickupOrder]:
        """Newest first."""
        return list(self._orders)

    @property
    def transactions(self) -> list[Transaction]:
        """Newest first."""
        return list(self._transactions)

    @property
    def storage(self) -> SnapshotStorage:
        return self._storage

    def get_order(self, order_id: str) -> PickupOrder:
        for order in self._orders:
            if order.id == order_id:
                return order
        raise NotFound("Pickup order", order_id)

    def active_orders(self) -> list[PickupOrder]:
        return [order for order in self._orders if order.is_active]

    def active_gift_cards(self) -> list[GiftCard]:
        return [card for card in self._gift_cards if card.redeemable]

    def wallet_transactions(self) -> list[Transaction]:
        return [t for t in self._transactions if t.kind in WALLET_TRANSACTION_TYPES]

    def recent_transactions(self, limit: int = 5) -> list[Transaction]:
        return self._transactions[:limit]

    def snapshot(self) -> LedgerSnapshot:
        return LedgerSnapshot(
            balance=self._balance,
            gift_cards=list(self._gift_cards),
            pickups=list(self._orders),
            transactions=list(self._transactions),
        )

    # ── Internals (caller holds the lock) ─────────────────────────────────────
    async def _persist(self) -> None:
        try:
            await write_snapshot(self._storage, self._keys, self.snapshot())
        except Exception:
            # In-memory state stays authoritative; the next mutation rewrites everything.
            logger.exception("Snapshot write to %s storage failed", self._storage.name)

    def _new_id(self, prefix: str, taken: Iterable[str]) -> str:
        taken = set(taken)
        while True:
            candidate = f"{prefix}-{uuid.uuid4().hex[:12]}"
            if candidate not in taken:
                return candidate

    def _code_taken(self, code: str) -> bool:
        return any(card.matches(code) for card in self._gift_cards)

    def _new_gift_code(self) -> str:
        while True:
            code = generate_gift_card_code()
            if not self._code_taken(code):
                return code

    @staticmethod
    def _positive(amount) -> Decimal:
        try:
            value = to_money(amount)
        except ValueError:
            raise InvalidAmount(amount)
        if value <= 0:
            raise InvalidAmount(amount)
        return value

    def _record(self, kind: TransactionType, amount: Decimal, description: str, now: datetime) -> Transaction:
        transaction = Transaction(
            id=self._new_id("tr", (t.id for t in self._transactions)),
            amount=amount,
            kind=kind,
            description=description,
            date=now,
        )
        self._transactions.insert(0, transaction)
        return transaction

    def _credit(self, amount: Decimal, kind: TransactionType, description: str, now: datetime) -> Transaction:
        self._balance += amount
        transaction = self._record(kind, amount, description, now)
        logger.info("Credited %s (%s), balance now %s", amount, kind.value, self._balance)
        return transaction

    def _debit(self, amount: Decimal, kind: TransactionType, description: str, now: datetime) -> Transaction:
        if self._balance < amount:
            logger.warning("Debit of %s rejected: balance is %s", amount, self._balance)
            raise InsufficientFunds(amount, self._balance)
        self._balance -= amount
        transaction = self._record(kind, amount, description, now)
        logger.info("Debited %s (%s), balance now %s", amount, kind.value, self._balance)
        return transaction

    # ── Wallet ────────────────────────────────────────────────────────────────
    async def credit(self, amount, *, now: datetime, description: str = "Added funds to wallet") -> Transaction:
        """Reload the wallet."""
        value = self._positive(amount)
        async with self._lock:
            transaction = self._credit(value, TransactionType.RELOAD, description, ensure_aware(now))
            await self._persist()
            return transaction

    async def debit(
        self,
        amount,
        *,
        now: datetime,
        description: str = "Wallet payment",
        kind: TransactionType = TransactionType.PURCHASE,
    ) -> Transaction:
        """Pay from the wallet. Raises InsufficientFunds with nothing changed."""
        kind = TransactionType(kind)
        if kind not in _DEBIT_KINDS:
            raise ValueError(f"{kind.value} is not a debit transaction type")
        value = self._positive(amount)
        async with self._lock:
            transaction = self._debit(value, kind, description, ensure_aware(now))
            await self._persist()
            return transaction

    # ── Gift cards ────────────────────────────────────────────────────────────
    async def issue_gift_card(
        self,
        initial_amount,
        *,
        now: datetime,
        code: str | None = None,
        balance=None,
        expiry: datetime | None = None,
        theme: GiftCardTheme | str = GiftCardTheme.CLASSIC,
        purchaser: str | None = None,
        description: str = "Gift card purchase",
    ) -> GiftCard:
        """
        Create a gift card. With a ``purchaser`` the initial amount is paid
        from the wallet and logged as one ``gift`` transaction; without one
        the card is complimentary and nothing is logged.
        """
        initial = self._positive(initial_amount)
        card_balance = initial if balance is None else to_money(balance)
        if card_balance < 0:
            raise InvalidAmount(balance, "Gift card balance cannot be negative")
        theme = GiftCardTheme(theme)
        now = ensure_aware(now)

        async with self._lock:
            if code is None:
                code = self._new_gift_code()
            else:
                code = code.strip()
                if not code:
                    raise ValueError("Gift card code cannot be blank")
                if self._code_taken(code):
                    raise DuplicateCode(code)

            if purchaser is not None:
                self._debit(initial, TransactionType.GIFT, description, now)

            card = GiftCard(
                id=self._new_id("gc", (c.id for c in self._gift_cards)),
                code=code,
                balance=card_balance,
                initial_amount=initial,
                expiry_date=ensure_aware(expiry) if expiry else now + timedelta(days=self.gift_card_valid_days),
                is_active=True,
                created_at=now,
                purchased_by=purchaser,
                theme=theme,
            )
            self._gift_cards.insert(0, card)
            logger.info("Issued gift card %s for %s (purchaser=%s)", card.id, card.initial_amount, purchaser)
            await self._persist()
            return card

    async def purchase_gift_card(
        self,
        amount,
        *,
        now: datetime,
        theme: GiftCardTheme | str = GiftCardTheme.CLASSIC,
        recipient_email: str | None = None,
    ) -> GiftCard:
        """Buy a new gift card from the wallet, valid for one year by default."""
        value = self._positive(amount)
        if value < self.min_gift_card_amount:
            raise InvalidAmount(amount, f"Gift cards start at {format_money(self.min_gift_card_amount)}")
        description = f"Gift card for {recipient_email}" if recipient_email else "Gift card purchase"
        return await self.issue_gift_card(
            value,
            now=now,
            theme=theme,
            purchaser="self",
            description=description,
        )

    async def redeem_gift_card(self, code: str, *, now: datetime) -> Decimal:
        """Move a card's whole balance into the wallet. Returns the amount credited."""
        async with self._lock:
            index = next(
                (i for i, card in enumerate(self._gift_cards) if card.redeemable and card.matches(code)),
                None,
            )
            if index is None:
                logger.warning("Gift card redemption rejected for code %r", code)
                raise InvalidOrDepletedCode(code)

            card = self._gift_cards[index]
            amount = card.balance
            self._gift_cards[index] = card.model_copy(update={"balance": ZERO, "is_active": False})
            self._credit(amount, TransactionType.REDEMPTION, "Gift card redemption", ensure_aware(now))
            await self._persist()
            return amount

    # ── Pickup orders ─────────────────────────────────────────────────────────
    async def schedule_pickup(
        self,
        lines: Iterable[OrderLine | CartLine],
        pickup_time: datetime | str,
        location: str,
        *,
        now: datetime,
    ) -> PickupOrder:
        """Charge the wallet for ``lines`` and book a pickup. "ASAP" is accepted as a time."""
        order_lines = []
        for line in lines:
            if isinstance(line, OrderLine):
                order_lines.append(line)
                continue
            if line.quantity < 1:
                raise InvalidAmount(line.quantity, f"Quantity for {line.menu_item.name} must be at least 1")
            order_lines.append(OrderLine(
                menu_item=line.menu_item, quantity=line.quantity, customizations=line.customizations,
            ))
        if not order_lines:
            raise EmptyOrder()
        if location not in self.catalog.locations:
            raise UnknownLocation(location)
        now = ensure_aware(now)
        when = resolve_pickup_time(pickup_time, now, self.asap_lead_minutes)
        total = to_money(sum((line.subtotal for line in order_lines), ZERO))

        async with self._lock:
            if total > 0:
                names = ", ".join(line.menu_item.name for line in order_lines)
                self._debit(total, TransactionType.PURCHASE, f"Pickup order - {names}", now)
            order = PickupOrder(
                id=self._new_id("pu", (o.id for o in self._orders)),
                user_id=self.user_id,
                items=order_lines,
                pickup_time=when,
                pickup_location=location,
                status=PickupStatus.SCHEDULED,
                created_at=now,
                total=total,
            )
            self._orders.insert(0, order)
            logger.info("Pickup %s scheduled at %s for %s", order.id, location, when.isoformat())
            await self._persist()
            return order

    def _index_of(self, order_id: str) -> int:
        for i, order in enumerate(self._orders):
            if order.id == order_id:
                return i
        raise NotFound("Pickup order", order_id)

    def _cancel(self, index: int, now: datetime) -> Cancellation:
        order = self._orders[index]
        if not order.can_become(PickupStatus.CANCELLED):
            raise IllegalTransition(order.id, order.status.value, PickupStatus.CANCELLED.value)

        cancelled = order.model_copy(update={"status": PickupStatus.CANCELLED})
        self._orders[index] = cancelled

        refund = None
        if order.total > 0 and minutes_until(order.pickup_time, now) > self.refund_cutoff_minutes:
            refund = self._credit(order.total, TransactionType.REFUND, "Pickup cancellation refund", now)
        else:
            logger.info("Pickup %s cancelled without refund", order.id)
        return Cancellation(order=cancelled, refund=refund)

    async def cancel_pickup(self, order_id: str, *, now: datetime) -> Cancellation:
        """
        Cancel an order. The full total is refunded only when strictly more
        than the cutoff (30 minutes) remains before pickup.
        """
        async with self._lock:
            result = self._cancel(self._index_of(order_id), ensure_aware(now))
            await self._persist()
            return result

    async def update_status(self, order_id: str, status: PickupStatus | str, *, now: datetime) -> PickupOrder:
        """Move an order along scheduled -> ready -> completed.

        Cancelling through here applies the same refund rule as cancel_pickup.
        """
        async with self._lock:
            index = self._index_of(order_id)
            order = self._orders[index]
            try:
                status = PickupStatus(status)
            except ValueError:
                raise IllegalTransition(order_id, order.status.value, str(status))
            if not order.can_become(status):
                logger.warning("Order %s: illegal transition %s -> %s", order_id, order.status.value, status.value)
                raise IllegalTransition(order_id, order.status.value, status.value)

            if status is PickupStatus.CANCELLED:
                updated = self._cancel(index, ensure_aware(now)).order
            else:
                updated = order.model_copy(update={"status": status})
                self._orders[index] = updated
                logger.info("Order %s: %s -> %s", order_id, order.status.value, status.value)
            await self._persist()
            return updated
