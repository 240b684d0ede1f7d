"""
Ledger Store — Seed data for a first run

Used entry-by-entry when the snapshot has nothing stored for a key.
"""
from datetime import datetime, timedelta
from decimal import Decimal

from ledger_store.core.config import Settings
from ledger_store.db.snapshot import LedgerSnapshot
from ledger_store.models.ledger import GiftCard, GiftCardTheme, Transaction, TransactionType


def sample_transactions(now: datetime) -> list[Transaction]:
    """Newest first, like the live log."""
    return [
        Transaction(
            id="t3",
            amount=Decimal("25.00"),
            kind=TransactionType.GIFT,
            description="Gift card purchase",
            date=now - timedelta(days=2),
        ),
        Transaction(
            id="t2",
            amount=Decimal("4.95"),
            kind=TransactionType.PURCHASE,
            description="Signature Latte",
            date=now - timedelta(days=5),
        ),
        Transaction(
            id="t1",
            amount=Decimal("20.00"),
            kind=TransactionType.RELOAD,
            description="Wallet reload",
            date=now - timedelta(days=7),
        ),
    ]


def welcome_gift_card(settings: Settings, now: datetime) -> GiftCard:
    return GiftCard(
        id="g1",
        code=settings.WELCOME_CARD_CODE,
        balance=settings.WELCOME_CARD_AMOUNT,
        initial_amount=settings.WELCOME_CARD_AMOUNT,
        expiry_date=now + timedelta(days=settings.WELCOME_CARD_VALID_DAYS),
        is_active=True,
        created_at=now,
        theme=GiftCardTheme.CLASSIC,
    )


def default_snapshot(settings: Settings, now: datetime) -> LedgerSnapshot:
    return LedgerSnapshot(
        balance=settings.STARTING_BALANCE,
        gift_cards=[welcome_gift_card(settings, now)],
        pickups=[],
        transactions=sample_transactions(now),
    )
