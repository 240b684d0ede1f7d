"""
Ledger Store — bookkeeping rules

Wallet credit/debit, gift card issue and redemption, pickup scheduling,
status transitions and cancellation refunds.
"""
import random
import re
from datetime import timedelta
from decimal import Decimal

import pytest

from conftest import ESPRESSO, NOW, SCONE, lines, minutes_from_now
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
from ledger_store.db import ledger_store as ledger_module
from ledger_store.models.cart import CartLine
from ledger_store.models.ledger import PickupStatus, TransactionType


# ─── Wallet ────────────────────────────────────────────────────────────────────
@pytest.mark.asyncio
async def test_credit_adds_funds_and_records_reload(ledger):
    before = len(ledger.transactions)

    tx = await ledger.credit("10", now=NOW)

    assert ledger.balance == Decimal("35.00")
    assert len(ledger.transactions) == before + 1
    assert ledger.transactions[0] == tx
    assert tx.kind is TransactionType.RELOAD
    assert tx.amount == Decimal("10.00")
    assert tx.date == NOW


@pytest.mark.asyncio
@pytest.mark.parametrize("amount", ["0", "-5", "abc", "NaN", "Infinity", float("nan")])
async def test_non_positive_amounts_change_nothing(ledger, amount):
    before = ledger.transactions

    with pytest.raises(InvalidAmount):
        await ledger.credit(amount, now=NOW)
    with pytest.raises(InvalidAmount):
        await ledger.debit(amount, now=NOW)

    assert ledger.balance == Decimal("25.00")
    assert ledger.transactions == before


@pytest.mark.asyncio
async def test_debit_beyond_balance_is_rejected_without_side_effects(ledger):
    before = ledger.transactions

    with pytest.raises(InsufficientFunds) as exc:
        await ledger.debit("25.01", now=NOW)

    assert exc.value.available == Decimal("25.00")
    assert ledger.balance == Decimal("25.00")
    assert ledger.transactions == before


@pytest.mark.asyncio
async def test_debit_records_its_own_transaction(ledger):
    tx = await ledger.debit("4.95", now=NOW, description="Signature Latte")

    assert ledger.balance == Decimal("20.05")
    assert ledger.transactions[0] == tx
    assert tx.kind is TransactionType.PURCHASE
    assert tx.description == "Signature Latte"


@pytest.mark.asyncio
async def test_debit_refuses_credit_transaction_types(ledger):
    with pytest.raises(ValueError):
        await ledger.debit("1.00", now=NOW, kind=TransactionType.REFUND)
    assert ledger.balance == Decimal("25.00")


@pytest.mark.asyncio
async def test_balance_matches_replayed_credits_and_debits(make_ledger):
    ledger = make_ledger("0.00")
    rng = random.Random(1234)
    expected = Decimal("0.00")
    accepted = 0

    for _ in range(200):
        amount = Decimal(rng.randint(1, 5000)) / 100
        if rng.random() < 0.5:
            await ledger.credit(amount, now=NOW)
            expected += amount
            accepted += 1
        else:
            try:
                await ledger.debit(amount, now=NOW)
            except InsufficientFunds:
                continue
            expected -= amount
            accepted += 1
        assert ledger.balance >= 0

    assert ledger.balance == expected
    assert len(ledger.transactions) == accepted


# ─── Gift cards ────────────────────────────────────────────────────────────────
@pytest.mark.asyncio
async def test_redeem_welcome_card_is_case_insensitive(ledger):
    amount = await ledger.redeem_gift_card("welcome2023", now=NOW)

    assert amount == Decimal("15.00")
    assert ledger.balance == Decimal("40.00")
    card = next(c for c in ledger.gift_cards if c.code == "WELCOME2023")
    assert card.balance == Decimal("0.00")
    assert card.is_active is False
    tx = ledger.transactions[0]
    assert tx.kind is TransactionType.REDEMPTION
    assert tx.amount == Decimal("15.00")


@pytest.mark.asyncio
async def test_second_redemption_fails_and_keeps_balance(ledger):
    await ledger.redeem_gift_card("WELCOME2023", now=NOW)
    balance = ledger.balance
    log = ledger.transactions

    for _ in range(3):
        with pytest.raises(InvalidOrDepletedCode):
            await ledger.redeem_gift_card("WELCOME2023", now=NOW)

    assert ledger.balance == balance
    assert ledger.transactions == log


@pytest.mark.asyncio
async def test_redeem_unknown_code(ledger):
    with pytest.raises(InvalidOrDepletedCode):
        await ledger.redeem_gift_card("NOPE-NOPE-NOPE", now=NOW)
    assert ledger.balance == Decimal("25.00")


@pytest.mark.asyncio
async def test_complimentary_card_records_no_transaction(ledger):
    before = ledger.transactions

    card = await ledger.issue_gift_card("10", now=NOW, code="THANKS-2025", theme="thank-you")

    assert card.purchased_by is None
    assert card.balance == card.initial_amount == Decimal("10.00")
    assert card.expiry_date == NOW + timedelta(days=365)
    assert ledger.balance == Decimal("25.00")
    assert ledger.transactions == before
    assert ledger.gift_cards[0] == card


@pytest.mark.asyncio
async def test_explicit_code_must_be_unique_ignoring_case(ledger):
    with pytest.raises(DuplicateCode):
        await ledger.issue_gift_card("10", now=NOW, code="Welcome2023")
    assert len(ledger.gift_cards) == 1


@pytest.mark.asyncio
async def test_purchase_gift_card_debits_and_logs_once(ledger):
    before = len(ledger.transactions)

    card = await ledger.purchase_gift_card("20", now=NOW, theme="birthday")

    assert ledger.balance == Decimal("5.00")
    assert len(ledger.transactions) == before + 1
    tx = ledger.transactions[0]
    assert tx.kind is TransactionType.GIFT
    assert tx.amount == Decimal("20.00")
    assert card.purchased_by == "self"
    assert card.theme.value == "birthday"
    assert re.fullmatch(r"[A-HJ-NP-Z2-9]{4}-[A-HJ-NP-Z2-9]{4}-[A-HJ-NP-Z2-9]{4}", card.code)


@pytest.mark.asyncio
async def test_purchase_gift_card_limits(ledger):
    with pytest.raises(InvalidAmount):
        await ledger.purchase_gift_card("4.99", now=NOW)
    with pytest.raises(InsufficientFunds):
        await ledger.purchase_gift_card("50", now=NOW)

    assert len(ledger.gift_cards) == 1
    assert ledger.balance == Decimal("25.00")


@pytest.mark.asyncio
async def test_generated_codes_skip_existing_ones(ledger, monkeypatch):
    await ledger.issue_gift_card("5", now=NOW, code="AAAA-BBBB-CCCC")
    candidates = iter(["aaaa-bbbb-cccc", "DDDD-EEEE-FFFF"])
    monkeypatch.setattr(ledger_module, "generate_gift_card_code", lambda: next(candidates))

    card = await ledger.issue_gift_card("5", now=NOW)

    assert card.code == "DDDD-EEEE-FFFF"


# ─── Pickup orders ─────────────────────────────────────────────────────────────
@pytest.mark.asyncio
async def test_schedule_pickup_rejected_when_total_exceeds_balance(make_ledger):
    ledger = make_ledger("10.00")

    with pytest.raises(InsufficientFunds):
        await ledger.schedule_pickup(lines((ESPRESSO, 3)), minutes_from_now(60), "Downtown Cafe", now=NOW)

    assert ledger.orders == []
    assert ledger.transactions == []
    assert ledger.balance == Decimal("10.00")


@pytest.mark.asyncio
async def test_schedule_pickup_charges_wallet_and_records_purchase(make_ledger):
    ledger = make_ledger("25.00")

    order = await ledger.schedule_pickup(
        lines((ESPRESSO, 1), (SCONE, 2)), minutes_from_now(60), "Riverside Cafe", now=NOW
    )

    assert order.total == Decimal("8.00")
    assert order.status is PickupStatus.SCHEDULED
    assert order.user_id == "Coffee Lover"
    assert order.created_at == NOW
    assert ledger.balance == Decimal("17.00")
    assert ledger.orders == [order]
    assert len(ledger.transactions) == 1
    tx = ledger.transactions[0]
    assert tx.kind is TransactionType.PURCHASE
    assert tx.amount == Decimal("8.00")
    assert tx.description == "Pickup order - Espresso, Scone"


@pytest.mark.asyncio
async def test_schedule_pickup_asap(make_ledger):
    ledger = make_ledger("25.00")

    order = await ledger.schedule_pickup(lines((SCONE, 1)), "ASAP", "Downtown Cafe", now=NOW)

    assert order.pickup_time == NOW + timedelta(minutes=20)


@pytest.mark.asyncio
async def test_schedule_pickup_validation(make_ledger):
    ledger = make_ledger("25.00")

    with pytest.raises(EmptyOrder):
        await ledger.schedule_pickup([], minutes_from_now(60), "Downtown Cafe", now=NOW)
    with pytest.raises(UnknownLocation):
        await ledger.schedule_pickup(lines((SCONE, 1)), minutes_from_now(60), "The Moon", now=NOW)

    assert ledger.balance == Decimal("25.00")
    assert ledger.orders == []


@pytest.mark.asyncio
@pytest.mark.parametrize("quantity", [0, -2])
async def test_schedule_pickup_rejects_cart_lines_without_quantity(make_ledger, quantity):
    ledger = make_ledger("25.00")
    before = ledger.transactions

    with pytest.raises(InvalidAmount):
        await ledger.schedule_pickup(
            [CartLine(menu_item=ESPRESSO, quantity=quantity)], minutes_from_now(60), "Downtown Cafe", now=NOW
        )

    assert ledger.balance == Decimal("25.00")
    assert ledger.orders == []
    assert ledger.transactions == before


@pytest.mark.asyncio
async def test_cancel_well_ahead_refunds_in_full(make_ledger):
    ledger = make_ledger("25.00")
    order = await ledger.schedule_pickup(lines((ESPRESSO, 2)), minutes_from_now(45), "Downtown Cafe", now=NOW)

    result = await ledger.cancel_pickup(order.id, now=NOW)

    assert result.order.status is PickupStatus.CANCELLED
    assert result.refunded == Decimal("8.00")
    assert ledger.balance == Decimal("25.00")
    tx = ledger.transactions[0]
    assert tx.kind is TransactionType.REFUND
    assert tx.amount == Decimal("8.00")
    assert ledger.get_order(order.id).status is PickupStatus.CANCELLED


@pytest.mark.asyncio
@pytest.mark.parametrize("minutes", [10, 30, -5])
async def test_cancel_close_to_pickup_gives_no_refund(make_ledger, minutes):
    ledger = make_ledger("25.00")
    order = await ledger.schedule_pickup(
        lines((ESPRESSO, 2)), minutes_from_now(minutes), "Downtown Cafe", now=NOW
    )
    log = ledger.transactions

    result = await ledger.cancel_pickup(order.id, now=NOW)

    assert result.refund is None
    assert result.refunded == Decimal("0.00")
    assert ledger.balance == Decimal("17.00")
    assert ledger.transactions == log
    assert ledger.get_order(order.id).status is PickupStatus.CANCELLED


@pytest.mark.asyncio
async def test_cancel_twice_refunds_once(make_ledger):
    ledger = make_ledger("25.00")
    order = await ledger.schedule_pickup(lines((ESPRESSO, 1)), minutes_from_now(90), "Downtown Cafe", now=NOW)
    await ledger.cancel_pickup(order.id, now=NOW)

    with pytest.raises(IllegalTransition):
        await ledger.cancel_pickup(order.id, now=NOW)

    assert ledger.balance == Decimal("25.00")


@pytest.mark.asyncio
async def test_unknown_order_ids(ledger):
    with pytest.raises(NotFound):
        await ledger.cancel_pickup("pu-missing", now=NOW)
    with pytest.raises(NotFound):
        await ledger.update_status("pu-missing", "ready", now=NOW)
    with pytest.raises(NotFound):
        ledger.get_order("pu-missing")


@pytest.mark.asyncio
async def test_status_follows_the_state_machine(make_ledger):
    ledger = make_ledger("25.00")
    order = await ledger.schedule_pickup(lines((SCONE, 1)), minutes_from_now(60), "Downtown Cafe", now=NOW)

    with pytest.raises(IllegalTransition):
        await ledger.update_status(order.id, PickupStatus.COMPLETED, now=NOW)

    assert (await ledger.update_status(order.id, "ready", now=NOW)).status is PickupStatus.READY
    assert (await ledger.update_status(order.id, "completed", now=NOW)).status is PickupStatus.COMPLETED

    for status in PickupStatus:
        with pytest.raises(IllegalTransition):
            await ledger.update_status(order.id, status, now=NOW)
    assert ledger.active_orders() == []


@pytest.mark.asyncio
async def test_unknown_status_is_an_illegal_transition(make_ledger):
    ledger = make_ledger("25.00")
    order = await ledger.schedule_pickup(lines((SCONE, 1)), minutes_from_now(60), "Downtown Cafe", now=NOW)

    with pytest.raises(IllegalTransition) as exc:
        await ledger.update_status(order.id, "brewing", now=NOW)

    assert exc.value.requested == "brewing"
    assert ledger.get_order(order.id).status is PickupStatus.SCHEDULED


@pytest.mark.asyncio
async def test_cancelling_through_update_status_applies_refund_rule(make_ledger):
    ledger = make_ledger("25.00")
    order = await ledger.schedule_pickup(lines((SCONE, 1)), minutes_from_now(120), "Downtown Cafe", now=NOW)
    await ledger.update_status(order.id, "ready", now=NOW)

    cancelled = await ledger.update_status(order.id, "cancelled", now=NOW)

    assert cancelled.status is PickupStatus.CANCELLED
    assert ledger.balance == Decimal("25.00")
    assert ledger.transactions[0].kind is TransactionType.REFUND


# ─── Views ─────────────────────────────────────────────────────────────────────
@pytest.mark.asyncio
async def test_wallet_and_recent_views(ledger):
    await ledger.credit("5", now=NOW)
    await ledger.debit("1", now=NOW)

    kinds = {t.kind for t in ledger.wallet_transactions()}
    assert kinds <= {TransactionType.RELOAD, TransactionType.REDEMPTION, TransactionType.REFUND}
    assert len(ledger.recent_transactions(2)) == 2
    assert ledger.recent_transactions(2)[0].kind is TransactionType.PURCHASE
    assert [c.code for c in ledger.active_gift_cards()] == ["WELCOME2023"]


@pytest.mark.asyncio
async def test_every_mutation_is_persisted(ledger, storage):
    await ledger.credit("5", now=NOW)
    assert storage.entries["coffee-wallet-balance"] == "30.00"

    await ledger.redeem_gift_card("WELCOME2023", now=NOW)
    assert storage.entries["coffee-wallet-balance"] == "45.00"
    assert '"isActive":false' in storage.entries["coffee-gift-cards"]
