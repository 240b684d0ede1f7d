"""
Ledger Store — Wallet routes (reload, gift card redemption, history)
"""
from datetime import datetime

from fastapi import APIRouter, Depends, Query

from ledger_store.api.deps import get_ledger, get_notifier, get_now, rejected
from ledger_store.core.errors import LedgerError
from ledger_store.core.money import format_money
from ledger_store.core.notifier import Notifier
from ledger_store.db.ledger_store import LedgerStore
from ledger_store.models.ledger import Transaction
from ledger_store.schemas.ledger import RedeemRequest, RedeemResponse, ReloadRequest, WalletResponse

router = APIRouter(tags=["wallet"])


@router.get("/wallet", response_model=WalletResponse)
async def get_wallet(ledger: LedgerStore = Depends(get_ledger)):
    """Balance plus wallet activity (reloads, redemptions, refunds), newest first."""
    return WalletResponse(balance=ledger.balance, transactions=ledger.wallet_transactions())


@router.post("/wallet/reload", response_model=WalletResponse)
async def reload_wallet(
    payload: ReloadRequest,
    ledger: LedgerStore = Depends(get_ledger),
    notifier: Notifier = Depends(get_notifier),
    now: datetime = Depends(get_now),
):
    try:
        await ledger.credit(payload.amount, now=now)
    except LedgerError as e:
        raise await rejected(notifier, e)

    toast = await notifier.success(
        "Funds Added", f"{format_money(payload.amount)} has been added to your wallet"
    )
    return WalletResponse(balance=ledger.balance, transactions=ledger.wallet_transactions(), toast=toast)


@router.post("/wallet/redeem", response_model=RedeemResponse)
async def redeem_gift_card(
    payload: RedeemRequest,
    ledger: LedgerStore = Depends(get_ledger),
    notifier: Notifier = Depends(get_notifier),
    now: datetime = Depends(get_now),
):
    """Redeem a gift card code into the wallet (case-insensitive, whole balance)."""
    try:
        amount = await ledger.redeem_gift_card(payload.code, now=now)
    except LedgerError as e:
        raise await rejected(notifier, e)

    toast = await notifier.success(
        "Gift Card Redeemed", f"{format_money(amount)} has been added to your wallet"
    )
    return RedeemResponse(amount=amount, balance=ledger.balance, toast=toast)


@router.get("/transactions", response_model=list[Transaction])
async def list_transactions(
    limit: int | None = Query(None, ge=1, le=500, description="Return only the newest N transactions"),
    ledger: LedgerStore = Depends(get_ledger),
):
    """Full transaction log, newest first."""
    if limit is None:
        return ledger.transactions
    return ledger.recent_transactions(limit)
