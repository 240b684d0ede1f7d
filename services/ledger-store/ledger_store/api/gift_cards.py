"""
Ledger Store — Gift card routes
"""
from datetime import datetime

from fastapi import APIRouter, Depends, Query, status

from ledger_store.api.deps import get_ledger, get_notifier, get_now, rejected
from ledger_store.core.errors import LedgerError
from ledger_store.core.money import format_money
from ledger_store.core.notifier import Notifier
from ledger_store.db.ledger_store import LedgerStore
from ledger_store.models.ledger import GiftCard
from ledger_store.schemas.ledger import GiftCardPurchaseRequest, GiftCardResponse

router = APIRouter(prefix="/gift-cards", tags=["gift-cards"])


@router.get("", response_model=list[GiftCard])
async def list_gift_cards(
    active_only: bool = Query(False, description="Only cards that can still be redeemed"),
    ledger: LedgerStore = Depends(get_ledger),
):
    if active_only:
        return ledger.active_gift_cards()
    return ledger.gift_cards


@router.post("", response_model=GiftCardResponse, status_code=status.HTTP_201_CREATED)
async def purchase_gift_card(
    payload: GiftCardPurchaseRequest,
    ledger: LedgerStore = Depends(get_ledger),
    notifier: Notifier = Depends(get_notifier),
    now: datetime = Depends(get_now),
):
    """Buy a gift card with wallet funds. The code is generated by the ledger."""
    try:
        card = await ledger.purchase_gift_card(
            payload.amount,
            now=now,
            theme=payload.theme,
            recipient_email=payload.recipient_email,
        )
    except LedgerError as e:
        raise await rejected(notifier, e)

    if payload.recipient_email:
        toast = await notifier.success(
            "Gift Card Sent", f"A {format_money(card.initial_amount)} gift card was sent to {payload.recipient_email}"
        )
    else:
        toast = await notifier.success(
            "Gift Card Added", f"A new gift card with {format_money(card.balance)} has been added"
        )
    return GiftCardResponse(gift_card=card, balance=ledger.balance, toast=toast)
