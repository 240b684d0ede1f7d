"""
Ledger Store — Pickup order routes
"""
from datetime import datetime

from fastapi import APIRouter, Depends, Query, status

from ledger_store.api.deps import get_ledger, get_notifier, get_now, rejected
from ledger_store.core.config import get_settings
from ledger_store.core.errors import LedgerError
from ledger_store.core.money import format_money
from ledger_store.core.notifier import Notifier, Toast
from ledger_store.core.scheduling import ASAP, pickup_time_slots
from ledger_store.db.ledger_store import LedgerStore
from ledger_store.models.cart import Cart
from ledger_store.models.ledger import PickupOrder
from ledger_store.schemas.ledger import (
    CancelResponse,
    PickupRequest,
    PickupResponse,
    SlotsResponse,
    StatusUpdateRequest,
)

settings = get_settings()
router = APIRouter(prefix="/pickup", tags=["pickup"])


@router.get("", response_model=list[PickupOrder])
async def list_pickups(
    active_only: bool = Query(False, description="Hide completed and cancelled orders"),
    ledger: LedgerStore = Depends(get_ledger),
):
    """All pickup orders, newest first."""
    if active_only:
        return ledger.active_orders()
    return ledger.orders


@router.get("/slots", response_model=SlotsResponse)
async def list_slots(ledger: LedgerStore = Depends(get_ledger), now: datetime = Depends(get_now)):
    """Pickup times still available today, plus ASAP."""
    slots = pickup_time_slots(
        now,
        interval_minutes=settings.PICKUP_SLOT_MINUTES,
        closing_hour=settings.PICKUP_CLOSING_HOUR,
    )
    return SlotsResponse(
        slots=[ASAP] + [slot.isoformat() for slot in slots],
        locations=list(ledger.catalog.locations),
    )


@router.post("", response_model=PickupResponse, status_code=status.HTTP_201_CREATED)
async def schedule_pickup(
    payload: PickupRequest,
    ledger: LedgerStore = Depends(get_ledger),
    notifier: Notifier = Depends(get_notifier),
    now: datetime = Depends(get_now),
):
    """Pay for the cart from the wallet and book a pickup."""
    try:
        cart = Cart(ledger.catalog)
        for item in payload.items:
            cart.add(item.menu_item_id, item.quantity, item.customizations)
        order = await ledger.schedule_pickup(cart, payload.pickup_time, payload.location, now=now)
    except LedgerError as e:
        raise await rejected(notifier, e)

    toast = await notifier.success(
        "Pickup Scheduled", f"Your order is scheduled for {order.pickup_time.strftime('%I:%M %p')}"
    )
    return PickupResponse(order=order, balance=ledger.balance, toast=toast)


@router.get("/{order_id}", response_model=PickupOrder)
async def get_pickup(
    order_id: str,
    ledger: LedgerStore = Depends(get_ledger),
    notifier: Notifier = Depends(get_notifier),
):
    try:
        return ledger.get_order(order_id)
    except LedgerError as e:
        raise await rejected(notifier, e)


@router.post("/{order_id}/status", response_model=PickupOrder)
async def update_pickup_status(
    order_id: str,
    payload: StatusUpdateRequest,
    ledger: LedgerStore = Depends(get_ledger),
    notifier: Notifier = Depends(get_notifier),
    now: datetime = Depends(get_now),
):
    """Advance an order: scheduled -> ready -> completed."""
    try:
        order = await ledger.update_status(order_id, payload.status, now=now)
    except LedgerError as e:
        raise await rejected(notifier, e)

    await notifier.success("Order Updated", f"Your order status has been updated to: {order.status.value}")
    return order


@router.post("/{order_id}/cancel", response_model=CancelResponse)
async def cancel_pickup(
    order_id: str,
    ledger: LedgerStore = Depends(get_ledger),
    notifier: Notifier = Depends(get_notifier),
    now: datetime = Depends(get_now),
):
    """Cancel an order; refunded in full only if more than 30 minutes remain before pickup."""
    try:
        result = await ledger.cancel_pickup(order_id, now=now)
    except LedgerError as e:
        raise await rejected(notifier, e)

    if result.refund is not None:
        toast = await notifier.success(
            "Order Cancelled",
            f"Your order has been cancelled and {format_money(result.refunded)} "
            "has been refunded to your wallet.",
        )
    else:
        toast = await notifier.push(Toast(
            title="Order Cancelled",
            description=(
                "Your order has been cancelled. No refund is available for cancellations "
                f"less than {ledger.refund_cutoff_minutes} minutes before pickup."
            ),
            variant="destructive",
        ))
    return CancelResponse(order=result.order, refunded=result.refunded, balance=ledger.balance, toast=toast)

