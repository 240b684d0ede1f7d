"""
Ledger Store — Pydantic request/response schemas
"""
from datetime import datetime
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, EmailStr, Field

from ledger_store.core.notifier import Toast
from ledger_store.models.catalog import MenuItem
from ledger_store.models.ledger import GiftCard, GiftCardTheme, PickupOrder, PickupStatus, Transaction


class ReloadRequest(BaseModel):
    amount: Decimal = Field(..., gt=0, max_digits=9, decimal_places=2, examples=["25.00"])


class RedeemRequest(BaseModel):
    code: str = Field(..., min_length=1, max_length=64, examples=["WELCOME2023"])


class GiftCardPurchaseRequest(BaseModel):
    amount: Decimal = Field(..., gt=0, max_digits=9, decimal_places=2, examples=["25.00"])
    theme: GiftCardTheme = GiftCardTheme.CLASSIC
    recipient_email: EmailStr | None = None


class PickupItemRequest(BaseModel):
    menu_item_id: str = Field(..., examples=["1"])
    quantity: int = Field(1, ge=1, le=20)
    customizations: str | None = Field(None, max_length=200)


class PickupRequest(BaseModel):
    items: list[PickupItemRequest] = Field(..., min_length=1, max_length=20)
    pickup_time: datetime | Literal["ASAP"] = "ASAP"
    location: str = Field("Downtown Cafe", examples=["Downtown Cafe"])


class StatusUpdateRequest(BaseModel):
    status: PickupStatus


class WalletResponse(BaseModel):
    balance: Decimal
    transactions: list[Transaction]
    toast: Toast | None = None


class RedeemResponse(BaseModel):
    amount: Decimal
    balance: Decimal
    toast: Toast


class GiftCardResponse(BaseModel):
    gift_card: GiftCard
    balance: Decimal
    toast: Toast


class PickupResponse(BaseModel):
    order: PickupOrder
    balance: Decimal
    toast: Toast


class CancelResponse(BaseModel):
    order: PickupOrder
    refunded: Decimal
    balance: Decimal
    toast: Toast


class SlotsResponse(BaseModel):
    slots: list[str]
    locations: list[str]


class Profile(BaseModel):
    name: str
    email: str
    loyalty_points: int
    favorite_location: str


class DashboardResponse(BaseModel):
    profile: Profile
    balance: Decimal
    active_pickups: list[PickupOrder]
    recent_transactions: list[Transaction]
    gift_cards: list[GiftCard]


class MenuResponse(BaseModel):
    items: list[MenuItem]
