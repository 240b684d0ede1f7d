"""
Ledger Store — Menu, profile and dashboard routes
"""
from fastapi import APIRouter, Depends, Query

from ledger_store.api.deps import get_ledger
from ledger_store.core.config import get_settings
from ledger_store.db.ledger_store import LedgerStore
from ledger_store.models.catalog import Category
from ledger_store.schemas.ledger import DashboardResponse, MenuResponse, Profile

settings = get_settings()
router = APIRouter(tags=["menu"])


def _profile() -> Profile:
    return Profile(
        name=settings.USER_NAME,
        email=settings.USER_EMAIL,
        loyalty_points=settings.LOYALTY_POINTS,
        favorite_location=settings.FAVORITE_LOCATION,
    )


@router.get("/menu", response_model=MenuResponse)
async def get_menu(
    category: Category | None = Query(None, description="coffee, tea, pastry or sandwich"),
    ledger: LedgerStore = Depends(get_ledger),
):
    return MenuResponse(items=ledger.catalog.by_category(category))


@router.get("/profile", response_model=Profile)
async def get_profile():
    return _profile()


@router.get("/dashboard", response_model=DashboardResponse)
async def get_dashboard(ledger: LedgerStore = Depends(get_ledger)):
    """Balance, upcoming pickups, the five latest transactions and redeemable cards."""
    return DashboardResponse(
        profile=_profile(),
        balance=ledger.balance,
        active_pickups=ledger.active_orders(),
        recent_transactions=ledger.recent_transactions(5),
        gift_cards=ledger.active_gift_cards(),
    )
