"""
Ledger Store — Toast history
"""
from fastapi import APIRouter, Depends, Query

from ledger_store.api.deps import get_notifier
from ledger_store.core.notifier import Notifier, Toast

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("", response_model=list[Toast])
async def list_notifications(
    limit: int = Query(10, ge=1, le=100),
    notifier: Notifier = Depends(get_notifier),
):
    """Most recent toasts, newest first."""
    return notifier.recent[:limit]
