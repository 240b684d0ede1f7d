"""
Ledger Store — Route dependencies

The store and notifier are built once in the app lifespan and handed to
routes through these dependencies; routes never construct their own.
"""
from datetime import datetime, timezone

from fastapi import HTTPException, Request, status

from ledger_store.core.errors import (
    DuplicateCode,
    IllegalTransition,
    InsufficientFunds,
    LedgerError,
    NotFound,
    UnknownMenuItem,
)
from ledger_store.core.notifier import Notifier
from ledger_store.db.ledger_store import LedgerStore

ERROR_STATUS: dict[type[LedgerError], int] = {
    InsufficientFunds: status.HTTP_402_PAYMENT_REQUIRED,
    NotFound: status.HTTP_404_NOT_FOUND,
    UnknownMenuItem: status.HTTP_404_NOT_FOUND,
    IllegalTransition: status.HTTP_409_CONFLICT,
    DuplicateCode: status.HTTP_409_CONFLICT,
}


def get_ledger(request: Request) -> LedgerStore:
    return request.app.state.ledger


def get_notifier(request: Request) -> Notifier:
    return request.app.state.notifier


def get_now() -> datetime:
    return datetime.now(timezone.utc)


async def rejected(notifier: Notifier, error: LedgerError) -> HTTPException:
    """Push a destructive toast for ``error`` and build the matching HTTP error."""
    await notifier.failure(error)
    return HTTPException(
        status_code=ERROR_STATUS.get(type(error), status.HTTP_400_BAD_REQUEST),
        detail={"title": error.title, "message": error.message},
    )
