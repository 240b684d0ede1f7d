"""
Ledger Store — Pickup time helpers

"now" is always passed in by the caller; nothing here reads the clock.
"""
from datetime import datetime, timedelta, timezone

ASAP = "ASAP"


def ensure_aware(moment: datetime) -> datetime:
    """Naive datetimes are taken to be UTC."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment


def resolve_pickup_time(choice: str | datetime, now: datetime, lead_minutes: int = 20) -> datetime:
    """Turn a slot choice into a concrete pickup time."""
    if isinstance(choice, str):
        if choice.strip().upper() != ASAP:
            raise ValueError(f"Unknown pickup slot: {choice!r}")
        return ensure_aware(now) + timedelta(minutes=lead_minutes)
    return ensure_aware(choice)


def pickup_time_slots(now: datetime, interval_minutes: int = 15, closing_hour: int = 22) -> list[datetime]:
    """
    Slots every ``interval_minutes`` for the rest of today, starting at the
    next interval boundary of the current hour and ending before
    ``closing_hour``.
    """
    now = ensure_aware(now)
    start = now.replace(second=0, microsecond=0)
    remainder = start.minute % interval_minutes
    if remainder or now > start:
        start += timedelta(minutes=interval_minutes - remainder)

    closing = now.replace(hour=0, minute=0, second=0, microsecond=0) + timedelta(hours=closing_hour)
    slots = []
    slot = start
    while slot < closing:
        slots.append(slot)
        slot += timedelta(minutes=interval_minutes)
    return slots


def minutes_until(moment: datetime, now: datetime) -> float:
    return (ensure_aware(moment) - ensure_aware(now)).total_seconds() / 60
