"""Time utilities (IST) and the clock collaborator."""

import calendar
from datetime import datetime, timedelta, timezone, tzinfo
from typing import Protocol
from zoneinfo import ZoneInfo

IST = ZoneInfo("Asia/Kolkata")


def now_ist_naive() -> datetime:
    """
    Current time in IST, returned as naive datetime for DB storage.
    """
    return datetime.now(IST).replace(tzinfo=None)


def to_ist(dt: datetime, naive_assumed_tz: tzinfo = timezone.utc) -> datetime:
    """Convert datetime to IST timezone-aware value."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=naive_assumed_tz)
    return dt.astimezone(IST)


def to_ist_iso_db(dt: datetime) -> str:
    """
    Convert a stored datetime to an IST ISO string.

    DB timestamps in this app are stored as naive IST, so naive values are
    interpreted as IST (not UTC) here.
    """
    return to_ist(dt, naive_assumed_tz=IST).isoformat()


def add_months(dt: datetime, months: int) -> datetime:
    """
    Shift a datetime by whole calendar months.

    The day is clamped to the last day of the target month
    (Jan 31 + 1 month -> Feb 28/29). Time of day is preserved.
    """
    month_index = dt.month - 1 + months
    year = dt.year + month_index // 12
    month = month_index % 12 + 1
    day = min(dt.day, calendar.monthrange(year, month)[1])
    return dt.replace(year=year, month=month, day=day)


class Clock(Protocol):
    """Supplies "now" to the engine."""

    def now(self) -> datetime:
        ...


class SystemClock:
    """Wall clock in IST (naive, matching stored timestamps)."""

    def now(self) -> datetime:
        return now_ist_naive()


class FixedClock:
    """Clock frozen at a given instant; used by tests and replays."""

    def __init__(self, instant: datetime):
        self.instant = instant

    def now(self) -> datetime:
        return self.instant

    def advance(self, **delta) -> None:
        self.instant = self.instant + timedelta(**delta)
