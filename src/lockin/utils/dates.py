"""Calendar-day helpers.

``day_key`` is the only place a moment is turned into a ``YYYY-MM-DD`` key.
The timer, the ledger and the backup slot all compare keys produced here so
that day boundaries never drift between components.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, date, datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal

Clock = Callable[[], datetime]

WEEKDAYS = (
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
    "Sunday",
)
MONTHS = (
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
)

_HUNDREDTH = Decimal("0.01")


def local_now() -> datetime:
    """Return the current wall-clock time in the local timezone."""
    return datetime.now().astimezone()


def utcnow() -> datetime:
    """Return the current UTC time as a timezone-aware datetime."""
    return datetime.now(UTC)


def _as_local(moment: datetime | float) -> datetime:
    if isinstance(moment, (int, float)):
        return datetime.fromtimestamp(moment).astimezone()
    if moment.tzinfo is None:
        # Naive datetimes are already local wall-clock time.
        return moment
    return moment.astimezone()


def day_key(moment: datetime | float) -> str:
    """Map a datetime or POSIX timestamp to its local ``YYYY-MM-DD`` key."""
    local = _as_local(moment)
    return f"{local.year:04d}-{local.month:02d}-{local.day:02d}"


def is_weekend(moment: datetime | float) -> bool:
    """Return True for Saturday and Sunday in the local calendar."""
    return _as_local(moment).weekday() >= 5


def today_key(clock: Clock = local_now) -> str:
    return day_key(clock())


def is_today(key: str, clock: Clock = local_now) -> bool:
    return key == today_key(clock)


def days_ago(days: int, clock: Clock = local_now) -> datetime:
    """Return the moment ``days`` calendar days before now."""
    return clock() - timedelta(days=days)


def parse_day_key(key: str) -> date:
    """Parse a day key back into a calendar date.

    Raises:
        ValueError: If ``key`` is not a valid ``YYYY-MM-DD`` string.
    """
    return date.fromisoformat(key)


def day_of_week(key: str) -> str:
    """Return the full English weekday name for a day key."""
    return WEEKDAYS[parse_day_key(key).weekday()]


def round2(value: float) -> float:
    """Round half-up to two decimals."""
    return float(Decimal(str(value)).quantize(_HUNDREDTH, rounding=ROUND_HALF_UP))


def round_hours(seconds: int) -> float:
    """Convert seconds to hours rounded half-up to two decimals."""
    hours = Decimal(seconds) / Decimal(3600)
    return float(hours.quantize(_HUNDREDTH, rounding=ROUND_HALF_UP))


def format_hms(seconds: int) -> str:
    """Format a second count as ``HH:MM:SS`` for display."""
    hours, rest = divmod(max(0, seconds), 3600)
    minutes, secs = divmod(rest, 60)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"
