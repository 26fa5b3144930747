"""Shared datetime utilities.

Timestamps travel through the exporter as integer epoch milliseconds, which
is what the Claude Code history log stores.
"""

from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone

MS_PER_MINUTE = 60_000
MS_PER_HOUR = 3_600_000

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
MIN_EPOCH_MS = (datetime(1, 1, 2, tzinfo=timezone.utc) - _EPOCH) // timedelta(milliseconds=1)
MAX_EPOCH_MS = (datetime(9999, 12, 30, tzinfo=timezone.utc) - _EPOCH) // timedelta(milliseconds=1)


def is_representable_ms(ms: int) -> bool:
    """Whether epoch ms falls inside the range datetime can format."""
    return MIN_EPOCH_MS <= ms <= MAX_EPOCH_MS


def parse_day(value: str) -> date:
    """Parse a YYYY-MM-DD string, raising ValueError on anything else."""
    return datetime.strptime(value, "%Y-%m-%d").date()


def local_day_start_ms(day: date) -> int:
    """Epoch ms of local midnight at the start of day."""
    return to_epoch_ms(datetime.combine(day, time(0, 0, 0)))


def local_day_end_ms(day: date) -> int:
    """Epoch ms of 23:59:59 local time on day."""
    return to_epoch_ms(datetime.combine(day, time(23, 59, 59)))


def to_epoch_ms(dt: datetime) -> int:
    """Convert a datetime to epoch ms. Naive datetimes are local time."""
    return int(round(dt.timestamp() * 1000))


def from_epoch_ms(ms: int) -> datetime:
    """Convert epoch ms to an aware UTC datetime."""
    return datetime.fromtimestamp(ms / 1000, tz=timezone.utc)


def now_ms() -> int:
    return to_epoch_ms(datetime.now(timezone.utc))


def format_iso_utc(ms: int) -> str:
    """Format epoch ms as 2025-12-01T10:00:00.000Z."""
    return from_epoch_ms(ms).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def format_date_utc(ms: int) -> str:
    return from_epoch_ms(ms).strftime("%Y-%m-%d")


def duration_hours(ms: int) -> float:
    """Duration in hours, rounded to 2 decimals."""
    if not ms:
        return 0.0
    return float(f"{ms / MS_PER_HOUR:.2f}")


def duration_minutes(ms: int) -> int:
    """Duration in whole minutes, rounding halves up."""
    if not ms:
        return 0
    return int(ms / MS_PER_MINUTE + 0.5)


def format_duration_human(ms: int) -> str:
    """Render a duration as '<1m', '45m' or '2h 5m'."""
    if not ms:
        return "<1m"
    minutes = ms // MS_PER_MINUTE
    hours, mins = divmod(minutes, 60)
    if hours > 0:
        return f"{hours}h {mins}m"
    return f"{mins}m"
