from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from typing import Any, Iterator, Optional, Tuple, Union

from ..core.exceptions import ValidationError


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    return datetime.strptime(value, "%Y-%m-%d").date()


def parse_date_param(value: Any, field_name: str) -> Optional[date]:
    """Parse an optional API date (``YYYY-MM-DD`` or full ISO datetime) to its UTC day."""

    if isinstance(value, (date, datetime)):
        return day_key(value)
    v = str(value if value is not None else "").strip()
    if not v:
        return None
    try:
        if len(v) == 10:
            return parse_iso_date(v)
        return day_key(parse_iso_datetime(v))
    except ValueError:
        raise ValidationError(f"{field_name} must be a valid date")


def parse_date_range(start: Any, end: Any) -> Tuple[Optional[date], Optional[date]]:
    start_d = parse_date_param(start, "Start date")
    end_d = parse_date_param(end, "End date")
    if start_d and end_d and start_d > end_d:
        raise ValidationError("Start date must be on or before end date")
    return start_d, end_d


def parse_iso_datetime(value: str) -> datetime:
    v = value.strip()
    if v.endswith("Z"):
        v = v[:-1] + "+00:00"
    return datetime.fromisoformat(v)


def parse_datetime_param(value: Any, field_name: str) -> Optional[datetime]:
    if isinstance(value, datetime):
        return value
    v = str(value if value is not None else "").strip()
    if not v:
        return None
    try:
        return parse_iso_datetime(v)
    except ValueError:
        raise ValidationError(f"{field_name} must be a valid date")


def now_utc() -> datetime:
    """Current UTC time (naive, as stored in MySQL DATETIME columns).

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_naive_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def day_key(value: Union[date, datetime]) -> date:
    """Canonical day of a timestamp: its calendar date at UTC midnight.

    Aware datetimes are converted to UTC first; naive ones are taken as UTC.
    """

    if isinstance(value, datetime):
        return to_naive_utc(value).date()
    return value


def iter_days(start: date, end: date) -> Iterator[date]:
    """Every calendar day from start to end, both inclusive."""
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)
