from __future__ import annotations

import calendar
from datetime import date, datetime, timezone
from typing import Optional, Tuple


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_date(value: datetime | date) -> date:
    return value if isinstance(value, date) and not isinstance(value, datetime) else value.date()


def evaluation_date(now: Optional[datetime | date]) -> date:
    """Resolve the evaluation instant to a calendar date (defaults to today, UTC)."""
    if now is None:
        return utcnow().date()
    return as_date(now)


def month_key(d: date) -> str:
    """Convert a date into a YYYY-MM month key."""
    return f"{d.year:04d}-{d.month:02d}"


def parse_month(key: str) -> Tuple[int, int]:
    y, m = key.split("-")
    return int(y), int(m)


def shift_month(key: str, months: int) -> str:
    y, m = parse_month(key)
    index = y * 12 + (m - 1) + months
    return f"{index // 12:04d}-{index % 12 + 1:02d}"


def next_month(key: str) -> str:
    return shift_month(key, 1)


def days_in_month(d: date) -> int:
    return calendar.monthrange(d.year, d.month)[1]


def days_in_month_key(key: str) -> int:
    y, m = parse_month(key)
    return calendar.monthrange(y, m)[1]


def month_range(start_key: str, end_key: str) -> list[str]:
    """Inclusive list of month keys from start to end (empty if start > end)."""
    out: list[str] = []
    current = start_key
    while current <= end_key:
        out.append(current)
        current = next_month(current)
    return out
