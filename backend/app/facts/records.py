"""
Transaction records - the read-only input unit of the analytics engine.

Records arrive already normalized from the transaction source (valid date,
non-negative magnitude, direction tag, optional category label). This module
never mutates or persists them; it only:
  - defines the canonical frozen record
  - coerces loose mappings (DB rows, JSON payloads) into records
  - decides which records are usable at a given evaluation instant
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Iterable, List, Literal, Mapping, Optional

from .dates import as_date, evaluation_date

Direction = Literal["credit", "debit"]

UNCATEGORIZED = "Uncategorized"
DIRECTIONS = ("credit", "debit")


@dataclass(frozen=True)
class TransactionRecord:
    date: date
    description: str
    amount: float
    direction: Direction
    merchant: Optional[str] = None
    category: Optional[str] = None
    category_confidence: Optional[float] = None
    # Only set when the source knows the time of day.
    occurred_at: Optional[datetime] = None

    @property
    def is_debit(self) -> bool:
        return self.direction == "debit"

    @property
    def is_credit(self) -> bool:
        return self.direction == "credit"


def category_label(category: Optional[str]) -> str:
    """Category label with the "Uncategorized" default applied."""
    label = (category or "").strip()
    return label or UNCATEGORIZED


def is_labeled(t: TransactionRecord) -> bool:
    label = (t.category or "").strip()
    return bool(label) and label.lower() != UNCATEGORIZED.lower()


def is_well_formed(t: Any) -> bool:
    """Malformed records (bad date, NaN/negative amount, unknown direction) are not usable."""
    d = getattr(t, "date", None)
    # datetime subclasses date but cannot be compared with one
    if not isinstance(d, date) or isinstance(d, datetime):
        return False
    amount = getattr(t, "amount", None)
    if isinstance(amount, bool) or not isinstance(amount, (int, float)):
        return False
    if not math.isfinite(amount) or amount < 0:
        return False
    return getattr(t, "direction", None) in DIRECTIONS


def is_future(t: TransactionRecord, as_of: date) -> bool:
    return t.date > as_of


def usable_transactions(
    transactions: Iterable[TransactionRecord],
    now: Optional[datetime | date] = None,
) -> List[TransactionRecord]:
    """Well-formed records dated on or before the evaluation instant, oldest first."""
    as_of = evaluation_date(now)
    kept = [t for t in transactions if is_well_formed(t) and not is_future(t, as_of)]
    return sorted(kept, key=lambda t: (t.date, t.occurred_at.isoformat() if t.occurred_at else ""))


def _parse_date(value: Any) -> Optional[date]:
    if isinstance(value, (date, datetime)):
        return as_date(value)
    if isinstance(value, str) and value.strip():
        try:
            return date.fromisoformat(value.strip()[:10])
        except ValueError:
            return None
    return None


def _parse_datetime(value: Any) -> Optional[datetime]:
    if isinstance(value, datetime):
        return value
    if isinstance(value, str) and "T" in value:
        try:
            return datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
    return None


def coerce_record(row: Mapping[str, Any]) -> Optional[TransactionRecord]:
    """
    Build a TransactionRecord from a loose mapping.

    Returns None for rows that cannot be made well-formed; callers skip them.
    """
    occurred_at = _parse_datetime(row.get("occurred_at"))
    d = _parse_date(row.get("date")) or (occurred_at.date() if occurred_at else None)
    if d is None:
        return None

    try:
        amount = float(row.get("amount"))
    except (TypeError, ValueError):
        return None

    direction = str(row.get("direction") or "").strip().lower()
    if direction not in DIRECTIONS:
        return None

    confidence = row.get("category_confidence")
    try:
        confidence = None if confidence is None else float(confidence)
    except (TypeError, ValueError):
        confidence = None

    record = TransactionRecord(
        date=d,
        description=str(row.get("description") or ""),
        amount=amount,
        direction=direction,  # type: ignore[arg-type]
        merchant=(str(row["merchant"]).strip() or None) if row.get("merchant") else None,
        category=(str(row["category"]).strip() or None) if row.get("category") else None,
        category_confidence=confidence,
        occurred_at=occurred_at,
    )
    return record if is_well_formed(record) else None
