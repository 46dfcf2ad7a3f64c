"""
Facts layer - the aggregator.

Responsibility:
- Reduce a flat list of transaction records into stable aggregates that the
  detectors and the predictor consume:
  - totals by category (debits only), with share of total spend
  - monthly totals (debits, credits, count) with a per-category breakdown
  - whole-window scalars (total debits/credits, average monthly spend)

Design notes:
- Pure: no IO, no caching across calls, recomputed from scratch every time.
- Records dated after the evaluation instant are skipped silently.
- Malformed records are skipped and counted; one bad row never aborts the rest.
- Keep computations unrounded; round only in aggregates_to_dict.
- Every derived ratio is 0.0 (never NaN/inf) when its denominator is 0.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Dict, Iterable, List, Optional

from .dates import evaluation_date, month_key
from .records import TransactionRecord, category_label, is_future, is_well_formed
from .stats import round2, safe_div

logger = logging.getLogger(__name__)


# ----------------------------
# Typed aggregate records
# ----------------------------

@dataclass(frozen=True)
class CategoryAggregate:
    """
    Debit spend for one category label.

    Invariant:
    - sum(total) over all CategoryAggregate == Aggregates.total_debits
    """
    category: str
    total: float
    count: int
    percentage_of_debit_total: float


@dataclass(frozen=True)
class MonthlyAggregate:
    """
    Monthly rollup. Amounts are magnitudes (never signed).

    categories maps category label -> debit amount for the month.
    """
    month: str  # "YYYY-MM"
    total_debits: float
    total_credits: float
    transaction_count: int
    categories: Dict[str, float] = field(default_factory=dict)

    @property
    def net(self) -> float:
        return self.total_credits - self.total_debits


@dataclass(frozen=True)
class Aggregates:
    as_of: date
    by_category: List[CategoryAggregate]
    by_month: List[MonthlyAggregate]
    total_debits: float
    total_credits: float
    transaction_count: int
    skipped_count: int = 0

    @property
    def months_covered(self) -> int:
        return len(self.by_month)

    @property
    def net(self) -> float:
        return self.total_credits - self.total_debits

    @property
    def average_monthly_debits(self) -> float:
        return safe_div(self.total_debits, len(self.by_month))

    def month(self, key: str) -> Optional[MonthlyAggregate]:
        for m in self.by_month:
            if m.month == key:
                return m
        return None


# ----------------------------
# Aggregation
# ----------------------------

def compute_category_totals(txns: Iterable[TransactionRecord]) -> List[CategoryAggregate]:
    totals: Dict[str, float] = {}
    counts: Dict[str, int] = {}

    for t in txns:
        if not t.is_debit:
            continue
        cat = category_label(t.category)
        totals[cat] = totals.get(cat, 0.0) + t.amount
        counts[cat] = counts.get(cat, 0) + 1

    debit_sum = sum(totals.values())
    rows = [
        CategoryAggregate(
            category=c,
            total=v,
            count=counts[c],
            percentage_of_debit_total=safe_div(v, debit_sum) * 100.0,
        )
        for c, v in totals.items()
    ]
    # Largest spend first, label as a stable tie-breaker
    rows.sort(key=lambda r: (-r.total, r.category))
    return rows


@dataclass
class _MonthAccumulator:
    debits: float = 0.0
    credits: float = 0.0
    count: int = 0
    categories: Dict[str, float] = field(default_factory=dict)


def compute_monthly_totals(txns: Iterable[TransactionRecord]) -> List[MonthlyAggregate]:
    monthly: Dict[str, _MonthAccumulator] = {}

    for t in txns:
        acc = monthly.setdefault(month_key(t.date), _MonthAccumulator())
        acc.count += 1
        if t.is_debit:
            acc.debits += t.amount
            cat = category_label(t.category)
            acc.categories[cat] = acc.categories.get(cat, 0.0) + t.amount
        else:
            acc.credits += t.amount

    return [
        MonthlyAggregate(
            month=k,
            total_debits=monthly[k].debits,
            total_credits=monthly[k].credits,
            transaction_count=monthly[k].count,
            categories=dict(monthly[k].categories),
        )
        for k in sorted(monthly.keys())
    ]


def compute_aggregates(
    transactions: Iterable[TransactionRecord],
    now: Optional[datetime | date] = None,
) -> Aggregates:
    """
    Aggregate the usable transactions as of `now` (defaults to today, UTC).

    Notes:
    - future-dated records are excluded without being counted as skipped
    - malformed records are excluded and reported in skipped_count
    """
    as_of = evaluation_date(now)

    kept: List[TransactionRecord] = []
    skipped = 0
    for t in transactions:
        if not is_well_formed(t):
            skipped += 1
            continue
        if is_future(t, as_of):
            continue
        kept.append(t)

    if skipped:
        logger.warning("Aggregator skipped %s malformed transaction record(s)", skipped)

    return Aggregates(
        as_of=as_of,
        by_category=compute_category_totals(kept),
        by_month=compute_monthly_totals(kept),
        total_debits=sum(t.amount for t in kept if t.is_debit),
        total_credits=sum(t.amount for t in kept if t.is_credit),
        transaction_count=len(kept),
        skipped_count=skipped,
    )


# ----------------------------
# Serialization helpers (API boundary)
# ----------------------------

def aggregates_to_dict(aggs: Aggregates) -> dict:
    return {
        "as_of": aggs.as_of.isoformat(),
        "by_category": [
            {
                "category": r.category,
                "total": round2(r.total),
                "count": r.count,
                "percentage_of_debit_total": round2(r.percentage_of_debit_total),
            }
            for r in aggs.by_category
        ],
        "by_month": [
            {
                "month": m.month,
                "total_debits": round2(m.total_debits),
                "total_credits": round2(m.total_credits),
                "transaction_count": m.transaction_count,
                "categories": {c: round2(v) for c, v in sorted(m.categories.items())},
            }
            for m in aggs.by_month
        ],
        "total_debits": round2(aggs.total_debits),
        "total_credits": round2(aggs.total_credits),
        "average_monthly_debits": round2(aggs.average_monthly_debits),
        "transaction_count": aggs.transaction_count,
        "skipped_count": aggs.skipped_count,
    }
