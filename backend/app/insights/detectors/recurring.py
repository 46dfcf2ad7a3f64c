from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence

from backend.app.facts.aggregates import Aggregates
from backend.app.facts.merchant import group_debits_by_merchant
from backend.app.facts.records import TransactionRecord
from backend.app.facts.stats import clamp, mean
from backend.app.insights.core import Insight, mk_insight

AMOUNT_TOLERANCE = 0.10
MIN_GAP_DAYS = 25
MAX_GAP_DAYS = 35
MIN_QUALIFYING_MERCHANTS = 3


@dataclass(frozen=True)
class RecurringCharge:
    merchant: str
    average_amount: float
    occurrences: int
    gaps_days: List[int]


def _amounts_stable(amounts: List[float]) -> bool:
    avg = mean(amounts)
    if avg <= 0:
        return False
    return all(abs(a - avg) / avg < AMOUNT_TOLERANCE for a in amounts)


def _gaps_monthly(gaps: List[int]) -> bool:
    return all(MIN_GAP_DAYS <= g <= MAX_GAP_DAYS for g in gaps)


def find_recurring_charges(transactions: Sequence[TransactionRecord]) -> List[RecurringCharge]:
    """
    Merchants billed a near-fixed amount at a roughly monthly cadence.

    A merchant qualifies with >= 2 debits, every amount within 10% of the
    mean, and every gap between consecutive charges in [25, 35] days.
    Sorted by average amount, largest first.
    """
    found: List[RecurringCharge] = []
    for merchant, txns in group_debits_by_merchant(transactions).items():
        if len(txns) < 2:
            continue
        amounts = [t.amount for t in txns]
        if not _amounts_stable(amounts):
            continue

        dates = sorted(t.date for t in txns)
        gaps = [(b - a).days for a, b in zip(dates, dates[1:])]
        if not _gaps_monthly(gaps):
            continue

        found.append(
            RecurringCharge(
                merchant=merchant,
                average_amount=mean(amounts),
                occurrences=len(txns),
                gaps_days=gaps,
            )
        )

    found.sort(key=lambda r: (-r.average_amount, r.merchant))
    return found


def detect_recurring_charges(
    transactions: Sequence[TransactionRecord],
    aggregates: Aggregates,
) -> Optional[Insight]:
    charges = find_recurring_charges(transactions)
    # A single subscription is not news
    if len(charges) < MIN_QUALIFYING_MERCHANTS:
        return None

    monthly_total = sum(c.average_amount for c in charges)
    annual_total = monthly_total * 12
    top = charges[0]

    return mk_insight(
        kind="recurring-charge",
        severity="warning",
        headline=f"{len(charges)} recurring charges found",
        narrative=(
            f"Detected {len(charges)} likely subscriptions costing ${monthly_total:,.2f}/month "
            f"(${annual_total:,.0f}/year)."
        ),
        supporting_data={
            "count": len(charges),
            "monthly_total": monthly_total,
            "annual_total": annual_total,
            "top_merchant": top.merchant,
            "top_amount": top.average_amount,
            "merchants": [
                {"merchant": c.merchant, "average_amount": c.average_amount, "occurrences": c.occurrences}
                for c in charges
            ],
        },
        action_hint=(
            f"Top subscription: {top.merchant} at ${top.average_amount:,.2f}/month. "
            "Review them all and cancel what you don't use."
        ),
        confidence=clamp(0.55 + 0.05 * sum(c.occurrences for c in charges) / len(charges), 0.0, 0.9),
    )
