from __future__ import annotations

from typing import Optional, Sequence

from backend.app.facts.aggregates import Aggregates
from backend.app.facts.merchant import group_debits_by_merchant
from backend.app.facts.records import TransactionRecord
from backend.app.facts.stats import clamp, safe_div
from backend.app.insights.core import Insight, mk_insight

MIN_VISITS = 5
CASHBACK_RATE = 0.02
DAYS_PER_MONTH = 30.0


def detect_merchant_concentration(
    transactions: Sequence[TransactionRecord],
    aggregates: Aggregates,
) -> Optional[Insight]:
    """Most-visited merchant (by debit count) once it reaches 5 visits."""
    groups = group_debits_by_merchant(transactions)
    if not groups:
        return None

    merchant, visits = max(
        groups.items(),
        key=lambda kv: (len(kv[1]), sum(t.amount for t in kv[1]), kv[0]),
    )
    if len(visits) < MIN_VISITS:
        return None

    total = sum(t.amount for t in visits)
    dates = sorted(t.date for t in visits)
    span_days = (dates[-1] - dates[0]).days
    months = max(span_days / DAYS_PER_MONTH, 1.0)
    per_month = safe_div(len(visits), months)
    cashback = total * CASHBACK_RATE
    debit_total = sum(t.amount for t in transactions if t.is_debit)

    return mk_insight(
        kind="merchant-concentration",
        severity="info",
        headline=f"{merchant} is your go-to",
        narrative=(
            f"You've visited {merchant} {len(visits)} times, spending ${total:,.2f}. "
            f"That's {per_month:.1f} visits/month."
        ),
        supporting_data={
            "merchant": merchant,
            "visits": len(visits),
            "total": total,
            "visits_per_month": per_month,
            "share_of_spend": safe_div(total, debit_total) * 100.0,
            "estimated_cashback": cashback,
        },
        action_hint=(
            f"A rewards card for {merchant} could return about ${cashback:,.0f} "
            "in cashback this period."
        ),
        confidence=clamp(0.5 + 0.02 * len(visits), 0.0, 0.9),
    )
