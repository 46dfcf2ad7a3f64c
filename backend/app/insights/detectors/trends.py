from __future__ import annotations

from typing import Optional, Sequence

from backend.app.facts.aggregates import Aggregates
from backend.app.facts.records import UNCATEGORIZED, TransactionRecord
from backend.app.facts.stats import clamp, pct_change
from backend.app.insights.core import Insight, mk_insight

TREND_GROWTH_THRESHOLD = 20.0  # percent, month over month

INFLATION_LOOKBACK = 3
INFLATION_MARGIN = 10.0  # percentage points above income growth
INFLATION_MIN_GROWTH = 15.0


def detect_category_trend(
    transactions: Sequence[TransactionRecord],
    aggregates: Aggregates,
) -> Optional[Insight]:
    """
    Fastest-growing category between the two most recent populated months.

    Only categories with spend in the prior month are considered; the winner
    must grow by more than 20%.
    """
    months = aggregates.by_month
    if len(months) < 2:
        return None

    prev, last = months[-2], months[-1]

    best: Optional[tuple[float, str, float, float]] = None
    for category in sorted(set(prev.categories) | set(last.categories)):
        if category == UNCATEGORIZED:
            continue
        before = prev.categories.get(category, 0.0)
        after = last.categories.get(category, 0.0)
        growth = pct_change(after, before)
        if growth is None or growth <= TREND_GROWTH_THRESHOLD:
            continue
        if best is None or growth > best[0]:
            best = (growth, category, before, after)

    if best is None:
        return None

    growth, category, before, after = best
    projected = after * (1 + growth / 100.0)

    return mk_insight(
        kind="category-trend",
        severity="warning",
        headline=f"{category} spending surging",
        narrative=(
            f"Your {category} spending grew {growth:.0f}% month-over-month "
            f"(from ${before:,.0f} to ${after:,.0f})."
        ),
        supporting_data={
            "category": category,
            "previous_month": prev.month,
            "current_month": last.month,
            "previous_amount": before,
            "current_amount": after,
            "growth_percent": growth,
            "projected_next_month": projected,
        },
        action_hint=(
            f"At this rate you'll hit ${projected:,.0f} next month "
            f"(+${projected - after:,.0f}). Time to review this category."
        ),
        confidence=clamp(0.45 + 0.05 * len(months), 0.0, 0.85),
    )


def detect_lifestyle_inflation(
    transactions: Sequence[TransactionRecord],
    aggregates: Aggregates,
) -> Optional[Insight]:
    """
    Spending growth outpacing income growth over the last few populated months.

    Compares the latest month with the month three periods earlier (or the
    first month when history is shorter). Fires when spending grew more than
    15% and more than 10 points faster than income.
    """
    months = aggregates.by_month
    n = len(months)
    if n < 3:
        return None

    base_index = max(0, n - 1 - INFLATION_LOOKBACK)
    base, last = months[base_index], months[-1]
    periods = (n - 1) - base_index

    spending_growth = pct_change(last.total_debits, base.total_debits) or 0.0
    income_growth = pct_change(last.total_credits, base.total_credits) or 0.0

    if spending_growth <= income_growth + INFLATION_MARGIN or spending_growth <= INFLATION_MIN_GROWTH:
        return None

    per_period = (1 + spending_growth / 100.0) ** (1.0 / periods) - 1
    next_period = last.total_debits * (1 + per_period)
    twelve_months = last.total_debits * (1 + per_period) ** 12

    income_text = f"only {income_growth:.0f}%" if income_growth > 0 else "not at all"

    return mk_insight(
        kind="lifestyle-inflation",
        severity="warning",
        headline="Your standard of living is eating your future",
        narrative=(
            f"Monthly spending is up {spending_growth:.0f}% since {base.month}, "
            f"while income grew {income_text}."
        ),
        supporting_data={
            "base_month": base.month,
            "current_month": last.month,
            "periods": periods,
            "spending_growth_percent": spending_growth,
            "income_growth_percent": income_growth,
            "per_period_growth_percent": per_period * 100.0,
            "projected_next_month": next_period,
            "projected_in_12_months": twelve_months,
        },
        action_hint=(
            f"If this continues you'll spend about ${next_period:,.0f} next month. "
            "Pick one recent upgrade to roll back."
        ),
        confidence=clamp(0.4 + 0.05 * n, 0.0, 0.8),
    )
