from __future__ import annotations

from typing import Optional, Sequence

from backend.app.facts.aggregates import Aggregates
from backend.app.facts.records import UNCATEGORIZED, TransactionRecord
from backend.app.facts.stats import clamp, safe_div
from backend.app.insights.core import Insight, mk_insight

MIN_MONTHLY_SPEND = 200.0
ANNUAL_RETURN = 0.07
YEARS = 10

# Future value of an ordinary annuity: 1 unit a year for 10 years at 7%
FV_FACTOR = ((1 + ANNUAL_RETURN) ** YEARS - 1) / ANNUAL_RETURN


def _framing(category: str) -> tuple[str, float]:
    label = category.lower()
    if "dining" in label or "food" in label:
        return "dining", 0.5
    if "shopping" in label or "entertainment" in label:
        return "discretionary", 0.25
    return "generic", 0.20


def detect_opportunity_cost(
    transactions: Sequence[TransactionRecord],
    aggregates: Aggregates,
) -> Optional[Insight]:
    """
    What the top spending category would be worth if part of it were invested.

    monthly spend = category total / months covered; needs > $200/month.
    """
    top = next((c for c in aggregates.by_category if c.category != UNCATEGORIZED), None)
    if top is None:
        return None

    monthly = safe_div(top.total, max(aggregates.months_covered, 1))
    if monthly <= MIN_MONTHLY_SPEND:
        return None

    annual = monthly * 12
    framing, fraction = _framing(top.category)
    redirected = annual * fraction
    future_value = redirected * FV_FACTOR

    if framing == "dining":
        headline = "The latte factor"
        narrative = (
            f"Your ${monthly:,.0f}/month {top.category} habit costs ${annual:,.0f}/year. "
            f"Cut it in half and you'd save ${redirected:,.0f}/year."
        )
    elif framing == "discretionary":
        avg_ticket = safe_div(top.total, top.count)
        headline = "Small leaks sink ships"
        narrative = (
            f"{top.count} {top.category} purchases at ${avg_ticket:,.2f} on average "
            f"add up to ${annual:,.0f}/year. Skipping a quarter saves ${redirected:,.0f}/year."
        )
    else:
        headline = "Opportunity unlocked"
        narrative = (
            f"Your ${monthly:,.0f}/month {top.category} spending is ${annual:,.0f}/year. "
            f"Redirecting a fifth frees ${redirected:,.0f}/year."
        )

    return mk_insight(
        kind="opportunity-cost",
        severity="info",
        headline=headline,
        narrative=narrative,
        supporting_data={
            "category": top.category,
            "framing": framing,
            "monthly_amount": monthly,
            "annual_amount": annual,
            "redirected_fraction": fraction,
            "annual_redirected": redirected,
            "future_value_10y": future_value,
            "annual_return": ANNUAL_RETURN,
        },
        action_hint=f"Invested at 7%, that's ${future_value:,.0f} in {YEARS} years.",
        confidence=clamp(0.5 + 0.05 * aggregates.months_covered, 0.0, 0.85),
    )
