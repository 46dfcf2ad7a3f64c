from __future__ import annotations

from datetime import timedelta
from typing import Optional, Sequence

from backend.app.facts.aggregates import Aggregates
from backend.app.facts.dates import days_in_month, days_in_month_key, month_key
from backend.app.facts.records import TransactionRecord
from backend.app.facts.stats import clamp, mean, safe_div
from backend.app.insights.core import Insight, mk_insight

SHORTFALL_THRESHOLD = 50.0
SURPLUS_THRESHOLD = 100.0


def detect_cash_flow(
    transactions: Sequence[TransactionRecord],
    aggregates: Aggregates,
) -> Optional[Insight]:
    """
    Project the current month's spend to month end and compare with income.
    A month that is neither short nor in surplus gets the annual run rate instead.

    projected = spend so far this month + historical daily average * days left
    income    = credits this month, else the average monthly credits of
                completed months
    """
    if aggregates.months_covered < 2:
        return None

    as_of = aggregates.as_of
    current_key = month_key(as_of)
    completed = [m for m in aggregates.by_month if m.month < current_key]
    if not completed:
        return None

    history_days = sum(days_in_month_key(m.month) for m in completed)
    avg_daily = safe_div(sum(m.total_debits for m in completed), history_days)

    current = aggregates.month(current_key)
    spent_so_far = current.total_debits if current else 0.0
    days_remaining = days_in_month(as_of) - as_of.day

    income = current.total_credits if current and current.total_credits > 0 else 0.0
    income_source = "this month"
    if income <= 0:
        income = mean(m.total_credits for m in completed)
        income_source = "monthly average"

    projected = spent_so_far + avg_daily * days_remaining
    shortfall = projected - income

    data = {
        "month": current_key,
        "spent_so_far": spent_so_far,
        "average_daily_spend": avg_daily,
        "days_remaining": days_remaining,
        "projected_spend": projected,
        "expected_income": income,
        "income_source": income_source,
        "projected_balance": -shortfall,
    }
    confidence = clamp(0.4 + 0.05 * len(completed), 0.0, 0.8)

    if shortfall > SHORTFALL_THRESHOLD:
        daily_cut = shortfall / max(days_remaining, 1)
        headroom = income - spent_so_far
        days_until_short = int(headroom // avg_daily) if avg_daily > 0 and headroom > 0 else 0
        short_on = as_of + timedelta(days=days_until_short)
        data["daily_reduction_needed"] = daily_cut
        data["shortfall_date"] = short_on.isoformat()

        return mk_insight(
            kind="cash-flow-projection",
            severity="warning",
            headline="Cash crunch incoming",
            narrative=(
                f"At your usual ${avg_daily:,.2f}/day you'll end {current_key} about "
                f"${shortfall:,.0f} short, around {short_on.isoformat()}."
            ),
            supporting_data=data,
            action_hint=f"Reduce daily spending by ${daily_cut:,.2f} to stay balanced.",
            confidence=confidence,
        )

    if shortfall < -SURPLUS_THRESHOLD:
        return mk_insight(
            kind="cash-flow-projection",
            severity="success",
            headline="Surplus ahead",
            narrative=f"You're on track to have ${-shortfall:,.0f} left over in {current_key}.",
            supporting_data=data,
            action_hint="Move the surplus to savings automatically.",
            confidence=confidence,
        )

    annual_spend = mean(m.total_debits for m in completed) * 12
    annual_income = income * 12
    annual_net = annual_income - annual_spend
    data["annual_spending"] = annual_spend
    data["annual_income"] = annual_income
    data["annual_net"] = annual_net
    if annual_net < 0:
        hint = "You're spending more than you earn over a year. Time to adjust."
    else:
        hint = f"On track to save {safe_div(annual_net, annual_income) * 100:.1f}% of your income this year."

    return mk_insight(
        kind="cash-flow-projection",
        severity="info",
        headline="Annual projection",
        narrative=(
            f"At your current pace: ${annual_spend:,.0f}/year spending vs "
            f"${annual_income:,.0f}/year income. Net: ${annual_net:,.0f}."
        ),
        supporting_data=data,
        action_hint=hint,
        confidence=confidence,
    )
