from __future__ import annotations

from typing import List, Sequence

from backend.app.facts.aggregates import Aggregates
from backend.app.facts.records import TransactionRecord, is_labeled
from backend.app.facts.stats import safe_div
from backend.app.insights.core import Insight, mk_insight

CATEGORIZATION_TARGET = 0.80


def labeled_share(transactions: Sequence[TransactionRecord]) -> float:
    """Fraction (0..1) of records carrying a real category label."""
    return safe_div(sum(1 for t in transactions if is_labeled(t)), len(transactions))


def savings_summary(aggregates: Aggregates) -> Insight:
    net = aggregates.net
    income = aggregates.total_credits
    rate = safe_div(net, income) * 100.0
    data = {
        "total_income": income,
        "total_spending": aggregates.total_debits,
        "net_savings": net,
        "savings_rate": rate,
    }

    if net > 0:
        return mk_insight(
            kind="savings-summary",
            severity="success",
            headline="Great job saving!",
            narrative=f"You saved ${net:,.2f} from your income. That's {rate:.1f}% of what came in.",
            supporting_data=data,
            action_hint="Keep it up, and consider raising your savings rate toward 20%.",
            confidence=0.9,
        )
    if net < 0:
        return mk_insight(
            kind="savings-summary",
            severity="warning",
            headline="Spending more than earning",
            narrative=f"You spent ${-net:,.2f} more than you earned. This leads to debt if it continues.",
            supporting_data=data,
            action_hint="Review your expenses and pick areas to cut back.",
            confidence=0.9,
        )
    return mk_insight(
        kind="savings-summary",
        severity="info",
        headline="Breaking even",
        narrative="Your income and spending matched exactly over this period.",
        supporting_data=data,
        action_hint="Set aside a small fixed amount each payday to build a cushion.",
        confidence=0.9,
    )


def top_category_summary(aggregates: Aggregates) -> List[Insight]:
    if not aggregates.by_category or aggregates.total_debits <= 0:
        return []
    top = aggregates.by_category[0]
    return [
        mk_insight(
            kind="top-category",
            severity="info",
            headline=f"{top.category} is your biggest expense",
            narrative=(
                f"You spent ${top.total:,.2f} on {top.category}, "
                f"{top.percentage_of_debit_total:.1f}% of your total spending."
            ),
            supporting_data={
                "category": top.category,
                "total": top.total,
                "count": top.count,
                "percentage_of_debit_total": top.percentage_of_debit_total,
            },
            confidence=0.95,
        )
    ]


def categorization_reminder(transactions: Sequence[TransactionRecord]) -> List[Insight]:
    share = labeled_share(transactions)
    if share >= CATEGORIZATION_TARGET:
        return []
    return [
        mk_insight(
            kind="categorization-reminder",
            severity="info",
            headline="Categorize for better insights",
            narrative=f"{(1 - share) * 100:.0f}% of your transactions are uncategorized.",
            supporting_data={
                "labeled_share": share * 100.0,
                "unlabeled_count": sum(1 for t in transactions if not is_labeled(t)),
            },
            action_hint="Label the remaining transactions so every pattern shows up.",
            confidence=1.0,
        )
    ]


def summary_insights(transactions: Sequence[TransactionRecord], aggregates: Aggregates) -> List[Insight]:
    return [savings_summary(aggregates), *top_category_summary(aggregates), *categorization_reminder(transactions)]
