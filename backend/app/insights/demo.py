"""
Demonstration insight feed.

Shown instead of real insights when a user's history is too thin to say
anything meaningful (fewer than 10 usable transactions, or under 30% of them
categorized). Built from a fixed sample profile: $5,000 monthly income,
$3,000 monthly spending.

Pure: no inputs, no clock, no randomness. Every call returns equal lists.
"""

from __future__ import annotations

from typing import List

from backend.app.insights.core import Insight, mk_insight

SAMPLE_MONTHLY_INCOME = 5000.0
SAMPLE_MONTHLY_SPENDING = 3000.0
SAMPLE_CATEGORIES = {
    "Groceries": 800.0,
    "Bills": 700.0,
    "Dining": 600.0,
    "Shopping": 500.0,
    "Transportation": 400.0,
}
SAMPLE_MERCHANTS = ("Walmart", "Trader Joes", "Chipotle", "Uber Eats")


def demo_insights() -> List[Insight]:
    net = SAMPLE_MONTHLY_INCOME - SAMPLE_MONTHLY_SPENDING
    dining = SAMPLE_CATEGORIES["Dining"]
    groceries = SAMPLE_CATEGORIES["Groceries"]

    return [
        mk_insight(
            kind="recurring-charge",
            severity="warning",
            headline="3 recurring charges found",
            narrative="Detected 3 likely subscriptions costing $66.98/month ($804/year).",
            supporting_data={
                "count": 3,
                "monthly_total": 66.98,
                "annual_total": 803.76,
                "top_merchant": "Gym Membership",
                "top_amount": 40.0,
            },
            action_hint="Top subscription: Gym Membership at $40.00/month. Cancel what you don't use.",
            confidence=0.7,
            is_demo=True,
        ),
        mk_insight(
            kind="category-trend",
            severity="warning",
            headline="Dining spending surging",
            narrative="Your Dining spending grew 25% month-over-month (from $480 to $600).",
            supporting_data={
                "category": "Dining",
                "previous_amount": 480.0,
                "current_amount": dining,
                "growth_percent": 25.0,
                "projected_next_month": 750.0,
            },
            action_hint="At this rate you'll hit $750 next month (+$150). Time to review this category.",
            confidence=0.6,
            is_demo=True,
        ),
        mk_insight(
            kind="top-category",
            severity="info",
            headline="Groceries is your biggest expense",
            narrative=f"You spent ${groceries:,.2f} on Groceries, 26.7% of your total spending.",
            supporting_data={
                "category": "Groceries",
                "total": groceries,
                "percentage_of_debit_total": groceries / SAMPLE_MONTHLY_SPENDING * 100.0,
            },
            confidence=0.95,
            is_demo=True,
        ),
        mk_insight(
            kind="merchant-concentration",
            severity="info",
            headline=f"{SAMPLE_MERCHANTS[0]} is your go-to",
            narrative=f"You've visited {SAMPLE_MERCHANTS[0]} 8 times, spending $320.00. That's 8.0 visits/month.",
            supporting_data={
                "merchant": SAMPLE_MERCHANTS[0],
                "visits": 8,
                "total": 320.0,
                "visits_per_month": 8.0,
                "estimated_cashback": 6.4,
            },
            action_hint=f"A rewards card for {SAMPLE_MERCHANTS[0]} could return about $6 in cashback this period.",
            confidence=0.66,
            is_demo=True,
        ),
        mk_insight(
            kind="opportunity-cost",
            severity="info",
            headline="The latte factor",
            narrative=(
                "Your $600/month Dining habit costs $7,200/year. "
                "Cut it in half and you'd save $3,600/year."
            ),
            supporting_data={
                "category": "Dining",
                "framing": "dining",
                "monthly_amount": dining,
                "annual_amount": dining * 12,
                "redirected_fraction": 0.5,
                "annual_redirected": dining * 6,
                "future_value_10y": 49739.22,
            },
            action_hint="Invested at 7%, that's $49,739 in 10 years.",
            confidence=0.6,
            is_demo=True,
        ),
        mk_insight(
            kind="savings-summary",
            severity="success",
            headline="Great job saving!",
            narrative=f"You saved ${net:,.2f} from your income. That's 40.0% of what came in.",
            supporting_data={
                "total_income": SAMPLE_MONTHLY_INCOME,
                "total_spending": SAMPLE_MONTHLY_SPENDING,
                "net_savings": net,
                "savings_rate": net / SAMPLE_MONTHLY_INCOME * 100.0,
            },
            action_hint="Keep it up, and consider raising your savings rate toward 20%.",
            confidence=0.9,
            is_demo=True,
        ),
    ]
