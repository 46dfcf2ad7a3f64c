from __future__ import annotations

from datetime import timedelta
from typing import Dict, List, Optional, Sequence

from backend.app.facts.aggregates import Aggregates
from backend.app.facts.records import TransactionRecord
from backend.app.facts.stats import clamp, mean, safe_div
from backend.app.insights.core import Insight, mk_insight

PAYDAY_WINDOW_DAYS = 3
PAYDAY_MULTIPLIER_THRESHOLD = 2.0

LATE_NIGHT_HOURS = range(20, 24)
LATE_NIGHT_SHARE_THRESHOLD = 0.25
MIN_TIMED_DEBITS = 5
WEEKEND_MULTIPLIER_THRESHOLD = 1.5
MIN_WEEKEND_SPAN_DAYS = 14


def _debits(transactions: Sequence[TransactionRecord]) -> List[TransactionRecord]:
    return [t for t in transactions if t.is_debit]


def _span_days(txns: Sequence[TransactionRecord]) -> int:
    if not txns:
        return 0
    first = min(t.date for t in txns)
    last = max(t.date for t in txns)
    return (last - first).days + 1


def detect_payday_effect(
    transactions: Sequence[TransactionRecord],
    aggregates: Aggregates,
) -> Optional[Insight]:
    """
    Compare spending in the 3 days after each income credit with the
    expected 3-day share of the overall average daily spend.
    """
    credits = [t for t in transactions if t.is_credit]
    debits = _debits(transactions)
    if not credits or not debits:
        return None

    avg_daily = safe_div(sum(t.amount for t in debits), _span_days(debits))
    if avg_daily <= 0:
        return None

    windows: List[float] = []
    for income in credits:
        end = income.date + timedelta(days=PAYDAY_WINDOW_DAYS)
        windows.append(sum(t.amount for t in debits if income.date < t.date <= end))

    avg_after = mean(windows)
    expected = avg_daily * PAYDAY_WINDOW_DAYS
    multiplier = safe_div(avg_after / PAYDAY_WINDOW_DAYS, avg_daily)
    if multiplier <= PAYDAY_MULTIPLIER_THRESHOLD:
        return None

    excess_per_payday = max(avg_after - expected, 0.0)
    paydays_per_month = safe_div(len(credits), max(aggregates.months_covered, 1))
    annual_excess = excess_per_payday * paydays_per_month * 12

    return mk_insight(
        kind="payday-effect",
        severity="warning",
        headline="Payday splurge alert",
        narrative=(
            f"You spend {multiplier:.1f}x your usual pace in the {PAYDAY_WINDOW_DAYS} days after getting paid "
            f"(${avg_after:,.0f} vs ${expected:,.0f} normally)."
        ),
        supporting_data={
            "multiplier": multiplier,
            "average_post_payday_spend": avg_after,
            "expected_window_spend": expected,
            "average_daily_spend": avg_daily,
            "paydays": len(credits),
            "projected_annual_excess": annual_excess,
        },
        action_hint=(
            "Wait 48 hours before major purchases after payday. "
            f"That cooling-off period could save about ${annual_excess:,.0f}/year."
        ),
        confidence=clamp(0.4 + 0.1 * len(credits), 0.0, 0.85),
    )


def _late_night(debits: Sequence[TransactionRecord]) -> Optional[Insight]:
    timed = [t for t in debits if t.occurred_at is not None]
    if len(timed) < MIN_TIMED_DEBITS:
        return None

    total = sum(t.amount for t in timed)
    late = sum(t.amount for t in timed if t.occurred_at.hour in LATE_NIGHT_HOURS)  # type: ignore[union-attr]
    share = safe_div(late, total)
    if share <= LATE_NIGHT_SHARE_THRESHOLD:
        return None

    return mk_insight(
        kind="temporal-behavior",
        severity="warning",
        headline="Night owl spender detected",
        narrative=(
            f"{share * 100:.0f}% of your spending happens between 8 PM and midnight "
            f"(${late:,.0f} this period)."
        ),
        supporting_data={
            "pattern": "late-night",
            "late_night_share": share * 100,
            "late_night_spend": late,
            "timed_spend": total,
        },
        action_hint="Try a wait-until-morning rule for evening purchases.",
        confidence=clamp(0.5 + (share - LATE_NIGHT_SHARE_THRESHOLD), 0.0, 0.9),
    )


def _weekend(debits: Sequence[TransactionRecord]) -> Optional[Insight]:
    span = _span_days(debits)
    if span < MIN_WEEKEND_SPAN_DAYS:
        return None

    first = min(t.date for t in debits)
    weekend_days = sum(1 for i in range(span) if (first + timedelta(days=i)).weekday() >= 5)
    weekdays = span - weekend_days

    by_weekday: Dict[bool, float] = {True: 0.0, False: 0.0}
    for t in debits:
        by_weekday[t.date.weekday() >= 5] += t.amount

    avg_weekend = safe_div(by_weekday[True], weekend_days)
    avg_weekday = safe_div(by_weekday[False], weekdays)
    if avg_weekday <= 0:
        return None

    multiplier = avg_weekend / avg_weekday
    if multiplier <= WEEKEND_MULTIPLIER_THRESHOLD:
        return None

    # roughly 8 weekend days a month
    monthly_excess = (avg_weekend - avg_weekday) * 8

    return mk_insight(
        kind="temporal-behavior",
        severity="info",
        headline="Weekend warrior",
        narrative=(
            f"You spend {(multiplier - 1) * 100:.0f}% more on weekends "
            f"(${avg_weekend:,.0f}/day) than on weekdays (${avg_weekday:,.0f}/day)."
        ),
        supporting_data={
            "pattern": "weekend",
            "weekend_daily_average": avg_weekend,
            "weekday_daily_average": avg_weekday,
            "multiplier": multiplier,
            "monthly_excess": monthly_excess,
        },
        action_hint=f"Plan weekend activities in advance; it could save about ${monthly_excess:,.0f}/month.",
        confidence=clamp(0.4 + span / 365.0, 0.0, 0.85),
    )


def detect_temporal_behavior(
    transactions: Sequence[TransactionRecord],
    aggregates: Aggregates,
) -> Optional[Insight]:
    """Late-night spending first; weekend-vs-weekday only when late-night does not qualify."""
    debits = _debits(transactions)
    if not debits:
        return None
    return _late_night(debits) or _weekend(debits)
