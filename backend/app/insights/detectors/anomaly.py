from __future__ import annotations

from collections import defaultdict
from datetime import date
from typing import Dict, List, Optional, Sequence

from backend.app.facts.aggregates import Aggregates
from backend.app.facts.records import TransactionRecord
from backend.app.facts.stats import clamp, mean, pstdev
from backend.app.insights.core import Insight, mk_insight

MIN_SPENDING_DAYS = 5
SIGMA_THRESHOLD = 2.0


def daily_debit_totals(transactions: Sequence[TransactionRecord]) -> Dict[date, float]:
    totals: Dict[date, float] = defaultdict(float)
    for t in transactions:
        if t.is_debit:
            totals[t.date] += t.amount
    return dict(totals)


def detect_spending_anomaly(
    transactions: Sequence[TransactionRecord],
    aggregates: Aggregates,
) -> Optional[Insight]:
    """
    Flag the single day whose debit total sits furthest above the mean,
    provided it clears mean + 2 * stddev of the daily-total distribution.
    """
    daily = daily_debit_totals(transactions)
    if len(daily) < MIN_SPENDING_DAYS:
        return None

    amounts = list(daily.values())
    avg = mean(amounts)
    std = pstdev(amounts)
    if std <= 0 or avg <= 0:
        return None

    day, amount = max(daily.items(), key=lambda kv: (kv[1], kv[0]))
    deviation = amount - avg
    if deviation <= SIGMA_THRESHOLD * std:
        return None

    percent_above = deviation / avg * 100.0
    z_score = deviation / std

    day_txns: List[TransactionRecord] = sorted(
        (t for t in transactions if t.is_debit and t.date == day),
        key=lambda t: t.amount,
        reverse=True,
    )
    biggest = day_txns[0] if day_txns else None

    if biggest is not None:
        action = (
            f"Biggest purchase: {biggest.description or biggest.merchant or 'unknown'} "
            f"(${biggest.amount:,.2f}). Was this planned or impulse?"
        )
    else:
        action = "Review this day to understand what drove the spike."

    return mk_insight(
        kind="anomaly",
        severity="info",
        headline="Unusual spending spike",
        narrative=(
            f"On {day.isoformat()} you spent ${amount:,.2f}, "
            f"{percent_above:.0f}% more than your typical ${avg:,.2f}/day."
        ),
        supporting_data={
            "date": day.isoformat(),
            "amount": amount,
            "daily_average": avg,
            "daily_stddev": std,
            "percent_above": percent_above,
            "z_score": z_score,
            "spending_days": len(daily),
            "largest_transaction": None if biggest is None else {
                "description": biggest.description,
                "merchant": biggest.merchant,
                "amount": biggest.amount,
            },
        },
        action_hint=action,
        confidence=clamp(0.5 + (z_score - SIGMA_THRESHOLD) * 0.15, 0.0, 0.95),
    )
