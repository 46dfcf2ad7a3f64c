from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Literal, Optional

from backend.app.facts.aggregates import Aggregates
from backend.app.facts.stats import clamp, coefficient_of_variation, mean, round2, safe_div

Status = Literal["excellent", "good", "fair", "poor"]
Trend = Literal["improving", "stable", "declining"]

SAVINGS_TARGET = 20.0
BUDGET_SHARE = 0.80
EMERGENCY_TARGET_MONTHS = 6.0


@dataclass(frozen=True)
class HealthMetric:
    id: str
    name: str
    value: float  # 0..100, what the overall score averages
    score: float  # raw measure in `unit`
    unit: str
    status: Status
    description: str
    target: Optional[float] = None


@dataclass(frozen=True)
class FinancialHealth:
    overall_score: float
    trend: Trend
    metrics: List[HealthMetric] = field(default_factory=list)


def _tiered(x: float, excellent: float, good: float, fair: float) -> Status:
    if x >= excellent:
        return "excellent"
    if x >= good:
        return "good"
    if x >= fair:
        return "fair"
    return "poor"


def _savings_rate(aggs: Aggregates) -> HealthMetric:
    rate = safe_div(aggs.net, aggs.total_credits) * 100.0
    return HealthMetric(
        id="savings-rate",
        name="Savings Rate",
        value=clamp(rate * 5, 0.0, 100.0),
        score=rate,
        unit="%",
        status=_tiered(rate, 20, 10, 5),
        description=f"You're saving {rate:.1f}% of your income",
        target=SAVINGS_TARGET,
    )


def _spending_months(aggs: Aggregates) -> List[float]:
    # income-only months (e.g. a fresh month with just the salary) are not zero-spend months
    return [m.total_debits for m in aggs.by_month if m.total_debits > 0]


def _consistency(aggs: Aggregates) -> HealthMetric:
    monthly = _spending_months(aggs)
    variation = coefficient_of_variation(monthly) * 100.0
    consistency = clamp(100.0 - variation, 0.0, 100.0) if mean(monthly) > 0 else 0.0
    return HealthMetric(
        id="consistency",
        name="Spending Consistency",
        value=consistency,
        score=consistency,
        unit="%",
        status=_tiered(consistency, 80, 60, 40),
        description=f"Your spending varies by {variation:.0f}% month to month",
    )


def _budget_adherence(aggs: Aggregates) -> HealthMetric:
    income = aggs.total_credits
    spend_share = safe_div(aggs.total_debits, income) * 100.0
    if income > 0:
        adherence = 100.0 - (aggs.total_debits - income * BUDGET_SHARE) / income * 100.0
    else:
        adherence = 0.0
    adherence = clamp(adherence, 0.0, 100.0)
    return HealthMetric(
        id="budget",
        name="Budget Adherence",
        value=adherence,
        score=spend_share,
        unit="%",
        status=_tiered(adherence, 80, 60, 40),
        description=f"Spending {spend_share:.0f}% of income",
        target=BUDGET_SHARE * 100,
    )


def _emergency_fund(aggs: Aggregates) -> HealthMetric:
    months = safe_div(aggs.net, mean(_spending_months(aggs)))
    return HealthMetric(
        id="emergency",
        name="Emergency Fund",
        value=clamp(months / EMERGENCY_TARGET_MONTHS * 100.0, 0.0, 100.0),
        score=months,
        unit="months",
        status=_tiered(months, 6, 3, 1),
        description=f"{months:.1f} months of expenses saved",
        target=EMERGENCY_TARGET_MONTHS,
    )


def compute_financial_health(aggregates: Aggregates) -> FinancialHealth:
    """
    0-100 health score from savings rate, spending consistency, budget
    adherence (80% of income) and emergency-fund coverage (6 months).
    """
    metrics = [
        _savings_rate(aggregates),
        _consistency(aggregates),
        _budget_adherence(aggregates),
        _emergency_fund(aggregates),
    ]
    overall = clamp(mean(m.value for m in metrics), 0.0, 100.0)

    if overall >= 70:
        trend: Trend = "improving"
    elif overall >= 50:
        trend = "stable"
    else:
        trend = "declining"

    return FinancialHealth(overall_score=overall, trend=trend, metrics=metrics)


def health_to_dict(health: FinancialHealth) -> Dict[str, Any]:
    out = asdict(health)
    out["overall_score"] = round2(health.overall_score)
    for m in out["metrics"]:
        m["value"] = round2(m["value"])
        m["score"] = round2(m["score"])
    return out
