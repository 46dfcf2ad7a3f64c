"""
Prediction extrapolator.

Responsibility:
- Predict next month's spending per category from complete past months.
- Attach a confidence band per category and an overall 0-100 confidence.
- Derive short narrative lines and warnings from the numbers.

Rules:
- History window: complete calendar months before the evaluation month,
  starting no earlier than the first month with data, at most N months.
  Months with no spending inside the window count as zero.
- Target period: the month after the evaluation month.
- Category prediction: mean of the last 3 window months (recency), or the
  plain mean when fewer than 3 months are available.
- Overall confidence grows with history and shrinks with month-to-month
  variance: 40 + 5 * months - min(60, 100 * CV(monthly totals)).

No model fitting, no randomness: same inputs, same snapshot.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import date, datetime
from typing import Any, Dict, Iterable, List, Literal, Optional

from backend.app.facts.aggregates import Aggregates, compute_aggregates
from backend.app.facts.dates import month_key, month_range, next_month, shift_month
from backend.app.facts.records import TransactionRecord, usable_transactions
from backend.app.facts.stats import clamp, coefficient_of_variation, mean, round2, safe_div

Band = Literal["high", "medium", "low"]

ALLOWED_WINDOWS = (3, 6, 9, 12)
RECENT_MONTHS = 3
HIGH_BAND_CV = 0.20
MEDIUM_BAND_CV = 0.50
TREND_DEVIATION_PCT = 10.0
RISING_RATIO = 1.25
RISING_MIN_DELTA = 50.0
MAX_PARAMETER_MONTHS = 12


@dataclass(frozen=True)
class CategoryPrediction:
    category: str
    predicted_amount: float
    confidence_band: Band
    historical_average: float = 0.0


@dataclass(frozen=True)
class PredictionSnapshot:
    target_period: str  # "YYYY-MM"
    total_predicted: float
    by_category: List[CategoryPrediction]
    overall_confidence: float  # 0..100
    months_of_history_used: int
    months_requested: int
    narrative_insights: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class PredictionParameters:
    has_data: bool
    available_months: int
    recommended_months: Optional[int] = None
    date_from: Optional[str] = None
    date_to: Optional[str] = None
    message: Optional[str] = None


def validate_window(months_to_use: int) -> int:
    if isinstance(months_to_use, bool) or months_to_use not in ALLOWED_WINDOWS:
        raise ValueError(f"months_to_use must be one of {ALLOWED_WINDOWS}, got {months_to_use!r}")
    return int(months_to_use)


def recommended_months(available_months: int) -> int:
    if available_months >= 9:
        return 9
    if available_months >= 6:
        return 6
    return 3


def history_window(aggregates: Aggregates, months_to_use: int) -> List[str]:
    """Month keys of the complete months the prediction is built from, oldest first."""
    if not aggregates.by_month:
        return []
    last_full = shift_month(month_key(aggregates.as_of), -1)
    first_data = aggregates.by_month[0].month
    start = max(first_data, shift_month(last_full, -(months_to_use - 1)))
    return month_range(start, last_full)


def confidence_band(series: List[float]) -> Band:
    n = len(series)
    cv = coefficient_of_variation(series)
    present = sum(1 for v in series if v > 0)
    if n >= 2 and cv < HIGH_BAND_CV and present >= n - 1:
        return "high"
    if cv < MEDIUM_BAND_CV or present * 2 >= n:
        return "medium"
    return "low"


def overall_confidence(months_used: int, monthly_totals: List[float]) -> float:
    variance_penalty = min(60.0, coefficient_of_variation(monthly_totals) * 100.0)
    return clamp(40.0 + 5.0 * months_used - variance_penalty, 0.0, 100.0)


def _insufficient(target: str, months_to_use: int) -> PredictionSnapshot:
    return PredictionSnapshot(
        target_period=target,
        total_predicted=0.0,
        by_category=[],
        overall_confidence=0.0,
        months_of_history_used=0,
        months_requested=months_to_use,
        narrative_insights=[],
        warnings=["Not enough history: at least one complete month of transactions is needed."],
    )


def predict_from_aggregates(aggregates: Aggregates, months_to_use: int) -> PredictionSnapshot:
    months_to_use = validate_window(months_to_use)
    target = next_month(month_key(aggregates.as_of))

    window = history_window(aggregates, months_to_use)
    if not window:
        return _insufficient(target, months_to_use)

    rows = [aggregates.month(k) for k in window]
    monthly_totals = [r.total_debits if r else 0.0 for r in rows]
    monthly_income = [r.total_credits if r else 0.0 for r in rows]

    categories = sorted({c for r in rows if r for c in r.categories})
    predictions: List[CategoryPrediction] = []
    for category in categories:
        series = [r.categories.get(category, 0.0) if r else 0.0 for r in rows]
        recent = series[-RECENT_MONTHS:] if len(series) >= RECENT_MONTHS else series
        predicted = mean(recent)
        if predicted <= 0:
            continue
        predictions.append(
            CategoryPrediction(
                category=category,
                predicted_amount=predicted,
                confidence_band=confidence_band(series),
                historical_average=mean(series),
            )
        )
    predictions.sort(key=lambda p: (-p.predicted_amount, p.category))

    total = sum(p.predicted_amount for p in predictions)
    trailing_avg = mean(monthly_totals)
    avg_income = mean(monthly_income)

    narrative: List[str] = []
    warnings: List[str] = []

    if trailing_avg > 0:
        change = safe_div(total - trailing_avg, trailing_avg) * 100.0
        if change > TREND_DEVIATION_PCT:
            narrative.append(
                f"Spending for {target} is expected to run {change:.0f}% above your "
                f"{len(window)}-month average of ${trailing_avg:,.0f}."
            )
        elif change < -TREND_DEVIATION_PCT:
            narrative.append(
                f"Spending for {target} is expected to run {-change:.0f}% below your "
                f"{len(window)}-month average of ${trailing_avg:,.0f}."
            )
        else:
            narrative.append(
                f"Spending for {target} should stay close to your {len(window)}-month "
                f"average of ${trailing_avg:,.0f}."
            )

    if predictions:
        top = predictions[0]
        narrative.append(
            f"{top.category} is expected to be your largest category at ${top.predicted_amount:,.0f} "
            f"({safe_div(top.predicted_amount, total) * 100:.0f}% of the total)."
        )

    for p in predictions:
        if p.predicted_amount > p.historical_average * RISING_RATIO and (
            p.predicted_amount - p.historical_average > RISING_MIN_DELTA
        ):
            warnings.append(
                f"{p.category} is trending up: ${p.predicted_amount:,.0f} predicted vs "
                f"${p.historical_average:,.0f} on average."
            )

    if avg_income > 0 and total > avg_income:
        warnings.append(
            f"Predicted spending (${total:,.0f}) exceeds your average monthly income (${avg_income:,.0f})."
        )

    if len(window) < RECENT_MONTHS:
        warnings.append(
            f"Only {len(window)} complete month(s) of history; treat this prediction as a rough guide."
        )
    elif len(window) < months_to_use:
        narrative.append(f"Based on {len(window)} of the {months_to_use} months requested.")

    return PredictionSnapshot(
        target_period=target,
        total_predicted=total,
        by_category=predictions,
        overall_confidence=overall_confidence(len(window), monthly_totals),
        months_of_history_used=len(window),
        months_requested=months_to_use,
        narrative_insights=narrative,
        warnings=warnings,
    )


def generate_prediction(
    transactions: Iterable[TransactionRecord],
    months_to_use: int = 6,
    now: Optional[datetime | date] = None,
) -> PredictionSnapshot:
    months_to_use = validate_window(months_to_use)
    usable = usable_transactions(transactions, now)
    return predict_from_aggregates(compute_aggregates(usable, now), months_to_use)


def prediction_parameters(
    transactions: Iterable[TransactionRecord],
    now: Optional[datetime | date] = None,
) -> PredictionParameters:
    """How much complete-month history exists, and which window to suggest."""
    aggregates = compute_aggregates(usable_transactions(transactions, now), now)
    current = month_key(aggregates.as_of)
    earliest = shift_month(current, -MAX_PARAMETER_MONTHS)
    months = [m.month for m in aggregates.by_month if earliest <= m.month < current]

    if not months:
        return PredictionParameters(
            has_data=False,
            available_months=0,
            message="No complete months of transactions yet. Import statements to get predictions.",
        )

    return PredictionParameters(
        has_data=True,
        available_months=len(months),
        recommended_months=recommended_months(len(months)),
        date_from=months[0],
        date_to=months[-1],
    )


def prediction_to_dict(snapshot: PredictionSnapshot) -> Dict[str, Any]:
    out = asdict(snapshot)
    out["total_predicted"] = round2(snapshot.total_predicted)
    out["overall_confidence"] = round2(snapshot.overall_confidence)
    for c in out["by_category"]:
        c["predicted_amount"] = round2(c["predicted_amount"])
        c["historical_average"] = round2(c["historical_average"])
    return out
