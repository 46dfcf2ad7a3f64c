# backend/app/insights/detectors/__init__.py
from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, List, Optional, Sequence, Tuple

from backend.app.facts.aggregates import Aggregates
from backend.app.facts.records import TransactionRecord
from backend.app.insights.core import Insight

from .anomaly import detect_spending_anomaly
from .behavior import detect_payday_effect, detect_temporal_behavior
from .cashflow import detect_cash_flow
from .merchants import detect_merchant_concentration
from .opportunity import detect_opportunity_cost
from .recurring import detect_recurring_charges
from .trends import detect_category_trend, detect_lifestyle_inflation

logger = logging.getLogger(__name__)

Detector = Callable[[Sequence[TransactionRecord], Aggregates], Optional[Insight]]

# Order matters: it is the feed order before severity ranking, and the
# first detector wins when two report the same kind.
DETECTORS: Tuple[Detector, ...] = (
    detect_payday_effect,
    detect_merchant_concentration,
    detect_spending_anomaly,
    detect_recurring_charges,
    detect_category_trend,
    detect_temporal_behavior,
    detect_cash_flow,
    detect_opportunity_cost,
    detect_lifestyle_inflation,
)


def run_detector(
    detector: Detector,
    transactions: Sequence[TransactionRecord],
    aggregates: Aggregates,
) -> Optional[Insight]:
    try:
        return detector(transactions, aggregates)
    except Exception:
        # Never let one bad detector take down the feed
        logger.exception("Detector %s failed", getattr(detector, "__name__", "unknown"))
        return None


def run_detectors(
    transactions: Sequence[TransactionRecord],
    aggregates: Aggregates,
    *,
    parallel: bool = False,
    detectors: Sequence[Detector] = DETECTORS,
) -> List[Optional[Insight]]:
    """
    Run every detector over the same inputs, one result slot per detector.

    With parallel=True the detectors fan out to a thread pool; results come
    back in detector order either way.
    """
    if not parallel:
        return [run_detector(d, transactions, aggregates) for d in detectors]

    with ThreadPoolExecutor(max_workers=max(len(detectors), 1)) as pool:
        return list(pool.map(lambda d: run_detector(d, transactions, aggregates), detectors))


__all__ = [
    "DETECTORS",
    "Detector",
    "run_detector",
    "run_detectors",
    "detect_cash_flow",
    "detect_category_trend",
    "detect_lifestyle_inflation",
    "detect_merchant_concentration",
    "detect_opportunity_cost",
    "detect_payday_effect",
    "detect_recurring_charges",
    "detect_spending_anomaly",
    "detect_temporal_behavior",
]
