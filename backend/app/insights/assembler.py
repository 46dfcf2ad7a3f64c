"""
Insight assembler.

Responsibility:
- Turn a user's raw transaction list into the ranked insight feed:
  1) filter to usable records as of `now`, aggregate
  2) fall back to the demonstration feed when history is too thin
  3) run every detector (optionally on a thread pool), drop empties
  4) keep the first insight of each kind
  5) append the always-present summaries
  6) clamp confidences, stable-sort by severity (critical first)

Thin history means fewer than 10 usable transactions, or fewer than 30% of
them carrying a category label. That threshold is a product decision and is
kept as-is.
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Iterable, List, Optional, Set

from backend.app.facts.aggregates import compute_aggregates
from backend.app.facts.records import TransactionRecord, usable_transactions
from backend.app.insights.core import Insight, severity_rank, with_clamped_confidence
from backend.app.insights.demo import demo_insights
from backend.app.insights.detectors import run_detectors
from backend.app.insights.summary import labeled_share, summary_insights

logger = logging.getLogger(__name__)

MIN_TRANSACTIONS = 10
MIN_LABELED_SHARE = 0.30


def needs_demo_feed(transactions: List[TransactionRecord]) -> bool:
    return len(transactions) < MIN_TRANSACTIONS or labeled_share(transactions) < MIN_LABELED_SHARE


def _dedupe_by_kind(insights: Iterable[Optional[Insight]]) -> List[Insight]:
    seen: Set[str] = set()
    out: List[Insight] = []
    for insight in insights:
        if insight is None or insight.kind in seen:
            continue
        seen.add(insight.kind)
        out.append(insight)
    return out


def rank_insights(insights: Iterable[Insight]) -> List[Insight]:
    """Stable sort: critical > warning > info > success; detector order within a severity."""
    return sorted((with_clamped_confidence(i) for i in insights), key=lambda i: severity_rank(i.severity))


def generate_insights(
    transactions: Iterable[TransactionRecord],
    now: Optional[datetime | date] = None,
    *,
    parallel: bool = False,
) -> List[Insight]:
    usable = usable_transactions(transactions, now)

    if needs_demo_feed(usable):
        logger.info(
            "Thin history (%s usable, %.0f%% labeled); serving demo insights",
            len(usable),
            labeled_share(usable) * 100,
        )
        return demo_insights()

    aggregates = compute_aggregates(usable, now)
    found = _dedupe_by_kind(run_detectors(usable, aggregates, parallel=parallel))

    # Summary kinds never collide with detector kinds, but keep the rule uniform
    feed = _dedupe_by_kind([*found, *summary_insights(usable, aggregates)])
    ranked = rank_insights(feed)

    logger.info(
        "Generated %s insights (%s from detectors) over %s transactions",
        len(ranked),
        len(found),
        len(usable),
    )
    return ranked
