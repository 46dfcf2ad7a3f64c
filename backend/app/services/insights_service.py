from __future__ import annotations

import logging
from datetime import date, datetime
from typing import List, Optional, Sequence, Tuple

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from backend.app.db import SessionLocal, session_scope
from backend.app.facts.aggregates import Aggregates, compute_aggregates
from backend.app.facts.dates import utcnow
from backend.app.facts.records import usable_transactions
from backend.app.insights.assembler import generate_insights
from backend.app.insights.core import Insight
from backend.app.insights.health import FinancialHealth, compute_financial_health
from backend.app.models import InsightRow
from backend.app.services.transaction_service import fetch_transactions

logger = logging.getLogger(__name__)


def _to_row(user_id: str, generated_at: datetime, position: int, insight: Insight) -> InsightRow:
    return InsightRow(
        user_id=user_id,
        generated_at=generated_at,
        position=position,
        kind=insight.kind,
        severity=insight.severity,
        headline=insight.headline,
        narrative=insight.narrative,
        supporting_data=dict(insight.supporting_data),
        action_hint=insight.action_hint,
        confidence=insight.confidence,
        is_demo=insight.is_demo,
    )


def _from_row(row: InsightRow) -> Insight:
    return Insight(
        kind=row.kind,  # type: ignore[arg-type]
        severity=row.severity,  # type: ignore[arg-type]
        headline=row.headline,
        narrative=row.narrative,
        supporting_data=dict(row.supporting_data or {}),
        action_hint=row.action_hint,
        confidence=row.confidence,
        is_demo=row.is_demo,
    )


def save_insights(
    db: Session,
    user_id: str,
    insights: Sequence[Insight],
    generated_at: Optional[datetime] = None,
) -> bool:
    """
    Store one feed as a batch keyed by (user_id, generated_at).

    Storage failures are rolled back and logged, never raised: the caller
    already holds the computed feed.
    """
    generated_at = generated_at or utcnow()
    try:
        db.add_all(_to_row(user_id, generated_at, i, insight) for i, insight in enumerate(insights))
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Failed to store %s insight(s) for user %s", len(insights), user_id)
        return False
    return True


def latest_insights(db: Session, user_id: str) -> Tuple[Optional[datetime], List[Insight]]:
    generated_at = db.execute(
        select(func.max(InsightRow.generated_at)).where(InsightRow.user_id == user_id)
    ).scalar()
    if generated_at is None:
        return None, []

    rows = db.execute(
        select(InsightRow)
        .where(InsightRow.user_id == user_id, InsightRow.generated_at == generated_at)
        .order_by(InsightRow.position.asc())
    ).scalars().all()
    return generated_at, [_from_row(r) for r in rows]


def refresh_insights(
    db: Session,
    user_id: str,
    *,
    now: Optional[datetime | date] = None,
    parallel: bool = False,
) -> Tuple[datetime, List[Insight]]:
    """Recompute the user's feed from stored transactions and persist it."""
    transactions = fetch_transactions(db, user_id)
    insights = generate_insights(transactions, now, parallel=parallel)
    generated_at = utcnow()
    save_insights(db, user_id, insights, generated_at)
    return generated_at, insights


def refresh_insights_in_background(
    user_id: str,
    parallel: bool = False,
    session_factory: sessionmaker = SessionLocal,
) -> None:
    """
    Best-effort refresh scheduled after a transaction import.

    Runs once with its own session; any failure is logged and dropped.
    """
    try:
        with session_scope(session_factory) as db:
            _, insights = refresh_insights(db, user_id, parallel=parallel)
        logger.info("Background insight refresh for user %s produced %s insight(s)", user_id, len(insights))
    except Exception:
        logger.exception("Background insight refresh failed for user %s", user_id)


def financial_health(
    db: Session,
    user_id: str,
    now: Optional[datetime | date] = None,
) -> FinancialHealth:
    usable = usable_transactions(fetch_transactions(db, user_id), now)
    return compute_financial_health(compute_aggregates(usable, now))


def spending_summary(
    db: Session,
    user_id: str,
    now: Optional[datetime | date] = None,
) -> Aggregates:
    """Category and month totals behind the feed, for dashboards."""
    return compute_aggregates(fetch_transactions(db, user_id), now)
