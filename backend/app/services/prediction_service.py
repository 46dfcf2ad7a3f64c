from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from backend.app.facts.dates import utcnow
from backend.app.forecast.predictor import (
    CategoryPrediction,
    PredictionParameters,
    PredictionSnapshot,
    generate_prediction,
    prediction_parameters,
    prediction_to_dict,
)
from backend.app.models import PredictionRow
from backend.app.services.transaction_service import fetch_transactions

logger = logging.getLogger(__name__)


def save_prediction(
    db: Session,
    user_id: str,
    snapshot: PredictionSnapshot,
    saved_at: Optional[datetime] = None,
) -> bool:
    """
    Upsert by (user_id, target_period).

    Storage failures are rolled back and logged; the snapshot is still valid
    for the caller.
    """
    data = prediction_to_dict(snapshot)
    try:
        row = db.get(PredictionRow, (user_id, snapshot.target_period))
        if row is None:
            row = PredictionRow(user_id=user_id, target_period=snapshot.target_period)
            db.add(row)
        row.total_predicted = data["total_predicted"]
        row.overall_confidence = data["overall_confidence"]
        row.months_of_history_used = snapshot.months_of_history_used
        row.months_requested = snapshot.months_requested
        row.by_category = data["by_category"]
        row.narrative_insights = list(snapshot.narrative_insights)
        row.warnings = list(snapshot.warnings)
        row.updated_at = saved_at or utcnow()
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Failed to store prediction %s for user %s", snapshot.target_period, user_id)
        return False
    return True


def latest_prediction(db: Session, user_id: str) -> Optional[PredictionSnapshot]:
    row = db.execute(
        select(PredictionRow)
        .where(PredictionRow.user_id == user_id)
        .order_by(PredictionRow.updated_at.desc(), PredictionRow.target_period.desc())
        .limit(1)
    ).scalars().first()
    if row is None:
        return None
    return PredictionSnapshot(
        target_period=row.target_period,
        total_predicted=row.total_predicted,
        by_category=[CategoryPrediction(**c) for c in (row.by_category or [])],
        overall_confidence=row.overall_confidence,
        months_of_history_used=row.months_of_history_used,
        months_requested=row.months_requested,
        narrative_insights=list(row.narrative_insights or []),
        warnings=list(row.warnings or []),
    )


def create_prediction(
    db: Session,
    user_id: str,
    months_to_use: int,
    now: Optional[datetime | date] = None,
) -> PredictionSnapshot:
    """Predict from stored transactions and persist. Raises ValueError for an unsupported window."""
    snapshot = generate_prediction(fetch_transactions(db, user_id), months_to_use, now)
    save_prediction(db, user_id, snapshot)
    logger.info(
        "Prediction %s for user %s: %.2f over %s month(s), confidence %.0f",
        snapshot.target_period,
        user_id,
        snapshot.total_predicted,
        snapshot.months_of_history_used,
        snapshot.overall_confidence,
    )
    return snapshot


def parameters_for_user(
    db: Session,
    user_id: str,
    now: Optional[datetime | date] = None,
) -> PredictionParameters:
    return prediction_parameters(fetch_transactions(db, user_id), now)
