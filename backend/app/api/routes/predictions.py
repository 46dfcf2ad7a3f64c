from __future__ import annotations

import logging
from dataclasses import asdict
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from backend.app.api.config import prediction_default_months
from backend.app.api.deps import get_current_user_id
from backend.app.db import get_db
from backend.app.domain.contracts import PredictionOut, PredictionParametersOut, PredictionRequest
from backend.app.forecast.predictor import prediction_to_dict
from backend.app.services.prediction_service import create_prediction, latest_prediction, parameters_for_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/predictions", tags=["predictions"])


@router.post("", response_model=PredictionOut)
def post_prediction(
    req: Optional[PredictionRequest] = None,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    months = req.months_to_use if req and req.months_to_use is not None else prediction_default_months()
    try:
        snapshot = create_prediction(db, user_id, months)
    except ValueError as exc:
        logger.warning("Rejected prediction window %s for user %s", months, user_id)
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return PredictionOut(**prediction_to_dict(snapshot))


@router.get("/latest", response_model=PredictionOut)
def get_latest(
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    snapshot = latest_prediction(db, user_id)
    if snapshot is None:
        raise HTTPException(status_code=404, detail="no prediction yet")
    return PredictionOut(**prediction_to_dict(snapshot))


@router.get("/parameters", response_model=PredictionParametersOut)
def get_parameters(
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    return PredictionParametersOut(**asdict(parameters_for_user(db, user_id)))
