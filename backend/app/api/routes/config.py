from __future__ import annotations

from fastapi import APIRouter
from pydantic import BaseModel

from backend.app.api.config import insights_parallel, prediction_default_months
from backend.app.forecast.predictor import ALLOWED_WINDOWS

router = APIRouter(prefix="/api", tags=["config"])


class ConfigOut(BaseModel):
    insights_parallel: bool
    prediction_default_months: int
    prediction_allowed_months: list[int]


@router.get("/config", response_model=ConfigOut)
def get_config() -> ConfigOut:
    return ConfigOut(
        insights_parallel=insights_parallel(),
        prediction_default_months=prediction_default_months(),
        prediction_allowed_months=list(ALLOWED_WINDOWS),
    )
