from __future__ import annotations

import logging
import os

from backend.app.forecast.predictor import ALLOWED_WINDOWS

logger = logging.getLogger(__name__)

DEFAULT_PREDICTION_MONTHS = 6


def insights_parallel() -> bool:
    return os.getenv("INSIGHTS_PARALLEL") == "1"


def prediction_default_months() -> int:
    raw = os.getenv("PREDICTION_DEFAULT_MONTHS")
    if raw is None or not raw.strip():
        return DEFAULT_PREDICTION_MONTHS
    try:
        months = int(raw)
    except ValueError:
        logger.warning("Ignoring non-integer PREDICTION_DEFAULT_MONTHS=%r", raw)
        return DEFAULT_PREDICTION_MONTHS
    if months not in ALLOWED_WINDOWS:
        logger.warning("PREDICTION_DEFAULT_MONTHS=%s not in %s; using %s", months, ALLOWED_WINDOWS, DEFAULT_PREDICTION_MONTHS)
        return DEFAULT_PREDICTION_MONTHS
    return months
