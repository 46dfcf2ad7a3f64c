from __future__ import annotations

from dataclasses import asdict
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from backend.app.api.config import insights_parallel
from backend.app.api.deps import get_current_user_id
from backend.app.db import get_db
from backend.app.domain.contracts import FinancialHealthOut, InsightContract, InsightFeedOut, SpendingSummaryOut
from backend.app.facts.aggregates import aggregates_to_dict
from backend.app.insights.core import Insight
from backend.app.insights.health import health_to_dict
from backend.app.services.insights_service import (
    financial_health,
    latest_insights,
    refresh_insights,
    spending_summary,
)

router = APIRouter(prefix="/api/insights", tags=["insights"])


def _feed(user_id: str, generated_at, insights: List[Insight]) -> InsightFeedOut:
    return InsightFeedOut(
        user_id=user_id,
        generated_at=generated_at,
        is_demo=bool(insights) and all(i.is_demo for i in insights),
        insights=[InsightContract(**asdict(i)) for i in insights],
    )


@router.post("/generate", response_model=InsightFeedOut)
def generate_feed(
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    generated_at, insights = refresh_insights(db, user_id, parallel=insights_parallel())
    return _feed(user_id, generated_at, insights)


@router.get("", response_model=InsightFeedOut)
def get_feed(
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    generated_at, insights = latest_insights(db, user_id)
    return _feed(user_id, generated_at, insights)


@router.get("/health", response_model=FinancialHealthOut)
def get_financial_health(
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    return FinancialHealthOut(**health_to_dict(financial_health(db, user_id)))


@router.get("/summary", response_model=SpendingSummaryOut)
def get_spending_summary(
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    return SpendingSummaryOut(**aggregates_to_dict(spending_summary(db, user_id)))
