from __future__ import annotations

from datetime import date, datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field


class TransactionIn(BaseModel):
    date: date
    description: str = ""
    merchant: Optional[str] = None
    amount: float = Field(ge=0)
    direction: Literal["credit", "debit"]
    category: Optional[str] = None
    category_confidence: Optional[float] = Field(default=None, ge=0, le=1)
    occurred_at: Optional[datetime] = None


class TransactionOut(TransactionIn):
    id: str


class TransactionImportIn(BaseModel):
    transactions: List[TransactionIn]
    refresh_insights: bool = True


class TransactionImportOut(BaseModel):
    imported: int
    refresh_scheduled: bool


class InsightContract(BaseModel):
    kind: str
    severity: Literal["info", "success", "warning", "critical"]
    headline: str
    narrative: str
    supporting_data: Dict[str, Any] = Field(default_factory=dict)
    action_hint: Optional[str] = None
    confidence: float = Field(ge=0, le=1)
    is_demo: bool = False


class InsightFeedOut(BaseModel):
    user_id: str
    generated_at: Optional[datetime] = None
    is_demo: bool = False
    insights: List[InsightContract]


class HealthMetricContract(BaseModel):
    id: str
    name: str
    value: float
    score: float
    unit: str
    status: Literal["excellent", "good", "fair", "poor"]
    description: str
    target: Optional[float] = None


class FinancialHealthOut(BaseModel):
    overall_score: float
    trend: Literal["improving", "stable", "declining"]
    metrics: List[HealthMetricContract]


class CategoryTotalContract(BaseModel):
    category: str
    total: float
    count: int
    percentage_of_debit_total: float


class MonthlyTotalContract(BaseModel):
    month: str
    total_debits: float
    total_credits: float
    transaction_count: int
    categories: Dict[str, float] = Field(default_factory=dict)


class SpendingSummaryOut(BaseModel):
    as_of: date
    by_category: List[CategoryTotalContract]
    by_month: List[MonthlyTotalContract]
    total_debits: float
    total_credits: float
    average_monthly_debits: float
    transaction_count: int
    skipped_count: int = 0


class PredictionRequest(BaseModel):
    months_to_use: Optional[int] = None


class CategoryPredictionContract(BaseModel):
    category: str
    predicted_amount: float
    confidence_band: Literal["high", "medium", "low"]
    historical_average: float = 0.0


class PredictionOut(BaseModel):
    target_period: str
    total_predicted: float
    by_category: List[CategoryPredictionContract]
    overall_confidence: float = Field(ge=0, le=100)
    months_of_history_used: int
    months_requested: int
    narrative_insights: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)


class PredictionParametersOut(BaseModel):
    has_data: bool
    available_months: int
    recommended_months: Optional[int] = None
    date_from: Optional[str] = None
    date_to: Optional[str] = None
    message: Optional[str] = None
