"""Domain contracts and shared types."""

from backend.app.domain.contracts import (  # noqa: F401
    CategoryPredictionContract,
    CategoryTotalContract,
    FinancialHealthOut,
    HealthMetricContract,
    InsightContract,
    InsightFeedOut,
    MonthlyTotalContract,
    PredictionOut,
    PredictionParametersOut,
    PredictionRequest,
    SpendingSummaryOut,
    TransactionImportIn,
    TransactionImportOut,
    TransactionIn,
    TransactionOut,
)
