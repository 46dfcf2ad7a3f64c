from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import Optional

from sqlalchemy import Boolean, Date, DateTime, Float, Index, Integer, JSON, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from backend.app.db import Base
from backend.app.facts.dates import utcnow


# -------------------------
# Helpers
# -------------------------

def uuid_str() -> str:
    return str(uuid.uuid4())


# -------------------------
# Transactions
# -------------------------

class TransactionRow(Base):
    """
    Normalized transaction as handed over by the upstream importer.
    Amounts are magnitudes; direction carries the sign.
    """
    __tablename__ = "transactions"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=uuid_str)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)

    date: Mapped[date] = mapped_column(Date, nullable=False)
    occurred_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    merchant: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    amount: Mapped[float] = mapped_column(Float, nullable=False)
    direction: Mapped[str] = mapped_column(String(10), nullable=False)  # credit/debit
    category: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)
    category_confidence: Mapped[Optional[float]] = mapped_column(Float, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)

    __table_args__ = (
        Index("ix_transactions_user_date", "user_id", "date"),
    )


# -------------------------
# Insights
# -------------------------

class InsightRow(Base):
    """One feed item. A feed is every row sharing (user_id, generated_at)."""
    __tablename__ = "insights"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=uuid_str)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    generated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    kind: Mapped[str] = mapped_column(String(40), nullable=False)
    severity: Mapped[str] = mapped_column(String(20), nullable=False)
    headline: Mapped[str] = mapped_column(String(200), nullable=False)
    narrative: Mapped[str] = mapped_column(Text, nullable=False)
    supporting_data: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    action_hint: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    confidence: Mapped[float] = mapped_column(Float, nullable=False, default=0.5)
    is_demo: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    __table_args__ = (
        Index("ix_insights_user_generated", "user_id", "generated_at"),
    )


# -------------------------
# Predictions
# -------------------------

class PredictionRow(Base):
    """One prediction per (user, target month); regenerating overwrites it and bumps updated_at."""
    __tablename__ = "predictions"

    user_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    target_period: Mapped[str] = mapped_column(String(7), primary_key=True)  # YYYY-MM

    total_predicted: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    overall_confidence: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    months_of_history_used: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    months_requested: Mapped[int] = mapped_column(Integer, nullable=False, default=6)
    by_category: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    narrative_insights: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    warnings: Mapped[list] = mapped_column(JSON, nullable=False, default=list)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
