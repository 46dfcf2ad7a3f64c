from datetime import date, datetime, timedelta, timezone
import logging

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from backend.app.forecast.predictor import CategoryPrediction, PredictionSnapshot
from backend.app.insights.core import mk_insight
from backend.app.models import InsightRow, PredictionRow
from backend.app.services.insights_service import (
    latest_insights,
    refresh_insights,
    refresh_insights_in_background,
    save_insights,
)
from backend.app.services.prediction_service import create_prediction, latest_prediction, save_prediction
from backend.app.services.transaction_service import add_transactions, fetch_transactions


class _BrokenSession:
    """Session stand-in whose writes fail like a lost database connection."""

    def __init__(self):
        self.rolled_back = False

    def add(self, *_args, **_kwargs):
        pass

    def add_all(self, *_args, **_kwargs):
        pass

    def get(self, *_args, **_kwargs):
        raise SQLAlchemyError("database unavailable")

    def commit(self):
        raise SQLAlchemyError("database unavailable")

    def rollback(self):
        self.rolled_back = True


def _rows(n, start=date(2024, 1, 1), category="Groceries"):
    return [
        {
            "date": (start + timedelta(days=i)).isoformat(),
            "description": f"purchase {i}",
            "merchant": "Local Market",
            "amount": 20.0 + i,
            "direction": "debit",
            "category": category,
        }
        for i in range(n)
    ]


def _snapshot(period="2024-03", total=1500.0):
    return PredictionSnapshot(
        target_period=period,
        total_predicted=total,
        by_category=[CategoryPrediction(category="Rent", predicted_amount=total, confidence_band="high")],
        overall_confidence=70.0,
        months_of_history_used=6,
        months_requested=6,
        narrative_insights=["steady"],
        warnings=[],
    )


def test_add_and_fetch_transactions(sqlite_session, user_id):
    rows = _rows(5) + [{"date": "2024-01-09", "amount": 10, "direction": "sideways"}]
    created = add_transactions(sqlite_session, user_id, rows)
    assert len(created) == 5

    records = fetch_transactions(sqlite_session, user_id)
    assert [r.date for r in records] == [date(2024, 1, 1) + timedelta(days=i) for i in range(5)]
    assert records[0].merchant == "Local Market"

    window = fetch_transactions(sqlite_session, user_id, start=date(2024, 1, 2), end=date(2024, 1, 3))
    assert len(window) == 2

    assert fetch_transactions(sqlite_session, "someone-else") == []


def test_save_and_load_latest_insights(sqlite_session, user_id):
    older = [mk_insight(kind="top-category", severity="info", headline="old", narrative="old")]
    newer = [
        mk_insight(kind="anomaly", severity="warning", headline="a", narrative="a", supporting_data={"x": 1.234}),
        mk_insight(kind="savings-summary", severity="success", headline="b", narrative="b"),
    ]
    t0 = datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)

    assert save_insights(sqlite_session, user_id, older, t0)
    assert save_insights(sqlite_session, user_id, newer, t0 + timedelta(hours=1))

    generated_at, feed = latest_insights(sqlite_session, user_id)
    assert generated_at is not None
    assert [i.headline for i in feed] == ["a", "b"]
    assert feed[0].supporting_data == {"x": 1.23}


def test_save_insights_failure_is_swallowed(caplog):
    session = _BrokenSession()
    insight = mk_insight(kind="anomaly", severity="info", headline="h", narrative="n")

    with caplog.at_level(logging.ERROR):
        assert save_insights(session, "u1", [insight]) is False

    assert session.rolled_back
    assert "Failed to store" in caplog.text


def test_refresh_insights_persists_feed(sqlite_session, user_id):
    add_transactions(sqlite_session, user_id, _rows(3))
    generated_at, insights = refresh_insights(sqlite_session, user_id, now=date(2024, 1, 31))

    assert insights and all(i.is_demo for i in insights)
    _, stored = latest_insights(sqlite_session, user_id)
    assert stored == insights


def test_background_refresh_uses_own_session(sqlite_engine, sqlite_session, user_id):
    add_transactions(sqlite_session, user_id, _rows(12))
    factory = sessionmaker(bind=sqlite_engine, autoflush=False, autocommit=False, future=True)

    refresh_insights_in_background(user_id, session_factory=factory)

    count = sqlite_session.execute(
        select(func.count()).select_from(InsightRow).where(InsightRow.user_id == user_id)
    ).scalar()
    assert count and count > 0


def test_background_refresh_failure_is_logged(caplog, user_id):
    def _no_database():
        raise RuntimeError("no database")

    with caplog.at_level(logging.ERROR):
        refresh_insights_in_background(user_id, session_factory=_no_database)

    assert "Background insight refresh failed" in caplog.text


def test_save_prediction_upserts_by_target_period(sqlite_session, user_id):
    assert save_prediction(sqlite_session, user_id, _snapshot(total=1500.0))
    assert save_prediction(sqlite_session, user_id, _snapshot(total=1750.0))

    rows = sqlite_session.execute(select(PredictionRow).where(PredictionRow.user_id == user_id)).scalars().all()
    assert len(rows) == 1
    assert rows[0].total_predicted == pytest.approx(1750.0)

    latest = latest_prediction(sqlite_session, user_id)
    assert latest is not None
    assert latest.by_category[0].category == "Rent"
    assert latest.by_category[0].predicted_amount == pytest.approx(1750.0)


def test_latest_prediction_prefers_newest_target(sqlite_session, user_id):
    save_prediction(sqlite_session, user_id, _snapshot(period="2024-03"))
    save_prediction(sqlite_session, user_id, _snapshot(period="2024-04", total=900.0))

    latest = latest_prediction(sqlite_session, user_id)
    assert latest is not None
    assert latest.target_period == "2024-04"
    assert latest_prediction(sqlite_session, "nobody") is None


def test_latest_prediction_is_most_recently_saved(sqlite_session, user_id):
    t0 = datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)
    save_prediction(sqlite_session, user_id, _snapshot(period="2024-04"), t0)
    save_prediction(sqlite_session, user_id, _snapshot(period="2024-03", total=900.0), t0 + timedelta(hours=1))

    latest = latest_prediction(sqlite_session, user_id)
    assert latest is not None
    assert latest.target_period == "2024-03"


def test_save_prediction_failure_is_swallowed():
    session = _BrokenSession()
    assert save_prediction(session, "u1", _snapshot()) is False
    assert session.rolled_back


def test_create_prediction_from_stored_history(sqlite_session, user_id):
    rows = []
    for month in range(1, 7):
        rows.append({"date": f"2023-{month:02d}-05", "amount": 1000, "direction": "debit", "category": "Rent"})
    add_transactions(sqlite_session, user_id, rows)

    snapshot = create_prediction(sqlite_session, user_id, 6, now=date(2023, 7, 15))
    assert snapshot.target_period == "2023-08"
    assert snapshot.total_predicted == pytest.approx(1000.0)
    assert latest_prediction(sqlite_session, user_id) is not None

    with pytest.raises(ValueError):
        create_prediction(sqlite_session, user_id, 7)
