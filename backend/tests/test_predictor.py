from datetime import date
import os
from pathlib import Path
import sys

import pytest

sys.path.append(str(Path(__file__).resolve().parents[2]))
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

from backend.app.facts.aggregates import compute_aggregates  # noqa: E402
from backend.app.facts.records import TransactionRecord  # noqa: E402
from backend.app.forecast.predictor import (  # noqa: E402
    generate_prediction,
    predict_from_aggregates,
    prediction_parameters,
    prediction_to_dict,
    recommended_months,
)


def _txn(d, amount, direction="debit", category="Groceries"):
    return TransactionRecord(date=d, description=category, amount=amount, direction=direction, category=category)


def _steady_year():
    txns = []
    for month in range(1, 13):
        txns.append(_txn(date(2023, month, 2), 4000.0, "credit", "Income"))
        txns.append(_txn(date(2023, month, 5), 500.0, category="Groceries"))
        txns.append(_txn(date(2023, month, 1), 1000.0, category="Rent"))
    return txns


def _series(category, amounts, year=2023):
    return [_txn(date(year, i + 1, 10), a, category=category) for i, a in enumerate(amounts) if a]


@pytest.mark.parametrize("months", [0, 1, 5, 24])
def test_rejects_unsupported_window(months):
    with pytest.raises(ValueError):
        generate_prediction(_steady_year(), months, now=date(2024, 1, 15))


def test_no_complete_month_gives_insufficient_snapshot():
    txns = [_txn(date(2024, 1, 3), 40.0), _txn(date(2024, 1, 9), 60.0)]
    snapshot = generate_prediction(txns, 6, now=date(2024, 1, 15))

    assert snapshot.target_period == "2024-02"
    assert snapshot.by_category == []
    assert snapshot.total_predicted == 0.0
    assert snapshot.overall_confidence == 0.0
    assert snapshot.months_of_history_used == 0
    assert len(snapshot.warnings) == 1

    empty = generate_prediction([], 3, now=date(2024, 1, 15))
    assert empty.months_of_history_used == 0
    assert empty.overall_confidence == 0.0


def test_confidence_grows_with_history_for_steady_spend():
    txns = _steady_year()
    confidences = [
        generate_prediction(txns, months, now=date(2024, 1, 15)).overall_confidence
        for months in (3, 6, 9, 12)
    ]
    assert confidences == sorted(confidences)
    assert confidences == [pytest.approx(55.0), pytest.approx(70.0), pytest.approx(85.0), pytest.approx(100.0)]


def test_steady_categories_are_high_confidence():
    snapshot = generate_prediction(_steady_year(), 6, now=date(2024, 1, 15))

    assert snapshot.target_period == "2024-02"
    assert snapshot.months_of_history_used == 6
    by_cat = {p.category: p for p in snapshot.by_category}
    assert by_cat["Rent"].predicted_amount == pytest.approx(1000.0)
    assert by_cat["Rent"].confidence_band == "high"
    assert by_cat["Groceries"].confidence_band == "high"
    assert snapshot.total_predicted == pytest.approx(1500.0)
    assert [p.category for p in snapshot.by_category] == ["Rent", "Groceries"]
    assert snapshot.warnings == []


def test_current_month_is_not_part_of_history():
    base = generate_prediction(_steady_year(), 6, now=date(2024, 1, 15))
    with_partial = generate_prediction(
        _steady_year() + [_txn(date(2024, 1, 3), 9000.0, category="Travel")],
        6,
        now=date(2024, 1, 15),
    )
    assert prediction_to_dict(with_partial) == prediction_to_dict(base)


def test_recent_months_weigh_more_and_rising_category_warns():
    txns = _series("Dining", [100, 100, 100, 300, 300, 300])
    snapshot = generate_prediction(txns, 6, now=date(2023, 7, 10))

    dining = snapshot.by_category[0]
    assert dining.predicted_amount == pytest.approx(300.0)
    assert dining.historical_average == pytest.approx(200.0)
    assert dining.confidence_band == "medium"
    assert any("Dining is trending up" in w for w in snapshot.warnings)
    assert any("above your 6-month average" in line for line in snapshot.narrative_insights)


def test_sporadic_category_is_low_confidence():
    txns = _series("Rent", [1000] * 6) + _series("Travel", [0, 0, 0, 0, 0, 600])
    snapshot = generate_prediction(txns, 6, now=date(2023, 7, 10))

    travel = next(p for p in snapshot.by_category if p.category == "Travel")
    assert travel.confidence_band == "low"
    assert travel.predicted_amount == pytest.approx(200.0)


def test_empty_months_inside_window_count_as_zero():
    txns = [_txn(date(2023, 1, 10), 300.0), _txn(date(2023, 3, 10), 300.0)]
    snapshot = generate_prediction(txns, 3, now=date(2023, 4, 2))

    assert snapshot.months_of_history_used == 3
    assert snapshot.by_category[0].predicted_amount == pytest.approx(200.0)


def test_window_starts_at_first_month_with_data():
    txns = _series("Rent", [0] * 9 + [1000, 1000, 1000])
    snapshot = generate_prediction(txns, 12, now=date(2024, 1, 15))

    assert snapshot.months_of_history_used == 3
    assert snapshot.months_requested == 12
    assert any("3 of the 12 months" in line for line in snapshot.narrative_insights)


def test_short_history_and_income_warnings():
    txns = [
        _txn(date(2023, 11, 1), 1000.0, "credit", "Income"),
        _txn(date(2023, 11, 5), 1500.0, category="Rent"),
        _txn(date(2023, 12, 1), 1000.0, "credit", "Income"),
        _txn(date(2023, 12, 5), 1500.0, category="Rent"),
    ]
    snapshot = generate_prediction(txns, 3, now=date(2024, 1, 15))

    assert snapshot.months_of_history_used == 2
    assert any("exceeds your average monthly income" in w for w in snapshot.warnings)
    assert any(w.startswith("Only 2 complete month") for w in snapshot.warnings)


def test_predict_from_aggregates_matches_generate():
    txns = _steady_year()
    now = date(2024, 1, 15)
    direct = predict_from_aggregates(compute_aggregates(txns, now), 9)
    assert direct == generate_prediction(txns, 9, now=now)


def test_snapshot_values_are_finite_and_bounded():
    txns = _series("Dining", [5, 5000, 0, 1, 7000, 3])
    out = prediction_to_dict(generate_prediction(txns, 6, now=date(2023, 7, 10)))

    assert 0.0 <= out["overall_confidence"] <= 100.0
    assert out["total_predicted"] == out["total_predicted"]  # not NaN


@pytest.mark.parametrize("available,expected", [(0, 3), (2, 3), (6, 6), (8, 6), (9, 9), (12, 9)])
def test_recommended_months(available, expected):
    assert recommended_months(available) == expected


def test_prediction_parameters():
    params = prediction_parameters(_steady_year(), now=date(2024, 1, 15))
    assert params.has_data is True
    assert params.available_months == 12
    assert params.recommended_months == 9
    assert params.date_from == "2023-01"
    assert params.date_to == "2023-12"

    none = prediction_parameters([_txn(date(2024, 1, 3), 10.0)], now=date(2024, 1, 15))
    assert none.has_data is False
    assert none.available_months == 0
    assert none.recommended_months is None
