from datetime import date, datetime, timezone
import os
from pathlib import Path
import sys

import pytest

sys.path.append(str(Path(__file__).resolve().parents[2]))
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

from backend.app.facts.aggregates import aggregates_to_dict, compute_aggregates  # noqa: E402
from backend.app.facts.records import (  # noqa: E402
    UNCATEGORIZED,
    TransactionRecord,
    coerce_record,
    usable_transactions,
)


def _txn(d: date, amount: float, direction: str = "debit", category="Groceries", merchant=None):
    return TransactionRecord(
        date=d,
        description=f"{category or 'misc'} purchase",
        amount=amount,
        direction=direction,
        merchant=merchant,
        category=category,
    )


def _sample():
    return [
        _txn(date(2024, 1, 1), 3000.0, "credit", "Income"),
        _txn(date(2024, 1, 3), 120.0, category="Groceries"),
        _txn(date(2024, 1, 9), 45.5, category="Dining"),
        _txn(date(2024, 1, 20), 900.0, category="Rent"),
        _txn(date(2024, 2, 1), 3000.0, "credit", "Income"),
        _txn(date(2024, 2, 4), 80.25, category="Groceries"),
        _txn(date(2024, 2, 14), 60.0, category=None),
        _txn(date(2024, 2, 20), 900.0, category="Rent"),
    ]


def test_category_totals_reconcile_with_debits():
    txns = _sample()
    aggs = compute_aggregates(txns, now=date(2024, 2, 29))

    debit_sum = sum(t.amount for t in txns if t.direction == "debit")
    assert sum(c.total for c in aggs.by_category) == pytest.approx(debit_sum)
    assert aggs.total_debits == pytest.approx(debit_sum)
    assert aggs.total_credits == pytest.approx(6000.0)
    assert sum(c.percentage_of_debit_total for c in aggs.by_category) == pytest.approx(100.0)


def test_categories_sorted_largest_first_with_uncategorized_default():
    aggs = compute_aggregates(_sample(), now=date(2024, 2, 29))

    assert aggs.by_category[0].category == "Rent"
    assert aggs.by_category[0].count == 2
    labels = [c.category for c in aggs.by_category]
    assert UNCATEGORIZED in labels
    assert "Income" not in labels


def test_monthly_rollup_derived_from_transactions():
    aggs = compute_aggregates(_sample(), now=date(2024, 2, 29))

    assert [m.month for m in aggs.by_month] == ["2024-01", "2024-02"]
    jan = aggs.month("2024-01")
    assert jan is not None
    assert jan.total_debits == pytest.approx(1065.5)
    assert jan.total_credits == pytest.approx(3000.0)
    assert jan.transaction_count == 4
    assert jan.categories["Dining"] == pytest.approx(45.5)
    assert aggs.average_monthly_debits == pytest.approx(aggs.total_debits / 2)


def test_future_transactions_do_not_change_aggregates():
    now = date(2024, 2, 29)
    base = compute_aggregates(_sample(), now=now)
    with_future = compute_aggregates(
        _sample() + [_txn(date(2024, 3, 2), 5000.0, category="Travel")],
        now=now,
    )

    assert aggregates_to_dict(with_future) == aggregates_to_dict(base)
    assert with_future.skipped_count == 0


def test_datetime_now_is_reduced_to_a_date():
    txns = _sample()
    a = compute_aggregates(txns, now=datetime(2024, 2, 20, 23, 59, tzinfo=timezone.utc))
    b = compute_aggregates(txns, now=date(2024, 2, 20))
    assert aggregates_to_dict(a) == aggregates_to_dict(b)


def test_malformed_records_are_skipped_and_counted():
    txns = _sample() + [
        _txn(date(2024, 2, 10), float("nan")),
        _txn(date(2024, 2, 10), -5.0),
        TransactionRecord(date=date(2024, 2, 10), description="?", amount=10.0, direction="sideways"),  # type: ignore[arg-type]
        TransactionRecord(date=datetime(2024, 2, 5, 12), description="timestamp", amount=10.0, direction="debit"),
    ]
    aggs = compute_aggregates(txns, now=date(2024, 2, 29))

    assert aggs.skipped_count == 4
    assert aggs.transaction_count == len(_sample())


def test_empty_input_yields_zero_aggregates():
    aggs = compute_aggregates([], now=date(2024, 2, 29))

    assert aggs.by_category == []
    assert aggs.by_month == []
    assert aggs.total_debits == 0.0
    assert aggs.average_monthly_debits == 0.0
    assert aggregates_to_dict(aggs)["transaction_count"] == 0


def test_zero_amount_debits_have_zero_share():
    aggs = compute_aggregates([_txn(date(2024, 1, 5), 0.0)], now=date(2024, 1, 31))
    assert aggs.by_category[0].percentage_of_debit_total == 0.0


def test_usable_transactions_filters_and_sorts():
    txns = [
        _txn(date(2024, 1, 9), 10.0),
        _txn(date(2024, 1, 2), 20.0),
        _txn(date(2024, 3, 1), 30.0),
        _txn(date(2024, 1, 5), float("inf")),
    ]
    usable = usable_transactions(txns, now=date(2024, 1, 31))
    assert [t.date for t in usable] == [date(2024, 1, 2), date(2024, 1, 9)]


def test_coerce_record_from_loose_mapping():
    record = coerce_record(
        {
            "date": "2024-03-05",
            "description": "Coffee",
            "amount": "4.75",
            "direction": "DEBIT",
            "merchant": " Blue Bottle ",
            "category": "",
            "occurred_at": "2024-03-05T21:15:00Z",
        }
    )
    assert record is not None
    assert record.date == date(2024, 3, 5)
    assert record.amount == pytest.approx(4.75)
    assert record.direction == "debit"
    assert record.merchant == "Blue Bottle"
    assert record.category is None
    assert record.occurred_at is not None and record.occurred_at.hour == 21


@pytest.mark.parametrize(
    "row",
    [
        {"date": "2024-03-05", "amount": 5, "direction": "transfer"},
        {"date": "not-a-date", "amount": 5, "direction": "debit"},
        {"date": "2024-03-05", "amount": "abc", "direction": "debit"},
        {"date": "2024-03-05", "amount": -1, "direction": "credit"},
        {"amount": 5, "direction": "debit"},
    ],
)
def test_coerce_record_rejects_malformed_rows(row):
    assert coerce_record(row) is None
