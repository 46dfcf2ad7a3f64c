from __future__ import annotations

import logging
from datetime import date
from typing import Any, Iterable, List, Mapping, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from backend.app.facts.records import TransactionRecord, coerce_record
from backend.app.models import TransactionRow

logger = logging.getLogger(__name__)


def _row_to_mapping(row: TransactionRow) -> dict:
    return {
        "date": row.date,
        "occurred_at": row.occurred_at,
        "description": row.description,
        "merchant": row.merchant,
        "amount": row.amount,
        "direction": row.direction,
        "category": row.category,
        "category_confidence": row.category_confidence,
    }


def list_transaction_rows(
    db: Session,
    user_id: str,
    start: Optional[date] = None,
    end: Optional[date] = None,
) -> List[TransactionRow]:
    stmt = select(TransactionRow).where(TransactionRow.user_id == user_id)
    if start is not None:
        stmt = stmt.where(TransactionRow.date >= start)
    if end is not None:
        stmt = stmt.where(TransactionRow.date <= end)
    stmt = stmt.order_by(TransactionRow.date.asc(), TransactionRow.id.asc())
    return list(db.execute(stmt).scalars().all())


def fetch_transactions(
    db: Session,
    user_id: str,
    start: Optional[date] = None,
    end: Optional[date] = None,
) -> List[TransactionRecord]:
    """
    The user's transactions in [start, end], oldest first, as analytics records.

    Rows that cannot be coerced into a well-formed record are skipped.
    """
    records: List[TransactionRecord] = []
    skipped = 0
    for row in list_transaction_rows(db, user_id, start, end):
        record = coerce_record(_row_to_mapping(row))
        if record is None:
            skipped += 1
            continue
        records.append(record)

    if skipped:
        logger.warning("Skipped %s malformed stored transaction(s) for user %s", skipped, user_id)
    return records


def add_transactions(
    db: Session,
    user_id: str,
    rows: Iterable[Mapping[str, Any]],
) -> List[TransactionRow]:
    """Persist already-normalized transactions; malformed rows are dropped, not stored."""
    created: List[TransactionRow] = []
    for raw in rows:
        record = coerce_record(raw)
        if record is None:
            logger.warning("Dropping malformed transaction for user %s: %r", user_id, dict(raw))
            continue
        row = TransactionRow(
            user_id=user_id,
            date=record.date,
            occurred_at=record.occurred_at,
            description=record.description,
            merchant=record.merchant,
            amount=record.amount,
            direction=record.direction,
            category=record.category,
            category_confidence=record.category_confidence,
        )
        db.add(row)
        created.append(row)

    db.commit()
    for row in created:
        db.refresh(row)
    logger.info("Imported %s transaction(s) for user %s", len(created), user_id)
    return created
