from __future__ import annotations

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, BackgroundTasks, Depends
from sqlalchemy.orm import Session

from backend.app.api.config import insights_parallel
from backend.app.api.deps import get_current_user_id
from backend.app.db import get_db
from backend.app.domain.contracts import (
    TransactionImportIn,
    TransactionImportOut,
    TransactionOut,
)
from backend.app.services.insights_service import refresh_insights_in_background
from backend.app.services.transaction_service import add_transactions, list_transaction_rows

router = APIRouter(prefix="/api/transactions", tags=["transactions"])


@router.post("", response_model=TransactionImportOut)
def import_transactions(
    req: TransactionImportIn,
    background_tasks: BackgroundTasks,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    created = add_transactions(db, user_id, [t.model_dump() for t in req.transactions])

    scheduled = bool(created) and req.refresh_insights
    if scheduled:
        background_tasks.add_task(refresh_insights_in_background, user_id, insights_parallel())

    return TransactionImportOut(imported=len(created), refresh_scheduled=scheduled)


@router.get("", response_model=List[TransactionOut])
def list_transactions(
    start: Optional[date] = None,
    end: Optional[date] = None,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    return [
        TransactionOut(
            id=row.id,
            date=row.date,
            description=row.description,
            merchant=row.merchant,
            amount=row.amount,
            direction=row.direction,
            category=row.category,
            category_confidence=row.category_confidence,
            occurred_at=row.occurred_at,
        )
        for row in list_transaction_rows(db, user_id, start, end)
    ]
