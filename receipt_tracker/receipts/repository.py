"""
Receipt persistence on top of a SQLAlchemy session.

The repository never commits: the caller owns the unit of work, so a
duplicate lookup and the inserts that follow it share one transaction.
"""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Protocol

from sqlalchemy.orm import Session

from receipt_tracker.receipts.models.receipt import ReceiptModel
from receipt_tracker.receipts.schemas import ReceiptRecord

logger = logging.getLogger(__name__)


class ReceiptStore(Protocol):
    """What the pipeline needs from persistence."""

    def find_by_date_and_user(
        self, user_id: str, day_start: datetime, day_end: datetime
    ) -> list[ReceiptRecord]: ...

    def insert(self, record: ReceiptRecord) -> ReceiptRecord: ...


class ReceiptRepository:
    def __init__(self, db: Session):
        self.db = db

    def find_by_date_and_user(
        self, user_id: str, day_start: datetime, day_end: datetime
    ) -> list[ReceiptRecord]:
        rows = (
            self.db.query(ReceiptModel)
            .filter(
                ReceiptModel.user_id == user_id,
                ReceiptModel.receipt_date >= day_start.date(),
                ReceiptModel.receipt_date <= day_end.date(),
            )
            .order_by(ReceiptModel.created_at.asc())
            .all()
        )
        logger.debug(
            "Found %d receipt(s) for user %s between %s and %s",
            len(rows), user_id, day_start, day_end,
        )
        return [ReceiptRecord.model_validate(r) for r in rows]

    def insert(self, record: ReceiptRecord) -> ReceiptRecord:
        row = ReceiptModel(
            id=record.id,
            user_id=record.user_id,
            store_name=record.store_name,
            receipt_date=record.receipt_date,
            category=record.category,
            payment_method=record.payment_method.value if record.payment_method else None,
            subtotal=record.subtotal,
            tax=record.tax,
            total=record.total,
            status=record.status.value,
            needs_review=record.needs_review,
            raw_ocr_text=record.raw_ocr_text,
            created_at=record.created_at.replace(tzinfo=None),
        )
        self.db.add(row)
        self.db.flush()
        logger.info("Inserted receipt %s (%s, %s)", record.id, record.category, record.total)
        return record
