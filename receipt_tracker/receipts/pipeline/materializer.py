"""
Receipt materializer — validated extraction → one stored row per category.
"""
from __future__ import annotations

import logging
from typing import Optional

from receipt_tracker.receipts.errors import DuplicateReceipt
from receipt_tracker.receipts.pipeline.duplicates import find_duplicate
from receipt_tracker.receipts.repository import ReceiptStore
from receipt_tracker.receipts.schemas import (
    PaymentMethod,
    ReceiptRecord,
    ReceiptStatus,
    ValidatedExtraction,
)

logger = logging.getLogger(__name__)

# OCR confidence below this marks the receipt for manual review
LOW_CONFIDENCE_THRESHOLD = 0.7


# ---------------------------------------------------------------------------
# Policy helpers
# ---------------------------------------------------------------------------

def normalize_payment_method(value: Optional[str]) -> Optional[PaymentMethod]:
    """CARD/CASH/OTHER (any case) map to themselves; other text is OTHER."""
    if value is None or not value.strip():
        return None
    try:
        return PaymentMethod(value.strip().upper())
    except ValueError:
        return PaymentMethod.OTHER


def needs_review(
    extraction: ValidatedExtraction, ocr_confidence: Optional[float]
) -> bool:
    if extraction.needs_review or not extraction.date_recognized:
        return True
    return ocr_confidence is not None and ocr_confidence < LOW_CONFIDENCE_THRESHOLD


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def materialize(
    extraction: ValidatedExtraction,
    ocr_confidence: Optional[float],
    user_id: str,
    repository: ReceiptStore,
    raw_ocr_text: Optional[str] = None,
) -> list[ReceiptRecord]:
    """Persist one record per category line of *extraction*.

    The duplicate check runs once for the whole receipt before anything is
    inserted; a match raises :class:`DuplicateReceipt` and nothing is written.
    """
    review = needs_review(extraction, ocr_confidence)
    status = ReceiptStatus.NEEDS_REVIEW if review else ReceiptStatus.COMPLETED
    payment_method = normalize_payment_method(extraction.payment_method)
    aggregate_total = extraction.category_sum

    logger.info(
        "Checking for duplicate: store=%s date=%s total=%s categories=%d",
        extraction.store_name,
        extraction.receipt_date,
        aggregate_total,
        len(extraction.category_receipts),
    )
    existing = find_duplicate(
        repository,
        user_id,
        extraction.store_name,
        extraction.receipt_date,
        aggregate_total,
    )
    if existing is not None:
        logger.warning(
            "Duplicate receipt detected for user %s: store=%s date=%s total=%s",
            user_id, extraction.store_name, extraction.receipt_date, aggregate_total,
        )
        raise DuplicateReceipt(existing)

    records = [
        ReceiptRecord(
            user_id=user_id,
            store_name=extraction.store_name,
            receipt_date=extraction.receipt_date,
            category=line.category,
            payment_method=payment_method,
            subtotal=line.subtotal,
            tax=line.tax,
            total=line.total,
            status=status,
            needs_review=review,
            raw_ocr_text=raw_ocr_text,
        )
        for line in extraction.category_receipts
    ]
    return [repository.insert(record) for record in records]
