"""
Duplicate receipt detection.

A physical receipt may already be stored as several category rows, so
candidates from the same day are grouped by store and their totals summed
before comparing against the new receipt's aggregate total.
"""
from __future__ import annotations

import logging
import re
from datetime import date, datetime, time
from decimal import Decimal
from typing import Optional

from receipt_tracker.receipts.repository import ReceiptStore
from receipt_tracker.receipts.schemas import ReceiptRecord

logger = logging.getLogger(__name__)

# Wider than the validator's 0.01: absorbs drift between independent OCR/LLM passes
DUPLICATE_TOLERANCE = Decimal("0.05")

_WHITESPACE = re.compile(r"\s+")
_LEADING_THE = re.compile(r"^THE\s+")

_END_OF_DAY = time(23, 59, 59, 999000)


def _as_decimal(value) -> Decimal:
    return value if isinstance(value, Decimal) else Decimal(str(value))


def normalize_store_name(name: str) -> str:
    """Comparison key for a store name: ``" the  Walmart "`` → ``"WALMART"``."""
    key = (name or "").strip().upper()
    key = _LEADING_THE.sub("", key)
    return _WHITESPACE.sub(" ", key).strip()


def day_bounds(day: date) -> tuple[datetime, datetime]:
    """00:00:00 to 23:59:59.999 of *day*."""
    return datetime.combine(day, time.min), datetime.combine(day, _END_OF_DAY)


def group_by_store(records: list[ReceiptRecord]) -> dict[str, list[ReceiptRecord]]:
    groups: dict[str, list[ReceiptRecord]] = {}
    for record in records:
        groups.setdefault(normalize_store_name(record.store_name), []).append(record)
    return groups


def find_duplicate(
    repository: ReceiptStore,
    user_id: str,
    store_name: str,
    receipt_date: date,
    total: Decimal | float,
) -> Optional[ReceiptRecord]:
    """Return a stored record of the same receipt, or None."""
    key = normalize_store_name(store_name)
    day_start, day_end = day_bounds(receipt_date)
    candidates = repository.find_by_date_and_user(user_id, day_start, day_end)

    for group_key, members in group_by_store(candidates).items():
        if group_key != key:
            continue
        group_sum = sum((_as_decimal(m.total) for m in members), Decimal("0"))
        if abs(group_sum - _as_decimal(total)) < DUPLICATE_TOLERANCE:
            logger.info(
                "Duplicate match: store=%s date=%s stored=%s new=%s (%d row(s))",
                key, receipt_date, group_sum, total, len(members),
            )
            return members[0]
    return None
