"""
Extraction validator — strict decode of the LLM's receipt JSON.

The LLM payload is untrusted input. Nothing is read from it until the
checks below pass, in order, stopping at the first failure:

1. ``store.name`` is a non-blank string
2. ``totals.total`` is a finite number
3. ``receiptDate`` is a non-empty string
4. ``categoryReceipts`` is a non-empty list
5. every category entry has a non-blank ``category`` and a numeric ``total``
6. category totals sum to ``totals.total`` within 0.01

The outcome is a tagged result: either a :class:`ValidatedExtraction` or
exactly one :class:`ExtractionError`.
"""
from __future__ import annotations

import json
import logging
import math
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Any, Callable, Mapping, Optional

from receipt_tracker.receipts.errors import (
    CategoryTotalMismatch,
    ExtractionError,
    InvalidCategoryEntry,
    MalformedExtraction,
    MissingCategories,
    MissingDate,
    MissingStoreName,
    MissingTotal,
)
from receipt_tracker.receipts.pipeline.dates import normalize_date
from receipt_tracker.receipts.schemas import (
    CategoryLine,
    ExtractionTotals,
    ValidatedExtraction,
)

logger = logging.getLogger(__name__)

# Category lines must reconcile with the grand total to the cent
TOTAL_TOLERANCE = Decimal("0.01")

_CENT = Decimal("0.01")

# Largest amount the Numeric(10, 2) columns hold
MAX_AMOUNT = Decimal("99999999.99")


@dataclass(frozen=True)
class ValidationOutcome:
    extraction: Optional[ValidatedExtraction] = None
    error: Optional[ExtractionError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _is_number(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


def _to_decimal(value: Any) -> Decimal:
    # str() keeps the shortest repr, so 12.4 becomes Decimal("12.4")
    return Decimal(str(value))


def _money(value: Decimal) -> Decimal:
    return value.quantize(_CENT)


def _in_range(value: Any) -> bool:
    return abs(_to_decimal(value)) <= MAX_AMOUNT


def _optional_money(value: Any) -> Optional[Decimal]:
    if not _is_number(value) or not _in_range(value):
        return None
    return _money(_to_decimal(value))


def _blank(value: Any) -> bool:
    return not isinstance(value, str) or not value.strip()


def _check(raw: Mapping[str, Any]) -> Optional[ExtractionError]:
    store = raw.get("store")
    if not isinstance(store, Mapping) or _blank(store.get("name")):
        return MissingStoreName()

    totals = raw.get("totals")
    if not isinstance(totals, Mapping) or not _is_number(totals.get("total")):
        return MissingTotal()
    if not _in_range(totals["total"]):
        return MissingTotal("Total amount is out of range")

    if _blank(raw.get("receiptDate")):
        return MissingDate()

    categories = raw.get("categoryReceipts")
    if not isinstance(categories, list) or not categories:
        return MissingCategories()

    for index, entry in enumerate(categories):
        if not isinstance(entry, Mapping):
            return InvalidCategoryEntry(index, "entry is not an object")
        if _blank(entry.get("category")):
            return InvalidCategoryEntry(index, "category is required")
        if not _is_number(entry.get("total")):
            return InvalidCategoryEntry(index, "total amount is required")
        if not _in_range(entry["total"]):
            return InvalidCategoryEntry(index, "total amount is out of range")

    category_sum = sum((_to_decimal(c["total"]) for c in categories), Decimal("0"))
    total = _to_decimal(totals["total"])
    if abs(category_sum - total) > TOTAL_TOLERANCE:
        return CategoryTotalMismatch(category_sum, total)
    return None


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def decode_extraction(payload: str) -> dict[str, Any]:
    """Decode the LLM's JSON completion into a mapping."""
    try:
        data = json.loads(payload)
    except (TypeError, json.JSONDecodeError) as e:
        raise MalformedExtraction(f"LLM response is not valid JSON: {e}") from e
    if not isinstance(data, dict):
        raise MalformedExtraction(
            f"LLM response must be a JSON object, got {type(data).__name__}"
        )
    return data


def validate_extraction(
    raw: Mapping[str, Any],
    today: Optional[Callable[[], date]] = None,
) -> ValidationOutcome:
    """Check *raw* and build a :class:`ValidatedExtraction` from it."""
    if not isinstance(raw, Mapping):
        return ValidationOutcome(error=MalformedExtraction("Extraction must be an object"))

    error = _check(raw)
    if error is not None:
        logger.warning("Extraction rejected (%s): %s", error.code, error)
        return ValidationOutcome(error=error)

    store = raw["store"]
    totals = raw["totals"]
    normalized = normalize_date(raw["receiptDate"], today=today)
    logger.info(
        "Date extraction - original: %r, normalized: %s (%s)",
        raw["receiptDate"],
        normalized.value.isoformat(),
        normalized.pattern,
    )

    phone = store.get("phone")
    payment = raw.get("paymentMethod")

    extraction = ValidatedExtraction(
        store_name=store["name"].strip(),
        store_phone=(phone.strip() or None) if isinstance(phone, str) else None,
        receipt_date=normalized.value,
        date_recognized=normalized.recognized,
        payment_method=(payment.strip().upper() or None) if isinstance(payment, str) else None,
        totals=ExtractionTotals(
            total=_money(_to_decimal(totals["total"])),
            subtotal=_optional_money(totals.get("subtotal")),
            tax=_optional_money(totals.get("tax")),
        ),
        category_receipts=[
            CategoryLine(
                category=entry["category"].strip().upper(),
                total=_money(_to_decimal(entry["total"])),
                subtotal=_optional_money(entry.get("subtotal")),
                tax=_optional_money(entry.get("tax")),
            )
            for entry in raw["categoryReceipts"]
        ],
        needs_review=raw.get("needsReview") is True,
    )
    return ValidationOutcome(extraction=extraction)


def parse_extraction(
    raw: Mapping[str, Any],
    today: Optional[Callable[[], date]] = None,
) -> ValidatedExtraction:
    """Like :func:`validate_extraction` but raises the error variant."""
    outcome = validate_extraction(raw, today=today)
    if outcome.error is not None:
        raise outcome.error
    return outcome.extraction
