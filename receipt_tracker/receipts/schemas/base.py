"""
receipt-contracts — Canonical schemas for the receipt pipeline.

All pipeline stages produce and consume these Pydantic v2 models. The raw
LLM payload is *not* modelled here: it is untrusted JSON and is decoded by
``pipeline.validator`` into a :class:`ValidatedExtraction`.
"""
from __future__ import annotations

import uuid
from datetime import date, datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------

class PaymentMethod(str, Enum):
    CARD = "CARD"
    CASH = "CASH"
    OTHER = "OTHER"


class ReceiptStatus(str, Enum):
    PROCESSING = "PROCESSING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    NEEDS_REVIEW = "NEEDS_REVIEW"


# ---------------------------------------------------------------------------
# Provider results
# ---------------------------------------------------------------------------

class OcrResult(BaseModel):
    """Text recognised in a receipt image."""
    raw_text: str = ""
    confidence: Optional[float] = Field(None, ge=0, le=1)
    warnings: list[str] = Field(default_factory=list)


class NormalizedDate(BaseModel):
    """Outcome of date normalization.

    ``recognized`` is False when the input could not be parsed and ``value``
    is the fallback date (today).
    """
    model_config = ConfigDict(frozen=True)

    value: date
    recognized: bool = True
    pattern: str = Field(..., description="Name of the rule that matched, or 'fallback'")


# ---------------------------------------------------------------------------
# Validated extraction (pipeline output before materialization)
# ---------------------------------------------------------------------------

class CategoryLine(BaseModel):
    category: str
    total: Decimal
    subtotal: Optional[Decimal] = None
    tax: Optional[Decimal] = None


class ExtractionTotals(BaseModel):
    total: Decimal
    subtotal: Optional[Decimal] = None
    tax: Optional[Decimal] = None


class ValidatedExtraction(BaseModel):
    store_name: str
    store_phone: Optional[str] = None
    receipt_date: date
    date_recognized: bool = True
    payment_method: Optional[str] = None
    totals: ExtractionTotals
    category_receipts: list[CategoryLine] = Field(..., min_length=1)
    needs_review: bool = False

    @property
    def category_sum(self) -> Decimal:
        return sum((c.total for c in self.category_receipts), Decimal("0"))


# ---------------------------------------------------------------------------
# Persisted receipt record
# ---------------------------------------------------------------------------

class ReceiptRecord(BaseModel):
    """One category line of a physical receipt, as stored."""
    model_config = ConfigDict(from_attributes=True)

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    user_id: str
    store_name: str
    receipt_date: date
    category: Optional[str] = None
    payment_method: Optional[PaymentMethod] = None
    subtotal: Optional[Decimal] = None
    tax: Optional[Decimal] = None
    total: Decimal
    status: ReceiptStatus = ReceiptStatus.PROCESSING
    needs_review: bool = False
    raw_ocr_text: Optional[str] = Field(None, exclude=True)
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )


# ---------------------------------------------------------------------------
# API envelopes
# ---------------------------------------------------------------------------

class AiStatus(BaseModel):
    ocr: bool
    llm: bool
    available: bool
