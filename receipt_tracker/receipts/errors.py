"""
Receipt pipeline error taxonomy.

ExtractionError subclasses describe an LLM payload that cannot be trusted;
they all surface to the user as a single "could not parse receipt" failure.
ProviderError subclasses are infrastructure faults (network, timeouts,
missing configuration). DuplicateReceipt is a business-rule rejection.
"""
from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from receipt_tracker.receipts.schemas import ReceiptRecord


class ReceiptError(Exception):
    """Base class for every error raised by the receipt pipeline."""


# ---------------------------------------------------------------------------
# Extraction shape
# ---------------------------------------------------------------------------

class ExtractionError(ReceiptError):
    code = "extraction_error"
    user_message = "Could not parse receipt"


class MalformedExtraction(ExtractionError):
    code = "malformed_extraction"


class MissingStoreName(ExtractionError):
    code = "missing_store_name"

    def __init__(self) -> None:
        super().__init__("Store name is required")


class MissingTotal(ExtractionError):
    code = "missing_total"

    def __init__(self, message: str = "Total amount is required") -> None:
        super().__init__(message)


class MissingDate(ExtractionError):
    code = "missing_date"

    def __init__(self) -> None:
        super().__init__("Receipt date is required")


class MissingCategories(ExtractionError):
    code = "missing_categories"

    def __init__(self) -> None:
        super().__init__("At least one category receipt is required")


class InvalidCategoryEntry(ExtractionError):
    code = "invalid_category_entry"

    def __init__(self, index: int, reason: str) -> None:
        self.index = index
        self.reason = reason
        super().__init__(f"Category receipt #{index}: {reason}")


class CategoryTotalMismatch(ExtractionError):
    code = "category_total_mismatch"

    def __init__(self, category_sum: Decimal, total: Decimal) -> None:
        self.category_sum = category_sum
        self.total = total
        super().__init__(
            f"Sum of category totals ({category_sum}) does not match "
            f"overall total ({total})"
        )


# ---------------------------------------------------------------------------
# Business rules
# ---------------------------------------------------------------------------

class DuplicateReceipt(ReceiptError):
    code = "duplicate_receipt"

    def __init__(self, existing: "ReceiptRecord") -> None:
        self.existing = existing
        super().__init__(
            f"This receipt appears to be a duplicate. A receipt from "
            f"{existing.store_name} with the same date and amount already "
            f"exists in your account."
        )


class UnsupportedImageFormat(ReceiptError):
    code = "unsupported_image_format"

    def __init__(self, mimetype: str) -> None:
        self.mimetype = mimetype
        super().__init__(
            f"Invalid image format: {mimetype}. Supported formats: jpg, jpeg, png, pdf"
        )


class NoTextDetected(ReceiptError):
    code = "no_text_detected"

    def __init__(self) -> None:
        super().__init__("No text could be extracted from the image")


# ---------------------------------------------------------------------------
# Infrastructure
# ---------------------------------------------------------------------------

class ProviderError(ReceiptError):
    code = "provider_error"


class ProviderNotConfigured(ProviderError):
    code = "provider_not_configured"


class OcrProviderError(ProviderError):
    code = "ocr_provider_error"


class LlmProviderError(ProviderError):
    code = "llm_provider_error"
