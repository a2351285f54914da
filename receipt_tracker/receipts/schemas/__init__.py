from receipt_tracker.receipts.schemas.base import (
    AiStatus,
    CategoryLine,
    ExtractionTotals,
    NormalizedDate,
    OcrResult,
    PaymentMethod,
    ReceiptRecord,
    ReceiptStatus,
    ValidatedExtraction,
)

__all__ = [
    "AiStatus",
    "CategoryLine",
    "ExtractionTotals",
    "NormalizedDate",
    "OcrResult",
    "PaymentMethod",
    "ReceiptRecord",
    "ReceiptStatus",
    "ValidatedExtraction",
]
