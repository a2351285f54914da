from receipt_tracker.receipts.providers.llm import LlmProvider
from receipt_tracker.receipts.providers.ocr import OcrProvider

__all__ = ["LlmProvider", "OcrProvider"]
