from receipt_tracker.receipts.models.receipt import ReceiptModel

__all__ = ["ReceiptModel"]
