"""
SQLAlchemy model for receipt persistence.

One row per category line of a physical receipt.
"""
from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, Date, DateTime, Numeric, String, Text

from receipt_tracker.receipts.database import Base


class ReceiptModel(Base):
    __tablename__ = "receipts"

    id = Column(String, primary_key=True)
    user_id = Column(String, nullable=False, index=True)
    store_name = Column(String(255), nullable=False)
    receipt_date = Column(Date, nullable=False, index=True)
    category = Column(String(100))
    payment_method = Column(String(16))  # CARD, CASH, OTHER
    subtotal = Column(Numeric(10, 2))
    tax = Column(Numeric(10, 2))
    total = Column(Numeric(10, 2), nullable=False)
    status = Column(String(16), nullable=False, default="PROCESSING")
    needs_review = Column(Boolean, nullable=False, default=False)
    raw_ocr_text = Column(Text)
    created_at = Column(
        DateTime,
        default=lambda: datetime.now(timezone.utc).replace(tzinfo=None),
        nullable=False,
    )
