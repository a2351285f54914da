"""
Unit tests for duplicate detection and the SQLAlchemy receipt repository.
"""
from datetime import date, datetime, time
from decimal import Decimal

import pytest

from receipt_tracker.receipts.models import ReceiptModel
from receipt_tracker.receipts.pipeline.duplicates import (
    DUPLICATE_TOLERANCE,
    day_bounds,
    find_duplicate,
    group_by_store,
    normalize_store_name,
)
from receipt_tracker.receipts.schemas import PaymentMethod, ReceiptRecord, ReceiptStatus

DAY = date(2025, 11, 21)


def _record(store, total, user="user-1", day=DAY, category="GROCERY"):
    return ReceiptRecord(
        user_id=user,
        store_name=store,
        receipt_date=day,
        category=category,
        total=Decimal(str(total)),
        status=ReceiptStatus.COMPLETED,
    )


@pytest.fixture()
def walmart_split(repository):
    """One physical WALMART receipt stored as two category rows."""
    repository.insert(_record("WALMART", "50.00", category="GROCERY"))
    repository.insert(_record("WALMART", "30.00", category="SHOPPING"))
    return repository


# =====================================================================
# Store name key
# =====================================================================
class TestNormalizeStoreName:
    @pytest.mark.parametrize(
        "name, key",
        [
            ("Walmart", "WALMART"),
            ("  the   walmart ", "WALMART"),
            ("THE HOME DEPOT", "HOME DEPOT"),
            ("Costco   Wholesale", "COSTCO WHOLESALE"),
            ("THEATRE DEPOT", "THEATRE DEPOT"),
            ("", ""),
        ],
    )
    def test_key(self, name, key):
        assert normalize_store_name(name) == key

    def test_group_by_store(self):
        groups = group_by_store(
            [_record("Walmart", 1), _record("THE WALMART", 2), _record("Target", 3)]
        )
        assert sorted(groups) == ["TARGET", "WALMART"]
        assert len(groups["WALMART"]) == 2


# =====================================================================
# Day bounds
# =====================================================================
class TestDayBounds:
    def test_covers_whole_day(self):
        start, end = day_bounds(DAY)
        assert start == datetime(2025, 11, 21, 0, 0, 0)
        assert end == datetime.combine(DAY, time(23, 59, 59, 999000))


# =====================================================================
# find_duplicate against the SQLite repository
# =====================================================================
class TestFindDuplicate:
    def test_split_receipt_matches_aggregate(self, walmart_split):
        existing = find_duplicate(walmart_split, "user-1", "THE WALMART", DAY, 80.02)
        assert existing is not None
        assert existing.store_name == "WALMART"
        assert existing.category == "GROCERY"

    def test_rows_stored_under_variant_store_names(self, repository):
        grocery = _record("WALMART", 50, category="GROCERY")
        shopping = _record("THE WALMART", 30, category="SHOPPING")
        grocery.created_at = datetime(2025, 11, 21, 9, 0)
        shopping.created_at = datetime(2025, 11, 21, 9, 1)
        repository.insert(grocery)
        repository.insert(shopping)

        existing = find_duplicate(repository, "user-1", "Walmart", DAY, 80.02)
        assert existing is not None
        assert existing.category == "GROCERY"
        assert find_duplicate(repository, "user-1", "Walmart", DAY, 90) is None

    def test_different_total_is_not_duplicate(self, walmart_split):
        assert find_duplicate(walmart_split, "user-1", "WALMART", DAY, 90.00) is None

    def test_tolerance_is_exclusive(self, walmart_split):
        assert DUPLICATE_TOLERANCE == Decimal("0.05")
        assert find_duplicate(walmart_split, "user-1", "WALMART", DAY, Decimal("80.05")) is None
        assert find_duplicate(walmart_split, "user-1", "WALMART", DAY, Decimal("80.04")) is not None

    def test_other_user_is_not_duplicate(self, walmart_split):
        assert find_duplicate(walmart_split, "user-2", "WALMART", DAY, 80.00) is None

    def test_other_day_is_not_duplicate(self, walmart_split):
        assert find_duplicate(walmart_split, "user-1", "WALMART", date(2025, 11, 22), 80.00) is None

    def test_only_candidate_store_group_is_compared(self, repository):
        repository.insert(_record("TARGET", "80.00"))
        repository.insert(_record("WALMART", "10.00"))
        assert find_duplicate(repository, "user-1", "WALMART", DAY, 80.00) is None

    def test_no_candidates(self, repository):
        assert find_duplicate(repository, "user-1", "WALMART", DAY, 80.00) is None


# =====================================================================
# Repository
# =====================================================================
class TestRepository:
    def test_insert_round_trip(self, repository):
        record = _record("COSTCO", "12.40")
        record.payment_method = PaymentMethod.CARD
        record.raw_ocr_text = "COSTCO WHOLESALE"
        repository.insert(record)

        start, end = day_bounds(DAY)
        rows = repository.find_by_date_and_user("user-1", start, end)
        assert len(rows) == 1
        row = rows[0]
        assert row.id == record.id
        assert row.total == Decimal("12.40")
        assert row.payment_method == PaymentMethod.CARD
        assert row.status == ReceiptStatus.COMPLETED
        assert row.raw_ocr_text == "COSTCO WHOLESALE"

    def test_insert_does_not_commit(self, repository, db):
        repository.insert(_record("COSTCO", "12.40"))
        db.rollback()
        start, end = day_bounds(DAY)
        assert repository.find_by_date_and_user("user-1", start, end) == []

    def test_find_is_ordered_by_creation(self, repository):
        first = _record("A", 1)
        second = _record("B", 2)
        first.created_at = datetime(2025, 11, 21, 9, 0)
        second.created_at = datetime(2025, 11, 21, 8, 0)
        repository.insert(first)
        repository.insert(second)
        start, end = day_bounds(DAY)
        rows = repository.find_by_date_and_user("user-1", start, end)
        assert [r.store_name for r in rows] == ["B", "A"]

    def test_model_defaults_created_at(self, db):
        row = ReceiptModel(
            id="r-1",
            user_id="user-1",
            store_name="COSTCO",
            receipt_date=DAY,
            total=Decimal("12.40"),
        )
        db.add(row)
        db.flush()
        assert row.created_at is not None
        assert row.created_at.tzinfo is None
        assert row.status == "PROCESSING"
