"""
Shared pytest fixtures: in-memory SQLite, fake providers, FastAPI TestClient.
"""
import copy
import json
from datetime import date

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from receipt_tracker.main import app
from receipt_tracker.receipts.database import Base, get_db
from receipt_tracker.receipts.models import ReceiptModel  # noqa: F401  register model
from receipt_tracker.receipts.repository import ReceiptRepository
from receipt_tracker.receipts.routers.receipts import get_llm_provider, get_ocr_provider
from receipt_tracker.receipts.schemas import OcrResult

# StaticPool ensures all connections share the same in-memory database
_ENGINE = create_engine(
    "sqlite:///:memory:",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
_Session = sessionmaker(autocommit=False, autoflush=False, bind=_ENGINE)

FIXED_TODAY = date(2026, 3, 14)

COSTCO_OCR_TEXT = (
    "COSTCO WHOLESALE\n"
    "Location #1345\n"
    "2025/11/21 12:52:58\n"
    "BANANAS 1.99\n"
    "MILK 4.49\n"
    "BREAD 5.00\n"
    "SUBTOTAL 11.48\n"
    "TAX 0.92\n"
    "TOTAL 12.40\n"
    "VISA ****1234\n"
)

COSTCO_EXTRACTION = {
    "store": {"name": "COSTCO"},
    "receiptDate": "2025/11/21 12:52:58",
    "paymentMethod": "card",
    "totals": {"total": 12.40, "subtotal": 11.48, "tax": 0.92},
    "categoryReceipts": [{"category": "grocery", "total": 12.40}],
}


class FakeOcr:
    """Stands in for OcrProvider; records every call."""

    def __init__(self, text=COSTCO_OCR_TEXT, confidence=0.95, available=True):
        self.result = OcrResult(raw_text=text, confidence=confidence)
        self.available = available
        self.calls = []

    def is_available(self):
        return self.available

    @staticmethod
    def is_valid_image_format(mimetype):
        return mimetype in {"image/jpeg", "image/jpg", "image/png", "application/pdf"}

    def extract_text(self, image_bytes, mimetype="image/jpeg"):
        self.calls.append((image_bytes, mimetype))
        return self.result


class FakeLlm:
    """Stands in for LlmProvider; returns a canned JSON completion."""

    def __init__(self, payload=None, available=True):
        self.payload = copy.deepcopy(COSTCO_EXTRACTION) if payload is None else payload
        self.available = available
        self.prompts = []

    def is_available(self):
        return self.available

    def complete(self, prompt, system_prompt=None):
        self.prompts.append(prompt)
        if isinstance(self.payload, str):
            return self.payload
        return json.dumps(self.payload)


@pytest.fixture(autouse=True)
def _reset_tables():
    Base.metadata.create_all(bind=_ENGINE)
    yield
    Base.metadata.drop_all(bind=_ENGINE)


@pytest.fixture()
def db():
    session = _Session()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def repository(db):
    return ReceiptRepository(db)


@pytest.fixture()
def today():
    return lambda: FIXED_TODAY


@pytest.fixture()
def extraction_payload():
    return copy.deepcopy(COSTCO_EXTRACTION)


@pytest.fixture()
def fake_ocr():
    return FakeOcr()


@pytest.fixture()
def fake_llm():
    return FakeLlm()


@pytest.fixture()
def client(db, fake_ocr, fake_llm):
    def _override():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = _override
    app.dependency_overrides[get_ocr_provider] = lambda: fake_ocr
    app.dependency_overrides[get_llm_provider] = lambda: fake_llm
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
