"""
Receipt intake endpoints.

POST /api/receipts            — upload an image → OCR → LLM → stored category rows
GET  /api/receipts/ai-status  — whether OCR and LLM providers are configured
"""
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, File, Header, HTTPException, UploadFile
from sqlalchemy.orm import Session

from receipt_tracker.config import settings
from receipt_tracker.receipts.database import get_db
from receipt_tracker.receipts.errors import (
    DuplicateReceipt,
    ExtractionError,
    NoTextDetected,
    ProviderError,
    ProviderNotConfigured,
    UnsupportedImageFormat,
)
from receipt_tracker.receipts.pipeline import process_receipt_image
from receipt_tracker.receipts.providers import LlmProvider, OcrProvider
from receipt_tracker.receipts.repository import ReceiptRepository
from receipt_tracker.receipts.schemas import AiStatus, ReceiptRecord

logger = logging.getLogger(__name__)
router = APIRouter()


# ── Dependencies ─────────────────────────────────────────────────────────
def get_ocr_provider():
    provider = OcrProvider.from_settings(settings)
    try:
        yield provider
    finally:
        provider.close()


def get_llm_provider() -> LlmProvider:
    return LlmProvider.from_settings(settings)


# ── POST /api/receipts ───────────────────────────────────────────────────
@router.post("/receipts", response_model=list[ReceiptRecord], status_code=201)
def upload_receipt(
    file: UploadFile = File(...),
    user_id: str = Header(..., alias="X-User-Id"),
    db: Session = Depends(get_db),
    ocr: OcrProvider = Depends(get_ocr_provider),
    llm: LlmProvider = Depends(get_llm_provider),
):
    missing = [
        name
        for name, ok in (("OCR_API_KEY", ocr.is_available()), ("OPENAI_API_KEY", llm.is_available()))
        if not ok
    ]
    if missing:
        raise HTTPException(
            status_code=503,
            detail=f"AI services are not configured. Missing: {', '.join(missing)}",
        )

    image_bytes = file.file.read()
    if not image_bytes:
        raise HTTPException(status_code=400, detail="file must not be empty")
    if len(image_bytes) > settings.MAX_UPLOAD_BYTES:
        raise HTTPException(status_code=413, detail="file is too large")

    logger.info(
        "Upload: user=%s  mimetype=%s  size=%d", user_id, file.content_type, len(image_bytes)
    )

    try:
        records = process_receipt_image(
            image_bytes,
            file.content_type or "",
            user_id,
            ocr=ocr,
            llm=llm,
            repository=ReceiptRepository(db),
        )
    except UnsupportedImageFormat as e:
        db.rollback()
        raise HTTPException(status_code=415, detail=str(e))
    except (ExtractionError, NoTextDetected) as e:
        db.rollback()
        logger.warning("Could not parse receipt: %s", e)
        raise HTTPException(status_code=422, detail=f"Could not parse receipt: {e}")
    except DuplicateReceipt as e:
        db.rollback()
        raise HTTPException(status_code=409, detail=str(e))
    except ProviderNotConfigured as e:
        db.rollback()
        raise HTTPException(status_code=503, detail=str(e))
    except ProviderError as e:
        db.rollback()
        logger.error("Receipt processing failed: %s", e)
        raise HTTPException(status_code=502, detail=str(e))

    db.commit()
    logger.info("Stored %d receipt row(s) for user %s", len(records), user_id)
    return records


# ── GET /api/receipts/ai-status ──────────────────────────────────────────
@router.get("/receipts/ai-status", response_model=AiStatus)
def ai_status(
    ocr: OcrProvider = Depends(get_ocr_provider),
    llm: LlmProvider = Depends(get_llm_provider),
):
    return AiStatus(
        ocr=ocr.is_available(),
        llm=llm.is_available(),
        available=ocr.is_available() and llm.is_available(),
    )
