"""
Receipt processing pipeline.

Orchestrates: OCR → prompt → LLM → validate → materialize (duplicate check + insert).
Collaborators are passed in; nothing here holds global state.
"""
from __future__ import annotations

import logging
from datetime import date
from typing import TYPE_CHECKING, Callable, Optional

from receipt_tracker.receipts.errors import NoTextDetected, UnsupportedImageFormat
from receipt_tracker.receipts.pipeline.dates import find_date_candidates
from receipt_tracker.receipts.pipeline.materializer import materialize
from receipt_tracker.receipts.pipeline.prompt import SYSTEM_PROMPT, build_prompt
from receipt_tracker.receipts.pipeline.validator import decode_extraction, parse_extraction
from receipt_tracker.receipts.schemas import ReceiptRecord

if TYPE_CHECKING:
    from receipt_tracker.receipts.providers import LlmProvider, OcrProvider
    from receipt_tracker.receipts.repository import ReceiptStore

logger = logging.getLogger(__name__)


def process_receipt_image(
    image_bytes: bytes,
    mimetype: str,
    user_id: str,
    ocr: "OcrProvider",
    llm: "LlmProvider",
    repository: "ReceiptStore",
    today: Optional[Callable[[], date]] = None,
) -> list[ReceiptRecord]:
    """Run the full pipeline on an uploaded receipt image.

    Returns the stored records, one per category. Any failure raises before
    the first insert, so a failed upload leaves nothing behind.
    """
    if not ocr.is_valid_image_format(mimetype):
        raise UnsupportedImageFormat(mimetype)

    logger.info("Pipeline step 1/3: OCR")
    ocr_result = ocr.extract_text(image_bytes, mimetype)
    if not ocr_result.raw_text.strip():
        raise NoTextDetected()
    logger.info(
        "OCR completed. Text length: %d characters, confidence: %s",
        len(ocr_result.raw_text),
        ocr_result.confidence,
    )
    logger.debug("OCR text:\n%s", ocr_result.raw_text)
    for shape, matches in find_date_candidates(ocr_result.raw_text).items():
        logger.debug("Date candidates %s: %s", shape, ", ".join(matches))

    logger.info("Pipeline step 2/3: LLM extraction")
    completion = llm.complete(build_prompt(ocr_result.raw_text), system_prompt=SYSTEM_PROMPT)
    extraction = parse_extraction(decode_extraction(completion), today=today)
    logger.info(
        "Parsing completed. Store: %s, Categories: %d",
        extraction.store_name,
        len(extraction.category_receipts),
    )

    logger.info("Pipeline step 3/3: materialize")
    records = materialize(
        extraction,
        ocr_result.confidence,
        user_id,
        repository,
        raw_ocr_text=ocr_result.raw_text,
    )
    logger.info("Receipt processing completed. Created %d receipt(s)", len(records))
    return records
