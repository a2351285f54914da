"""
OCR provider: Google Cloud Vision (REST) or OCR.space.

The backend is picked from the configured endpoint; an endpoint containing
``ocr.space`` selects OCR.space. Transient failures (timeouts, transport
errors, 5xx responses, OCR.space processing errors) are retried a bounded
number of times with a fixed delay.
"""
from __future__ import annotations

import base64
import logging
import time
from typing import Any, Callable, Optional

import httpx
from tenacity import (
    RetryError,
    Retrying,
    before_sleep_log,
    retry_if_exception,
    retry_if_exception_type,
    stop_after_attempt,
    wait_fixed,
)

from receipt_tracker.receipts.errors import OcrProviderError, ProviderNotConfigured
from receipt_tracker.receipts.schemas import OcrResult

logger = logging.getLogger(__name__)

VALID_MIMETYPES = {"image/jpeg", "image/jpg", "image/png", "application/pdf"}

LOW_CONFIDENCE = 0.7

# OCR.space reports no confidence
OCR_SPACE_CONFIDENCE = 0.9


class _TransientOcrError(Exception):
    pass


_TRANSIENT_ERRORS = (httpx.TimeoutException, httpx.TransportError, _TransientOcrError)


def _is_server_error(error: BaseException) -> bool:
    return isinstance(error, httpx.HTTPStatusError) and error.response.status_code >= 500


class OcrProvider:
    def __init__(
        self,
        api_key: str,
        endpoint: str,
        timeout: float = 45.0,
        max_attempts: int = 2,
        retry_delay: float = 2.0,
        client: Optional[httpx.Client] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.api_key = api_key
        self.endpoint = endpoint
        self.max_attempts = max(1, max_attempts)
        self.retry_delay = retry_delay
        self.client = client or httpx.Client(timeout=timeout)
        self._sleep = sleep
        if not api_key:
            logger.warning("OCR_API_KEY not configured. OCR service will not work.")

    @classmethod
    def from_settings(cls, settings) -> "OcrProvider":
        return cls(
            api_key=settings.OCR_API_KEY,
            endpoint=settings.OCR_API_ENDPOINT,
            timeout=settings.OCR_TIMEOUT_SECONDS,
            max_attempts=settings.OCR_MAX_ATTEMPTS,
            retry_delay=settings.OCR_RETRY_DELAY_SECONDS,
        )

    def close(self) -> None:
        self.client.close()

    def is_available(self) -> bool:
        return bool(self.api_key)

    @staticmethod
    def is_valid_image_format(mimetype: Optional[str]) -> bool:
        return (mimetype or "").lower() in VALID_MIMETYPES

    @property
    def uses_ocr_space(self) -> bool:
        return "ocr.space" in self.endpoint

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def extract_text(self, image_bytes: bytes, mimetype: str = "image/jpeg") -> OcrResult:
        if not self.api_key:
            raise ProviderNotConfigured(
                "OCR service is not configured. Please set OCR_API_KEY."
            )
        if not self.is_valid_image_format(mimetype):
            raise OcrProviderError(f"Unsupported image format: {mimetype}")

        logger.info(
            "Starting OCR text extraction (%s, %.2fKB)",
            "ocr.space" if self.uses_ocr_space else "google-vision",
            len(image_bytes) / 1024,
        )
        if self.uses_ocr_space:
            return self._with_retry(lambda: self._ocr_space(image_bytes, mimetype))
        return self._with_retry(lambda: self._google_vision(image_bytes))

    # ------------------------------------------------------------------
    # Retry
    # ------------------------------------------------------------------

    def _retrying(self) -> Retrying:
        return Retrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_fixed(self.retry_delay),
            retry=retry_if_exception_type(_TRANSIENT_ERRORS) | retry_if_exception(_is_server_error),
            sleep=self._sleep,
            before_sleep=before_sleep_log(logger, logging.WARNING),
        )

    def _with_retry(self, call: Callable[[], OcrResult]) -> OcrResult:
        """Run *call*, retrying transient failures; 4xx and bad bodies fail at once."""
        try:
            return self._retrying()(call)
        except RetryError as e:
            last_error = e.last_attempt.exception()
            raise OcrProviderError(
                f"OCR failed after {self.max_attempts} attempt(s): {last_error}"
            ) from last_error
        except httpx.HTTPStatusError as e:
            raise OcrProviderError(f"OCR API error: {_error_message(e.response)}") from e
        except ValueError as e:
            raise OcrProviderError(f"OCR API returned an unreadable response: {e}") from e

    # ------------------------------------------------------------------
    # Backends
    # ------------------------------------------------------------------

    def _google_vision(self, image_bytes: bytes) -> OcrResult:
        body = {
            "requests": [
                {
                    "image": {"content": base64.b64encode(image_bytes).decode("ascii")},
                    "features": [
                        {"type": "DOCUMENT_TEXT_DETECTION", "maxResults": 1},
                        {"type": "TEXT_DETECTION", "maxResults": 1},
                    ],
                    "imageContext": {"languageHints": ["en"]},
                }
            ]
        }
        response = self.client.post(self.endpoint, params={"key": self.api_key}, json=body)
        response.raise_for_status()
        return parse_google_vision_response(response.json())

    def _ocr_space(self, image_bytes: bytes, mimetype: str) -> OcrResult:
        encoded = base64.b64encode(image_bytes).decode("ascii")
        form = {
            "base64Image": f"data:{mimetype};base64,{encoded}",
            "apikey": self.api_key,
            "language": "eng",
            "isOverlayRequired": "false",
            "scale": "true",
            "OCREngine": "2",
        }
        response = self.client.post(self.endpoint, data=form)
        response.raise_for_status()
        data = response.json()
        if data.get("OCRExitCode") != 1:
            raise _TransientOcrError(_first(data.get("ErrorMessage")) or "OCR processing failed")
        return parse_ocr_space_response(data)


# ---------------------------------------------------------------------------
# Response parsing
# ---------------------------------------------------------------------------

def _first(value: Any) -> Optional[str]:
    if isinstance(value, list):
        return str(value[0]) if value else None
    return str(value) if value else None


def _error_message(response: httpx.Response) -> str:
    try:
        data = response.json()
    except ValueError:
        return response.text or str(response.status_code)
    if isinstance(data, dict):
        error = data.get("error")
        if isinstance(error, dict) and error.get("message"):
            return error["message"]
        message = _first(data.get("ErrorMessage"))
        if message:
            return message
    return str(response.status_code)


def _no_text() -> OcrResult:
    logger.warning("No text detected in image")
    return OcrResult(raw_text="", confidence=0.0, warnings=["No text detected in image"])


def vision_confidence(annotation: dict) -> float:
    """Mean page confidence; 0.5 when pages carry none."""
    pages = annotation.get("pages")
    if not isinstance(pages, list):
        return 0.0
    scores = [p["confidence"] for p in pages if isinstance(p.get("confidence"), (int, float))]
    return sum(scores) / len(scores) if scores else 0.5


def parse_google_vision_response(data: dict) -> OcrResult:
    responses = data.get("responses") or [{}]
    annotations = responses[0]
    if annotations.get("error"):
        raise OcrProviderError(annotations["error"].get("message", "Vision API error"))

    full_text = annotations.get("fullTextAnnotation")
    if not full_text:
        return _no_text()

    confidence = vision_confidence(full_text)
    raw_text = full_text.get("text") or ""
    logger.info("OCR extraction successful. Text length: %d", len(raw_text))
    warnings = ["Low OCR confidence - may need review"] if confidence < LOW_CONFIDENCE else []
    return OcrResult(raw_text=raw_text, confidence=confidence, warnings=warnings)


def parse_ocr_space_response(data: dict) -> OcrResult:
    results = data.get("ParsedResults") or []
    if not results:
        return _no_text()
    raw_text = results[0].get("ParsedText") or ""
    logger.info("OCR extraction successful. Text length: %d", len(raw_text))
    return OcrResult(raw_text=raw_text, confidence=OCR_SPACE_CONFIDENCE)
