"""
Receipt date normalizer.

Turns whatever date string the LLM (or OCR) produced into a calendar date.
Receipts print dates in many regional layouts and OCR often truncates
digits, so numeric triads are disambiguated by the component that is out
of range for a month. Unparseable input never raises: the result falls
back to today with ``recognized=False`` so the caller can flag the receipt
for review.
"""
from __future__ import annotations

import logging
import re
from datetime import date, datetime
from typing import Any, Callable, Optional

from receipt_tracker.receipts.schemas import NormalizedDate

logger = logging.getLogger(__name__)

MONTH_NAMES = [
    "january",
    "february",
    "march",
    "april",
    "may",
    "june",
    "july",
    "august",
    "september",
    "october",
    "november",
    "december",
]

_ISO_DATE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")
_YYYY_MM_DD_SLASH = re.compile(r"^(\d{4})/(\d{1,2})/(\d{1,2})(?!\d)")
_TWO_DIGIT_TRIAD = re.compile(r"^(\d{2})/(\d{2})/(\d{2})$")
_NN_NN_YYYY = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{4})(?!\d)")
_MONTH_NAME = re.compile(r"^([A-Za-z]+)\.?\s+(\d{1,2}),?\s+(\d{4})(?!\d)")

# Last-resort formats. Every one carries a four-digit year.
_GENERIC_FORMATS = (
    "%d %B %Y",
    "%d %b %Y",
    "%d-%b-%Y",
    "%d %B, %Y",
    "%A, %B %d, %Y",
    "%a, %b %d, %Y",
    "%a, %d %b %Y %H:%M:%S",
    "%Y.%m.%d",
    "%d.%m.%Y",
    "%Y%m%d",
)

# Shapes searched in raw OCR text for diagnostics
DATE_CANDIDATE_PATTERNS: dict[str, re.Pattern[str]] = {
    "YYYY/MM/DD": re.compile(r"\d{4}/\d{2}/\d{2}"),
    "MM/DD/YYYY or DD/MM/YYYY": re.compile(r"\d{2}/\d{2}/\d{4}"),
    "Month DD, YYYY": re.compile(r"[A-Za-z]+\s+\d{1,2},\s+\d{4}"),
    "YYYY-MM-DD": re.compile(r"\d{4}-\d{2}-\d{2}"),
}


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def expand_two_digit_year(value: int) -> int:
    """00-40 → 2000-2040, 41-99 → 1941-1999."""
    return 2000 + value if value <= 40 else 1900 + value


def _make_date(year: int, month: int, day: int) -> Optional[date]:
    try:
        return date(year, month, day)
    except ValueError:
        return None


def _resolve_two_digit_triad(first: int, second: int, third: int) -> tuple[str, Optional[date]]:
    if 1 <= second <= 12 and 1 <= third <= 31 and first > 12:
        return "YY/MM/DD", _make_date(expand_two_digit_year(first), second, third)
    if first > 12 and 1 <= second <= 12:
        return "DD/MM/YY", _make_date(expand_two_digit_year(third), second, first)
    if second > 12 and 1 <= first <= 12:
        return "MM/DD/YY", _make_date(expand_two_digit_year(third), first, second)
    # Fully ambiguous: DD/MM/YY is the house default
    return "DD/MM/YY (ambiguous)", _make_date(expand_two_digit_year(third), second, first)


def month_from_name(name: str) -> Optional[int]:
    """Prefix-match an English month name: ``"Jun"`` → 6."""
    lowered = name.lower()
    if not lowered:
        return None
    for index, month in enumerate(MONTH_NAMES):
        if month.startswith(lowered):
            return index + 1
    return None


def _generic_parse(text: str) -> Optional[date]:
    iso = text[:-1] + "+00:00" if text.endswith("Z") else text
    try:
        return datetime.fromisoformat(iso).date()
    except ValueError:
        pass
    for fmt in _GENERIC_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    return None


def _match(text: str) -> tuple[str, Optional[date]] | None:
    """Apply the resolution rules in order; None when nothing matched."""
    m = _ISO_DATE.match(text)
    if m:
        return "YYYY-MM-DD", _make_date(*(int(g) for g in m.groups()))

    m = _YYYY_MM_DD_SLASH.match(text)
    if m:
        return "YYYY/MM/DD", _make_date(*(int(g) for g in m.groups()))

    m = _TWO_DIGIT_TRIAD.match(text)
    if m:
        return _resolve_two_digit_triad(*(int(g) for g in m.groups()))

    m = _NN_NN_YYYY.match(text)
    if m:
        first, second, year = (int(g) for g in m.groups())
        if first > 12:
            return "DD/MM/YYYY", _make_date(year, second, first)
        return "MM/DD/YYYY", _make_date(year, first, second)

    m = _MONTH_NAME.match(text)
    if m:
        month = month_from_name(m.group(1))
        if month is not None:
            return "Month DD, YYYY", _make_date(int(m.group(3)), month, int(m.group(2)))

    parsed = _generic_parse(text)
    if parsed is not None:
        return "generic", parsed
    return None


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def normalize_date(
    value: Any,
    today: Optional[Callable[[], date]] = None,
) -> NormalizedDate:
    """Normalize *value* to a calendar date. Never raises.

    *today* supplies the fallback date; defaults to :meth:`date.today`.
    """
    clock = today or date.today

    if not isinstance(value, str) or not value.strip():
        logger.warning("Invalid date string provided (%r), using today's date", value)
        return NormalizedDate(value=clock(), recognized=False, pattern="fallback")

    text = value.strip()
    matched = _match(text)
    if matched is not None:
        pattern, parsed = matched
        if parsed is not None:
            logger.debug("Parsed %s: %r → %s", pattern, text, parsed.isoformat())
            return NormalizedDate(value=parsed, recognized=True, pattern=pattern)
        logger.warning("Date %r matched %s but is not a calendar date", text, pattern)

    logger.warning("Could not parse date: %r, using today's date", text)
    return NormalizedDate(value=clock(), recognized=False, pattern="fallback")


def find_date_candidates(raw_text: str) -> dict[str, list[str]]:
    """Return every date-looking substring of *raw_text*, keyed by shape."""
    found: dict[str, list[str]] = {}
    for name, pattern in DATE_CANDIDATE_PATTERNS.items():
        matches = pattern.findall(raw_text or "")
        if matches:
            found[name] = matches
    return found
