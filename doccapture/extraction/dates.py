"""Date recognition and normalization for OCR text.

Finds dates written as ``MM/DD/YYYY``, ``YYYY-MM-DD`` or ``DD Mon YYYY``
and normalizes them to ISO ``YYYY-MM-DD``.
"""

import re
from dataclasses import dataclass
from datetime import date

from doccapture.utils.logger import get_logger

logger = get_logger(__name__)

DATE_CONFIDENCE = 90

MONTHS: tuple[str, ...] = (
    "jan",
    "feb",
    "mar",
    "apr",
    "may",
    "jun",
    "jul",
    "aug",
    "sep",
    "oct",
    "nov",
    "dec",
)

# Pattern classes in scan order. Slash dates are read month-first.
_MONTH_FIRST = r"([0-9]{1,2})[/\-]([0-9]{1,2})[/\-]([0-9]{4})"
_YEAR_FIRST = r"([0-9]{4})[/\-]([0-9]{1,2})[/\-]([0-9]{1,2})"
_MONTH_NAME = (
    r"([0-9]{1,2})\s+(Jan|Feb|Mar|Apr|May|Jun|Jul|Aug|Sep|Oct|Nov|Dec)"
    r"[a-z]*\s+([0-9]{4})"
)

_DATE_PATTERNS: list[tuple[re.Pattern[str], str]] = [
    (re.compile(_MONTH_FIRST), "month_first"),
    (re.compile(_YEAR_FIRST), "year_first"),
    (re.compile(_MONTH_NAME, re.IGNORECASE), "month_name"),
]

_DOB_PATTERNS: list[re.Pattern[str]] = [
    re.compile(r"DOB[:\s]+([0-9/\-]+)", re.IGNORECASE),
    re.compile(r"Date of Birth[:\s]+([0-9/\-]+)", re.IGNORECASE),
]


@dataclass(frozen=True)
class DateCandidate:
    """A date found in text, with its canonical ISO value."""

    raw: str
    value: str
    confidence: int = DATE_CONFIDENCE


def _to_iso(year: int, month: int, day: int) -> str | None:
    try:
        return date(year, month, day).isoformat()
    except ValueError:
        return None


def parse_date(text: str) -> str | None:
    """Normalize a single date string to ``YYYY-MM-DD``.

    Args:
        text: Candidate date, e.g. ``"03/15/2025"``, ``"2025-03-15"`` or
            ``"15 Mar 2025"``.

    Returns:
        ISO date string, or ``None`` if the text is not a valid date.
    """
    text = text.strip()
    for pattern, kind in _DATE_PATTERNS:
        match = pattern.fullmatch(text)
        if not match:
            continue
        first, second, third = match.groups()
        if kind == "month_first":
            return _to_iso(int(third), int(first), int(second))
        if kind == "year_first":
            return _to_iso(int(first), int(second), int(third))
        month = MONTHS.index(second[:3].lower()) + 1
        return _to_iso(int(third), month, int(first))
    return None


def extract_dates(text: str) -> list[DateCandidate]:
    """Find every recognizable date in text.

    Results are ordered by pattern class first, then by position within
    the text, not chronologically.

    Args:
        text: OCR text to scan.

    Returns:
        Date candidates; impossible calendar dates are dropped.
    """
    candidates: list[DateCandidate] = []
    for pattern, _ in _DATE_PATTERNS:
        for match in pattern.finditer(text):
            value = parse_date(match.group(0))
            if value:
                candidates.append(DateCandidate(raw=match.group(0), value=value))

    logger.debug("Found %d date candidates", len(candidates))
    return candidates


def extract_date_of_birth(text: str) -> DateCandidate | None:
    """Find an explicitly labelled ``DOB:`` or ``Date of Birth:`` value."""
    for pattern in _DOB_PATTERNS:
        match = pattern.search(text)
        if not match:
            continue
        value = parse_date(match.group(1))
        if value:
            return DateCandidate(raw=match.group(1), value=value)
    return None
