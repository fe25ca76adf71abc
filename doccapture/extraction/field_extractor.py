"""Rule-based field extraction for identity and travel documents.

Extracts dates, document numbers, names and nationality from OCR text
using ordered regular expressions and lookup tables. Matching is
first-match-wins throughout, so table order is part of the behavior.
"""

import re
from collections.abc import Iterator, Mapping
from dataclasses import dataclass

from doccapture.extraction.dates import extract_date_of_birth, extract_dates
from doccapture.utils.logger import get_logger

logger = get_logger(__name__)

DOCUMENT_NUMBER = "document_number"
ISSUE_DATE = "issue_date"
EXPIRATION_DATE = "expiration_date"
DATE_OF_BIRTH = "date_of_birth"
FULL_NAME = "full_name"
FIRST_NAME = "first_name"
LAST_NAME = "last_name"
NATIONALITY = "nationality"

FIELD_NAMES: tuple[str, ...] = (
    DOCUMENT_NUMBER,
    ISSUE_DATE,
    EXPIRATION_DATE,
    DATE_OF_BIRTH,
    FULL_NAME,
    FIRST_NAME,
    LAST_NAME,
    NATIONALITY,
)

TYPED_NUMBER_CONFIDENCE = 85
GENERIC_NUMBER_CONFIDENCE = 70
NAME_CONFIDENCE = 85
COUNTRY_CONFIDENCE = 90

_DOCUMENT_NUMBER_PATTERNS: dict[str, re.Pattern[str]] = {
    "passport": re.compile(r"P[0-9]{8,9}", re.IGNORECASE),
    "driver_license": re.compile(r"[A-Z]{1,2}[0-9]{6,8}", re.IGNORECASE),
    "social_security_card": re.compile(r"[0-9]{3}-[0-9]{2}-[0-9]{4}"),
    "national_id": re.compile(r"[A-Z0-9]{8,12}", re.IGNORECASE),
    "visa": re.compile(r"[A-Z0-9]{8,12}", re.IGNORECASE),
}

_DOCUMENT_TYPE_ALIASES: dict[str, str] = {
    "drivers_license": "driver_license",
    "ssn": "social_security_card",
}

_GENERIC_NUMBER_PATTERNS: list[re.Pattern[str]] = [
    re.compile(r"\b[A-Z]{1,2}[0-9]{6,10}\b", re.IGNORECASE),
    re.compile(r"\b[0-9]{8,12}\b"),
]

# Two or more capitalised words: "John Smith" or "JOHN SMITH".
_NAME_PATTERN = re.compile(r"[A-Z](?:[a-z]+|[A-Z]+)(?:\s+[A-Z](?:[a-z]+|[A-Z]+))+")

COUNTRIES: tuple[str, ...] = (
    "United States",
    "USA",
    "US",
    "Canada",
    "CAN",
    "CA",
    "Mexico",
    "MEX",
    "MX",
    "United Kingdom",
    "UK",
    "GB",
    "France",
    "FRA",
    "FR",
    "Germany",
    "DEU",
    "DE",
    "Spain",
    "ESP",
    "ES",
    "Italy",
    "ITA",
    "IT",
    "Japan",
    "JPN",
    "JP",
    "China",
    "CHN",
    "CN",
    "India",
    "IND",
    "IN",
    "Australia",
    "AUS",
    "AU",
    "Brazil",
    "BRA",
    "BR",
    "Russia",
    "RUS",
    "RU",
)


@dataclass(frozen=True)
class ExtractedField:
    """A field value with a 0-100 confidence score."""

    value: str
    confidence: int


class ExtractedFields(Mapping[str, ExtractedField]):
    """Read-only mapping of field name to extracted value.

    Fields that were not found are absent, never ``None``.
    """

    def __init__(self, fields: Mapping[str, ExtractedField] | None = None) -> None:
        self._fields = dict(fields or {})

    def __getitem__(self, key: str) -> ExtractedField:
        return self._fields[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._fields)

    def __len__(self) -> int:
        return len(self._fields)

    def __repr__(self) -> str:
        return f"ExtractedFields({self._fields!r})"

    def as_dict(self) -> dict[str, dict[str, object]]:
        """Return a JSON-serializable copy."""
        return {
            name: {"value": f.value, "confidence": f.confidence}
            for name, f in self._fields.items()
        }


def normalize_document_type(document_type: str | None) -> str | None:
    """Lower-case a document type hint and resolve known aliases."""
    if not document_type:
        return None
    key = document_type.strip().lower()
    return _DOCUMENT_TYPE_ALIASES.get(key, key)


def extract_document_number(
    text: str, document_type: str | None = None
) -> ExtractedField | None:
    """Extract the document number.

    A type-specific pattern is tried first when the hint has one, then
    two generic patterns. Only the first match of the cascade is returned.

    Args:
        text: OCR text to search.
        document_type: Optional hint such as ``"passport"``.

    Returns:
        Extracted number, or ``None`` if nothing matched.
    """
    hint = normalize_document_type(document_type)
    pattern = _DOCUMENT_NUMBER_PATTERNS.get(hint) if hint else None
    if pattern:
        match = pattern.search(text)
        if match:
            return ExtractedField(match.group(0), TYPED_NUMBER_CONFIDENCE)

    for generic in _GENERIC_NUMBER_PATTERNS:
        match = generic.search(text)
        if match:
            return ExtractedField(match.group(0), GENERIC_NUMBER_CONFIDENCE)
    return None


def extract_name(text: str) -> dict[str, ExtractedField]:
    """Take the first line made of two or more capitalised words as the name.

    Args:
        text: OCR text, one field per line.

    Returns:
        ``full_name``, ``first_name`` and ``last_name``, or an empty dict.
    """
    for line in text.splitlines():
        line = line.strip()
        if not line or not _NAME_PATTERN.fullmatch(line):
            continue
        parts = line.split()
        return {
            FULL_NAME: ExtractedField(line, NAME_CONFIDENCE),
            FIRST_NAME: ExtractedField(parts[0], NAME_CONFIDENCE),
            LAST_NAME: ExtractedField(" ".join(parts[1:]), NAME_CONFIDENCE),
        }
    return {}


def extract_country(text: str) -> ExtractedField | None:
    """Return the first entry of ``COUNTRIES`` that occurs anywhere in text."""
    upper_text = text.upper()
    for country in COUNTRIES:
        if country.upper() in upper_text:
            return ExtractedField(country, COUNTRY_CONFIDENCE)
    return None


def extract_fields(text: str, document_type: str | None = None) -> ExtractedFields:
    """Extract all known fields from OCR text.

    The first date found becomes the issue date and, when there are at
    least two, the last becomes the expiration date. Recognizers run
    independently and are not cross-checked.

    Args:
        text: OCR text.
        document_type: Optional document type hint.

    Returns:
        Extracted fields; missing fields are simply absent.
    """
    fields: dict[str, ExtractedField] = {}

    dates = extract_dates(text)
    if dates:
        fields[ISSUE_DATE] = ExtractedField(dates[0].value, dates[0].confidence)
    if len(dates) >= 2:
        last = dates[-1]
        fields[EXPIRATION_DATE] = ExtractedField(last.value, last.confidence)

    birth = extract_date_of_birth(text)
    if birth:
        fields[DATE_OF_BIRTH] = ExtractedField(birth.value, birth.confidence)

    number = extract_document_number(text, document_type)
    if number:
        fields[DOCUMENT_NUMBER] = number

    fields.update(extract_name(text))

    country = extract_country(text)
    if country:
        fields[NATIONALITY] = country

    logger.info(
        "Extracted %d fields (document_type=%s)", len(fields), document_type or "none"
    )
    return ExtractedFields(fields)
