"""Keyword-based document type detection.

Scores OCR text against per-type keyword lists defined in YAML and
returns the best match, which callers can pass to ``extract_fields`` as
the document type hint.
"""

from dataclasses import dataclass
from pathlib import Path

import yaml

from doccapture.utils.logger import get_logger
from doccapture.utils.numeric import round_half_up

logger = get_logger(__name__)

UNKNOWN_TYPE = "other"
MIN_TEXT_LENGTH = 10
MIN_CONFIDENCE = 30
MAX_CONFIDENCE = 95

DEFAULT_KEYWORDS: dict[str, list[str]] = {
    # Identity documents
    "passport": [
        "passport",
        "travel document",
        "nationality",
        "surname",
        "given names",
        "passport no",
        "passport number",
    ],
    "national_id": [
        "identity card",
        "national id",
        "citizen",
        "national identification",
        "id card",
    ],
    "driver_license": [
        "driver license",
        "driving licence",
        "class",
        "endorsement",
        "restrictions",
        "dl number",
        "license number",
    ],
    "social_security_card": [
        "social security",
        "ssn",
        "ss number",
        "social security number",
    ],
    "voter_id": ["voter", "voting card", "electoral", "voter id"],
    # Travel documents
    "visa": [
        "visa",
        "visa type",
        "port of entry",
        "valid until",
        "entry",
        "multiple entry",
    ],
    "residence_permit": ["residence permit", "residency", "permit to stay"],
    "work_permit": [
        "work permit",
        "work authorization",
        "employment authorization",
    ],
    "student_visa": ["student visa", "f-1", "student", "education"],
    "travel_pass": ["travel pass", "travel document"],
    # Certificates
    "birth_certificate": [
        "birth certificate",
        "date of birth",
        "place of birth",
        "father",
        "mother",
        "born",
    ],
    "marriage_certificate": [
        "marriage certificate",
        "marriage",
        "wedding",
        "spouse",
    ],
    "divorce_decree": ["divorce", "dissolution", "decree"],
    "death_certificate": ["death certificate", "deceased", "died"],
    "adoption_certificate": ["adoption", "adopted"],
    "name_change_certificate": ["name change", "legal name change"],
    # Insurance and financial
    "health_insurance": [
        "health insurance",
        "medical insurance",
        "policy number",
        "group number",
        "member id",
        "health plan",
    ],
    "auto_insurance": [
        "auto insurance",
        "car insurance",
        "vehicle insurance",
        "policy number",
    ],
    "home_insurance": ["home insurance", "homeowner", "property insurance"],
    "life_insurance": ["life insurance", "beneficiary"],
    "bank_statement": [
        "bank statement",
        "account number",
        "balance",
        "transaction",
    ],
    "credit_card": ["credit card", "card number", "expires", "cardholder"],
    # Professional and academic
    "professional_license": [
        "professional license",
        "license number",
        "licensee",
        "expiration",
    ],
    "academic_transcript": [
        "transcript",
        "gpa",
        "grade",
        "credit hours",
        "semester",
    ],
    "degree_certificate": [
        "degree",
        "bachelor",
        "master",
        "doctorate",
        "diploma",
        "graduated",
    ],
    "employment_contract": [
        "employment contract",
        "employer",
        "salary",
        "position",
        "start date",
    ],
    "tax_return": [
        "tax return",
        "irs",
        "tax year",
        "adjusted gross income",
        "filing status",
    ],
    # Property and legal
    "property_deed": ["deed", "property", "real estate", "title"],
    "vehicle_registration": [
        "vehicle registration",
        "registration",
        "vin",
        "vehicle identification",
    ],
    "lease_agreement": ["lease", "rental agreement", "tenant", "landlord"],
    "power_of_attorney": ["power of attorney", "poa", "attorney"],
    # Medical
    "vaccination_card": ["vaccination", "vaccine", "covid", "immunization"],
    "medical_record": ["medical record", "patient", "diagnosis", "treatment"],
    "prescription": ["prescription", "rx", "pharmacy", "medication", "dosage"],
    # General
    "id_card": ["id card", "identification"],
    "insurance": ["insurance", "policy"],
    "subscription": ["subscription", "member", "renewal"],
    "receipt": ["receipt", "total", "paid"],
    "bill": ["bill", "invoice", "amount due", "due date"],
    "contract": ["contract", "agreement", "terms"],
    "warranty": ["warranty", "guarantee"],
    "license_plate": ["license plate", "plate number"],
    "registration": ["registration"],
    "membership": ["membership", "member"],
    "certification": ["certification", "certified", "certificate"],
    "food": ["food", "restaurant", "menu"],
    "custom_document": [],
    "other": [],
}


@dataclass
class DetectedDocumentType:
    """Result of document type detection."""

    document_type: str
    confidence: int


class DocumentTypeDetector:
    """Detects a document's type from keywords in its OCR text.

    Args:
        keywords_path: YAML file mapping document type to keyword list.
            Built-in defaults are used when the file is missing or empty.
    """

    def __init__(
        self, keywords_path: Path = Path("configs/document_types.yaml")
    ) -> None:
        self.keywords = self._load_keywords(keywords_path)

    def _load_keywords(self, path: Path) -> dict[str, list[str]]:
        """Load keyword lists from a YAML file.

        Args:
            path: Path to the keywords YAML file.

        Returns:
            Mapping of document type to keywords.
        """
        if path.exists():
            with open(path) as f:
                data = yaml.safe_load(f)
            if data:
                return {name: list(words or []) for name, words in data.items()}
        logger.debug("No document type keywords at %s, using defaults", path)
        return DEFAULT_KEYWORDS

    def detect(self, text: str) -> DetectedDocumentType:
        """Find the document type whose keywords best cover the text.

        Args:
            text: OCR text from the document.

        Returns:
            Best matching type, or ``"other"`` with confidence 0 when the
            text is too short or no type scores at least 30.
        """
        if not text or len(text.strip()) < MIN_TEXT_LENGTH:
            return DetectedDocumentType(UNKNOWN_TYPE, 0)

        lower_text = text.lower()
        best_type = UNKNOWN_TYPE
        best_score = 0
        for name, keywords in self.keywords.items():
            score = sum(1 for keyword in keywords if keyword.lower() in lower_text)
            if score > best_score:
                best_type, best_score = name, score

        keywords = self.keywords.get(best_type, [])
        confidence = (
            round_half_up(min(best_score / len(keywords) * 100, MAX_CONFIDENCE))
            if keywords
            else 0
        )
        if confidence < MIN_CONFIDENCE:
            return DetectedDocumentType(UNKNOWN_TYPE, 0)

        logger.info(
            "Detected document type '%s' (confidence=%d)", best_type, confidence
        )
        return DetectedDocumentType(best_type, confidence)
