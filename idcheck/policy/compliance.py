"""Right-to-rent acceptance rules for extracted document fields.

Rules run in order and the first failing rule decides the verdict:

1. name, document number and date of birth must all be present.
2. the document must not have expired before today (a document expiring
   today is still accepted).
"""

from datetime import date, datetime

from idcheck.extraction.models import ExtractedFields
from idcheck.policy.models import Verdict

MISSING_INFORMATION = "Missing required information"
DOCUMENT_EXPIRED = "Passport expired"
INVALID_EXPIRY = "Invalid expiry date"

SUCCESS_NOTE = "Document verified successfully"
PROCESSING_ERROR_NOTE = "Processing error occurred"


def extraction_failed_note(reason: str) -> str:
    return f"Extraction failed: {reason}"


def evaluate(fields: ExtractedFields, now: date | datetime) -> Verdict:
    """Evaluate extracted fields against the acceptance rules. Pure."""
    if not all(
        value.strip() for value in (fields.name, fields.document_number, fields.date_of_birth)
    ):
        return Verdict.reject(MISSING_INFORMATION)

    expiry = _parse_date(fields.expiry_date)
    if expiry is None:
        return Verdict.reject(INVALID_EXPIRY)
    if expiry < _as_date(now):
        return Verdict.reject(DOCUMENT_EXPIRED)

    return Verdict.accept()


def _as_date(value: date | datetime) -> date:
    if isinstance(value, datetime):
        return value.date()
    return value


def _parse_date(raw: str) -> date | None:
    text = raw.strip()
    if not text:
        return None
    try:
        return date.fromisoformat(text)
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(text).date()
    except ValueError:
        return None
