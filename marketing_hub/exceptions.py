"""
Ingestion Exceptions

Error taxonomy for the webhook and CSV import paths.

Every error carries the HTTP status it surfaces as, so the API layer can
render any of them with a single exception handler:

- AuthenticationError: missing/invalid/inactive credential (401)
- ValidationError: malformed or incomplete payload (400)
- UpstreamError: vendor API (Drive, Sheets) returned non-success (vendor status)
- PersistenceError: a database write failed (500, always audited first)
- RowLevelError: one CSV row failed to insert (collected, never raised to the caller)
"""
from typing import Any, Optional


class IngestionError(Exception):
    """
    Base exception for all ingestion errors.

    Allows catching every ingestion failure with one except clause while
    keeping the specific type for status mapping.
    """

    status_code: int = 500

    def __init__(self, message: str, details: Optional[Any] = None, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.details = details
        if status_code is not None:
            self.status_code = status_code

    def to_response(self) -> dict:
        """Render as the JSON error body returned to callers."""
        body = {"error": self.message}
        if self.details is not None:
            body["details"] = self.details
        return body


class AuthenticationError(IngestionError):
    """Credential missing, unknown, inactive or not matching the stored secret."""

    status_code = 401


class ValidationError(IngestionError):
    """Payload is missing a required field or has a malformed value."""

    status_code = 400


class UpstreamError(IngestionError):
    """
    Vendor API returned a non-success response.

    Carries the vendor's status code and raw error text. Timeouts are
    reported through this class with status 504.
    """

    status_code = 502

    def __init__(self, message: str, status_code: Optional[int] = None, details: Optional[Any] = None):
        super().__init__(message, details=details, status_code=status_code)


class PersistenceError(IngestionError):
    """A write to the data store failed."""

    status_code = 500


class RowLevelError(IngestionError):
    """A single CSV row failed to insert; recorded in ImportResult.errors."""

    def __init__(self, row_number: int, message: str):
        super().__init__(f"Row {row_number}: {message}")
        self.row_number = row_number
