"""Custom exception hierarchy for CoTeacher.

All application exceptions inherit from :class:`CoTeacherError`, which
carries an optional ``provider_name`` so error handlers can identify which
external service (e.g. "openai", "supabase_storage", "sqlite") caused the
failure, and a ``status_code`` the API layer uses when translating the
error into an HTTP response.

The hierarchy is organized by pipeline domain:

    CoTeacherError  (base -- catch-all for any CoTeacher error)
    +-- ValidationError           (400: malformed request input)
    +-- NotFoundError             (404: material / recording absent)
    +-- IndexingInProgressError   (409: material already being indexed)
    +-- NoTextExtractedError      (422: nothing to index)
    |   +-- OcrRequiredError      (422: image-only PDF)
    +-- ExtractionError           (500: corrupt file for its format)
    +-- UpstreamServiceError      (500: storage / embedding / generation)
    |   +-- QuotaExceededError    (429: provider credits exhausted)
    +-- PersistenceError          (500: chunk or recording write failed)
    +-- ConfigurationError        (startup / missing config)

Errors are raised by the component that detects them and translated exactly
once, at the HTTP boundary (see ``coteacher.api.middleware``).
"""

from __future__ import annotations

from typing import Any


class CoTeacherError(Exception):
    """Base exception for all CoTeacher errors.

    Every subclass carries a human-readable ``message`` and an optional
    ``provider_name`` identifying which external service triggered the
    error.  The ``__str__`` method prefixes the provider name in brackets
    for structured log output, e.g. ``[openai] Rate limit exceeded``.
    """

    status_code: int = 500

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        provider_name: str | None = None,
    ) -> None:
        self._message = message
        self._provider_name = provider_name
        super().__init__(self._message)

    @property
    def message(self) -> str:
        return self._message

    @property
    def provider_name(self) -> str | None:
        return self._provider_name

    def response_extra(self) -> dict[str, Any]:
        """Extra JSON fields merged into the error response body."""
        return {}

    def __str__(self) -> str:
        if self._provider_name:
            return f"[{self._provider_name}] {self._message}"
        return self._message


# ---------------------------------------------------------------------------
# Client-facing input errors
# ---------------------------------------------------------------------------

class ValidationError(CoTeacherError):
    """Raised when a required request field is missing or malformed."""

    status_code = 400

    def __init__(
        self,
        message: str = "Invalid request",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class NotFoundError(CoTeacherError):
    """Raised when a referenced material or recording does not exist."""

    status_code = 404

    def __init__(
        self,
        message: str = "Not found",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class IndexingInProgressError(CoTeacherError):
    """Raised when a second indexing run is requested for a busy material."""

    status_code = 409

    def __init__(
        self,
        message: str = "Material is already being indexed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Extraction errors
# ---------------------------------------------------------------------------

class NoTextExtractedError(CoTeacherError):
    """Raised when a document parsed cleanly but yielded no indexable text.

    Mapped to 422 with guidance for the uploader, never to a generic 500.
    """

    status_code = 422

    def __init__(
        self,
        message: str = (
            "No text extracted. If this is a scanned PDF, enable OCR or "
            "upload a text-based version."
        ),
        kind: str = "unknown",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)
        self._kind = kind

    @property
    def kind(self) -> str:
        return self._kind

    def response_extra(self) -> dict[str, Any]:
        return {"meta": {"kind": self._kind}}


class OcrRequiredError(NoTextExtractedError):
    """Raised when a PDF has no selectable text layer (scanned / image-only)."""

    def __init__(
        self,
        message: str = (
            "PDF appears to have no selectable text (likely scanned / OCR "
            "required). Enable OCR or upload a text-based version."
        ),
        kind: str = "pdf",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, kind=kind, provider_name=provider_name)


class ExtractionError(CoTeacherError):
    """Raised when a file cannot be parsed as its detected format."""

    def __init__(
        self,
        message: str = "Text extraction failed",
        kind: str = "unknown",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)
        self._kind = kind

    @property
    def kind(self) -> str:
        return self._kind


# ---------------------------------------------------------------------------
# External service / provider errors
# ---------------------------------------------------------------------------

class UpstreamServiceError(CoTeacherError):
    """Raised when storage, embedding, generation or transcription fails."""

    def __init__(
        self,
        message: str = "Upstream service call failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class QuotaExceededError(UpstreamServiceError):
    """Raised when the model provider reports exhausted credits."""

    status_code = 429

    def __init__(
        self,
        message: str = "No remaining OpenAI credits.",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class PersistenceError(CoTeacherError):
    """Raised when writing chunk or recording rows fails.

    ``details`` carries the store's own message when ``message`` is a
    fixed client-facing summary.
    """

    def __init__(
        self,
        message: str = "Database write failed",
        provider_name: str | None = None,
        details: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)
        self._details = details

    @property
    def details(self) -> str | None:
        return self._details

    def response_extra(self) -> dict[str, Any]:
        return {"details": self._details} if self._details else {}


# ---------------------------------------------------------------------------
# Configuration errors
# ---------------------------------------------------------------------------

class ConfigurationError(CoTeacherError):
    """Raised when configuration is invalid or missing at startup."""

    def __init__(
        self,
        message: str = "Invalid or missing configuration",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)
