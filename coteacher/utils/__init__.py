"""Utility modules for CoTeacher.

- **errors** -- Exception taxonomy rooted at CoTeacherError; each class
  carries the HTTP status the API layer answers with.
- **logging** -- structlog setup with a dual renderer: coloured console
  output in development, structured JSON in production.
- **text_normalizer** -- Whitespace collapsing, natural sort keys and the
  character-based token estimate used by the batch planner.
- **concurrency** -- KeyedGuard, the per-material indexing lock.
"""

from coteacher.utils.concurrency import KeyedGuard
from coteacher.utils.errors import (
    ConfigurationError,
    CoTeacherError,
    ExtractionError,
    IndexingInProgressError,
    NoTextExtractedError,
    NotFoundError,
    OcrRequiredError,
    PersistenceError,
    QuotaExceededError,
    UpstreamServiceError,
    ValidationError,
)
from coteacher.utils.logging import configure_logging, get_logger
from coteacher.utils.text_normalizer import collapse_whitespace, estimate_tokens, natural_sort_key

__all__ = [
    "ConfigurationError",
    "CoTeacherError",
    "ExtractionError",
    "IndexingInProgressError",
    "KeyedGuard",
    "NoTextExtractedError",
    "NotFoundError",
    "OcrRequiredError",
    "PersistenceError",
    "QuotaExceededError",
    "UpstreamServiceError",
    "ValidationError",
    "collapse_whitespace",
    "configure_logging",
    "estimate_tokens",
    "get_logger",
    "natural_sort_key",
]
