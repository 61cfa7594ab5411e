"""Abstract base class for per-format text extraction adapters.

Each adapter wraps exactly one parsing library and absorbs that library's
quirks (return shapes, exception types) so the dispatcher in
``coteacher.services.ingestion.text_extractor`` only ever sees
``bytes -> str``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from coteacher.models.rag import DocumentKind


# Concrete implementations: PlainTextExtractor, PyMuPDFExtractor,
# DocxExtractor, PptxSlideExtractor
# Located in: coteacher/services/ingestion/extractors/
class ITextExtractor(ABC):
    """Contract for turning one file format into raw text."""

    kind: DocumentKind

    @abstractmethod
    def extract(self, data: bytes) -> str:
        """Return the raw (not yet normalized) text content of *data*.

        Raises
        ------
        coteacher.utils.errors.ExtractionError
            If *data* is not a valid instance of the adapter's format.
        """
