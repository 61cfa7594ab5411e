"""PDF text-layer extraction with PyMuPDF.

Only the embedded text layer is read.  A scanned PDF opens fine and simply
yields no text; telling that case apart from a corrupt file is the
dispatcher's job (it raises ``OcrRequiredError`` on empty output).
"""

from __future__ import annotations

import fitz  # PyMuPDF -- the "fitz" import name is a PyMuPDF convention
import structlog

from coteacher.interfaces.text_extractor import ITextExtractor
from coteacher.models.rag import DocumentKind
from coteacher.utils.errors import ExtractionError

logger = structlog.get_logger(logger_name=__name__)


class PyMuPDFExtractor(ITextExtractor):
    """Reads every page's text layer, in page order."""

    kind = DocumentKind.PDF

    def extract(self, data: bytes) -> str:
        try:
            doc = fitz.open(stream=data, filetype="pdf")
        except Exception as exc:  # noqa: BLE001 -- fitz raises several unrelated types
            raise ExtractionError(
                message=f"PDF extraction failed: {exc}",
                kind=self.kind.value,
            ) from exc

        try:
            pages = [page.get_text("text") for page in doc]
        except Exception as exc:  # noqa: BLE001
            raise ExtractionError(
                message=f"PDF extraction failed: {exc}",
                kind=self.kind.value,
            ) from exc
        finally:
            doc.close()

        logger.debug("pdf_pages_read", pages=len(pages))
        return "\n".join(pages)
