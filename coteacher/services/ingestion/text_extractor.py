"""Kind resolution and extractor dispatch for uploaded course materials.

The declared MIME type and the filename are hints supplied by the uploader
and can be missing or wrong, so the kind is resolved once, in order:

1. MIME type (``text/*``, ``*pdf*``, ``*word*``, ``*presentation*``)
2. filename extension (``.txt``, ``.md``, ``.pdf``, ``.docx``, ``.pptx``)
3. content sniffing (``%PDF-`` magic, OOXML zip layout)

and then exactly one adapter runs.  Every branch returns text through the
same whitespace collapse, so the chunker never sees format-specific
spacing.
"""

from __future__ import annotations

import io
import zipfile

import structlog

from coteacher.interfaces.text_extractor import ITextExtractor
from coteacher.models.rag import DocumentKind, ExtractedText
from coteacher.services.ingestion.extractors import (
    DocxExtractor,
    PlainTextExtractor,
    PptxSlideExtractor,
    PyMuPDFExtractor,
)
from coteacher.utils.errors import OcrRequiredError
from coteacher.utils.text_normalizer import collapse_whitespace

logger = structlog.get_logger(logger_name=__name__)

_EXTENSION_KINDS: dict[str, DocumentKind] = {
    ".txt": DocumentKind.TEXT,
    ".md": DocumentKind.TEXT,
    ".markdown": DocumentKind.TEXT,
    ".pdf": DocumentKind.PDF,
    ".docx": DocumentKind.DOCX,
    ".pptx": DocumentKind.PPTX,
}

_PDF_MAGIC = b"%PDF-"
_ZIP_MAGIC = b"PK\x03\x04"


def _kind_from_mime(mime: str) -> DocumentKind | None:
    mime = mime.strip().lower()
    if not mime:
        return None
    if mime.startswith("text/"):
        return DocumentKind.TEXT
    if "pdf" in mime:
        return DocumentKind.PDF
    if "word" in mime:
        return DocumentKind.DOCX
    if "presentation" in mime:
        return DocumentKind.PPTX
    return None


def _kind_from_filename(filename: str) -> DocumentKind | None:
    name = filename.strip().lower()
    for extension, kind in _EXTENSION_KINDS.items():
        if name.endswith(extension):
            return kind
    return None


def _kind_from_content(data: bytes) -> DocumentKind | None:
    if data.startswith(_PDF_MAGIC):
        return DocumentKind.PDF
    if data.startswith(_ZIP_MAGIC):
        try:
            with zipfile.ZipFile(io.BytesIO(data)) as archive:
                names = archive.namelist()
        except zipfile.BadZipFile:
            return None
        if any(name.startswith("word/") for name in names):
            return DocumentKind.DOCX
        if any(name.startswith("ppt/") for name in names):
            return DocumentKind.PPTX
    return None


def resolve_kind(data: bytes, mime_hint: str = "", filename_hint: str = "") -> DocumentKind:
    """Pick the extractor branch for *data*; never raises."""
    return (
        _kind_from_mime(mime_hint or "")
        or _kind_from_filename(filename_hint or "")
        or _kind_from_content(data)
        or DocumentKind.UNKNOWN
    )


class TextExtractor:
    """Turns uploaded bytes into normalized text.

    Parameters
    ----------
    extractors:
        Optional per-kind adapter overrides (tests inject fakes here).
        Kinds without an adapter fall back to best-effort text decoding.
    """

    def __init__(self, extractors: dict[DocumentKind, ITextExtractor] | None = None) -> None:
        self._extractors: dict[DocumentKind, ITextExtractor] = {
            DocumentKind.TEXT: PlainTextExtractor(DocumentKind.TEXT),
            DocumentKind.PDF: PyMuPDFExtractor(),
            DocumentKind.DOCX: DocxExtractor(),
            DocumentKind.PPTX: PptxSlideExtractor(),
            DocumentKind.UNKNOWN: PlainTextExtractor(DocumentKind.UNKNOWN),
        }
        if extractors:
            self._extractors.update(extractors)

    def extract(
        self,
        data: bytes,
        mime_hint: str = "",
        filename_hint: str = "",
    ) -> ExtractedText:
        """Extract and normalize the text content of *data*.

        Returns
        -------
        ExtractedText
            Collapsed, trimmed text and the kind that produced it.  The text
            may be empty for non-PDF kinds; callers treat that as "nothing
            to index".

        Raises
        ------
        ExtractionError
            If the file is corrupt for its resolved kind.
        OcrRequiredError
            If a PDF parsed cleanly but has no text layer.
        """
        kind = resolve_kind(data, mime_hint, filename_hint)
        extractor = self._extractors.get(kind) or self._extractors[DocumentKind.UNKNOWN]

        text = collapse_whitespace(extractor.extract(data))
        if kind is DocumentKind.PDF and not text:
            raise OcrRequiredError()

        logger.info(
            "text_extracted",
            kind=kind.value,
            mime_hint=mime_hint or None,
            filename_hint=filename_hint or None,
            bytes=len(data),
            characters=len(text),
        )
        return ExtractedText(text=text, kind=kind)
