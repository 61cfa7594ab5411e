"""DOCX (WordprocessingML) extraction with python-docx.

Reads body paragraphs followed by table cell text.  Headers, footers,
footnotes and comments are not part of python-docx's document body and are
skipped.
"""

from __future__ import annotations

import io
import zipfile

from docx import Document
from docx.opc.exceptions import PackageNotFoundError

from coteacher.interfaces.text_extractor import ITextExtractor
from coteacher.models.rag import DocumentKind
from coteacher.utils.errors import ExtractionError


class DocxExtractor(ITextExtractor):
    """Raw text of a Word document, formatting ignored."""

    kind = DocumentKind.DOCX

    def extract(self, data: bytes) -> str:
        try:
            document = Document(io.BytesIO(data))
        except (PackageNotFoundError, zipfile.BadZipFile, KeyError, ValueError) as exc:
            raise ExtractionError(
                message=f"DOCX extraction failed: {exc}",
                kind=self.kind.value,
            ) from exc

        parts = [paragraph.text for paragraph in document.paragraphs]
        for table in document.tables:
            for row in table.rows:
                parts.extend(cell.text for cell in row.cells)
        return "\n".join(parts)
