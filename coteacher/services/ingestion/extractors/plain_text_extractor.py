"""Plain text / Markdown extractor, also the best-effort fallback for unknown files."""

from __future__ import annotations

from coteacher.interfaces.text_extractor import ITextExtractor
from coteacher.models.rag import DocumentKind


class PlainTextExtractor(ITextExtractor):
    """Decodes bytes as UTF-8 (BOM tolerated); undecodable bytes become U+FFFD.

    Never raises: an unrecognised binary file yields noisy text rather than
    an error, and the caller decides whether that text is worth indexing.
    """

    def __init__(self, kind: DocumentKind = DocumentKind.TEXT) -> None:
        self.kind = kind

    def extract(self, data: bytes) -> str:
        return data.decode("utf-8-sig", errors="replace")
