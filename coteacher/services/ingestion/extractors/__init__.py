"""One ITextExtractor adapter per parsing library."""

from coteacher.services.ingestion.extractors.docx_extractor import DocxExtractor
from coteacher.services.ingestion.extractors.pdf_extractor import PyMuPDFExtractor
from coteacher.services.ingestion.extractors.plain_text_extractor import PlainTextExtractor
from coteacher.services.ingestion.extractors.pptx_extractor import PptxSlideExtractor

__all__ = [
    "DocxExtractor",
    "PlainTextExtractor",
    "PptxSlideExtractor",
    "PyMuPDFExtractor",
]
