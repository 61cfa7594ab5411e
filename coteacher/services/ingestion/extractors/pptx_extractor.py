"""PPTX (PresentationML) extraction straight from the OOXML zip.

A ``.pptx`` is a zip archive with one XML part per slide at
``ppt/slides/slideN.xml``.  Slide parts are read in natural numeric order
(``slide2`` before ``slide10``) and every ``<a:t>`` text run is collected.
Speaker notes live elsewhere (``ppt/notesSlides/``) and are not read.
"""

from __future__ import annotations

import io
import re
import xml.etree.ElementTree as ET
import zipfile

import structlog

from coteacher.interfaces.text_extractor import ITextExtractor
from coteacher.models.rag import DocumentKind
from coteacher.utils.errors import ExtractionError
from coteacher.utils.text_normalizer import natural_sort_key

logger = structlog.get_logger(logger_name=__name__)

_SLIDE_PART_RE = re.compile(r"^ppt/slides/slide\d+\.xml$")


def _local_name(tag: str) -> str:
    """Strip the ``{namespace}`` prefix ElementTree puts on qualified tags."""
    return tag.rsplit("}", 1)[-1]


class PptxSlideExtractor(ITextExtractor):
    """Slide text runs joined with spaces, slide by slide."""

    kind = DocumentKind.PPTX

    def extract(self, data: bytes) -> str:
        try:
            with zipfile.ZipFile(io.BytesIO(data)) as archive:
                slide_parts = sorted(
                    (name for name in archive.namelist() if _SLIDE_PART_RE.match(name)),
                    key=natural_sort_key,
                )
                runs: list[str] = []
                for part in slide_parts:
                    root = ET.fromstring(archive.read(part))
                    runs.extend(
                        elem.text
                        for elem in root.iter()
                        if _local_name(elem.tag) == "t" and elem.text
                    )
        except (zipfile.BadZipFile, ET.ParseError, KeyError) as exc:
            raise ExtractionError(
                message=f"PPTX extraction failed: {exc}",
                kind=self.kind.value,
            ) from exc

        logger.debug("pptx_slides_read", slides=len(slide_parts), runs=len(runs))
        return " ".join(runs)
