"""Course-material ingestion pipeline.

Stages: **extract -> chunk -> plan -> embed -> store**.

1. **Extract** (text_extractor.py / TextExtractor) -- resolves the file kind
   once from MIME, extension and content, runs one adapter from
   ``extractors/`` and collapses whitespace.
2. **Chunk** (chunker.py / TextChunker) -- 1200-character windows with
   200 characters of overlap.
3. **Plan** (batch_planner.py / BatchPlanner) -- groups chunks into
   embedding requests under the per-item and per-request token limits.
4. **Embed + store** (indexer.py / MaterialIndexer) -- one embedding call
   per batch, then a single replace of the material's chunk rows.
"""

from coteacher.services.ingestion.batch_planner import BatchPlanner
from coteacher.services.ingestion.chunker import TextChunker, chunk
from coteacher.services.ingestion.indexer import MaterialIndexer
from coteacher.services.ingestion.text_extractor import TextExtractor, resolve_kind

__all__ = [
    "BatchPlanner",
    "MaterialIndexer",
    "TextChunker",
    "TextExtractor",
    "chunk",
    "resolve_kind",
]
