"""RAG data models for course-material indexing and retrieval.

Pydantic v2 models for the values that flow through the pipeline:

    bytes --(extract)--> ExtractedText --(chunk + plan)--> batches of str
          --(embed)--> ChunkRecord rows --(store)--> course_kb_chunks
    question --(embed + match)--> RetrievedChunk --(compose)--> reply

All models are frozen.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class DocumentKind(str, Enum):
    """Format family of an uploaded file, resolved once before extraction."""

    TEXT = "text"
    PDF = "pdf"
    DOCX = "docx"
    PPTX = "pptx"
    UNKNOWN = "unknown"


class ExtractedText(BaseModel):
    """Normalized plain text plus the kind that produced it."""

    model_config = ConfigDict(frozen=True)

    text: str = Field(description="Whitespace-collapsed, trimmed text.")
    kind: DocumentKind = Field(description="The extractor branch that ran.")

    @property
    def is_empty(self) -> bool:
        return not self.text


class ChunkRecord(BaseModel):
    """One embedded slice of a material, as persisted in the chunk table.

    ``chunk_index`` is dense and 0-based within a material and follows the
    order in which the indexer emitted the chunk, so citations by position
    stay meaningful across batch boundaries.
    """

    model_config = ConfigDict(frozen=True)

    course_id: str
    doc_id: str = Field(description="Owning material identifier.")
    chunk_index: int = Field(ge=0)
    content: str
    embedding: list[float]
    id: str | None = Field(default=None, description="Assigned by the store on insert.")
    created_at: datetime | None = None

    def to_row(self) -> dict[str, object]:
        """Column mapping used by both store backends."""
        return {
            "course_id": self.course_id,
            "doc_id": self.doc_id,
            "chunk_index": self.chunk_index,
            "content": self.content,
            "embedding": self.embedding,
        }


class RetrievedChunk(BaseModel):
    """A chunk returned by a course-scoped similarity search."""

    model_config = ConfigDict(frozen=True)

    id: str
    content: str
    similarity: float = Field(
        default=0.0,
        description="Cosine similarity to the query; may be non-finite if the store misbehaves.",
    )


class IndexingResult(BaseModel):
    """Summary of a single ``index_material`` run."""

    model_config = ConfigDict(frozen=True)

    material_id: str
    course_id: str
    kind: DocumentKind
    chunks: int = Field(ge=0, description="Rows written for the material.")
    batches: int = Field(ge=0, description="Embedding requests issued.")
    characters: int = Field(default=0, ge=0, description="Length of the normalized text.")
    duration_seconds: float = Field(default=0.0, ge=0.0)
