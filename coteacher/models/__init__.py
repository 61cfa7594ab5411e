"""CoTeacher domain models -- re-exports all public model classes.

Submodules by concern:
    - course.py -- Materials, lecture recordings and their lifecycle
    - rag.py    -- Extraction output, chunk rows, retrieval hits, run summaries
    - chat.py   -- Conversation turns for the course chat endpoint
"""

from __future__ import annotations

from coteacher.models.chat import ChatMessage, ChatRole, latest_user_question
from coteacher.models.course import LectureNotes, Material, Recording, RecordingStatus
from coteacher.models.rag import (
    ChunkRecord,
    DocumentKind,
    ExtractedText,
    IndexingResult,
    RetrievedChunk,
)

__all__ = [
    "ChatMessage",
    "ChatRole",
    "ChunkRecord",
    "DocumentKind",
    "ExtractedText",
    "IndexingResult",
    "LectureNotes",
    "Material",
    "Recording",
    "RecordingStatus",
    "RetrievedChunk",
    "latest_user_question",
]
