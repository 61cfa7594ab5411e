"""Course-owned artifacts consumed by the ingestion and transcription services.

Materials and recordings are created by the course-management frontend;
this service only reads materials and updates a recording's derived
fields (transcript, notes, status).  All models are frozen.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class Material(BaseModel):
    """An uploaded course document awaiting (or holding) an index."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(description="Material identifier.")
    course_id: str = Field(description="Owning course identifier.")
    title: str = Field(default="", description="Display title, usually the original filename.")
    storage_path: str = Field(description="Object path inside the materials bucket.")
    mime_type: str = Field(default="", description="Declared MIME type; a hint only.")

    @property
    def filename_hint(self) -> str:
        """Best available filename for extension-based kind detection."""
        return self.title or self.storage_path


class RecordingStatus(str, Enum):
    """Lifecycle of a ClassPark lecture recording."""

    RECORDING = "recording"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class Recording(BaseModel):
    """A lecture audio recording and the artifacts derived from it."""

    model_config = ConfigDict(frozen=True)

    id: str
    course_id: str | None = None
    title: str = ""
    audio_url: str = ""
    status: RecordingStatus = RecordingStatus.RECORDING
    transcript: str | None = None
    notes: str | None = None


class LectureNotes(BaseModel):
    """Result of transcribing a recording and summarizing it into notes."""

    model_config = ConfigDict(frozen=True)

    recording_id: str
    transcript: str
    notes: str
