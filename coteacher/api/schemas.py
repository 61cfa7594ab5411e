"""Pydantic request/response schemas for the CoTeacher API.

Request fields use the camelCase names the course frontend sends
(``materialId``, ``courseId``, ``recordingId``, ``audioUrl``) via aliases;
snake_case is accepted too.  Required fields are declared optional here and
checked by the services so that a missing value produces the same
``{"error": ...}`` body as every other client error, not FastAPI's
default validation payload.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from coteacher.models.chat import ChatMessage, ChatRole


class _CamelRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class IndexMaterialRequest(_CamelRequest):
    """Ask the indexer to (re)build one material's chunks."""

    material_id: str | None = Field(default=None, alias="materialId")


class IndexMaterialResponse(BaseModel):
    ok: bool = True
    chunks: int = Field(ge=0, description="Chunk rows written for the material.")


class ChatTurn(BaseModel):
    """One message of the client-held conversation."""

    role: ChatRole
    content: str | None = None

    def to_message(self) -> ChatMessage:
        return ChatMessage(role=self.role, content=self.content or "")


class CourseChatRequest(_CamelRequest):
    course_id: str | None = Field(default=None, alias="courseId")
    messages: list[ChatTurn] = Field(default_factory=list)


class CourseChatResponse(BaseModel):
    reply: str


class TranscribeRequest(_CamelRequest):
    """ClassPark: transcribe a stored lecture recording."""

    recording_id: str | None = Field(default=None, alias="recordingId")
    audio_url: str | None = Field(default=None, alias="audioUrl")


class TranscribeResponse(BaseModel):
    ok: bool = True
    transcript: str
    notes: str


class HealthResponse(BaseModel):
    """Application health check response."""

    status: str
    version: str
    providers: dict[str, Any]


class ErrorResponse(BaseModel):
    """Standard error response body.

    ``meta`` accompanies 422 no-text responses; ``details`` carries a
    store message or, for unexpected indexing failures, a traceback.
    """

    error: str
    details: str | None = None
    meta: dict[str, Any] | None = None
