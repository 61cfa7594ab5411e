"""FastAPI routes for CoTeacher.

# --- API ROUTE MAP ----------------------------------------------------
#
# Endpoint                  Method  Description
# ---------------------------------------------------------------------
# /index-material           POST    Extract, chunk, embed and store a material
# /course-chat              POST    Answer a question from a course's chunks
# /classpark/transcribe     POST    Transcribe a lecture recording into notes
# /health                   GET     Health check + provider status
#
# Services are built once by main.build_components and read from
# app.state through the Annotated Depends helpers below.  Handlers do not
# catch errors: ErrorHandlingMiddleware translates them.
# ----------------------------------------------------------------------
"""

from __future__ import annotations

from typing import Annotated, Any

import structlog
from fastapi import APIRouter, Depends, Request

from coteacher.api.schemas import (
    CourseChatRequest,
    CourseChatResponse,
    ErrorResponse,
    HealthResponse,
    IndexMaterialRequest,
    IndexMaterialResponse,
    TranscribeRequest,
    TranscribeResponse,
)
from coteacher.services.course_chat_service import CourseChatService
from coteacher.services.ingestion.indexer import MaterialIndexer
from coteacher.services.transcription_service import TranscriptionService
from coteacher.utils.errors import ValidationError
from coteacher.utils.logging import get_logger

_logger: structlog.BoundLogger = get_logger(__name__)

router = APIRouter()

_ERROR_RESPONSES: dict[int | str, dict[str, Any]] = {
    400: {"model": ErrorResponse},
    429: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
}


# ---------------------------------------------------------------------------
# Dependency injection helpers -- resolve singletons from app.state
# ---------------------------------------------------------------------------


def _get_indexer(request: Request) -> MaterialIndexer:
    """Return the material indexer from application state."""
    return request.app.state.indexer


def _get_chat_service(request: Request) -> CourseChatService:
    """Return the course chat service from application state."""
    return request.app.state.chat_service


def _get_transcription_service(request: Request) -> TranscriptionService:
    """Return the ClassPark transcription service from application state."""
    return request.app.state.transcription_service


IndexerDep = Annotated[MaterialIndexer, Depends(_get_indexer)]
ChatServiceDep = Annotated[CourseChatService, Depends(_get_chat_service)]
TranscriptionDep = Annotated[TranscriptionService, Depends(_get_transcription_service)]


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------


@router.post(
    "/index-material",
    response_model=IndexMaterialResponse,
    summary="Index an uploaded course material",
    responses={**_ERROR_RESPONSES, 404: {"model": ErrorResponse},
               409: {"model": ErrorResponse}, 422: {"model": ErrorResponse}},
)
async def index_material(body: IndexMaterialRequest, indexer: IndexerDep) -> IndexMaterialResponse:
    """Replace the material's chunks with a fresh index of its current file."""
    if not body.material_id:
        raise ValidationError(message="Missing materialId")
    result = await indexer.index_material(body.material_id)
    return IndexMaterialResponse(ok=True, chunks=result.chunks)


@router.post(
    "/course-chat",
    response_model=CourseChatResponse,
    summary="Answer a student question from course materials",
    responses=_ERROR_RESPONSES,
)
async def course_chat(body: CourseChatRequest, chat_service: ChatServiceDep) -> CourseChatResponse:
    reply = await chat_service.answer(
        body.course_id or "",
        [turn.to_message() for turn in body.messages],
    )
    return CourseChatResponse(reply=reply)


@router.post(
    "/classpark/transcribe",
    response_model=TranscribeResponse,
    summary="Transcribe a lecture recording and generate notes",
    responses=_ERROR_RESPONSES,
)
async def transcribe_recording(
    body: TranscribeRequest,
    transcription_service: TranscriptionDep,
) -> TranscribeResponse:
    notes = await transcription_service.process_recording(
        body.recording_id or "",
        body.audio_url or "",
    )
    return TranscribeResponse(ok=True, transcript=notes.transcript, notes=notes.notes)


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Application health check",
)
async def health_check(request: Request) -> HealthResponse:
    """Return application status, version, and the configured providers."""
    providers: dict[str, Any] = dict(getattr(request.app.state, "provider_registry", {}))
    return HealthResponse(
        status="ok",
        version=getattr(request.app.state, "version", "0.1.0"),
        providers=providers,
    )
