"""ClassPark lecture transcription and note generation.

A recording goes ``recording -> processing -> completed | failed``.  The
service downloads the uploaded audio through a signed URL, transcribes it,
asks the LLM for markdown notes, and stores both on the recording row.  If
anything fails after validation the row is marked ``failed`` on a
best-effort basis and the original error is re-raised.
"""

from __future__ import annotations

import structlog

from coteacher.interfaces.course_store import ICourseStore
from coteacher.interfaces.llm_provider import ILLMProvider
from coteacher.interfaces.object_storage import IObjectStorage
from coteacher.interfaces.transcription_provider import ITranscriptionProvider
from coteacher.models.course import LectureNotes, RecordingStatus
from coteacher.utils.errors import CoTeacherError, PersistenceError, ValidationError
from coteacher.utils.logging import get_logger

logger: structlog.BoundLogger = get_logger(__name__)

NOTES_SYSTEM_PROMPT = (
    "You are an expert at creating clear, well-structured lecture notes from "
    "transcripts. Format your response as markdown."
)

_NOTES_PROMPT_TEMPLATE = """Transform the following lecture transcript into well-structured, beautiful notes.
Format it as markdown with:
- Clear headings and subheadings
- Bullet points for key concepts
- Important definitions highlighted
- Summary sections

Transcript:
{transcript}

Generate the structured notes:"""


def build_notes_prompt(transcript: str) -> str:
    return _NOTES_PROMPT_TEMPLATE.format(transcript=transcript)


def storage_path_from_audio_url(audio_url: str, bucket: str) -> str:
    """Return the object path following ``/<bucket>/`` in a public storage URL.

    >>> storage_path_from_audio_url(
    ...     "https://x.supabase.co/storage/v1/object/public/class_recordings/c1/r1.webm",
    ...     "class_recordings",
    ... )
    'c1/r1.webm'

    Raises
    ------
    ValidationError
        If the bucket segment is missing, repeated, or followed by nothing.
    """
    parts = audio_url.split(f"/{bucket}/")
    if len(parts) != 2 or not parts[1]:
        raise ValidationError(message="Invalid audio URL format")
    return parts[1]


class TranscriptionService:
    """Turns a lecture recording into a transcript and structured notes."""

    def __init__(
        self,
        store: ICourseStore,
        storage: IObjectStorage,
        transcriber: ITranscriptionProvider,
        llm_provider: ILLMProvider,
        bucket: str = "class_recordings",
        signed_url_ttl: int = 60,
        notes_temperature: float = 0.7,
    ) -> None:
        self._store = store
        self._storage = storage
        self._transcriber = transcriber
        self._llm = llm_provider
        self._bucket = bucket
        self._signed_url_ttl = signed_url_ttl
        self._notes_temperature = notes_temperature

    async def process_recording(self, recording_id: str, audio_url: str) -> LectureNotes:
        """Transcribe, summarize and store results for one recording.

        Raises
        ------
        ValidationError
            Missing identifiers or an audio URL outside the recordings bucket.
        UpstreamServiceError
            Signing, download, transcription or note generation failed.
        PersistenceError
            The final update failed (``"Failed to update recording"``).
        """
        if not recording_id or not audio_url:
            raise ValidationError(message="recordingId and audioUrl are required")

        try:
            return await self._process(recording_id, audio_url)
        except Exception as exc:  # noqa: BLE001 -- re-raised after cleanup
            logger.error(
                "recording_processing_failed",
                recording_id=recording_id,
                error=str(exc),
            )
            await self._mark_failed(recording_id)
            raise

    async def _process(self, recording_id: str, audio_url: str) -> LectureNotes:
        await self._store.update_recording(recording_id, {"status": RecordingStatus.PROCESSING})

        path = storage_path_from_audio_url(audio_url, self._bucket)
        url = await self._storage.create_signed_url(self._bucket, path, self._signed_url_ttl)
        audio = await self._storage.fetch(url)

        transcript = await self._transcriber.transcribe(
            audio, filename="recording.webm", content_type="audio/webm"
        )
        notes = await self._llm.complete(
            system_prompt=NOTES_SYSTEM_PROMPT,
            user_prompt=build_notes_prompt(transcript),
            temperature=self._notes_temperature,
        )

        try:
            await self._store.update_recording(
                recording_id,
                {
                    "transcript": transcript,
                    "notes": notes,
                    "status": RecordingStatus.COMPLETED,
                },
            )
        except PersistenceError as exc:
            raise PersistenceError(
                message="Failed to update recording",
                provider_name=exc.provider_name,
                details=exc.message,
            ) from exc

        logger.info(
            "recording_transcribed",
            recording_id=recording_id,
            audio_bytes=len(audio),
            transcript_chars=len(transcript),
            notes_chars=len(notes),
        )
        return LectureNotes(recording_id=recording_id, transcript=transcript, notes=notes)

    async def _mark_failed(self, recording_id: str) -> None:
        try:
            await self._store.update_recording(recording_id, {"status": RecordingStatus.FAILED})
        except CoTeacherError as exc:
            logger.warning(
                "recording_mark_failed_error",
                recording_id=recording_id,
                error=str(exc),
            )
