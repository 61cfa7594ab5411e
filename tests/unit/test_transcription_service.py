"""Unit tests for the ClassPark TranscriptionService."""

from __future__ import annotations

from unittest.mock import AsyncMock, call

import pytest

from coteacher.models.course import RecordingStatus
from coteacher.services.transcription_service import (
    NOTES_SYSTEM_PROMPT,
    TranscriptionService,
    build_notes_prompt,
    storage_path_from_audio_url,
)
from coteacher.utils.errors import PersistenceError, UpstreamServiceError, ValidationError

_AUDIO_URL = (
    "https://abc.supabase.co/storage/v1/object/public/class_recordings/course-001/rec-1.webm"
)


class TestStoragePathFromAudioUrl:
    def test_extracts_path_after_bucket(self) -> None:
        assert storage_path_from_audio_url(_AUDIO_URL, "class_recordings") == "course-001/rec-1.webm"

    @pytest.mark.parametrize(
        "url",
        [
            "https://abc.supabase.co/storage/v1/object/public/other/rec.webm",
            "https://abc.supabase.co/storage/v1/object/public/class_recordings/",
            "https://x/class_recordings/a/class_recordings/b.webm",
        ],
    )
    def test_invalid_urls_rejected(self, url: str) -> None:
        with pytest.raises(ValidationError, match="Invalid audio URL format"):
            storage_path_from_audio_url(url, "class_recordings")


class TestBuildNotesPrompt:
    def test_transcript_embedded(self) -> None:
        prompt = build_notes_prompt("graphs are sets of vertices")
        assert "Transcript:\ngraphs are sets of vertices\n" in prompt
        assert prompt.endswith("Generate the structured notes:")


class TestTranscriptionService:
    @pytest.fixture()
    def service(
        self, mock_store, mock_storage, mock_transcriber, mock_llm_provider
    ) -> TranscriptionService:
        mock_storage.fetch = AsyncMock(return_value=b"\x1aE\xdf\xa3webm-audio")
        mock_llm_provider.complete = AsyncMock(return_value="# Graphs\n- vertices")
        return TranscriptionService(
            store=mock_store,
            storage=mock_storage,
            transcriber=mock_transcriber,
            llm_provider=mock_llm_provider,
        )

    @pytest.mark.asyncio
    async def test_happy_path(
        self, service, mock_store, mock_storage, mock_transcriber, mock_llm_provider
    ) -> None:
        notes = await service.process_recording("rec-1", _AUDIO_URL)

        assert notes.recording_id == "rec-1"
        assert notes.transcript == "Today we talk about graphs."
        assert notes.notes == "# Graphs\n- vertices"

        mock_storage.create_signed_url.assert_awaited_once_with(
            "class_recordings", "course-001/rec-1.webm", 60
        )
        mock_transcriber.transcribe.assert_awaited_once_with(
            b"\x1aE\xdf\xa3webm-audio", filename="recording.webm", content_type="audio/webm"
        )
        llm_kwargs = mock_llm_provider.complete.await_args.kwargs
        assert llm_kwargs["system_prompt"] == NOTES_SYSTEM_PROMPT
        assert llm_kwargs["temperature"] == 0.7
        assert "Today we talk about graphs." in llm_kwargs["user_prompt"]

        assert mock_store.update_recording.await_args_list == [
            call("rec-1", {"status": RecordingStatus.PROCESSING}),
            call(
                "rec-1",
                {
                    "transcript": "Today we talk about graphs.",
                    "notes": "# Graphs\n- vertices",
                    "status": RecordingStatus.COMPLETED,
                },
            ),
        ]

    @pytest.mark.asyncio
    @pytest.mark.parametrize(("recording_id", "audio_url"), [("", _AUDIO_URL), ("rec-1", "")])
    async def test_missing_fields_rejected_without_side_effects(
        self, service, mock_store, recording_id, audio_url
    ) -> None:
        with pytest.raises(ValidationError, match="recordingId and audioUrl are required"):
            await service.process_recording(recording_id, audio_url)
        mock_store.update_recording.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_bad_url_marks_failed(self, service, mock_store, mock_storage) -> None:
        with pytest.raises(ValidationError, match="Invalid audio URL format"):
            await service.process_recording("rec-1", "https://elsewhere/rec.webm")

        mock_storage.create_signed_url.assert_not_awaited()
        assert mock_store.update_recording.await_args_list[-1] == call(
            "rec-1", {"status": RecordingStatus.FAILED}
        )

    @pytest.mark.asyncio
    async def test_transcription_failure_marks_failed(
        self, service, mock_store, mock_transcriber, mock_llm_provider
    ) -> None:
        mock_transcriber.transcribe = AsyncMock(side_effect=UpstreamServiceError("whisper down"))

        with pytest.raises(UpstreamServiceError, match="whisper down"):
            await service.process_recording("rec-1", _AUDIO_URL)

        mock_llm_provider.complete.assert_not_awaited()
        assert mock_store.update_recording.await_args_list[-1] == call(
            "rec-1", {"status": RecordingStatus.FAILED}
        )

    @pytest.mark.asyncio
    async def test_final_update_failure_reported(self, service, mock_store) -> None:
        mock_store.update_recording = AsyncMock(
            side_effect=[None, PersistenceError("row locked"), None]
        )

        with pytest.raises(PersistenceError) as exc_info:
            await service.process_recording("rec-1", _AUDIO_URL)

        assert exc_info.value.message == "Failed to update recording"
        assert exc_info.value.response_extra() == {"details": "row locked"}
        assert mock_store.update_recording.await_count == 3

    @pytest.mark.asyncio
    async def test_mark_failed_error_does_not_mask_original(
        self, service, mock_store, mock_transcriber
    ) -> None:
        mock_transcriber.transcribe = AsyncMock(side_effect=UpstreamServiceError("whisper down"))
        mock_store.update_recording = AsyncMock(
            side_effect=[None, PersistenceError("db unavailable")]
        )

        with pytest.raises(UpstreamServiceError, match="whisper down"):
            await service.process_recording("rec-1", _AUDIO_URL)
