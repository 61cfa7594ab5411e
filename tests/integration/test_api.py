"""Integration tests for the FastAPI endpoints using TestClient.

The app comes from ``create_app()`` so the real middleware stack and
exception handlers are exercised.  The lifespan is not entered (no
``with TestClient(...)``); services are placed on ``app.state`` directly,
built from the shared mock providers.
"""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from coteacher.main import create_app
from coteacher.models.rag import RetrievedChunk
from coteacher.services.course_chat_service import NO_INFORMATION_REPLY, CourseChatService
from coteacher.services.ingestion.indexer import MaterialIndexer
from coteacher.services.transcription_service import TranscriptionService
from coteacher.utils.errors import IndexingInProgressError, PersistenceError, QuotaExceededError

_AUDIO_URL = "https://abc.supabase.co/storage/v1/object/public/class_recordings/c1/r1.webm"


@pytest.fixture
def app(
    mock_store,
    mock_storage,
    mock_embedding_provider,
    mock_llm_provider,
    mock_transcriber,
) -> FastAPI:
    application = create_app()
    application.state.indexer = MaterialIndexer(
        store=mock_store,
        storage=mock_storage,
        embedding_provider=mock_embedding_provider,
    )
    application.state.chat_service = CourseChatService(
        store=mock_store,
        embedding_provider=mock_embedding_provider,
        llm_provider=mock_llm_provider,
    )
    application.state.transcription_service = TranscriptionService(
        store=mock_store,
        storage=mock_storage,
        transcriber=mock_transcriber,
        llm_provider=mock_llm_provider,
    )
    application.state.provider_registry = {"embedding": "mock-embedding", "store": "mock-store"}
    application.state.version = "0.1.0"
    return application


@pytest.fixture
def client(app: FastAPI) -> TestClient:
    return TestClient(app)


# ======================================================================
# /index-material
# ======================================================================


class TestIndexMaterial:
    def test_success(self, client: TestClient, mock_store) -> None:
        response = client.post("/index-material", json={"materialId": "mat-001"})

        assert response.status_code == 200
        assert response.json() == {"ok": True, "chunks": 1}
        mock_store.replace_material_chunks.assert_awaited_once()

    def test_snake_case_accepted(self, client: TestClient) -> None:
        response = client.post("/index-material", json={"material_id": "mat-001"})
        assert response.status_code == 200

    def test_missing_material_id(self, client: TestClient) -> None:
        response = client.post("/index-material", json={})
        assert response.status_code == 400
        assert response.json() == {"error": "Missing materialId"}

    def test_invalid_json(self, client: TestClient) -> None:
        response = client.post(
            "/index-material",
            content=b"{not json",
            headers={"Content-Type": "application/json"},
        )
        assert response.status_code == 400
        assert response.json() == {"error": "Invalid JSON"}

    def test_material_not_found(self, client: TestClient, mock_store) -> None:
        mock_store.get_material = AsyncMock(return_value=None)
        response = client.post("/index-material", json={"materialId": "ghost"})
        assert response.status_code == 404
        assert response.json() == {"error": "Material not found"}

    def test_no_text_is_422_with_kind(self, client: TestClient, mock_storage) -> None:
        mock_storage.fetch = AsyncMock(return_value=b"  \n ")
        response = client.post("/index-material", json={"materialId": "mat-001"})

        assert response.status_code == 422
        body = response.json()
        assert "No text extracted" in body["error"]
        assert body["meta"] == {"kind": "text"}

    def test_scanned_pdf_is_422(
        self, client: TestClient, mock_store, mock_storage, blank_pdf_bytes, sample_material
    ) -> None:
        mock_store.get_material = AsyncMock(
            return_value=sample_material.model_copy(
                update={"title": "scan.pdf", "mime_type": "application/pdf"}
            )
        )
        mock_storage.fetch = AsyncMock(return_value=blank_pdf_bytes)

        response = client.post("/index-material", json={"materialId": "mat-001"})

        assert response.status_code == 422
        assert response.json()["meta"] == {"kind": "pdf"}
        assert "OCR" in response.json()["error"]

    def test_quota_is_429(self, client: TestClient, mock_embedding_provider) -> None:
        mock_embedding_provider.embed = AsyncMock(side_effect=QuotaExceededError())
        response = client.post("/index-material", json={"materialId": "mat-001"})
        assert response.status_code == 429
        assert response.json() == {"error": "No remaining OpenAI credits."}

    def test_persistence_failure_is_500(self, client: TestClient, mock_store) -> None:
        mock_store.replace_material_chunks = AsyncMock(
            side_effect=PersistenceError("Chunk insert failed: disk full")
        )
        response = client.post("/index-material", json={"materialId": "mat-001"})
        assert response.status_code == 500
        assert response.json()["error"] == "Chunk insert failed: disk full"

    def test_unexpected_error_includes_traceback(self, client: TestClient, mock_storage) -> None:
        mock_storage.fetch = AsyncMock(side_effect=RuntimeError("parser exploded"))
        response = client.post("/index-material", json={"materialId": "mat-001"})

        assert response.status_code == 500
        body = response.json()
        assert body["error"] == "parser exploded"
        assert "Traceback" in body["details"]
        assert "RuntimeError" in body["details"]

    def test_concurrent_run_is_409(self, app: FastAPI, client: TestClient) -> None:
        app.state.indexer = MagicMock()
        app.state.indexer.index_material = AsyncMock(side_effect=IndexingInProgressError())
        response = client.post("/index-material", json={"materialId": "mat-001"})
        assert response.status_code == 409


# ======================================================================
# /course-chat
# ======================================================================


class TestCourseChat:
    def test_reply_from_context(self, client: TestClient, mock_store) -> None:
        mock_store.match_chunks = AsyncMock(
            return_value=[RetrievedChunk(id="1", content="Week 3: recursion", similarity=0.8)]
        )
        response = client.post(
            "/course-chat",
            json={
                "courseId": "course-001",
                "messages": [
                    {"role": "user", "content": "Hi"},
                    {"role": "assistant", "content": "Hello"},
                    {"role": "user", "content": "What is week 3?"},
                ],
            },
        )

        assert response.status_code == 200
        assert response.json() == {"reply": "Week 3 covers recursion."}

    def test_no_context_reply(self, client: TestClient, mock_llm_provider) -> None:
        mock_llm_provider.complete = AsyncMock(return_value=NO_INFORMATION_REPLY)
        response = client.post(
            "/course-chat",
            json={"courseId": "course-001", "messages": [{"role": "user", "content": "?"}]},
        )
        assert response.json() == {"reply": NO_INFORMATION_REPLY}
        prompt = mock_llm_provider.complete.await_args.kwargs["user_prompt"]
        assert "(No course materials have been uploaded yet)" in prompt

    def test_missing_course_id(self, client: TestClient) -> None:
        response = client.post(
            "/course-chat", json={"messages": [{"role": "user", "content": "q"}]}
        )
        assert response.status_code == 400
        assert response.json() == {"error": "Missing courseId or user question"}

    def test_invalid_role_is_bad_request(self, client: TestClient) -> None:
        response = client.post(
            "/course-chat",
            json={"courseId": "c1", "messages": [{"role": "wizard", "content": "q"}]},
        )
        assert response.status_code == 400
        assert response.json() == {"error": "Invalid request body"}

    def test_quota_is_429(self, client: TestClient, mock_store, mock_llm_provider) -> None:
        mock_store.match_chunks = AsyncMock(
            return_value=[RetrievedChunk(id="1", content="ctx", similarity=0.5)]
        )
        mock_llm_provider.complete = AsyncMock(side_effect=QuotaExceededError())

        response = client.post(
            "/course-chat",
            json={"courseId": "c1", "messages": [{"role": "user", "content": "q"}]},
        )

        assert response.status_code == 429
        assert response.json() == {"error": "No remaining OpenAI credits."}

    def test_unexpected_error_has_no_traceback(self, client: TestClient, mock_embedding_provider) -> None:
        mock_embedding_provider.embed_single = AsyncMock(side_effect=RuntimeError("kaboom"))
        response = client.post(
            "/course-chat",
            json={"courseId": "c1", "messages": [{"role": "user", "content": "q"}]},
        )
        assert response.status_code == 500
        assert response.json() == {"error": "kaboom"}


# ======================================================================
# /classpark/transcribe
# ======================================================================


class TestTranscribe:
    def test_success(self, client: TestClient, mock_llm_provider) -> None:
        mock_llm_provider.complete = AsyncMock(return_value="# Graphs")
        response = client.post(
            "/classpark/transcribe", json={"recordingId": "r1", "audioUrl": _AUDIO_URL}
        )

        assert response.status_code == 200
        assert response.json() == {
            "ok": True,
            "transcript": "Today we talk about graphs.",
            "notes": "# Graphs",
        }

    def test_missing_fields(self, client: TestClient) -> None:
        response = client.post("/classpark/transcribe", json={"recordingId": "r1"})
        assert response.status_code == 400
        assert response.json() == {"error": "recordingId and audioUrl are required"}

    def test_invalid_audio_url(self, client: TestClient) -> None:
        response = client.post(
            "/classpark/transcribe", json={"recordingId": "r1", "audioUrl": "https://x/y.webm"}
        )
        assert response.status_code == 400
        assert response.json() == {"error": "Invalid audio URL format"}

    def test_update_failure_has_details(self, client: TestClient, mock_store) -> None:
        mock_store.update_recording = AsyncMock(
            side_effect=[None, PersistenceError("permission denied"), None]
        )
        response = client.post(
            "/classpark/transcribe", json={"recordingId": "r1", "audioUrl": _AUDIO_URL}
        )
        assert response.status_code == 500
        assert response.json() == {
            "error": "Failed to update recording",
            "details": "permission denied",
        }


# ======================================================================
# /health
# ======================================================================


class TestHealth:
    def test_health(self, client: TestClient) -> None:
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {
            "status": "ok",
            "version": "0.1.0",
            "providers": {"embedding": "mock-embedding", "store": "mock-store"},
        }
