"""Shared pytest fixtures for the CoTeacher test suite."""

from __future__ import annotations

import io
import zipfile
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import fitz
import pytest
import pytest_asyncio
from docx import Document

from coteacher.config.settings import Settings
from coteacher.interfaces.course_store import ICourseStore
from coteacher.interfaces.embedding_provider import IEmbeddingProvider
from coteacher.interfaces.llm_provider import ILLMProvider
from coteacher.interfaces.object_storage import IObjectStorage
from coteacher.interfaces.transcription_provider import ITranscriptionProvider
from coteacher.models.course import Material
from coteacher.providers.store.sqlite_course_store import SQLiteCourseStore

# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Settings wired to the local backends under a temp directory."""
    return Settings(
        openai_api_key="sk-test",
        openai_base_url="",
        storage_backend="local",
        local_storage_dir=str(tmp_path / "storage"),
        store_backend="sqlite",
        sqlite_db_path=str(tmp_path / "coteacher.db"),
    )


# ---------------------------------------------------------------------------
# Mock providers
# ---------------------------------------------------------------------------


def _fake_vectors(texts: list[str]) -> list[list[float]]:
    return [[float(len(text)), 1.0, 0.0] for text in texts]


@pytest.fixture
def mock_embedding_provider() -> IEmbeddingProvider:
    """Mock IEmbeddingProvider returning one 3-dim vector per input.

    ``embed`` honours the batch it is given, so the indexer's count check
    passes by default.  Override ``embed.side_effect`` for failure tests.
    """
    mock = MagicMock(spec=IEmbeddingProvider)
    mock.get_provider_name.return_value = "mock-embedding"
    mock.is_available.return_value = True
    mock.get_dimension.return_value = 3
    mock.embed = AsyncMock(side_effect=_fake_vectors)
    mock.embed_single = AsyncMock(return_value=[1.0, 0.0, 0.0])
    return mock


@pytest.fixture
def mock_llm_provider() -> ILLMProvider:
    """Mock ILLMProvider with a fixed completion."""
    mock = MagicMock(spec=ILLMProvider)
    mock.get_provider_name.return_value = "mock-llm"
    mock.is_available.return_value = True
    mock.complete = AsyncMock(return_value="Week 3 covers recursion.")
    return mock


@pytest.fixture
def mock_transcriber() -> ITranscriptionProvider:
    mock = MagicMock(spec=ITranscriptionProvider)
    mock.get_provider_name.return_value = "mock-whisper"
    mock.is_available.return_value = True
    mock.transcribe = AsyncMock(return_value="Today we talk about graphs.")
    return mock


@pytest.fixture
def mock_storage() -> IObjectStorage:
    """Mock IObjectStorage serving a short plain-text file."""
    mock = MagicMock(spec=IObjectStorage)
    mock.get_provider_name.return_value = "mock-storage"
    mock.create_signed_url = AsyncMock(return_value="https://storage.test/signed?token=abc")
    mock.fetch = AsyncMock(return_value=b"Syllabus: week 1 intro, week 2 sorting.")
    return mock


@pytest.fixture
def sample_material() -> Material:
    return Material(
        id="mat-001",
        course_id="course-001",
        title="syllabus.txt",
        storage_path="course-001/syllabus.txt",
        mime_type="text/plain",
    )


@pytest.fixture
def mock_store(sample_material: Material) -> ICourseStore:
    """Mock ICourseStore that knows ``sample_material`` and accepts writes."""

    async def _replace(material_id: str, chunks: list) -> int:
        return len(chunks)

    mock = MagicMock(spec=ICourseStore)
    mock.get_provider_name.return_value = "mock-store"
    mock.get_material = AsyncMock(return_value=sample_material)
    mock.replace_material_chunks = AsyncMock(side_effect=_replace)
    mock.count_material_chunks = AsyncMock(return_value=0)
    mock.match_chunks = AsyncMock(return_value=[])
    mock.get_recording = AsyncMock(return_value=None)
    mock.update_recording = AsyncMock(return_value=None)
    return mock


# ---------------------------------------------------------------------------
# In-memory documents
# ---------------------------------------------------------------------------

_SLIDE_XML = (
    '<?xml version="1.0" encoding="UTF-8" standalone="yes"?>'
    '<p:sld xmlns:a="http://schemas.openxmlformats.org/drawingml/2006/main" '
    'xmlns:p="http://schemas.openxmlformats.org/presentationml/2006/main">'
    "<p:cSld><p:spTree><p:sp><p:txBody>{paragraphs}</p:txBody></p:sp></p:spTree></p:cSld>"
    "</p:sld>"
)


def build_pptx(slides: dict[int, list[str]]) -> bytes:
    """Minimal PPTX zip with one ``ppt/slides/slideN.xml`` part per entry.

    Parts are written in dict order so tests can check that reading order
    does not depend on archive order.
    """
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w") as archive:
        archive.writestr("[Content_Types].xml", "<Types/>")
        archive.writestr("ppt/presentation.xml", "<presentation/>")
        for number, runs in slides.items():
            paragraphs = "".join(f"<a:p><a:r><a:t>{run}</a:t></a:r></a:p>" for run in runs)
            archive.writestr(f"ppt/slides/slide{number}.xml", _SLIDE_XML.format(paragraphs=paragraphs))
    return buf.getvalue()


def build_docx(paragraphs: list[str], table: list[list[str]] | None = None) -> bytes:
    document = Document()
    for text in paragraphs:
        document.add_paragraph(text)
    if table:
        grid = document.add_table(rows=len(table), cols=len(table[0]))
        for r, row in enumerate(table):
            for c, value in enumerate(row):
                grid.cell(r, c).text = value
    buf = io.BytesIO()
    document.save(buf)
    return buf.getvalue()


def build_pdf(pages: list[str]) -> bytes:
    """PDF with one page per entry; an empty string leaves the page blank."""
    doc = fitz.open()
    for text in pages:
        page = doc.new_page()
        if text:
            page.insert_text((72, 72), text)
    data = doc.tobytes()
    doc.close()
    return data


@pytest.fixture
def sample_pptx_bytes() -> bytes:
    return build_pptx({10: ["ten"], 1: ["one", "uno"], 2: ["two"]})


@pytest.fixture
def sample_docx_bytes() -> bytes:
    return build_docx(
        ["Course overview", "Grading policy"],
        table=[["Week", "Topic"], ["1", "Recursion"]],
    )


@pytest.fixture
def sample_pdf_bytes() -> bytes:
    return build_pdf(["Lecture one: sorting", "Lecture two: graphs"])


@pytest.fixture
def blank_pdf_bytes() -> bytes:
    return build_pdf([""])


# ---------------------------------------------------------------------------
# SQLite store
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def sqlite_store(tmp_path: Path) -> SQLiteCourseStore:
    """Initialized SQLiteCourseStore backed by a temp database."""
    store = SQLiteCourseStore(db_path=tmp_path / "store.db")
    await store.initialize()
    return store


@pytest.fixture
def pdf_factory():
    return build_pdf


@pytest.fixture
def pptx_factory():
    return build_pptx
