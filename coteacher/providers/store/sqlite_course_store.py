"""SQLite-backed course store for local development and tests.

Mirrors the three Supabase tables in a single file database using
``aiosqlite`` for async I/O.  Embeddings are stored as JSON arrays and
similarity search is brute-force cosine similarity computed with numpy,
which is plenty for a handful of courses on one machine.
"""

from __future__ import annotations

import json
import uuid
from pathlib import Path
from typing import Any

import aiosqlite
import numpy as np
import structlog

from coteacher.interfaces.course_store import ICourseStore
from coteacher.models.course import Material, Recording, RecordingStatus
from coteacher.models.rag import ChunkRecord, RetrievedChunk
from coteacher.utils.errors import PersistenceError, UpstreamServiceError

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_DB_PATH = Path("data/coteacher.db")

_CREATE_TABLES_SQL = [
    """\
CREATE TABLE IF NOT EXISTS course_materials (
    id            TEXT PRIMARY KEY,
    course_id     TEXT NOT NULL,
    title         TEXT NOT NULL DEFAULT '',
    storage_path  TEXT NOT NULL,
    mime_type     TEXT NOT NULL DEFAULT '',
    created_at    TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%fZ', 'now'))
);
""",
    """\
CREATE TABLE IF NOT EXISTS course_kb_chunks (
    id           INTEGER PRIMARY KEY AUTOINCREMENT,
    course_id    TEXT    NOT NULL,
    doc_id       TEXT    NOT NULL,
    chunk_index  INTEGER NOT NULL,
    content      TEXT    NOT NULL,
    embedding    TEXT    NOT NULL,
    created_at   TEXT    NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%fZ', 'now')),
    UNIQUE(doc_id, chunk_index)
);
""",
    """\
CREATE TABLE IF NOT EXISTS class_recordings (
    id          TEXT PRIMARY KEY,
    course_id   TEXT,
    title       TEXT NOT NULL DEFAULT '',
    audio_url   TEXT NOT NULL DEFAULT '',
    status      TEXT NOT NULL DEFAULT 'recording',
    transcript  TEXT,
    notes       TEXT,
    created_at  TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%fZ', 'now'))
);
""",
]

_CREATE_INDICES_SQL = [
    "CREATE INDEX IF NOT EXISTS idx_chunks_course ON course_kb_chunks(course_id);",
    "CREATE INDEX IF NOT EXISTS idx_chunks_doc ON course_kb_chunks(doc_id);",
]

_INSERT_CHUNK_SQL = """\
INSERT INTO course_kb_chunks (course_id, doc_id, chunk_index, content, embedding)
VALUES (?, ?, ?, ?, ?);
"""

_RECORDING_COLUMNS = frozenset({"course_id", "title", "audio_url", "status", "transcript", "notes"})


class SQLiteCourseStore(ICourseStore):
    """SQLite persistence for materials, chunks and recordings."""

    def __init__(self, db_path: str | Path = _DEFAULT_DB_PATH) -> None:
        self._db_path = Path(db_path)

    async def initialize(self) -> None:
        """Create the tables and indices if they don't exist."""
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        async with aiosqlite.connect(str(self._db_path)) as db:
            for table_sql in _CREATE_TABLES_SQL:
                await db.execute(table_sql)
            for idx_sql in _CREATE_INDICES_SQL:
                await db.execute(idx_sql)
            await db.commit()
        logger.info("course_store_initialized", path=str(self._db_path))

    # ------------------------------------------------------------------
    # Seeding helpers (CLI and tests)
    # ------------------------------------------------------------------

    async def add_material(
        self,
        course_id: str,
        storage_path: str,
        title: str = "",
        mime_type: str = "",
        material_id: str | None = None,
    ) -> Material:
        material = Material(
            id=material_id or str(uuid.uuid4()),
            course_id=course_id,
            title=title,
            storage_path=storage_path,
            mime_type=mime_type,
        )
        async with aiosqlite.connect(str(self._db_path)) as db:
            await db.execute(
                "INSERT INTO course_materials (id, course_id, title, storage_path, mime_type) "
                "VALUES (?, ?, ?, ?, ?)",
                (material.id, material.course_id, material.title, material.storage_path,
                 material.mime_type),
            )
            await db.commit()
        logger.info("material_added", material_id=material.id, course_id=course_id)
        return material

    async def add_recording(
        self,
        course_id: str | None = None,
        audio_url: str = "",
        title: str = "",
        recording_id: str | None = None,
    ) -> Recording:
        recording = Recording(
            id=recording_id or str(uuid.uuid4()),
            course_id=course_id,
            title=title,
            audio_url=audio_url,
        )
        async with aiosqlite.connect(str(self._db_path)) as db:
            await db.execute(
                "INSERT INTO class_recordings (id, course_id, title, audio_url, status) "
                "VALUES (?, ?, ?, ?, ?)",
                (recording.id, recording.course_id, recording.title, recording.audio_url,
                 recording.status.value),
            )
            await db.commit()
        return recording

    # ------------------------------------------------------------------
    # ICourseStore implementation
    # ------------------------------------------------------------------

    async def get_material(self, material_id: str) -> Material | None:
        async with aiosqlite.connect(str(self._db_path)) as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute(
                "SELECT id, course_id, title, storage_path, mime_type "
                "FROM course_materials WHERE id = ?",
                (material_id,),
            )
            row = await cursor.fetchone()
        if row is None:
            return None
        return Material(**dict(row))

    async def replace_material_chunks(
        self,
        material_id: str,
        chunks: list[ChunkRecord],
    ) -> int:
        params = [
            (c.course_id, c.doc_id, c.chunk_index, c.content, json.dumps(c.embedding))
            for c in chunks
        ]
        try:
            async with aiosqlite.connect(str(self._db_path)) as db:
                try:
                    await db.execute(
                        "DELETE FROM course_kb_chunks WHERE doc_id = ?", (material_id,)
                    )
                    await db.executemany(_INSERT_CHUNK_SQL, params)
                    await db.commit()
                except aiosqlite.Error:
                    await db.rollback()
                    raise
        except aiosqlite.Error as exc:
            logger.error("chunk_replace_failed", material_id=material_id, error=str(exc))
            raise PersistenceError(
                message=f"Chunk insert failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        logger.info("chunks_replaced", material_id=material_id, rows=len(params))
        return len(params)

    async def count_material_chunks(self, material_id: str) -> int:
        async with aiosqlite.connect(str(self._db_path)) as db:
            cursor = await db.execute(
                "SELECT COUNT(*) FROM course_kb_chunks WHERE doc_id = ?", (material_id,)
            )
            row = await cursor.fetchone()
        return int(row[0]) if row else 0

    async def list_material_chunks(self, material_id: str) -> list[ChunkRecord]:
        """Return a material's chunks ordered by ``chunk_index``."""
        async with aiosqlite.connect(str(self._db_path)) as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute(
                "SELECT id, course_id, doc_id, chunk_index, content, embedding "
                "FROM course_kb_chunks WHERE doc_id = ? ORDER BY chunk_index",
                (material_id,),
            )
            rows = await cursor.fetchall()
        return [
            ChunkRecord(
                id=str(r["id"]),
                course_id=r["course_id"],
                doc_id=r["doc_id"],
                chunk_index=r["chunk_index"],
                content=r["content"],
                embedding=json.loads(r["embedding"]),
            )
            for r in rows
        ]

    async def match_chunks(
        self,
        query_embedding: list[float],
        top_k: int,
        threshold: float,
        course_id: str,
    ) -> list[RetrievedChunk]:
        try:
            async with aiosqlite.connect(str(self._db_path)) as db:
                cursor = await db.execute(
                    "SELECT id, content, embedding FROM course_kb_chunks WHERE course_id = ?",
                    (course_id,),
                )
                rows = await cursor.fetchall()
        except aiosqlite.Error as exc:
            raise UpstreamServiceError(
                message=str(exc),
                provider_name=self.get_provider_name(),
            ) from exc

        if not rows or top_k <= 0:
            return []

        matrix = np.array([json.loads(r[2]) for r in rows], dtype=np.float64)
        query = np.asarray(query_embedding, dtype=np.float64)
        if matrix.ndim != 2 or matrix.shape[1] != query.shape[0]:
            raise UpstreamServiceError(
                message=(
                    f"Embedding dimension mismatch: stored {matrix.shape[-1]}, "
                    f"query {query.shape[0]}"
                ),
                provider_name=self.get_provider_name(),
            )

        norms = np.linalg.norm(matrix, axis=1) * np.linalg.norm(query)
        with np.errstate(divide="ignore", invalid="ignore"):
            scores = np.where(norms > 0, (matrix @ query) / norms, 0.0)

        order = np.argsort(-scores, kind="stable")
        results: list[RetrievedChunk] = []
        for idx in order:
            score = float(scores[idx])
            if score <= threshold:
                break
            results.append(
                RetrievedChunk(id=str(rows[idx][0]), content=rows[idx][1], similarity=score)
            )
            if len(results) >= top_k:
                break
        return results

    async def get_recording(self, recording_id: str) -> Recording | None:
        async with aiosqlite.connect(str(self._db_path)) as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute(
                "SELECT id, course_id, title, audio_url, status, transcript, notes "
                "FROM class_recordings WHERE id = ?",
                (recording_id,),
            )
            row = await cursor.fetchone()
        if row is None:
            return None
        return Recording(**dict(row))

    async def update_recording(self, recording_id: str, fields: dict[str, Any]) -> None:
        unknown = set(fields) - _RECORDING_COLUMNS
        if unknown:
            raise PersistenceError(
                message=f"Unknown recording columns: {sorted(unknown)}",
                provider_name=self.get_provider_name(),
            )
        if not fields:
            return
        columns = list(fields)
        values = [
            fields[c].value if isinstance(fields[c], RecordingStatus) else fields[c]
            for c in columns
        ]
        assignments = ", ".join(f"{c} = ?" for c in columns)
        try:
            async with aiosqlite.connect(str(self._db_path)) as db:
                await db.execute(
                    f"UPDATE class_recordings SET {assignments} WHERE id = ?",  # noqa: S608
                    (*values, recording_id),
                )
                await db.commit()
        except aiosqlite.Error as exc:
            raise PersistenceError(
                message=str(exc),
                provider_name=self.get_provider_name(),
            ) from exc

    def get_provider_name(self) -> str:
        return "sqlite"
