"""Supabase (PostgREST) implementation of :class:`ICourseStore`.

All access goes through ``{SUPABASE_URL}/rest/v1`` with the service-role
key.  Similarity search is delegated to the ``match_course_chunks``
Postgres function (pgvector), called through PostgREST's ``rpc`` route.

PostgREST has no multi-request transactions, so
:meth:`replace_material_chunks` compensates instead: on a failed insert it
deletes whatever rows of the material it already wrote before raising.
"""

from __future__ import annotations

from typing import Any

import httpx
import structlog

from coteacher.interfaces.course_store import ICourseStore
from coteacher.models.course import Material, Recording, RecordingStatus
from coteacher.models.rag import ChunkRecord, RetrievedChunk
from coteacher.utils.errors import PersistenceError, UpstreamServiceError

logger = structlog.get_logger(logger_name=__name__)

_MATERIALS_TABLE = "course_materials"
_CHUNKS_TABLE = "course_kb_chunks"
_RECORDINGS_TABLE = "class_recordings"
_MATCH_FUNCTION = "match_course_chunks"

_MATERIAL_COLUMNS = "id,course_id,title,storage_path,mime_type"

# Rows per insert request; 1536-float vectors make large bodies quickly.
_INSERT_GROUP_SIZE = 200


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}"
    if isinstance(body, dict):
        return str(body.get("message") or body.get("error") or body)
    return str(body)


class SupabaseCourseStore(ICourseStore):
    """Course store backed by Supabase Postgres + pgvector.

    Parameters
    ----------
    http_client:
        Shared client owned by the application lifespan.
    supabase_url:
        Project URL, e.g. ``https://abc.supabase.co``.
    service_role_key:
        Key used both as ``apikey`` and bearer token.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        supabase_url: str,
        service_role_key: str,
    ) -> None:
        self._http = http_client
        self._rest_url = f"{supabase_url.rstrip('/')}/rest/v1"
        self._headers = {
            "apikey": service_role_key,
            "Authorization": f"Bearer {service_role_key}",
        }

    # ------------------------------------------------------------------
    # Materials
    # ------------------------------------------------------------------

    async def get_material(self, material_id: str) -> Material | None:
        response = await self._request(
            "GET",
            _MATERIALS_TABLE,
            params={"id": f"eq.{material_id}", "select": _MATERIAL_COLUMNS, "limit": "1"},
        )
        if response.status_code >= 400:
            raise UpstreamServiceError(
                message=_error_message(response),
                provider_name=self.get_provider_name(),
            )
        rows = response.json()
        if not rows:
            return None
        row = rows[0]
        return Material(
            id=str(row["id"]),
            course_id=str(row["course_id"]),
            title=row.get("title") or "",
            storage_path=row.get("storage_path") or "",
            mime_type=row.get("mime_type") or "",
        )

    # ------------------------------------------------------------------
    # Chunks
    # ------------------------------------------------------------------

    async def replace_material_chunks(
        self,
        material_id: str,
        chunks: list[ChunkRecord],
    ) -> int:
        await self._delete_chunks(material_id)

        rows = [chunk.to_row() for chunk in chunks]
        written = 0
        try:
            for start in range(0, len(rows), _INSERT_GROUP_SIZE):
                group = rows[start : start + _INSERT_GROUP_SIZE]
                response = await self._request(
                    "POST",
                    _CHUNKS_TABLE,
                    json=group,
                    headers={"Prefer": "return=minimal"},
                )
                if response.status_code >= 400:
                    raise PersistenceError(
                        message=_error_message(response),
                        provider_name=self.get_provider_name(),
                    )
                written += len(group)
        except (PersistenceError, UpstreamServiceError) as exc:
            logger.error(
                "chunk_insert_failed",
                material_id=material_id,
                written=written,
                total=len(rows),
                error=str(exc),
            )
            if written:
                await self._compensate(material_id)
            if isinstance(exc, PersistenceError):
                raise
            raise PersistenceError(
                message=exc.message,
                provider_name=self.get_provider_name(),
            ) from exc

        logger.info("chunks_replaced", material_id=material_id, rows=written)
        return written

    async def _delete_chunks(self, material_id: str) -> None:
        response = await self._request(
            "DELETE",
            _CHUNKS_TABLE,
            params={"doc_id": f"eq.{material_id}"},
            headers={"Prefer": "return=minimal"},
        )
        if response.status_code >= 400:
            raise PersistenceError(
                message=_error_message(response),
                provider_name=self.get_provider_name(),
            )

    async def _compensate(self, material_id: str) -> None:
        """Best-effort removal of a partially written row set."""
        try:
            await self._delete_chunks(material_id)
        except (PersistenceError, UpstreamServiceError) as exc:
            logger.warning(
                "chunk_compensation_failed",
                material_id=material_id,
                error=str(exc),
            )

    async def count_material_chunks(self, material_id: str) -> int:
        response = await self._request(
            "GET",
            _CHUNKS_TABLE,
            params={"doc_id": f"eq.{material_id}", "select": "id"},
            headers={"Prefer": "count=exact", "Range-Unit": "items", "Range": "0-0"},
        )
        if response.status_code >= 400:
            raise UpstreamServiceError(
                message=_error_message(response),
                provider_name=self.get_provider_name(),
            )
        # Content-Range: "0-0/42" or "*/0"
        content_range = response.headers.get("content-range", "")
        total = content_range.rsplit("/", 1)[-1]
        return int(total) if total.isdigit() else len(response.json())

    async def match_chunks(
        self,
        query_embedding: list[float],
        top_k: int,
        threshold: float,
        course_id: str,
    ) -> list[RetrievedChunk]:
        response = await self._request(
            "POST",
            f"rpc/{_MATCH_FUNCTION}",
            json={
                "query_embedding": query_embedding,
                "match_count": top_k,
                "match_threshold": threshold,
                "in_course_id": course_id,
            },
        )
        if response.status_code >= 400:
            raise UpstreamServiceError(
                message=_error_message(response),
                provider_name=self.get_provider_name(),
            )
        return [
            RetrievedChunk(
                id=str(row.get("id", "")),
                content=row.get("content") or "",
                similarity=float(row.get("similarity") or 0.0),
            )
            for row in response.json() or []
        ]

    # ------------------------------------------------------------------
    # Recordings
    # ------------------------------------------------------------------

    async def get_recording(self, recording_id: str) -> Recording | None:
        response = await self._request(
            "GET",
            _RECORDINGS_TABLE,
            params={"id": f"eq.{recording_id}", "select": "*", "limit": "1"},
        )
        if response.status_code >= 400:
            raise UpstreamServiceError(
                message=_error_message(response),
                provider_name=self.get_provider_name(),
            )
        rows = response.json()
        if not rows:
            return None
        row = rows[0]
        status = row.get("status") or RecordingStatus.RECORDING.value
        return Recording(
            id=str(row["id"]),
            course_id=str(row["course_id"]) if row.get("course_id") else None,
            title=row.get("title") or "",
            audio_url=row.get("audio_url") or "",
            status=RecordingStatus(status),
            transcript=row.get("transcript"),
            notes=row.get("notes"),
        )

    async def update_recording(self, recording_id: str, fields: dict[str, Any]) -> None:
        payload = {
            key: value.value if isinstance(value, RecordingStatus) else value
            for key, value in fields.items()
        }
        response = await self._request(
            "PATCH",
            _RECORDINGS_TABLE,
            params={"id": f"eq.{recording_id}"},
            json=payload,
            headers={"Prefer": "return=minimal"},
        )
        if response.status_code >= 400:
            raise PersistenceError(
                message=_error_message(response),
                provider_name=self.get_provider_name(),
            )

    # ------------------------------------------------------------------
    # Plumbing
    # ------------------------------------------------------------------

    async def _request(
        self,
        method: str,
        path: str,
        params: dict[str, str] | None = None,
        json: Any = None,
        headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        try:
            return await self._http.request(
                method,
                f"{self._rest_url}/{path}",
                params=params,
                json=json,
                headers={**self._headers, **(headers or {})},
            )
        except httpx.HTTPError as exc:
            raise UpstreamServiceError(
                message=f"Supabase request failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

    def get_provider_name(self) -> str:
        return "supabase"
