"""Abstract base class for the relational + vector store behind CoTeacher.

One store holds three tables the service cares about:

* ``course_materials`` -- read-only here; written by the course frontend.
* ``course_kb_chunks`` -- written only by the indexer, read by chat.
* ``class_recordings`` -- read and status-updated by the transcription
  service.

Chunk writes are per material and replace-only: the indexer hands over
the complete, ordered row set and the store makes it visible all at once
(or as close to that as the backend allows).
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from coteacher.models.course import Material, Recording
from coteacher.models.rag import ChunkRecord, RetrievedChunk


# Concrete implementations: SupabaseCourseStore, SQLiteCourseStore
# Located in: coteacher/providers/store/
class ICourseStore(ABC):
    """Contract for material lookup, chunk persistence and similarity search."""

    @abstractmethod
    async def get_material(self, material_id: str) -> Material | None:
        """Return the material row, or ``None`` if it does not exist.

        Raises
        ------
        coteacher.utils.errors.UpstreamServiceError
            If the store cannot be queried.
        """

    @abstractmethod
    async def replace_material_chunks(
        self,
        material_id: str,
        chunks: list[ChunkRecord],
    ) -> int:
        """Replace every stored chunk of *material_id* with *chunks*.

        Parameters
        ----------
        material_id:
            The material whose previous chunks are removed.
        chunks:
            The new rows, ``chunk_index`` forming ``0..N-1`` in order.

        Returns
        -------
        int
            Number of rows written.

        Raises
        ------
        coteacher.utils.errors.PersistenceError
            If the write fails.  Implementations must not leave a partial
            row set for the material behind when they raise.
        """

    @abstractmethod
    async def count_material_chunks(self, material_id: str) -> int:
        """Return how many chunk rows the material currently has."""

    @abstractmethod
    async def match_chunks(
        self,
        query_embedding: list[float],
        top_k: int,
        threshold: float,
        course_id: str,
    ) -> list[RetrievedChunk]:
        """Similarity search scoped to one course.

        Returns at most *top_k* chunks whose similarity exceeds
        *threshold*, ordered by similarity descending.

        Raises
        ------
        coteacher.utils.errors.UpstreamServiceError
            If the search backend fails.
        """

    @abstractmethod
    async def get_recording(self, recording_id: str) -> Recording | None:
        """Return the recording row, or ``None`` if it does not exist."""

    @abstractmethod
    async def update_recording(self, recording_id: str, fields: dict[str, Any]) -> None:
        """Update columns of a recording row.

        Raises
        ------
        coteacher.utils.errors.PersistenceError
            If the update fails.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier, e.g. ``"sqlite"``."""
