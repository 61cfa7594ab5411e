"""Embedding indexer: turns one stored course material into searchable chunks.

Pipeline for ``index_material(material_id)``:

    load material -> signed URL -> fetch bytes -> extract text -> chunk
        -> plan batches -> embed (one request per batch, sequentially)
        -> replace the material's chunk rows in one store call

All collaborators are injected.  Batches are embedded strictly one after
another; ``chunk_index`` is assigned in emission order, so positions form
``0..N-1`` whatever the batch boundaries were.  Nothing is written until
every batch has been embedded, and the store swaps the material's rows in
a single call, so a failed run leaves the previous index untouched.
"""

from __future__ import annotations

import asyncio
import time
from typing import TYPE_CHECKING

import structlog

from coteacher.models.rag import ChunkRecord, IndexingResult
from coteacher.services.ingestion.batch_planner import BatchPlanner
from coteacher.services.ingestion.chunker import TextChunker
from coteacher.services.ingestion.text_extractor import TextExtractor
from coteacher.utils.concurrency import KeyedGuard
from coteacher.utils.errors import NoTextExtractedError, NotFoundError, UpstreamServiceError

if TYPE_CHECKING:
    from coteacher.interfaces.course_store import ICourseStore
    from coteacher.interfaces.embedding_provider import IEmbeddingProvider
    from coteacher.interfaces.object_storage import IObjectStorage

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_BUCKET = "course-materials"
_DEFAULT_SIGNED_URL_TTL = 60


class MaterialIndexer:
    """Orchestrates extraction, chunking, embedding and persistence for one material.

    Parameters
    ----------
    store:
        Source of material metadata and destination for chunk rows.
    storage:
        Object store holding the uploaded file bytes.
    embedding_provider:
        Must be the same provider (model) the course chat uses for queries.
    extractor, chunker, planner:
        Pipeline stages; defaults use the standard configuration.
    guard:
        Rejects a second concurrent run for the same material.
    bucket, signed_url_ttl:
        Where materials live and how long the read URL stays valid.
    """

    def __init__(
        self,
        store: ICourseStore,
        storage: IObjectStorage,
        embedding_provider: IEmbeddingProvider,
        extractor: TextExtractor | None = None,
        chunker: TextChunker | None = None,
        planner: BatchPlanner | None = None,
        guard: KeyedGuard | None = None,
        bucket: str = _DEFAULT_BUCKET,
        signed_url_ttl: int = _DEFAULT_SIGNED_URL_TTL,
    ) -> None:
        self._store = store
        self._storage = storage
        self._embedding = embedding_provider
        self._extractor = extractor or TextExtractor()
        self._chunker = chunker or TextChunker()
        self._planner = planner or BatchPlanner()
        self._guard = guard or KeyedGuard("material_indexing")
        self._bucket = bucket
        self._signed_url_ttl = signed_url_ttl

    async def index_material(self, material_id: str) -> IndexingResult:
        """Index (or re-index) a material and return a summary of the run.

        Raises
        ------
        IndexingInProgressError
            Another run for *material_id* is still in flight.
        NotFoundError
            No material row exists for *material_id*.
        NoTextExtractedError
            The file produced no text (``OcrRequiredError`` for image-only PDFs).
        ExtractionError
            The file is corrupt for its detected format.
        UpstreamServiceError
            Signing, fetching or embedding failed (``QuotaExceededError``
            when credits are exhausted).
        PersistenceError
            Writing the chunk rows failed.
        """
        async with self._guard.hold(material_id):
            return await self._index(material_id)

    async def _index(self, material_id: str) -> IndexingResult:
        started = time.monotonic()

        material = await self._store.get_material(material_id)
        if material is None:
            raise NotFoundError(message="Material not found")

        url = await self._storage.create_signed_url(
            self._bucket, material.storage_path, self._signed_url_ttl
        )
        data = await self._storage.fetch(url)

        extracted = await asyncio.to_thread(
            self._extractor.extract, data, material.mime_type, material.filename_hint
        )
        if extracted.is_empty:
            raise NoTextExtractedError(kind=extracted.kind.value)

        chunks = self._chunker.chunk(extracted.text)
        if not chunks:
            raise NoTextExtractedError(message="No chunks produced", kind=extracted.kind.value)

        batches = self._planner.plan(chunks)

        records: list[ChunkRecord] = []
        for batch_number, batch in enumerate(batches):
            vectors = await self._embedding.embed(batch)
            if len(vectors) != len(batch):
                raise UpstreamServiceError(
                    message=(
                        f"Embedding batch {batch_number} returned {len(vectors)} "
                        f"vectors for {len(batch)} inputs"
                    ),
                    provider_name=self._embedding.get_provider_name(),
                )
            for text, vector in zip(batch, vectors):
                records.append(
                    ChunkRecord(
                        course_id=material.course_id,
                        doc_id=material.id,
                        chunk_index=len(records),
                        content=text,
                        embedding=vector,
                    )
                )
            logger.info(
                "embedding_batch",
                material_id=material.id,
                batch=batch_number,
                items=len(batch),
                embedded=len(records),
            )

        written = await self._store.replace_material_chunks(material.id, records)

        result = IndexingResult(
            material_id=material.id,
            course_id=material.course_id,
            kind=extracted.kind,
            chunks=written,
            batches=len(batches),
            characters=len(extracted.text),
            duration_seconds=round(time.monotonic() - started, 3),
        )
        logger.info(
            "material_indexed",
            material_id=material.id,
            course_id=material.course_id,
            kind=extracted.kind.value,
            chunks=result.chunks,
            batches=result.batches,
            duration_seconds=result.duration_seconds,
        )
        return result
