"""Per-key mutual exclusion for long-running, non-reentrant operations.

Indexing the same material twice at once would race two delete-then-insert
cycles against each other.  :class:`KeyedGuard` tracks which keys are
currently held and lets a second caller fail fast instead of queueing
behind (or clobbering) the first.

The guard is in-process only.  Deployments running several workers still
rely on the store's ``UNIQUE(doc_id, chunk_index)`` constraint to surface
a conflicting write.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import structlog

from coteacher.utils.errors import IndexingInProgressError
from coteacher.utils.logging import get_logger

_logger: structlog.BoundLogger = get_logger(__name__)


class KeyedGuard:
    """Check-and-set registry of keys that are currently in use.

    Parameters
    ----------
    name:
        Label used in log events and error messages.
    """

    def __init__(self, name: str = "guard") -> None:
        self._name = name
        self._held: set[str] = set()
        self._lock = asyncio.Lock()

    def is_held(self, key: str) -> bool:
        return key in self._held

    @asynccontextmanager
    async def hold(self, key: str) -> AsyncIterator[None]:
        """Hold *key* for the duration of the ``async with`` block.

        Raises
        ------
        IndexingInProgressError
            If another caller already holds *key*.
        """
        async with self._lock:
            if self.is_held(key):
                _logger.warning("guard_key_busy", guard=self._name, key=key)
                raise IndexingInProgressError(
                    message=f"{key} is already being processed; retry when it finishes"
                )
            self._held.add(key)
        try:
            yield
        finally:
            async with self._lock:
                self._held.discard(key)
