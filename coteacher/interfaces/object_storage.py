"""Abstract base class for the object store holding uploaded files.

Files are never read directly: the caller asks for a short-lived signed
URL and then fetches it, mirroring how the browser-facing app shares
private bucket objects.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


# Concrete implementations: SupabaseStorageProvider, LocalFileStorageProvider
# Located in: coteacher/providers/storage/
class IObjectStorage(ABC):
    """Contract for signed-URL object storage."""

    @abstractmethod
    async def create_signed_url(self, bucket: str, path: str, ttl_seconds: int) -> str:
        """Return a URL granting read access to *path* for *ttl_seconds*.

        Raises
        ------
        coteacher.utils.errors.UpstreamServiceError
            If the store refuses to sign (missing object, bad credentials).
        """

    @abstractmethod
    async def fetch(self, url: str) -> bytes:
        """Download the bytes behind a signed URL.

        Raises
        ------
        coteacher.utils.errors.UpstreamServiceError
            On a non-success response (message ``"Fetch <status>"``).
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier, e.g. ``"supabase_storage"``."""
