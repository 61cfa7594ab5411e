"""Filesystem-backed object storage for local development and tests.

Objects live at ``<root>/<bucket>/<path>``.  "Signed" URLs are ``file://``
URIs with an ``expires`` epoch in the query string; :meth:`fetch` refuses
them once that moment has passed, so TTL handling is exercised the same
way as against the hosted store.
"""

from __future__ import annotations

import time
from pathlib import Path
from urllib.parse import parse_qs, urlencode, urlparse
from urllib.request import url2pathname

import structlog

from coteacher.interfaces.object_storage import IObjectStorage
from coteacher.utils.errors import UpstreamServiceError

logger = structlog.get_logger(logger_name=__name__)


class LocalFileStorageProvider(IObjectStorage):
    """Object storage rooted at a local directory."""

    def __init__(self, root_dir: str | Path) -> None:
        self._root = Path(root_dir)

    def _object_path(self, bucket: str, path: str) -> Path:
        root = (self._root / bucket).resolve()
        target = (root / path.lstrip("/")).resolve()
        if root != target and root not in target.parents:
            raise UpstreamServiceError(
                message=f"Object path escapes bucket: {path}",
                provider_name=self.get_provider_name(),
            )
        return target

    def put(self, bucket: str, path: str, data: bytes) -> Path:
        """Store *data* at ``bucket/path`` and return the file location."""
        target = self._object_path(bucket, path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(data)
        logger.info("local_object_stored", bucket=bucket, path=path, size=len(data))
        return target

    async def create_signed_url(self, bucket: str, path: str, ttl_seconds: int) -> str:
        target = self._object_path(bucket, path)
        if not target.is_file():
            raise UpstreamServiceError(
                message=f"Object not found: {bucket}/{path}",
                provider_name=self.get_provider_name(),
            )
        expires = int(time.time()) + ttl_seconds
        return f"{target.as_uri()}?{urlencode({'expires': expires})}"

    async def fetch(self, url: str) -> bytes:
        parsed = urlparse(url)
        if parsed.scheme != "file":
            raise UpstreamServiceError(
                message=f"Unsupported URL scheme: {parsed.scheme or '(none)'}",
                provider_name=self.get_provider_name(),
            )

        expires = parse_qs(parsed.query).get("expires", [""])[0]
        if expires and int(expires) < time.time():
            raise UpstreamServiceError(
                message="Fetch 403",
                provider_name=self.get_provider_name(),
            )

        target = Path(url2pathname(parsed.path))
        try:
            return target.read_bytes()
        except FileNotFoundError as exc:
            raise UpstreamServiceError(
                message="Fetch 404",
                provider_name=self.get_provider_name(),
            ) from exc

    def get_provider_name(self) -> str:
        return "local_storage"
