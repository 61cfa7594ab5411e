"""Supabase Storage adapter (signed URLs over the REST API).

Talks to ``{SUPABASE_URL}/storage/v1`` with the service-role key using an
injected ``httpx.AsyncClient``.  Only two operations are needed: sign a
private object for a short TTL, and download whatever a signed URL points
at.
"""

from __future__ import annotations

from urllib.parse import quote

import httpx
import structlog

from coteacher.interfaces.object_storage import IObjectStorage
from coteacher.utils.errors import UpstreamServiceError

logger = structlog.get_logger(logger_name=__name__)


def _error_message(response: httpx.Response, fallback: str) -> str:
    """Pull the human-readable message out of a Supabase error body."""
    try:
        body = response.json()
    except ValueError:
        return fallback
    if isinstance(body, dict):
        for key in ("message", "error_description", "error"):
            value = body.get(key)
            if isinstance(value, str) and value:
                return value
    return fallback


class SupabaseStorageProvider(IObjectStorage):
    """Object storage backed by Supabase Storage.

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
        self._base_url = supabase_url.rstrip("/")
        self._headers = {
            "apikey": service_role_key,
            "Authorization": f"Bearer {service_role_key}",
        }

    async def create_signed_url(self, bucket: str, path: str, ttl_seconds: int) -> str:
        object_path = quote(path.lstrip("/"), safe="/")
        endpoint = f"{self._base_url}/storage/v1/object/sign/{bucket}/{object_path}"
        try:
            response = await self._http.post(
                endpoint,
                json={"expiresIn": ttl_seconds},
                headers=self._headers,
            )
        except httpx.HTTPError as exc:
            raise UpstreamServiceError(
                message=f"Signed URL failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        if response.status_code >= 400:
            raise UpstreamServiceError(
                message=_error_message(response, "Signed URL failed"),
                provider_name=self.get_provider_name(),
            )

        body = response.json()
        signed = body.get("signedURL") or body.get("signedUrl")
        if not signed:
            raise UpstreamServiceError(
                message="Signed URL failed",
                provider_name=self.get_provider_name(),
            )

        logger.debug("signed_url_created", bucket=bucket, path=path, ttl=ttl_seconds)
        if signed.startswith("http"):
            return signed
        return f"{self._base_url}/storage/v1{signed}"

    async def fetch(self, url: str) -> bytes:
        try:
            response = await self._http.get(url)
        except httpx.HTTPError as exc:
            raise UpstreamServiceError(
                message=f"Fetch failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        if not response.is_success:
            raise UpstreamServiceError(
                message=f"Fetch {response.status_code}",
                provider_name=self.get_provider_name(),
            )
        logger.debug("object_fetched", size=len(response.content))
        return response.content

    def get_provider_name(self) -> str:
        return "supabase_storage"
