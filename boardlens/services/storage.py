"""Object storage for uploaded board documents (Supabase Storage REST API)."""

import logging
import re
from datetime import UTC, datetime
from urllib.parse import quote, unquote, urlparse

import httpx

from boardlens.config import Settings
from boardlens.exceptions import DownloadError, StorageError, UploadError

logger = logging.getLogger(__name__)

PUBLIC_OBJECT_MARKER = "/storage/v1/object/public/"


def sanitize_file_name(file_name: str) -> str:
    """Replace anything outside [a-zA-Z0-9.-] with underscores."""
    return re.sub(r"[^a-zA-Z0-9.-]", "_", file_name)


def company_file_path(user_id: str, company_id: str, file_name: str) -> str:
    return f"{user_id}/{company_id}/{file_name}"


def user_document_path(user_id: str, file_name: str, now: datetime | None = None) -> str:
    """Timestamped path for documents not yet attached to a company."""
    timestamp = (now or datetime.now(UTC)).isoformat(timespec="milliseconds").replace("+00:00", "Z")
    return f"{user_id}/documents/{timestamp}-{sanitize_file_name(file_name)}"


def path_from_url(url_or_path: str) -> str:
    """
    Resolve a public object URL back to its path inside the bucket.

    Plain paths are returned unchanged.
    """
    if PUBLIC_OBJECT_MARKER not in url_or_path:
        return url_or_path
    object_path = urlparse(url_or_path).path.split(PUBLIC_OBJECT_MARKER, 1)[1]
    # First segment is the bucket name
    return unquote("/".join(object_path.split("/")[1:]))


class StorageClient:
    """Get/put/delete-by-path blob store scoped to one bucket."""

    def __init__(
        self,
        base_url: str,
        service_key: str,
        bucket: str,
        timeout: float = 60.0,
        http_client: httpx.AsyncClient | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.bucket = bucket
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(timeout=httpx.Timeout(timeout))
        self._headers = {"Authorization": f"Bearer {service_key}", "apikey": service_key}

    @classmethod
    def from_settings(cls, settings: Settings) -> "StorageClient":
        return cls(
            base_url=settings.storage_url,
            service_key=settings.storage_service_key,
            bucket=settings.storage_bucket,
            timeout=settings.storage_timeout_seconds,
        )

    def _object_url(self, path: str) -> str:
        return f"{self.base_url}/storage/v1/object/{self.bucket}/{quote(path)}"

    async def download(self, path: str) -> bytes:
        """
        Download an object.

        Raises:
            DownloadError: If the object is missing or the request fails
        """
        try:
            response = await self._client.get(self._object_url(path), headers=self._headers)
        except httpx.HTTPError as e:
            logger.error(f"Download request failed for {path}: {e}")
            raise DownloadError(path, type(e).__name__) from e

        if response.status_code != 200:
            logger.error(f"Download of {path} returned {response.status_code}")
            raise DownloadError(path, f"status {response.status_code}")
        return response.content

    async def upload(
        self,
        path: str,
        content: bytes,
        content_type: str,
        upsert: bool = False,
    ) -> str:
        """
        Upload an object and return its path.

        Raises:
            UploadError: If the object exists (without upsert) or the request fails
        """
        headers = {
            **self._headers,
            "Content-Type": content_type,
            "x-upsert": "true" if upsert else "false",
        }
        try:
            response = await self._client.post(self._object_url(path), headers=headers, content=content)
        except httpx.HTTPError as e:
            logger.error(f"Upload request failed for {path}: {e}")
            raise UploadError(path, type(e).__name__) from e

        if response.status_code not in (200, 201):
            logger.error(f"Upload of {path} returned {response.status_code}: {response.text}")
            raise UploadError(path, f"status {response.status_code}")
        return path

    async def remove(self, paths: list[str]) -> None:
        """
        Delete objects.

        Raises:
            StorageError: If the request fails
        """
        if not paths:
            return
        url = f"{self.base_url}/storage/v1/object/{self.bucket}"
        try:
            response = await self._client.request(
                "DELETE", url, headers=self._headers, json={"prefixes": paths}
            )
        except httpx.HTTPError as e:
            raise StorageError(f"Failed to delete files: {', '.join(paths)}", paths[0]) from e

        if response.status_code != 200:
            raise StorageError(
                f"Failed to delete files: {', '.join(paths)} (status {response.status_code})",
                paths[0],
            )

    def get_public_url(self, path: str) -> str:
        return f"{self.base_url}{PUBLIC_OBJECT_MARKER}{self.bucket}/{quote(path)}"

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
