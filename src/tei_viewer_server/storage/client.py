"""
Storage Backend Client

Thin async client for the file-storage backend that holds uploaded
documents. The backend is an external service; this module only speaks its
HTTP contract:

- ``GET    {base}o?prefix=files/<owner>/``   -> ``{"items": [object, ...]}``
- ``POST   {base}o?name=files/<owner>/<file>`` (raw body) -> object
- ``DELETE {base}o/<url-encoded object name>``
- ``GET    <download url under base>``       -> file bytes (streamed, size-capped)

An object is ``{"name", "size", "contentType", "downloadUrl",
"timeCreated", "updated"}``.

Design Goals
------------
- Explicit JWT scope usage per request
- Clean error semantics (transport vs. response vs. missing object)
- Injectable transport for testing
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import httpx

from ..auth.jwt_utils import create_storage_jwt
from ..config import settings
from .models import FileItem

logger = logging.getLogger("tei.storage")


# ---------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------

class StorageClientError(RuntimeError):
    """Base exception for storage backend failures."""


class StorageRequestError(StorageClientError):
    """Raised when the backend cannot be reached."""


class StorageResponseError(StorageClientError):
    """Raised when the backend answers with a non-success status."""

    def __init__(self, status_code: int, message: str) -> None:
        super().__init__(f"Storage backend returned {status_code}: {message}")
        self.status_code = status_code


class StorageNotFoundError(StorageResponseError):
    """Raised when the requested object does not exist."""


class StorageURLRejectedError(StorageClientError):
    """Raised when a download URL does not point at the storage backend."""

    def __init__(self, url: str) -> None:
        super().__init__(f"Refusing to fetch URL outside the storage backend: {url}")
        self.url = url


class DocumentTooLargeError(StorageClientError):
    """Raised when a downloaded document exceeds the configured size limit."""

    def __init__(self, limit: int) -> None:
        super().__init__(f"Document exceeds {limit} bytes")
        self.limit = limit


# ---------------------------------------------------------------------
# Client
# ---------------------------------------------------------------------

class StorageClient:
    """
    Owner-scoped file operations against the storage backend.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """
        Parameters
        ----------
        base_url : Optional[str]
            Backend root URL. Defaults to settings.storage_api_base_url.

        timeout : Optional[float]
            HTTP timeout in seconds. Defaults to settings.fetch_timeout_seconds.

        transport : Optional[httpx.AsyncBaseTransport]
            Custom transport, e.g. ``httpx.MockTransport`` in tests.
        """
        base = str(base_url or settings.storage_api_base_url)
        self.base_url = base if base.endswith("/") else base + "/"
        self.timeout = timeout if timeout is not None else settings.fetch_timeout_seconds
        self._transport = transport

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def list_files(self, owner_id: str) -> List[FileItem]:
        resp = await self._request(
            "GET",
            self.base_url + "o",
            scopes=["files_read"],
            owner_id=owner_id,
            params={"prefix": _owner_prefix(owner_id)},
        )
        items = resp.json().get("items", [])
        return [_to_file_item(obj, owner_id) for obj in items]

    async def upload_file(
        self,
        owner_id: str,
        filename: str,
        data: bytes,
        content_type: Optional[str] = None,
    ) -> FileItem:
        resp = await self._request(
            "POST",
            self.base_url + "o",
            scopes=["files_write"],
            owner_id=owner_id,
            params={"name": _object_name(owner_id, filename)},
            content=data,
            headers={"Content-Type": content_type or "application/octet-stream"},
        )
        logger.info("Uploaded %s for %s (%d bytes)", filename, owner_id, len(data))
        return _to_file_item(resp.json(), owner_id)

    async def delete_file(self, owner_id: str, filename: str) -> None:
        object_name = quote(_object_name(owner_id, filename), safe="")
        await self._request(
            "DELETE",
            self.base_url + "o/" + object_name,
            scopes=["files_write"],
            owner_id=owner_id,
        )
        logger.info("Deleted %s for %s", filename, owner_id)

    async def get_file(self, owner_id: str, filename: str) -> FileItem:
        """Metadata for one of ``owner_id``'s files."""
        for item in await self.list_files(owner_id):
            if item.name == filename:
                return item
        raise StorageNotFoundError(404, filename)

    def is_storage_url(self, url: str) -> bool:
        """
        True when ``url`` lives under the backend's base URL.

        Compared after URL normalization, so ``..`` segments cannot climb out
        of the base path.
        """
        try:
            target = httpx.URL(url)
        except httpx.InvalidURL:
            return False
        base = httpx.URL(self.base_url)
        return (
            (target.scheme, target.host, target.port) == (base.scheme, base.host, base.port)
            and target.path.startswith(base.path)
            and ".." not in target.path.split("/")
        )

    async def fetch_bytes(
        self,
        url: str,
        owner_id: Optional[str] = None,
        max_bytes: Optional[int] = None,
    ) -> bytes:
        """
        Download a file by its URL.

        Only URLs under ``base_url`` are fetched; anything else raises
        `StorageURLRejectedError` before a request is made. The body is
        streamed and the download aborts with `DocumentTooLargeError` once it
        exceeds ``max_bytes`` (default: settings.max_document_bytes).
        """
        if not self.is_storage_url(url):
            logger.warning("Rejected download outside storage backend: %s", url)
            raise StorageURLRejectedError(url)

        limit = max_bytes if max_bytes is not None else settings.max_document_bytes
        token = create_storage_jwt(["files_read"], owner_id=owner_id)
        headers = {"Authorization": f"Bearer {token}"}

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout,
                transport=self._transport,
            ) as client:
                async with client.stream("GET", url, headers=headers) as resp:
                    _raise_for_status(resp, url)

                    declared = resp.headers.get("Content-Length")
                    if declared and declared.isdigit() and int(declared) > limit:
                        raise DocumentTooLargeError(limit)

                    chunks: List[bytes] = []
                    received = 0
                    async for chunk in resp.aiter_bytes():
                        received += len(chunk)
                        if received > limit:
                            raise DocumentTooLargeError(limit)
                        chunks.append(chunk)
        except httpx.HTTPError as exc:
            logger.error("Storage download failed: %s (%s)", url, type(exc).__name__)
            raise StorageRequestError(
                f"Storage request failed: {type(exc).__name__}"
            ) from exc

        return b"".join(chunks)

    # ------------------------------------------------------------------
    # Internal Helpers
    # ------------------------------------------------------------------

    async def _request(
        self,
        method: str,
        url: str,
        scopes: Optional[List[str]],
        owner_id: Optional[str] = None,
        **kwargs: Any,
    ) -> httpx.Response:
        headers: Dict[str, str] = dict(kwargs.pop("headers", None) or {})
        if scopes:
            token = create_storage_jwt(scopes, owner_id=owner_id)
            headers["Authorization"] = f"Bearer {token}"

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout,
                transport=self._transport,
            ) as client:
                resp = await client.request(method, url, headers=headers, **kwargs)
        except httpx.HTTPError as exc:
            logger.error("Storage request failed: %s %s (%s)", method, url, type(exc).__name__)
            raise StorageRequestError(
                f"Storage request failed: {type(exc).__name__}"
            ) from exc

        _raise_for_status(resp, url)
        return resp


# ---------------------------------------------------------------------
# Module-Level Helpers
# ---------------------------------------------------------------------

def _raise_for_status(resp: httpx.Response, url: str) -> None:
    if resp.status_code == 404:
        raise StorageNotFoundError(404, url)
    if resp.is_error:
        raise StorageResponseError(resp.status_code, resp.reason_phrase)


def _owner_prefix(owner_id: str) -> str:
    return f"files/{owner_id}/"


def _object_name(owner_id: str, filename: str) -> str:
    return _owner_prefix(owner_id) + filename


def _to_file_item(obj: Dict[str, Any], owner_id: str) -> FileItem:
    name = obj["name"].rsplit("/", 1)[-1]
    return FileItem(
        id=name,
        name=name,
        size=int(obj.get("size") or 0),
        type=obj.get("contentType") or "application/octet-stream",
        url=obj["downloadUrl"],
        created_at=obj.get("timeCreated"),
        updated_at=obj.get("updated"),
        user_id=owner_id,
    )
