"""Aliyun OSS storage client implementation.

This module talks to the OSS REST API directly over HTTP, signing every
request with the account's access key.

Dependencies:
    - httpx
"""

from __future__ import annotations

import asyncio
import time
from typing import TYPE_CHECKING, Any, Mapping, Sequence
from urllib.parse import quote, urlsplit

import httpx

from ossclient.app.services.upload_service import MultipartUploadService
from ossclient.infra.observability.tracing import record_failure, record_request
from ossclient.infra.storage import auth, chunking, xml_utils
from ossclient.infra.storage.auth import Resources
from ossclient.infra.storage.client import (
    ClientIdentity,
    CompletedPart,
    FileChunk,
    ListBucketsResult,
    MalformedResponseError,
    ObjectHead,
    StorageApiError,
    StorageConfigurationError,
    StorageRequestError,
)

if TYPE_CHECKING:
    from ossclient.common.config import Settings

DEFAULT_TIMEOUT_SECONDS = 60.0


def _normalize_endpoint(endpoint: str) -> str:
    endpoint = endpoint.strip().rstrip("/")
    if not endpoint.startswith("http://") and not endpoint.startswith("https://"):
        return "http://" + endpoint
    return endpoint


class OSSStorageClient:
    """Asynchronous client for one OSS bucket.

    Credentials, endpoint and bucket are fixed at construction. The client
    owns its ``httpx.AsyncClient`` unless one is passed in, and should be
    closed with ``aclose()`` or used as an async context manager.
    """

    def __init__(
        self,
        *,
        key_id: str,
        key_secret: str,
        endpoint: str,
        bucket: str,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        trace_http: bool = False,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        if not key_id or not key_secret:
            raise StorageConfigurationError("key_id and key_secret are required")
        if not endpoint:
            raise StorageConfigurationError("endpoint is required")
        if not bucket or not bucket.strip():
            raise StorageConfigurationError("bucket is required")

        self._identity = ClientIdentity(
            key_id=key_id,
            key_secret=key_secret,
            endpoint=_normalize_endpoint(endpoint),
            bucket=bucket.strip(),
        )
        parts = urlsplit(self._identity.endpoint)
        self._scheme = parts.scheme
        self._netloc = parts.netloc
        self._trace_http = trace_http
        self._owns_http = http_client is None
        self._http = http_client or httpx.AsyncClient(timeout=timeout)

    @classmethod
    def from_settings(
        cls,
        settings: "Settings",
        *,
        http_client: httpx.AsyncClient | None = None,
    ) -> "OSSStorageClient":
        """Build a client from application settings.

        Raises:
            StorageConfigurationError: If credentials or bucket are missing.
        """
        if not settings.OSS_ACCESS_KEY_ID or not settings.OSS_ACCESS_KEY_SECRET:
            raise StorageConfigurationError(
                "OSS_ACCESS_KEY_ID and OSS_ACCESS_KEY_SECRET are required"
            )
        if not settings.OSS_BUCKET:
            raise StorageConfigurationError("OSS_BUCKET is required")
        return cls(
            key_id=settings.OSS_ACCESS_KEY_ID,
            key_secret=settings.OSS_ACCESS_KEY_SECRET,
            endpoint=settings.OSS_ENDPOINT,
            bucket=settings.OSS_BUCKET,
            timeout=settings.OSS_TIMEOUT_SECONDS,
            trace_http=settings.TRACE_HTTP,
            http_client=http_client,
        )

    @property
    def identity(self) -> ClientIdentity:
        return self._identity

    @property
    def bucket(self) -> str:
        return self._identity.bucket

    @property
    def endpoint(self) -> str:
        return self._identity.endpoint

    @property
    def key_id(self) -> str:
        return self._identity.key_id

    async def aclose(self) -> None:
        if self._owns_http:
            await self._http.aclose()

    async def __aenter__(self) -> "OSSStorageClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    def url_for(
        self, object_name: str = "", query: str = "", *, bucket: str | None = None
    ) -> str:
        """Build the virtual-hosted URL of an object, or of the service root."""
        bucket = self.bucket if bucket is None else bucket
        host = f"{bucket}.{self._netloc}" if bucket else self._netloc
        url = f"{self._scheme}://{host}/{quote(object_name, safe='/')}"
        if query:
            url = f"{url}?{query}"
        return url

    async def _request(
        self,
        method: str,
        operation: str,
        object_name: str = "",
        *,
        bucket: str | None = None,
        headers: Mapping[str, str] | None = None,
        resources: Resources | None = None,
        content: bytes | None = None,
    ) -> httpx.Response:
        bucket = self.bucket if bucket is None else bucket
        selected = auth.select_resources(resources)
        # caller values for Date and Authorization are replaced, in any case
        request_headers = {
            name: value
            for name, value in (headers or {}).items()
            if name.lower() not in ("date", "authorization")
        }
        request_headers["Date"] = auth.format_date()
        request_headers["Authorization"] = auth.sign(
            method,
            self._identity.key_id,
            self._identity.key_secret,
            bucket,
            object_name,
            auth.resources_to_string(selected),
            request_headers,
        )
        url = self.url_for(
            object_name,
            auth.resources_to_string(selected, encode=True),
            bucket=bucket,
        )

        start = time.perf_counter()
        try:
            response = await self._http.request(
                method, url, headers=request_headers, content=content
            )
        except httpx.HTTPError as exc:
            record_failure(
                method=method,
                operation=operation,
                bucket=bucket,
                object_name=object_name,
                elapsed=time.perf_counter() - start,
                exc=exc,
            )
            raise StorageRequestError(
                f"Failed to {operation.replace('_', ' ')}: {exc}"
            ) from exc

        record_request(
            method=method,
            operation=operation,
            bucket=bucket,
            object_name=object_name,
            status_code=response.status_code,
            elapsed=time.perf_counter() - start,
            request_id=response.headers.get("x-oss-request-id"),
            request_headers=request_headers if self._trace_http else None,
        )

        if not response.is_success:
            raise self._api_error(operation, response)
        return response

    @staticmethod
    def _api_error(operation: str, response: httpx.Response) -> StorageApiError:
        details = xml_utils.parse_error(response.content)
        reason = details.get("Message") or response.reason_phrase or "unknown error"
        return StorageApiError(
            f"Failed to {operation.replace('_', ' ')}: {reason}",
            status_code=response.status_code,
            code=details.get("Code"),
            request_id=details.get("RequestId")
            or response.headers.get("x-oss-request-id"),
            body=response.content,
        )

    async def list_buckets(
        self, resources: Resources | None = None
    ) -> ListBucketsResult:
        """List the buckets owned by the access key (GET on the service)."""
        response = await self._request(
            "GET", "list_buckets", bucket="", resources=resources
        )
        return xml_utils.parse_list_buckets(response.content)

    async def get_object(
        self,
        object_name: str,
        headers: Mapping[str, str] | None = None,
        resources: Resources | None = None,
    ) -> bytes:
        """Download an object and return its full body."""
        response = await self._request(
            "GET", "get_object", object_name, headers=headers, resources=resources
        )
        return response.content

    async def head_object(
        self,
        object_name: str,
        headers: Mapping[str, str] | None = None,
        resources: Resources | None = None,
    ) -> ObjectHead:
        """Get object metadata without downloading the content."""
        response = await self._request(
            "HEAD", "head_object", object_name, headers=headers, resources=resources
        )
        size = response.headers.get("content-length")
        return ObjectHead(
            size_bytes=int(size) if size is not None else 0,
            etag=response.headers.get("etag"),
            content_type=response.headers.get("content-type"),
            headers=dict(response.headers),
        )

    async def put_object_from_buffer(
        self,
        data: bytes,
        object_name: str,
        headers: Mapping[str, str] | None = None,
        resources: Resources | None = None,
    ) -> None:
        await self._request(
            "PUT",
            "put_object",
            object_name,
            headers=headers,
            resources=resources,
            content=bytes(data),
        )

    async def put_object_from_file(
        self,
        file_path: str,
        object_name: str,
        headers: Mapping[str, str] | None = None,
        resources: Resources | None = None,
    ) -> None:
        """Upload a whole local file as one object.

        The file is read in a worker thread before any request is made, so an
        unreadable file raises StorageFileError without touching the network.
        """
        data = await asyncio.to_thread(chunking.load_file, file_path)
        await self.put_object_from_buffer(data, object_name, headers, resources)

    async def delete_object(self, object_name: str) -> None:
        await self._request("DELETE", "delete_object", object_name)

    def split_file_by_part_size(
        self, file_path: str, chunk_size: int
    ) -> list[FileChunk]:
        return chunking.split_file_by_part_size(file_path, chunk_size)

    async def initiate_multipart_upload(
        self,
        object_name: str,
        headers: Mapping[str, str] | None = None,
    ) -> str:
        """Start a multipart upload and return its upload id."""
        response = await self._request(
            "POST",
            "initiate_multipart_upload",
            object_name,
            headers=headers,
            resources={"uploads": None},
        )
        return xml_utils.parse_upload_id(response.content)

    async def upload_part(
        self,
        file_path: str,
        object_name: str,
        chunk: FileChunk,
        upload_id: str,
        headers: Mapping[str, str] | None = None,
    ) -> str:
        """Upload the byte range of ``chunk`` as part ``chunk.number``."""
        data = await asyncio.to_thread(chunking.load_chunk, file_path, chunk)
        response = await self._request(
            "PUT",
            "upload_part",
            object_name,
            headers=headers,
            resources={"partNumber": chunk.number, "uploadId": upload_id},
            content=data,
        )
        etag = response.headers.get("etag")
        if not etag:
            raise MalformedResponseError("OSS response missing ETag")
        return etag

    async def complete_multipart_upload(
        self,
        object_name: str,
        upload_id: str,
        parts: Sequence[CompletedPart],
        headers: Mapping[str, str] | None = None,
    ) -> None:
        """Complete a multipart upload; parts are sent in ascending order."""
        await self._request(
            "POST",
            "complete_multipart_upload",
            object_name,
            headers=headers,
            resources={"uploadId": upload_id},
            content=xml_utils.to_complete_upload_request(parts),
        )

    async def abort_multipart_upload(self, object_name: str, upload_id: str) -> None:
        await self._request(
            "DELETE",
            "abort_multipart_upload",
            object_name,
            resources={"uploadId": upload_id},
        )

    async def chunk_upload_by_size(
        self,
        object_name: str,
        file_path: str,
        chunk_size: int,
        headers: Mapping[str, str] | None = None,
    ) -> list[CompletedPart]:
        """Upload a file as a sequential multipart upload.

        See MultipartUploadService.chunk_upload_by_size.
        """
        return await MultipartUploadService(self).chunk_upload_by_size(
            object_name, file_path, chunk_size, headers
        )
