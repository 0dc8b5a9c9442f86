"""Storage client protocol and data types.

This module defines the abstract interface for OSS object storage operations,
the value types exchanged with it, and the error hierarchy raised by
implementations.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping, Protocol, Sequence

# Maximum part number accepted by OSS
MAX_PART_NUMBER = 10000


class StorageError(RuntimeError):
    """Raised when object storage operations fail."""


class StorageConfigurationError(StorageError):
    """Raised when the client lacks credentials, endpoint or bucket."""


class InvalidArgumentError(StorageError):
    """Raised when an operation is called with unusable arguments."""


class StorageRequestError(StorageError):
    """Raised when the HTTP request could not be completed.

    The underlying transport exception is chained as ``__cause__``.
    """


class StorageFileError(StorageError):
    """Raised when a local file or byte range cannot be read."""

    def __init__(self, message: str, *, path: str) -> None:
        super().__init__(message)
        self.path = path


class MalformedResponseError(StorageError):
    """Raised when a successful response lacks an expected field."""


class StorageApiError(StorageError):
    """Raised when OSS answers with a non-2xx status."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int,
        code: str | None = None,
        request_id: str | None = None,
        body: bytes = b"",
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.code = code
        self.request_id = request_id
        self.body = body

    def __str__(self) -> str:
        base = super().__str__()
        details = [f"status={self.status_code}"]
        if self.code:
            details.append(f"code={self.code}")
        if self.request_id:
            details.append(f"request_id={self.request_id}")
        return f"{base} ({', '.join(details)})"


@dataclass(frozen=True, slots=True)
class ClientIdentity:
    """Credentials and target of a storage client."""

    key_id: str
    key_secret: str = field(repr=False)
    endpoint: str
    bucket: str


@dataclass(frozen=True, slots=True)
class FileChunk:
    """A contiguous byte range of a local file, numbered from 1."""

    number: int
    offset: int
    size: int

    @property
    def end(self) -> int:
        return self.offset + self.size


@dataclass(frozen=True, slots=True)
class CompletedPart:
    """Represents a completed part in a multipart upload."""

    part_number: int
    etag: str


@dataclass(frozen=True, slots=True)
class MultipartUpload:
    """Result of initiating a multipart upload."""

    upload_id: str
    bucket: str
    object_key: str


@dataclass(frozen=True, slots=True)
class ObjectHead:
    """Metadata from a HEAD object request."""

    size_bytes: int
    etag: str | None
    content_type: str | None
    headers: Mapping[str, str] = field(default_factory=dict, compare=False)


@dataclass(frozen=True, slots=True)
class BucketInfo:
    """One bucket entry of a service listing."""

    name: str
    creation_date: str
    location: str
    extranet_endpoint: str
    intranet_endpoint: str
    storage_class: str


@dataclass(frozen=True, slots=True)
class ListBucketsResult:
    """Result of listing the buckets owned by the credentials."""

    prefix: str
    marker: str
    max_keys: str
    is_truncated: bool
    next_marker: str
    owner_id: str
    owner_display_name: str
    buckets: tuple[BucketInfo, ...] = ()


class StorageClient(Protocol):
    """Protocol defining the multipart interface used by upload orchestration.

    Implementations bind a single bucket at construction time, so object
    operations only take the object key.
    """

    @property
    def bucket(self) -> str:
        ...

    def split_file_by_part_size(
        self, file_path: str, chunk_size: int
    ) -> list[FileChunk]:
        """Split a local file into numbered byte ranges.

        Args:
            file_path: Path of the local file.
            chunk_size: Size of every chunk but the last, in bytes.

        Returns:
            Chunks ordered by number, starting at 1.

        Raises:
            InvalidArgumentError: If chunk_size is not positive or the file
                would need too many parts.
            StorageFileError: If the file cannot be inspected.
        """
        ...

    async def initiate_multipart_upload(
        self,
        object_name: str,
        headers: Mapping[str, str] | None = None,
    ) -> str:
        """Initialize a multipart upload session.

        Args:
            object_name: Object key in the bucket.
            headers: Extra request headers, e.g. Content-Type.

        Returns:
            The upload id for subsequent part and completion calls.

        Raises:
            StorageError: If the operation fails.
        """
        ...

    async def upload_part(
        self,
        file_path: str,
        object_name: str,
        chunk: FileChunk,
        upload_id: str,
        headers: Mapping[str, str] | None = None,
    ) -> str:
        """Upload one chunk of a local file as a part.

        Args:
            file_path: Path of the local file.
            object_name: Object key in the bucket.
            chunk: Byte range to send; its number is the part number.
            upload_id: Multipart upload ID from initiate_multipart_upload.
            headers: Extra request headers.

        Returns:
            The ETag assigned to the part.

        Raises:
            StorageError: If the operation fails.
        """
        ...

    async def complete_multipart_upload(
        self,
        object_name: str,
        upload_id: str,
        parts: Sequence[CompletedPart],
        headers: Mapping[str, str] | None = None,
    ) -> None:
        """Complete a multipart upload by combining all parts.

        Args:
            object_name: Object key in the bucket.
            upload_id: Multipart upload ID.
            parts: Completed parts with their ETags.
            headers: Extra request headers.

        Raises:
            StorageError: If the operation fails.
        """
        ...

    async def abort_multipart_upload(self, object_name: str, upload_id: str) -> None:
        """Abort a multipart upload and clean up uploaded parts.

        Args:
            object_name: Object key in the bucket.
            upload_id: Multipart upload ID to abort.

        Raises:
            StorageError: If the operation fails.
        """
        ...
