"""Object storage abstraction layer.

This module provides a protocol-based abstraction for object storage backends
together with the value types and errors shared by the OSS implementation.
"""

from .client import (
    BucketInfo,
    ClientIdentity,
    CompletedPart,
    FileChunk,
    InvalidArgumentError,
    ListBucketsResult,
    MalformedResponseError,
    MultipartUpload,
    ObjectHead,
    StorageApiError,
    StorageClient,
    StorageConfigurationError,
    StorageError,
    StorageFileError,
    StorageRequestError,
)

__all__ = [
    "BucketInfo",
    "ClientIdentity",
    "CompletedPart",
    "FileChunk",
    "InvalidArgumentError",
    "ListBucketsResult",
    "MalformedResponseError",
    "MultipartUpload",
    "ObjectHead",
    "StorageApiError",
    "StorageClient",
    "StorageConfigurationError",
    "StorageError",
    "StorageFileError",
    "StorageRequestError",
]
