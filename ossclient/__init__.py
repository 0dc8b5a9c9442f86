"""Asynchronous client for Aliyun OSS object storage."""

from ossclient.infra.storage import (
    CompletedPart,
    FileChunk,
    StorageApiError,
    StorageError,
)
from ossclient.infra.storage.oss_client import OSSStorageClient

__version__ = "0.1.0"

__all__ = [
    "CompletedPart",
    "FileChunk",
    "OSSStorageClient",
    "StorageApiError",
    "StorageError",
]
