"""Multipart upload orchestration.

This module sequences the initiate / upload-part / complete calls of a
multipart upload against any StorageClient implementation.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Mapping

from ossclient.infra.storage.client import (
    CompletedPart,
    InvalidArgumentError,
    MultipartUpload,
    StorageClient,
    StorageError,
)

logger = logging.getLogger(__name__)


class MultipartUploadService:
    """Uploads a local file as numbered parts, one part at a time.

    There is no parallelism and no retry: the first failing part aborts the
    upload session and its error is raised to the caller.
    """

    def __init__(self, storage: StorageClient) -> None:
        self._storage = storage

    async def chunk_upload_by_size(
        self,
        object_name: str,
        file_path: str,
        chunk_size: int,
        headers: Mapping[str, str] | None = None,
    ) -> list[CompletedPart]:
        """Upload ``file_path`` to ``object_name`` in chunks of ``chunk_size``.

        Args:
            object_name: Target object key.
            file_path: Local file to upload.
            chunk_size: Part size in bytes; the last part may be shorter.
            headers: Headers for the initiate request, e.g. Content-Type.

        Returns:
            The parts sent in the completion request, ordered by number.

        Raises:
            InvalidArgumentError: If the file is empty or chunk_size is invalid.
            StorageError: If any storage call fails. A failed part upload
                aborts the session and completion is never attempted.
        """
        chunks = await asyncio.to_thread(
            self._storage.split_file_by_part_size, file_path, chunk_size
        )
        if not chunks:
            raise InvalidArgumentError(f"No chunks to upload, {file_path} is empty")

        upload = MultipartUpload(
            upload_id=await self._storage.initiate_multipart_upload(
                object_name, headers
            ),
            bucket=self._storage.bucket,
            object_key=object_name,
        )
        logger.info(
            "multipart upload initiated bucket=%s object=%s upload_id=%s parts=%d",
            upload.bucket,
            upload.object_key,
            upload.upload_id,
            len(chunks),
        )

        parts: list[CompletedPart] = []
        for chunk in chunks:
            try:
                etag = await self._storage.upload_part(
                    file_path, upload.object_key, chunk, upload.upload_id
                )
            except StorageError:
                await self._abort(upload)
                raise
            parts.append(CompletedPart(part_number=chunk.number, etag=etag))
            logger.debug(
                "part uploaded object=%s part=%d/%d size=%d",
                upload.object_key,
                chunk.number,
                len(chunks),
                chunk.size,
            )

        await self._storage.complete_multipart_upload(
            upload.object_key, upload.upload_id, parts
        )
        logger.info(
            "multipart upload completed bucket=%s object=%s upload_id=%s parts=%d",
            upload.bucket,
            upload.object_key,
            upload.upload_id,
            len(parts),
        )
        return parts

    async def _abort(self, upload: MultipartUpload) -> None:
        try:
            await self._storage.abort_multipart_upload(
                upload.object_key, upload.upload_id
            )
        except StorageError:
            # the part failure is what the caller sees
            logger.warning(
                "failed to abort multipart upload bucket=%s object=%s upload_id=%s",
                upload.bucket,
                upload.object_key,
                upload.upload_id,
                exc_info=True,
            )
