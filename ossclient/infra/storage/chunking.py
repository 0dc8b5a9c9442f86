"""Local file helpers for object and part uploads."""

from __future__ import annotations

import os

from ossclient.infra.storage.client import (
    MAX_PART_NUMBER,
    FileChunk,
    InvalidArgumentError,
    StorageFileError,
)


def split_file_by_part_size(file_path: str, chunk_size: int) -> list[FileChunk]:
    """Split a file into consecutive chunks of ``chunk_size`` bytes.

    Only the file length is inspected; contents are not read. The last chunk
    holds the remainder and an empty file yields no chunks.
    """
    if chunk_size <= 0:
        raise InvalidArgumentError("chunk_size must be positive")

    try:
        size = os.stat(file_path).st_size
    except OSError as exc:
        raise StorageFileError(
            f"Failed to stat file {file_path}: {exc}", path=file_path
        ) from exc

    full, remainder = divmod(size, chunk_size)
    if full >= MAX_PART_NUMBER:
        raise InvalidArgumentError("Too many parts, please increase part size")

    chunks = [
        FileChunk(number=index + 1, offset=index * chunk_size, size=chunk_size)
        for index in range(full)
    ]
    if remainder:
        chunks.append(
            FileChunk(number=full + 1, offset=full * chunk_size, size=remainder)
        )
    return chunks


def load_file(file_path: str) -> bytes:
    try:
        with open(file_path, "rb") as fh:
            return fh.read()
    except OSError as exc:
        raise StorageFileError(
            f"Failed to read file {file_path}: {exc}", path=file_path
        ) from exc


def load_chunk(file_path: str, chunk: FileChunk) -> bytes:
    """Read exactly the bytes described by ``chunk``.

    Raises:
        StorageFileError: If the file cannot be read or ends before the
            chunk does.
    """
    try:
        with open(file_path, "rb") as fh:
            fh.seek(chunk.offset)
            data = fh.read(chunk.size)
    except OSError as exc:
        raise StorageFileError(
            f"Failed to read chunk {chunk.number} of {file_path}: {exc}",
            path=file_path,
        ) from exc

    if len(data) != chunk.size:
        raise StorageFileError(
            f"Chunk {chunk.number} of {file_path} is out of bounds: "
            f"expected {chunk.size} bytes at offset {chunk.offset}, got {len(data)}",
            path=file_path,
        )
    return data
