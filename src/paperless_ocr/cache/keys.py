"""Cache key generation: content-addressed upload keys, (file id, model) OCR keys."""

from __future__ import annotations

import hashlib
from pathlib import Path
from typing import BinaryIO, NamedTuple

_HASH_CHUNK_SIZE = 1024 * 1024


class FileCacheKey(NamedTuple):
    file_hash: str
    purpose: str = "ocr"


class OcrCacheKey(NamedTuple):
    file_id: str
    model: str


def hash_bytes(data: bytes) -> str:
    """SHA-256 of in-memory file content."""
    return hashlib.sha256(data).hexdigest()


def hash_stream(stream: BinaryIO, chunk_size: int = _HASH_CHUNK_SIZE) -> str:
    """SHA-256 of a binary stream, read in chunks from its current position."""
    digest = hashlib.sha256()
    for chunk in iter(lambda: stream.read(chunk_size), b""):
        digest.update(chunk)
    return digest.hexdigest()


def hash_file(path: str | Path, chunk_size: int = _HASH_CHUNK_SIZE) -> str:
    """SHA-256 of a file's bytes. The path itself never affects the key."""
    with open(path, "rb") as f:
        return hash_stream(f, chunk_size)
