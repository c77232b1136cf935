"""Upload construction: picks in-memory or streamed multipart bodies by file size."""

from __future__ import annotations

import logging
import mimetypes
import os
from pathlib import Path
from typing import IO, Any

from paperless_ocr.cache.keys import hash_bytes, hash_stream
from paperless_ocr.config.defaults import DEFAULT_CHUNK_SIZE, DEFAULT_STREAMING_THRESHOLD
from paperless_ocr.errors.exceptions import FileIOError
from paperless_ocr.types import UploadMode

logger = logging.getLogger(__name__)

_DEFAULT_MIME = "application/octet-stream"


class UploadRequest:
    """A prepared multipart upload for one file.

    In streamed mode the open handle is owned by this object and must be
    released with ``close()`` (or by using it as a context manager).
    httpx reads the handle in its own 64 KiB chunks when the body is sent.
    """

    def __init__(
        self,
        path: Path,
        size: int,
        mime_type: str,
        mode: UploadMode,
        content_hash: str,
        *,
        data: bytes | None = None,
        handle: IO[bytes] | None = None,
    ) -> None:
        self.path = path
        self.size = size
        self.mime_type = mime_type
        self.mode = mode
        self.content_hash = content_hash
        self._data = data
        self._handle = handle

    @property
    def file_name(self) -> str:
        return self.path.name

    @property
    def closed(self) -> bool:
        return self._handle is None or self._handle.closed

    def multipart_files(self) -> dict[str, tuple[str, Any, str]]:
        """The httpx ``files`` mapping for one send attempt.

        Streamed bodies are rewound so each retry resends the whole file.
        """
        if self.mode is UploadMode.IN_MEMORY:
            return {"file": (self.file_name, self._data, self.mime_type)}
        if self._handle is None or self._handle.closed:
            raise FileIOError(f"Upload stream for {self.path} is closed")
        try:
            self._handle.seek(0)
        except OSError as e:
            raise FileIOError(f"Cannot rewind {self.path}: {e}") from e
        return {"file": (self.file_name, self._handle, self.mime_type)}

    @staticmethod
    def form_fields() -> dict[str, str]:
        return {"purpose": "ocr"}

    def close(self) -> None:
        if self._handle is not None and not self._handle.closed:
            self._handle.close()

    def __enter__(self) -> UploadRequest:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


def choose_mode(size: int, threshold: int = DEFAULT_STREAMING_THRESHOLD) -> UploadMode:
    """Files strictly larger than ``threshold`` bytes are streamed."""
    return UploadMode.STREAMED if size > threshold else UploadMode.IN_MEMORY


def guess_mime_type(path: Path) -> str:
    mime, _ = mimetypes.guess_type(path.name)
    return mime or _DEFAULT_MIME


def build_upload(
    path: str | Path,
    size: int | None = None,
    *,
    mime_type: str | None = None,
    threshold: int = DEFAULT_STREAMING_THRESHOLD,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> UploadRequest:
    """Prepare an upload for ``path``, raising FileIOError before any network activity.

    ``chunk_size`` is the read size used while hashing a streamed file.
    """
    path = Path(path)
    try:
        if size is None:
            size = os.stat(path).st_size
    except OSError as e:
        raise FileIOError(f"Cannot stat {path}: {e}") from e

    mime_type = mime_type or guess_mime_type(path)
    mode = choose_mode(size, threshold)
    logger.info(
        "Upload mode for %s: %s (%d bytes, threshold %d)", path.name, mode.value, size, threshold
    )

    if mode is UploadMode.IN_MEMORY:
        try:
            data = path.read_bytes()
        except OSError as e:
            raise FileIOError(f"Cannot read {path}: {e}") from e
        return UploadRequest(
            path,
            len(data),
            mime_type,
            mode,
            hash_bytes(data),
            data=data,
        )

    try:
        handle = open(path, "rb")  # noqa: SIM115
    except OSError as e:
        raise FileIOError(f"Cannot open {path}: {e}") from e
    try:
        content_hash = hash_stream(handle, chunk_size)
        handle.seek(0)
    except OSError as e:
        handle.close()
        raise FileIOError(f"Cannot read {path}: {e}") from e
    return UploadRequest(
        path,
        size,
        mime_type,
        mode,
        content_hash,
        handle=handle,
    )
