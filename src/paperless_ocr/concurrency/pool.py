"""Async worker pool for processing several files with one client."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict

from paperless_ocr.config.defaults import DEFAULT_MAX_WORKERS
from paperless_ocr.errors.exceptions import InternalError, PaperlessOcrError
from paperless_ocr.types import OcrOutcome

logger = logging.getLogger(__name__)

ProcessFn = Callable[..., Awaitable[OcrOutcome]]


class BatchItem(BaseModel):
    """Result for one input file: exactly one of ``outcome`` / ``error`` is set."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    path: Path
    outcome: OcrOutcome | None = None
    error: PaperlessOcrError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class BatchPool:
    """Runs ``process_fn`` over many files, at most ``max_workers`` at a time.

    A failing file never aborts the batch; its error is kept on the item.
    """

    def __init__(self, max_workers: int = DEFAULT_MAX_WORKERS) -> None:
        if max_workers < 1:
            raise ValueError("max_workers must be >= 1")
        self._max_workers = max_workers

    @property
    def max_workers(self) -> int:
        return self._max_workers

    async def run(
        self,
        process_fn: ProcessFn,
        paths: Sequence[str | Path],
        **kwargs: Any,
    ) -> list[BatchItem]:
        """Process ``paths`` concurrently; results are returned in input order."""
        semaphore = asyncio.Semaphore(self._max_workers)

        async def worker(path: str | Path) -> OcrOutcome:
            async with semaphore:
                return await process_fn(path, **kwargs)

        results = await asyncio.gather(*(worker(p) for p in paths), return_exceptions=True)

        items: list[BatchItem] = []
        for path, result in zip(paths, results, strict=True):
            if isinstance(result, PaperlessOcrError):
                logger.error("File %s failed: %s", path, result.user_message())
                items.append(BatchItem(path=Path(path), error=result))
            elif isinstance(result, Exception):
                logger.exception("File %s failed unexpectedly", path, exc_info=result)
                items.append(BatchItem(path=Path(path), error=InternalError(str(result))))
            elif isinstance(result, BaseException):
                raise result
            else:
                items.append(BatchItem(path=Path(path), outcome=result))
        return items
