"""Top-level entry points: extract(), extract_async(), extract_batch()."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from pathlib import Path
from typing import Any

import httpx

from paperless_ocr.api.client import OcrApiClient
from paperless_ocr.cache.manager import CacheManager
from paperless_ocr.concurrency.pool import BatchItem, BatchPool
from paperless_ocr.config.hierarchy import load_settings
from paperless_ocr.config.schema import Settings
from paperless_ocr.metrics import MetricsCollector
from paperless_ocr.types import OcrOutcome
from paperless_ocr.utils.files import validate_input_file

logger = logging.getLogger(__name__)


def create_client(
    settings: Settings,
    *,
    metrics: MetricsCollector | None = None,
    cache_manager: CacheManager | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> OcrApiClient:
    """Build a client with its own cache manager and metrics collector."""
    settings.require_api_key()
    if cache_manager is None:
        cache = settings.cache
        cache_manager = CacheManager(
            upload_ttl=cache.upload_ttl_seconds,
            upload_max_entries=cache.upload_max_entries,
            ocr_ttl=cache.ocr_ttl_seconds,
            ocr_max_entries=cache.ocr_max_entries,
            enabled=not cache.disabled,
        )
    return OcrApiClient(
        settings,
        cache_manager=cache_manager,
        metrics=metrics or MetricsCollector(),
        transport=transport,
    )


async def process_file(
    client: OcrApiClient,
    settings: Settings,
    path: str | Path,
    model: str | None = None,
) -> OcrOutcome:
    """Validate ``path`` locally, then run it through ``client``."""
    input_file = validate_input_file(path, settings.max_file_size_mb)
    return await client.process(
        input_file.path,
        model,
        size=input_file.size,
        mime_type=input_file.mime_type,
    )


async def extract_async(
    path: str | Path,
    model: str | None = None,
    *,
    config_path: str | Path | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
    **overrides: Any,
) -> OcrOutcome:
    """Extract text from one document asynchronously."""
    settings = load_settings(config_path, **overrides)
    async with create_client(settings, transport=transport) as client:
        return await process_file(client, settings, path, model)


def extract(
    path: str | Path,
    model: str | None = None,
    *,
    config_path: str | Path | None = None,
    **overrides: Any,
) -> OcrOutcome:
    """Extract text from one document (sync wrapper)."""
    return asyncio.run(extract_async(path, model, config_path=config_path, **overrides))


async def extract_batch_async(
    paths: Sequence[str | Path],
    model: str | None = None,
    *,
    max_workers: int | None = None,
    config_path: str | Path | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
    **overrides: Any,
) -> list[BatchItem]:
    """Extract text from several documents sharing one client, cache, and collector."""
    settings = load_settings(config_path, max_workers=max_workers, **overrides)
    pool = BatchPool(settings.max_workers)
    async with create_client(settings, transport=transport) as client:
        items = await pool.run(
            lambda p: process_file(client, settings, p, model),
            list(paths),
        )
        client.metrics.log_summary()
    return items


def extract_batch(
    paths: Sequence[str | Path],
    model: str | None = None,
    *,
    max_workers: int | None = None,
    config_path: str | Path | None = None,
    **overrides: Any,
) -> list[BatchItem]:
    """Sync wrapper around extract_batch_async()."""
    return asyncio.run(
        extract_batch_async(
            paths, model, max_workers=max_workers, config_path=config_path, **overrides
        )
    )
