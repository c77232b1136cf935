"""Async client for the two-step upload-then-OCR workflow."""

from __future__ import annotations

import asyncio
import logging
import random
import time
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import TypeVar

import httpx

from paperless_ocr.api.auth import AuthHandler, Credential, redact_secrets
from paperless_ocr.api.models import (
    FileUploadResponse,
    OcrRequest,
    OcrResponse,
    parse_ocr_response,
    parse_upload_response,
)
from paperless_ocr.api.streaming import UploadRequest, build_upload
from paperless_ocr.cache.keys import FileCacheKey, OcrCacheKey
from paperless_ocr.cache.manager import CacheManager
from paperless_ocr.cache.stats import CombinedCacheStats
from paperless_ocr.config.schema import Settings
from paperless_ocr.errors.exceptions import CacheError, InternalError, PaperlessOcrError
from paperless_ocr.errors.retry import (
    build_retrying,
    classify_transport_error,
    error_from_response,
)
from paperless_ocr.metrics import APIMetrics, FileMetricsSummary, MetricsCollector
from paperless_ocr.types import ErrorKind, OcrOutcome, OcrUsage

logger = logging.getLogger(__name__)

K = TypeVar("K")
V = TypeVar("V")

_FILES_PATH = "/v1/files"
_OCR_PATH = "/v1/ocr"


class OcrApiClient:
    """Uploads a document, runs OCR on it, and returns the extracted text.

    Both steps go through the same pipeline: cache lookup, request, retry
    with backoff on transient failures, response validation, cache store.
    Every send attempt is recorded in the metrics collector.
    """

    def __init__(
        self,
        config: Settings,
        *,
        cache_manager: CacheManager,
        metrics: MetricsCollector,
        transport: httpx.AsyncBaseTransport | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        rng: random.Random | None = None,
    ) -> None:
        self._config = config
        self._credential = Credential(api_key=config.api_key, base_url=config.api_base_url)
        self._auth = AuthHandler(self._credential)
        self._policy = config.retry_policy
        self._cache = cache_manager
        self._metrics = metrics
        self._sleep = sleep
        self._rng = rng
        self._http = httpx.AsyncClient(
            base_url=config.api_base_url,
            timeout=httpx.Timeout(config.timeout_seconds),
            transport=transport,
        )

    @property
    def cache_manager(self) -> CacheManager:
        return self._cache

    @property
    def metrics(self) -> MetricsCollector:
        return self._metrics

    async def __aenter__(self) -> OcrApiClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    async def close(self) -> None:
        await self._http.aclose()

    # ── Public operations ──

    async def process(
        self,
        path: str | Path,
        model: str | None = None,
        *,
        size: int | None = None,
        mime_type: str | None = None,
    ) -> OcrOutcome:
        """Upload ``path`` (or reuse a cached upload) and OCR it with ``model``."""
        model = model or self._config.model
        start = time.perf_counter()

        with build_upload(
            path,
            size,
            mime_type=mime_type,
            threshold=self._config.streaming_threshold_bytes,
            chunk_size=self._config.chunk_size_bytes,
        ) as request:
            upload_key = FileCacheKey(request.content_hash)
            uploaded = self._cache_lookup(self._cache.lookup_upload, upload_key)
            upload_cached = uploaded is not None
            if uploaded is None:
                uploaded = await self.upload_file(request)
                self._cache.store_upload(upload_key, uploaded)
            else:
                logger.debug("Upload cache hit for %s (file id %s)", request.file_name, uploaded.id)
            file_name = request.file_name
            file_size = request.size

        ocr_key = OcrCacheKey(uploaded.id, model)
        result = self._cache_lookup(self._cache.lookup_ocr, ocr_key)
        ocr_cached = result is not None
        if result is None:
            result = await self.run_ocr(uploaded.id, model)
            self._cache.store_ocr(ocr_key, result)
        else:
            logger.debug("OCR cache hit for file id %s, model %s", uploaded.id, model)

        duration = time.perf_counter() - start
        self._metrics.record_file(file_size, duration)
        return OcrOutcome(
            text=result.extracted_text,
            file_id=uploaded.id,
            model=result.model,
            file_name=file_name,
            file_size=file_size,
            usage=OcrUsage(
                pages_processed=result.usage_info.pages_processed,
                doc_size_bytes=result.usage_info.doc_size_bytes,
            ),
            duration=duration,
            upload_cached=upload_cached,
            ocr_cached=ocr_cached,
        )

    async def upload_file(self, request: UploadRequest) -> FileUploadResponse:
        """POST the file to the Files endpoint and validate the response."""

        async def send() -> httpx.Response:
            return await self._http.post(
                _FILES_PATH,
                files=request.multipart_files(),
                data=request.form_fields(),
                headers=self._auth.multipart_headers(),
            )

        response = await self._send(f"POST {_FILES_PATH}", send, bytes_uploaded=request.size)
        uploaded = parse_upload_response(response.content)
        uploaded.validate_against(request.size)
        logger.info("Uploaded %s as file id %s", request.file_name, uploaded.id)
        return uploaded

    async def run_ocr(self, file_id: str, model: str) -> OcrResponse:
        """POST an OCR request for an uploaded file and validate the response."""
        body = OcrRequest.for_file(file_id, model).model_dump_json().encode()

        async def send() -> httpx.Response:
            return await self._http.post(_OCR_PATH, content=body, headers=self._auth.headers())

        response = await self._send(f"POST {_OCR_PATH}", send, bytes_uploaded=len(body))
        result = parse_ocr_response(response.content)
        result.validate_fields()
        logger.info("OCR complete for file id %s: %d page(s)", file_id, len(result.pages))
        return result

    def metrics_snapshot(self) -> APIMetrics:
        return self._metrics.snapshot()

    def file_metrics_summary(self) -> FileMetricsSummary:
        return self._metrics.file_metrics_summary()

    def cache_stats(self) -> CombinedCacheStats:
        return self._cache.stats()

    # ── Internals ──

    async def _send(
        self,
        operation: str,
        send: Callable[[], Awaitable[httpx.Response]],
        *,
        bytes_uploaded: int,
    ) -> httpx.Response:
        """Run ``send`` under the retry policy. The raised error carries ``attempts``."""
        retrying = build_retrying(
            self._policy,
            rng=self._rng,
            sleep=self._sleep,
            on_retry=lambda exc, attempt, wait: self._metrics.record_retry(),
        )
        attempts = 0
        try:
            async for attempt in retrying:
                with attempt:
                    attempts = attempt.retry_state.attempt_number
                    return await self._attempt(operation, send, bytes_uploaded)
        except PaperlessOcrError as exc:
            exc.attempts = attempts
            raise
        raise InternalError(f"{operation}: retry loop ended without a response")

    async def _attempt(
        self,
        operation: str,
        send: Callable[[], Awaitable[httpx.Response]],
        bytes_uploaded: int,
    ) -> httpx.Response:
        logger.debug("%s (key %s)", operation, self._credential.redacted())
        start = time.perf_counter()
        try:
            response = await send()
        except httpx.RequestError as exc:
            self._metrics.record_failure(time.perf_counter() - start)
            raise self._redacted(classify_transport_error(exc)) from exc
        elapsed = time.perf_counter() - start

        if response.is_success:
            self._metrics.record_success(elapsed, bytes_uploaded, len(response.content))
            logger.debug("%s -> %d in %.3fs", operation, response.status_code, elapsed)
            return response

        error = self._redacted(error_from_response(response.status_code, response.text))
        self._metrics.record_failure(elapsed, rate_limited=error.kind is ErrorKind.RATE_LIMIT)
        logger.debug("%s -> %d in %.3fs", operation, response.status_code, elapsed)
        raise error

    def _redacted(self, error: PaperlessOcrError) -> PaperlessOcrError:
        error.message = redact_secrets(error.message, self._credential)
        error.args = (error.message,)
        return error

    @staticmethod
    def _cache_lookup(lookup: Callable[[K], V | None], key: K) -> V | None:
        try:
            return lookup(key)
        except CacheError as e:
            logger.warning("Cache lookup failed, continuing uncached: %s", e)
            return None
