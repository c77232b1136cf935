"""Cache manager: owns the file-upload and OCR-result caches."""

from __future__ import annotations

import logging

from paperless_ocr.api.models import FileUploadResponse, OcrResponse
from paperless_ocr.cache.keys import FileCacheKey, OcrCacheKey
from paperless_ocr.cache.memory import TTLCache
from paperless_ocr.cache.stats import CombinedCacheStats
from paperless_ocr.config.defaults import (
    DEFAULT_OCR_CACHE_MAX_ENTRIES,
    DEFAULT_OCR_CACHE_TTL,
    DEFAULT_UPLOAD_CACHE_MAX_ENTRIES,
    DEFAULT_UPLOAD_CACHE_TTL,
)

logger = logging.getLogger(__name__)


class CacheManager:
    """Process-lifetime caches for uploads (by content hash) and OCR results.

    Nothing is persisted; a disabled manager never stores and always misses.
    """

    def __init__(
        self,
        upload_ttl: float = DEFAULT_UPLOAD_CACHE_TTL,
        upload_max_entries: int = DEFAULT_UPLOAD_CACHE_MAX_ENTRIES,
        ocr_ttl: float = DEFAULT_OCR_CACHE_TTL,
        ocr_max_entries: int = DEFAULT_OCR_CACHE_MAX_ENTRIES,
        enabled: bool = True,
    ) -> None:
        self._enabled = enabled
        self.file_upload_cache: TTLCache[FileCacheKey, FileUploadResponse] = TTLCache(
            upload_ttl,
            upload_max_entries,
            name="file_upload_cache",
            value_type=FileUploadResponse,
        )
        self.ocr_result_cache: TTLCache[OcrCacheKey, OcrResponse] = TTLCache(
            ocr_ttl,
            ocr_max_entries,
            name="ocr_result_cache",
            value_type=OcrResponse,
        )

    @property
    def enabled(self) -> bool:
        return self._enabled

    def lookup_upload(self, key: FileCacheKey) -> FileUploadResponse | None:
        if not self._enabled:
            return None
        return self.file_upload_cache.get(key)

    def store_upload(self, key: FileCacheKey, response: FileUploadResponse) -> None:
        if self._enabled:
            self.file_upload_cache.put(key, response)

    def lookup_ocr(self, key: OcrCacheKey) -> OcrResponse | None:
        if not self._enabled:
            return None
        return self.ocr_result_cache.get(key)

    def store_ocr(self, key: OcrCacheKey, response: OcrResponse) -> None:
        if self._enabled:
            self.ocr_result_cache.put(key, response)

    def stats(self) -> CombinedCacheStats:
        return CombinedCacheStats(
            file_upload_cache=self.file_upload_cache.stats(),
            ocr_result_cache=self.ocr_result_cache.stats(),
        )
