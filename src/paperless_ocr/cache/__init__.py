"""Cache subsystem: TTL-bounded in-memory caches with content-addressed keys."""

from paperless_ocr.cache.keys import FileCacheKey, OcrCacheKey, hash_bytes, hash_file
from paperless_ocr.cache.manager import CacheManager
from paperless_ocr.cache.memory import TTLCache
from paperless_ocr.cache.stats import CacheEntry, CacheStats, CombinedCacheStats

__all__ = [
    "CacheManager",
    "CacheEntry",
    "CacheStats",
    "CombinedCacheStats",
    "FileCacheKey",
    "OcrCacheKey",
    "TTLCache",
    "hash_bytes",
    "hash_file",
]
