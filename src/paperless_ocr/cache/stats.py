"""Cache entry and statistics models."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict


class CacheEntry(BaseModel):
    """A cached value with its insertion time (monotonic seconds) and TTL."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    value: Any
    inserted_at: float
    ttl_seconds: float

    def is_expired(self, now: float) -> bool:
        return now - self.inserted_at > self.ttl_seconds

    def remaining_ttl(self, now: float) -> float:
        return max(0.0, self.inserted_at + self.ttl_seconds - now)


class CacheStats(BaseModel):
    """Counters for a single cache since creation."""

    entries: int = 0
    max_entries: int = 0
    hits: int = 0
    misses: int = 0
    evictions: int = 0
    expirations: int = 0

    @property
    def hit_rate(self) -> float:
        total = self.hits + self.misses
        return self.hits / total if total > 0 else 0.0


class CombinedCacheStats(BaseModel):
    file_upload_cache: CacheStats
    ocr_result_cache: CacheStats

    @property
    def total_entries(self) -> int:
        return self.file_upload_cache.entries + self.ocr_result_cache.entries

    @property
    def total_hits(self) -> int:
        return self.file_upload_cache.hits + self.ocr_result_cache.hits
