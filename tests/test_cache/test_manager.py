"""Tests for the cache manager."""

import time

import pytest

from paperless_ocr.api.models import FileUploadResponse, OcrResponse
from paperless_ocr.cache.keys import FileCacheKey, OcrCacheKey
from paperless_ocr.cache.manager import CacheManager


def _upload(file_id: str = "file-1") -> FileUploadResponse:
    return FileUploadResponse(
        id=file_id,
        object="file",
        bytes=100,
        created_at=int(time.time()),
        filename="doc.pdf",
        purpose="ocr",
    )


def _ocr(text: str = "hello") -> OcrResponse:
    return OcrResponse.model_validate(
        {
            "pages": [
                {
                    "index": 0,
                    "markdown": text,
                    "images": [],
                    "dimensions": {"dpi": 200, "height": 10, "width": 10},
                }
            ],
            "model": "mistral-ocr-latest",
            "usage_info": {"pages_processed": 1, "doc_size_bytes": 100},
        }
    )


class TestCacheManager:
    def test_upload_round_trip(self):
        mgr = CacheManager()
        key = FileCacheKey("abc")
        assert mgr.lookup_upload(key) is None
        mgr.store_upload(key, _upload())
        assert mgr.lookup_upload(key).id == "file-1"

    def test_ocr_keyed_by_file_and_model(self):
        mgr = CacheManager()
        mgr.store_ocr(OcrCacheKey("file-1", "mistral-ocr-latest"), _ocr("a"))
        assert mgr.lookup_ocr(OcrCacheKey("file-1", "mistral-ocr-latest")).extracted_text == "a"
        assert mgr.lookup_ocr(OcrCacheKey("file-1", "mistral-ocr-other")) is None

    def test_default_capacities(self):
        mgr = CacheManager()
        stats = mgr.stats()
        assert stats.file_upload_cache.max_entries == 100
        assert stats.ocr_result_cache.max_entries == 200
        assert mgr.file_upload_cache.ttl_seconds == 3600.0
        assert mgr.ocr_result_cache.ttl_seconds == 7200.0

    def test_disabled_never_stores(self):
        mgr = CacheManager(enabled=False)
        key = FileCacheKey("abc")
        mgr.store_upload(key, _upload())
        assert mgr.lookup_upload(key) is None
        assert mgr.stats().total_entries == 0

    def test_wrong_type_surfaces_cache_error(self):
        from paperless_ocr.errors.exceptions import CacheError

        mgr = CacheManager()
        mgr.file_upload_cache.put(FileCacheKey("a"), _ocr())
        with pytest.raises(CacheError):
            mgr.lookup_upload(FileCacheKey("a"))
