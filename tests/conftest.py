import json
import time

import httpx
import pytest

from paperless_ocr.api.client import OcrApiClient
from paperless_ocr.cache.manager import CacheManager
from paperless_ocr.config.schema import Settings
from paperless_ocr.errors.retry import RetryPolicy
from paperless_ocr.metrics import MetricsCollector

API_KEY = "sk-test-0123456789abcdef"
PDF_BYTES = b"%PDF-1.4\n1 0 obj\n<< /Type /Catalog >>\nendobj\ntrailer\n%%EOF\n"
PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32


def upload_body(size: int, file_id: str = "file-abc123", **overrides) -> dict:
    body = {
        "id": file_id,
        "object": "file",
        "bytes": size,
        "created_at": int(time.time()),
        "filename": "upload.pdf",
        "purpose": "ocr",
        "status": "uploaded",
    }
    body.update(overrides)
    return body


def ocr_body(pages=("# Page 1",), model: str = "mistral-ocr-latest", **overrides) -> dict:
    body = {
        "pages": [
            {
                "index": i,
                "markdown": markdown,
                "images": [],
                "dimensions": {"dpi": 200, "height": 2200, "width": 1700},
            }
            for i, markdown in enumerate(pages)
        ],
        "model": model,
        "document_annotation": None,
        "usage_info": {"pages_processed": len(pages), "doc_size_bytes": 1024},
    }
    body.update(overrides)
    return body


def error_response(status: int, message: str = "error") -> httpx.Response:
    return httpx.Response(status, json={"error": {"message": message}})


class FakeVendor:
    """In-process stand-in for the Files and OCR endpoints.

    Queued items (responses or exceptions) are served first; once a queue is
    empty, a valid default response is returned.
    """

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.upload_queue: list = []
        self.ocr_queue: list = []
        self.ocr_pages: tuple[str, ...] = ("# Page 1",)
        self._next_id = 0

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.path.endswith("/v1/files"):
            queued = self._pop(self.upload_queue, request)
            if queued is not None:
                return queued
            self._next_id += 1
            return httpx.Response(
                200, json=upload_body(len(request.content), file_id=f"file-{self._next_id}")
            )
        if request.url.path.endswith("/v1/ocr"):
            queued = self._pop(self.ocr_queue, request)
            if queued is not None:
                return queued
            return httpx.Response(200, json=ocr_body(self.ocr_pages))
        return httpx.Response(404, json={"error": "not found"})

    @staticmethod
    def _pop(queue: list, request: httpx.Request) -> httpx.Response | None:
        if not queue:
            return None
        item = queue.pop(0)
        if isinstance(item, type) and issubclass(item, Exception):
            raise item("simulated failure", request=request)
        if isinstance(item, Exception):
            raise item
        return item

    def requests_to(self, path: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.path.endswith(path)]

    @staticmethod
    def json_of(request: httpx.Request) -> dict:
        return json.loads(request.content)


@pytest.fixture
def vendor():
    return FakeVendor()


@pytest.fixture
def sleeps():
    return []


@pytest.fixture
def fake_sleep(sleeps):
    async def _sleep(seconds: float) -> None:
        sleeps.append(seconds)

    return _sleep


@pytest.fixture
def settings():
    return Settings(api_key=API_KEY, retry_policy=RetryPolicy(jitter_factor=0.0))


@pytest.fixture
def metrics():
    return MetricsCollector()


@pytest.fixture
def cache_manager():
    return CacheManager()


@pytest.fixture
def make_client(vendor, fake_sleep, metrics, cache_manager):
    def _make(config: Settings, **kwargs) -> OcrApiClient:
        kwargs.setdefault("cache_manager", cache_manager)
        kwargs.setdefault("metrics", metrics)
        return OcrApiClient(
            config,
            transport=httpx.MockTransport(vendor.handler),
            sleep=fake_sleep,
            **kwargs,
        )

    return _make


@pytest.fixture
async def client(make_client, settings):
    async with make_client(settings) as c:
        yield c


@pytest.fixture
def pdf_file(tmp_path):
    path = tmp_path / "doc.pdf"
    path.write_bytes(PDF_BYTES)
    return path


@pytest.fixture
def png_file(tmp_path):
    path = tmp_path / "scan.png"
    path.write_bytes(PNG_BYTES)
    return path


@pytest.fixture(autouse=True)
def _isolated_config(tmp_path_factory, monkeypatch):
    """Keep user config files and PAPERLESS_OCR_* variables out of tests."""
    home = tmp_path_factory.mktemp("home")
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("XDG_CONFIG_HOME", str(home / ".config"))
    for name in (
        "PAPERLESS_OCR_API_KEY",
        "PAPERLESS_OCR_API_BASE_URL",
        "PAPERLESS_OCR_MODEL",
        "PAPERLESS_OCR_TIMEOUT",
        "PAPERLESS_OCR_MAX_FILE_SIZE",
        "PAPERLESS_OCR_LOG_LEVEL",
        "PAPERLESS_OCR_MAX_WORKERS",
        "PAPERLESS_OCR_MAX_RETRIES",
        "PAPERLESS_OCR_NO_CACHE",
        "PAPERLESS_OCR_STREAMING_THRESHOLD_MB",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(home)
