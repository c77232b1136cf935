"""paperless-ocr: extract text from documents through a remote OCR API."""

from paperless_ocr.api.client import OcrApiClient
from paperless_ocr.core import extract, extract_async, extract_batch
from paperless_ocr.errors.exceptions import PaperlessOcrError
from paperless_ocr.types import OcrOutcome

__version__ = "0.1.0"

__all__ = [
    "OcrApiClient",
    "OcrOutcome",
    "PaperlessOcrError",
    "__version__",
    "extract",
    "extract_async",
    "extract_batch",
]
