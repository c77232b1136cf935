"""Bounded async batch processing."""

from paperless_ocr.concurrency.pool import BatchItem, BatchPool

__all__ = ["BatchItem", "BatchPool"]
