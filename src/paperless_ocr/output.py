"""Result and diagnostics rendering for the CLI."""

from __future__ import annotations

import json
from typing import Any

from rich.table import Table

from paperless_ocr.cache.stats import CombinedCacheStats
from paperless_ocr.errors.exceptions import PaperlessOcrError
from paperless_ocr.metrics import APIMetrics, FileMetricsSummary
from paperless_ocr.types import OcrOutcome


def render_human(outcome: OcrOutcome) -> str:
    if outcome.is_empty:
        return f"Warning: No text extracted from {outcome.file_name} ({outcome.file_size} bytes)"
    return (
        f"Extracted text from {outcome.file_name} ({outcome.file_size} bytes):\n\n{outcome.text}"
    )


def outcome_payload(outcome: OcrOutcome) -> dict[str, Any]:
    return {
        "extracted_text": outcome.text,
        "file_name": outcome.file_name,
        "file_size": outcome.file_size,
        "file_id": outcome.file_id,
        "model": outcome.model,
        "processing_time_ms": outcome.processing_time_ms,
        "usage": outcome.usage.model_dump(),
        "confidence": None,
    }


def render_json(outcome: OcrOutcome, *, pretty: bool = True) -> str:
    payload = {"success": True, "data": outcome_payload(outcome)}
    return json.dumps(payload, indent=2 if pretty else None, ensure_ascii=False)


def render_error_json(error: PaperlessOcrError, *, pretty: bool = True) -> str:
    payload = {"success": False, "error": error.to_dict()}
    return json.dumps(payload, indent=2 if pretty else None, ensure_ascii=False)


def metrics_table(metrics: APIMetrics) -> Table:
    table = Table(title="API Metrics", show_header=True)
    table.add_column("Metric", style="cyan")
    table.add_column("Value")

    table.add_row("Calls", f"{metrics.total_calls} ({metrics.failed_calls} failed)")
    table.add_row("Success rate", f"{metrics.success_rate:.1f}%")
    table.add_row("Avg response", f"{metrics.average_response_time * 1000:.0f} ms")
    table.add_row("Retries", str(metrics.retries))
    table.add_row("Rate limit hits", str(metrics.rate_limit_hits))
    table.add_row("Uploaded", f"{metrics.total_bytes_uploaded:,} bytes")
    table.add_row("Downloaded", f"{metrics.total_bytes_downloaded:,} bytes")
    return table


def file_metrics_table(summary: FileMetricsSummary) -> Table:
    table = Table(title="File Metrics", show_header=True)
    table.add_column("Metric", style="cyan")
    table.add_column("Value")

    table.add_row("Files", str(summary.count))
    table.add_row("Total size", f"{summary.total_bytes:,} bytes")
    table.add_row("Avg duration", f"{summary.avg:.3f} s")
    table.add_row("p50 / p95 / p99", f"{summary.p50:.3f} / {summary.p95:.3f} / {summary.p99:.3f} s")
    table.add_row("Avg throughput", f"{summary.avg_throughput / 1024:.1f} KiB/s")
    return table


def cache_table(stats: CombinedCacheStats) -> Table:
    table = Table(title="Cache Statistics", show_header=True)
    table.add_column("Cache", style="cyan")
    table.add_column("Entries")
    table.add_column("Hits")
    table.add_column("Misses")
    table.add_column("Hit rate")
    table.add_column("Evictions")

    for name, cache in (
        ("File uploads", stats.file_upload_cache),
        ("OCR results", stats.ocr_result_cache),
    ):
        table.add_row(
            name,
            f"{cache.entries}/{cache.max_entries}",
            str(cache.hits),
            str(cache.misses),
            f"{cache.hit_rate:.1%}",
            str(cache.evictions),
        )
    return table
