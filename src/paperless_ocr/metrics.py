"""API call and per-file metrics.

A ``MetricsCollector`` is constructed by the caller and handed to the client;
there is no module-level instance. All mutation happens under one lock, so a
collector can be shared by tasks and threads alike.
"""

from __future__ import annotations

import logging
import threading
from typing import Any

import numpy as np
from pydantic import BaseModel, ConfigDict

logger = logging.getLogger(__name__)


class APIMetrics(BaseModel):
    """Counters for vendor API calls. Times are in seconds."""

    successful_calls: int = 0
    failed_calls: int = 0
    retries: int = 0
    rate_limit_hits: int = 0
    total_response_time: float = 0.0
    total_bytes_uploaded: int = 0
    total_bytes_downloaded: int = 0

    @property
    def total_calls(self) -> int:
        return self.successful_calls + self.failed_calls

    @property
    def total_bytes_transferred(self) -> int:
        return self.total_bytes_uploaded + self.total_bytes_downloaded

    @property
    def average_response_time(self) -> float:
        return self.total_response_time / self.total_calls if self.total_calls else 0.0

    @property
    def success_rate(self) -> float:
        """Percentage of calls that succeeded, 0 when nothing was called."""
        return self.successful_calls / self.total_calls * 100 if self.total_calls else 0.0

    def to_summary(self) -> dict[str, Any]:
        return {
            "successful_calls": self.successful_calls,
            "failed_calls": self.failed_calls,
            "total_calls": self.total_calls,
            "success_rate_percent": round(self.success_rate, 2),
            "average_response_time_ms": int(self.average_response_time * 1000),
            "total_duration_ms": int(self.total_response_time * 1000),
            "total_bytes_uploaded": self.total_bytes_uploaded,
            "total_bytes_downloaded": self.total_bytes_downloaded,
            "total_retries": self.retries,
            "rate_limit_hits": self.rate_limit_hits,
        }


class FileMetrics(BaseModel):
    model_config = ConfigDict(frozen=True)

    file_size: int
    duration: float

    @property
    def throughput(self) -> float:
        """Bytes per second; 0 for a zero-duration operation."""
        return self.file_size / self.duration if self.duration > 0 else 0.0


class FileMetricsSummary(BaseModel):
    count: int = 0
    avg: float = 0.0
    p50: float = 0.0
    p95: float = 0.0
    p99: float = 0.0
    avg_throughput: float = 0.0
    total_bytes: int = 0


class MetricsCollector:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._api = APIMetrics()
        self._files: list[FileMetrics] = []

    def record_success(
        self, duration: float, bytes_uploaded: int = 0, bytes_downloaded: int = 0
    ) -> None:
        with self._lock:
            self._api.successful_calls += 1
            self._api.total_response_time += duration
            self._api.total_bytes_uploaded += bytes_uploaded
            self._api.total_bytes_downloaded += bytes_downloaded

    def record_failure(self, duration: float, *, rate_limited: bool = False) -> None:
        with self._lock:
            self._api.failed_calls += 1
            self._api.total_response_time += duration
            if rate_limited:
                self._api.rate_limit_hits += 1

    def record_retry(self) -> None:
        with self._lock:
            self._api.retries += 1

    def record_file(self, file_size: int, duration: float) -> None:
        with self._lock:
            self._files.append(FileMetrics(file_size=file_size, duration=duration))

    def snapshot(self) -> APIMetrics:
        with self._lock:
            return self._api.model_copy()

    def file_metrics(self) -> list[FileMetrics]:
        with self._lock:
            return list(self._files)

    def file_metrics_summary(self) -> FileMetricsSummary:
        files = self.file_metrics()
        if not files:
            return FileMetricsSummary()

        durations = np.array([f.duration for f in files], dtype=float)
        p50, p95, p99 = np.percentile(durations, [50, 95, 99])
        return FileMetricsSummary(
            count=len(files),
            avg=float(durations.mean()),
            p50=float(p50),
            p95=float(p95),
            p99=float(p99),
            avg_throughput=float(np.mean([f.throughput for f in files])),
            total_bytes=sum(f.file_size for f in files),
        )

    def reset(self) -> None:
        with self._lock:
            self._api = APIMetrics()
            self._files.clear()

    def log_summary(self) -> None:
        metrics = self.snapshot()
        if metrics.total_calls == 0:
            return
        logger.info(
            "API metrics: %d calls, %.1f%% success rate, avg response %dms, "
            "%d bytes uploaded, %d bytes downloaded, %d retries, %d rate limit hits",
            metrics.total_calls,
            metrics.success_rate,
            int(metrics.average_response_time * 1000),
            metrics.total_bytes_uploaded,
            metrics.total_bytes_downloaded,
            metrics.retries,
            metrics.rate_limit_hits,
        )
