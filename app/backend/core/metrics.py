# app/backend/core/metrics.py
from __future__ import annotations

import os
import platform
import sys
import time
from typing import Any, Dict

try:
    import resource
except ImportError:  # Windows
    resource = None


class PerformanceMonitor:
    """Request counters for /health and /metrics. Updated from the monitoring middleware."""

    def __init__(self) -> None:
        self.started_at = time.monotonic()
        self.total_requests = 0
        self.total_errors = 0
        self.total_duration_ms = 0.0
        self.max_duration_ms = 0.0

    def record_request(self, duration_ms: float) -> None:
        self.total_requests += 1
        self.total_duration_ms += duration_ms
        if duration_ms > self.max_duration_ms:
            self.max_duration_ms = duration_ms

    def record_error(self) -> None:
        self.total_errors += 1

    def uptime(self) -> float:
        return round(time.monotonic() - self.started_at, 3)

    def get_metrics(self) -> Dict[str, Any]:
        avg = self.total_duration_ms / self.total_requests if self.total_requests else 0.0
        error_rate = self.total_errors / self.total_requests if self.total_requests else 0.0
        return {
            "totalRequests": self.total_requests,
            "totalErrors": self.total_errors,
            "errorRate": round(error_rate, 4),
            "averageResponseTime": round(avg, 3),
            "maxResponseTime": round(self.max_duration_ms, 3),
        }


def memory_usage() -> Dict[str, Any]:
    max_rss = None
    if resource is not None:
        max_rss = resource.getrusage(resource.RUSAGE_SELF).ru_maxrss
    return {"maxRssKb": max_rss}


def cpu_usage() -> Dict[str, Any]:
    return {"processTime": round(time.process_time(), 3)}


def system_info() -> Dict[str, Any]:
    return {
        "platform": sys.platform,
        "arch": platform.machine(),
        "pythonVersion": platform.python_version(),
        "pid": os.getpid(),
    }
