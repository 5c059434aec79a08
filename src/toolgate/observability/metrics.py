"""
toolgate Metrics Store.

In-process metrics collection for observability without external dependencies.
Tracks:
- Tool calls, failures and latency percentiles (per tool)
- Error counts by code (ToolGateException.code), per tool and global
- Remote tool refreshes (attempts, failures, last outcome)

Thread-safe via locks. ``get_metrics_store()`` returns a process-wide default.
"""

from __future__ import annotations

import statistics
import threading
from collections import Counter, defaultdict, deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from functools import lru_cache
from typing import Any

# Latencies kept per tool for percentiles
LATENCY_WINDOW = 1000


def _nearest_rank(ordered: list[float], q: float) -> float:
    return ordered[min(len(ordered) - 1, int(len(ordered) * q))]


@dataclass
class ToolMetrics:
    """Outcomes of call_tool for one tool name."""

    latencies_ms: deque[float] = field(default_factory=lambda: deque(maxlen=LATENCY_WINDOW))
    errors: Counter[str] = field(default_factory=Counter)
    calls: int = 0
    last_called_at: datetime | None = None

    def record_success(self, ms: float) -> None:
        self.latencies_ms.append(ms)
        self._touch()

    def record_failure(self, code: str) -> None:
        self.errors[code] += 1
        self._touch()

    def _touch(self) -> None:
        self.calls += 1
        self.last_called_at = datetime.now(timezone.utc)

    def latency_summary(self) -> dict[str, float]:
        if not self.latencies_ms:
            return {}
        ordered = sorted(self.latencies_ms)
        return {
            "p50_ms": _nearest_rank(ordered, 0.5),
            "p90_ms": _nearest_rank(ordered, 0.9),
            "p99_ms": _nearest_rank(ordered, 0.99),
            "mean_ms": statistics.mean(ordered),
            "max_ms": ordered[-1],
        }

    def to_dict(self) -> dict[str, Any]:
        return {
            "calls": self.calls,
            "failures": sum(self.errors.values()),
            "last_called_at": self.last_called_at.isoformat() if self.last_called_at else None,
            **self.latency_summary(),
            "errors": dict(self.errors),
        }

@dataclass
class RefreshMetrics:
    """Remote tool refresh outcomes."""

    count: int = 0
    failures: int = 0
    last_at: datetime | None = None
    last_success: bool | None = None
    last_remote_count: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "count": self.count,
            "failures": self.failures,
            "last_at": self.last_at.isoformat() if self.last_at else None,
            "last_success": self.last_success,
            "last_remote_count": self.last_remote_count,
        }


class MetricsStore:
    """
    Central metrics store for toolgate observability.

    The tool manager records into the instance it was given; the HTTP layer
    exposes the summary.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._tools: dict[str, ToolMetrics] = defaultdict(ToolMetrics)
        self._global_errors: dict[str, int] = defaultdict(int)
        self._refresh = RefreshMetrics()
        self._started_at = datetime.now(timezone.utc)

    # -------------------------------------------------------------------------
    # Tool Metrics
    # -------------------------------------------------------------------------

    def record_tool_latency(self, tool: str, ms: float) -> None:
        """Record a successful call and its latency."""
        with self._lock:
            self._tools[tool].record_success(ms)

    def record_tool_error(self, tool: str, code: str) -> None:
        """Record a failed call by error code."""
        with self._lock:
            self._tools[tool].record_failure(code)
            self._global_errors[code] += 1

    # -------------------------------------------------------------------------
    # Global Errors
    # -------------------------------------------------------------------------

    def record_error(self, code: str) -> None:
        """Record a global error (not tied to a specific tool)."""
        with self._lock:
            self._global_errors[code] += 1

    # -------------------------------------------------------------------------
    # Refresh Metrics
    # -------------------------------------------------------------------------

    def record_refresh(self, success: bool, remote_count: int) -> None:
        with self._lock:
            self._refresh.count += 1
            if not success:
                self._refresh.failures += 1
            self._refresh.last_at = datetime.now(timezone.utc)
            self._refresh.last_success = success
            self._refresh.last_remote_count = remote_count

    # -------------------------------------------------------------------------
    # Summary / Export
    # -------------------------------------------------------------------------

    def get_summary(self) -> dict[str, Any]:
        """
        Get a summary of all metrics.

        Returns a dict suitable for JSON serialization and the metrics endpoint.
        """
        with self._lock:
            now = datetime.now(timezone.utc)
            uptime_seconds = (now - self._started_at).total_seconds()

            return {
                "uptime_seconds": round(uptime_seconds, 1),
                "collected_at": now.isoformat(),
                "tools": {name: metrics.to_dict() for name, metrics in self._tools.items()},
                "global_errors": dict(self._global_errors),
                "refresh": self._refresh.to_dict(),
            }

    def reset(self) -> None:
        """Reset all metrics. Useful for testing."""
        with self._lock:
            self._tools.clear()
            self._global_errors.clear()
            self._refresh = RefreshMetrics()
            self._started_at = datetime.now(timezone.utc)


# -----------------------------------------------------------------------------
# Singleton accessor
# -----------------------------------------------------------------------------

@lru_cache(maxsize=1)
def get_metrics_store() -> MetricsStore:
    """Get the default process-wide MetricsStore."""
    return MetricsStore()
