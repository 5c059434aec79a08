"""
toolgate Observability Module.

Provides in-process metrics collection for tool calls, errors and refreshes.
"""

from toolgate.observability.metrics import MetricsStore, get_metrics_store

__all__ = ["MetricsStore", "get_metrics_store"]
