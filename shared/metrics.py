"""
Shared metrics configuration for the memoizer.
"""

from typing import Dict, Any, Optional
import time
from contextlib import contextmanager

from prometheus_client import Counter, Histogram, Gauge, Info, CollectorRegistry


class MetricsCollector:
    """Centralized metrics collector.

    Metrics are registered on ``registry`` when one is given; with no registry
    they are created unregistered, so several collectors can coexist in one
    process (tests, multiple caches).
    """

    def __init__(self, service_name: str, registry: Optional[CollectorRegistry] = None):
        self.service_name = service_name
        self.registry = registry
        self._metrics: Dict[str, Any] = {}
        self._setup_metrics()

    def _setup_metrics(self):
        """Set up common metrics."""

        self._metrics["service_info"] = Info(
            "service_info",
            "Service information",
            registry=self.registry
        )
        self._metrics["service_info"].info({
            "service": self.service_name,
            "version": "1.0.0"
        })

        self._metrics["errors_total"] = Counter(
            "errors_total",
            "Total errors",
            ["error_type", "service"],
            registry=self.registry
        )

        self._setup_cache_metrics()

    def _setup_cache_metrics(self):
        """Set up memoization cache metrics."""
        self._metrics["memo_cache_hits_total"] = Counter(
            "memo_cache_hits_total",
            "Total memoization cache hits",
            ["cache"],
            registry=self.registry
        )

        self._metrics["memo_cache_misses_total"] = Counter(
            "memo_cache_misses_total",
            "Total memoization cache misses",
            ["cache"],
            registry=self.registry
        )

        self._metrics["memo_evaluations_total"] = Counter(
            "memo_evaluations_total",
            "Total evaluations of memoized callables",
            ["cache", "outcome"],
            registry=self.registry
        )

        self._metrics["memo_evaluation_duration_seconds"] = Histogram(
            "memo_evaluation_duration_seconds",
            "Memoized callable evaluation duration in seconds",
            ["cache"],
            registry=self.registry
        )

        self._metrics["memo_cache_entries"] = Gauge(
            "memo_cache_entries",
            "Number of entries held by a memoization cache",
            ["cache"],
            registry=self.registry
        )

    def get_metric(self, name: str):
        """Get a metric by name."""
        return self._metrics.get(name)

    def record_error(self, error_type: str, service: Optional[str] = None):
        """Record error metrics."""
        service_name = service or self.service_name
        self._metrics["errors_total"].labels(error_type=error_type, service=service_name).inc()

    @contextmanager
    def time_operation(self, operation_name: str, **labels):
        """Context manager to time an operation."""
        start_time = time.perf_counter()
        try:
            yield
        finally:
            duration = time.perf_counter() - start_time
            if operation_name in self._metrics:
                self._metrics[operation_name].labels(**labels).observe(duration)

    def increment_counter(self, metric_name: str, **labels):
        """Increment a counter metric."""
        if metric_name in self._metrics:
            self._metrics[metric_name].labels(**labels).inc()

    def set_gauge(self, metric_name: str, value: float, **labels):
        """Set a gauge metric value."""
        if metric_name in self._metrics:
            self._metrics[metric_name].labels(**labels).set(value)

    def observe_histogram(self, metric_name: str, value: float, **labels):
        """Observe a histogram metric."""
        if metric_name in self._metrics:
            self._metrics[metric_name].labels(**labels).observe(value)


def get_metrics_collector(service_name: str, registry: Optional[CollectorRegistry] = None) -> MetricsCollector:
    """Get a metrics collector."""
    return MetricsCollector(service_name, registry)
