# ============================================
# FILE: commandant/monitoring/prometheus.py
# ============================================

"""
Prometheus metrics integration for Commandant.

Quick Start:
    >>> from commandant.monitoring.prometheus import PrometheusMetrics, start_metrics_server
    >>>
    >>> start_metrics_server(port=8000)
    >>> metrics = PrometheusMetrics()
    >>>
    >>> from commandant.core.listeners import MetricsCommanderListener
    >>> configure(CommanderConfig(metrics=MetricsCommanderListener(prometheus=metrics)))
"""

import logging

from prometheus_client import REGISTRY, CollectorRegistry, Counter, Histogram, start_http_server

from commandant.core.types import CommanderState

logger = logging.getLogger(__name__)


class PrometheusMetrics:
    """
    Prometheus-compatible metrics collector for Commandant.

    Exposes the following metrics:
        - commander_execution_total: Counter of execute phases by commander and state
        - commander_rejections_total: Counter of validation failures
        - commander_rollbacks_total: Counter of supervisor rollbacks
        - commander_rollback_failures_total: Counter of failed compensations
        - commander_execution_duration_seconds: Histogram of execute durations
    """

    def __init__(self, prefix: str = "commander", registry: CollectorRegistry | None = None):
        """
        Initialize Prometheus metrics.

        Args:
            prefix: Metric name prefix (default: "commander")
            registry: Collector registry (default: the global prometheus registry)
        """
        self._prefix = prefix
        registry = registry if registry is not None else REGISTRY

        self._execution_total = Counter(
            f"{prefix}_execution_total",
            "Total commander executions",
            ["commander", "state"],
            registry=registry,
        )

        self._rejections_total = Counter(
            f"{prefix}_rejections_total",
            "Total commander validation failures",
            ["commander"],
            registry=registry,
        )

        self._rollbacks_total = Counter(
            f"{prefix}_rollbacks_total",
            "Total supervisor rollbacks",
            ["commander"],
            registry=registry,
        )

        self._rollback_failures_total = Counter(
            f"{prefix}_rollback_failures_total",
            "Total compensating actions that raised during rollback",
            ["commander"],
            registry=registry,
        )

        self._execution_duration = Histogram(
            f"{prefix}_execution_duration_seconds",
            "Commander execute phase duration in seconds",
            ["commander"],
            buckets=[0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
            registry=registry,
        )

    def record_execution(self, commander_name: str, state: CommanderState, duration: float) -> None:
        self._execution_total.labels(commander=commander_name, state=state.value).inc()
        self._execution_duration.labels(commander=commander_name).observe(duration)

    def record_rejection(self, commander_name: str) -> None:
        self._rejections_total.labels(commander=commander_name).inc()

    def record_rollback(self, commander_name: str, failures: int = 0) -> None:
        self._rollbacks_total.labels(commander=commander_name).inc()
        if failures:
            self._rollback_failures_total.labels(commander=commander_name).inc(failures)


def start_metrics_server(port: int = 8000, addr: str = "0.0.0.0") -> None:
    """
    Start a Prometheus HTTP metrics server.

    Args:
        port: Port to listen on (default: 8000)
        addr: Address to bind to (default: 0.0.0.0 for all interfaces)
    """
    start_http_server(port, addr)
    logger.info(f"Prometheus metrics server started on port {port}")
