"""
Commander monitoring and observability utilities

Quick Start:
    >>> from commandant.monitoring import setup_commander_logging
    >>> logger = setup_commander_logging(json_format=True)

    # Prometheus metrics
    >>> from commandant.monitoring.prometheus import PrometheusMetrics, start_metrics_server
    >>> start_metrics_server(port=8000)
    >>> metrics = PrometheusMetrics()
"""

from .logging import (
    CommanderContextFilter,
    CommanderJsonFormatter,
    CommanderLogger,
    commander_context,
    commander_scope,
    setup_commander_logging,
)
from .metrics import CommanderMetrics
from .prometheus import PrometheusMetrics, start_metrics_server

__all__ = [
    # Logging
    "CommanderContextFilter",
    "CommanderJsonFormatter",
    "CommanderLogger",
    "commander_context",
    "commander_scope",
    "setup_commander_logging",
    # Metrics
    "CommanderMetrics",
    "PrometheusMetrics",
    "start_metrics_server",
]
