"""
Lifecycle listeners for cross-cutting concerns.

Listeners observe a commander's lifecycle without taking part in it: every
callback is invoked through ``capture`` by the commander, so a listener that
raises is logged and ignored.

Example:
    >>> from commandant import CommanderConfig, configure
    >>> from commandant.core.listeners import LoggingCommanderListener
    >>>
    >>> configure(CommanderConfig(logging=LoggingCommanderListener(level="DEBUG")))
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from commandant.core.types import CommanderState, Phase
from commandant.monitoring.metrics import CommanderMetrics

if TYPE_CHECKING:  # pragma: no cover
    from commandant.core.commander import Commander
    from commandant.core.exceptions import RollbackFailure
    from commandant.monitoring.prometheus import PrometheusMetrics


class CommanderListener:
    """Base listener; every hook is a no-op"""

    def on_validated(self, commander: Commander) -> None:
        pass

    def on_executed(self, commander: Commander, duration: float) -> None:
        pass

    def on_failed(self, commander: Commander, error: Exception, phase: Phase, duration: float = 0.0) -> None:
        pass

    def on_rolled_back(self, commander: Commander, compensated: int, errors: list[RollbackFailure]) -> None:
        pass

    def on_notified(self, commander: Commander) -> None:
        pass

    def on_undone(self, commander: Commander) -> None:
        pass


class LoggingCommanderListener(CommanderListener):
    """Logs lifecycle transitions through the package logger"""

    def __init__(self, logger: Any = None, level: str | int = "INFO"):
        self.log = logger or logging.getLogger("commandant.lifecycle")
        self.level = logging.getLevelName(level) if isinstance(level, str) else level

    def on_validated(self, commander: Commander) -> None:
        self.log.debug(f"{commander.name} validated")

    def on_executed(self, commander: Commander, duration: float) -> None:
        self.log.log(self.level, f"{commander.name} executed in {duration * 1000:.2f}ms")

    def on_failed(self, commander: Commander, error: Exception, phase: Phase, duration: float = 0.0) -> None:
        self.log.warning(
            f"{commander.name} failed during {phase.value}: {error!s}",
            extra={"commander": commander.name, "phase": phase.value, "error_type": type(error).__name__},
        )

    def on_rolled_back(self, commander: Commander, compensated: int, errors: list[RollbackFailure]) -> None:
        if errors:
            self.log.error(
                f"{commander.name} rolled back {compensated} step(s) with {len(errors)} failed compensation(s)"
            )
        else:
            self.log.warning(f"{commander.name} rolled back {compensated} step(s)")

    def on_notified(self, commander: Commander) -> None:
        self.log.debug(f"{commander.name} notifications sent")

    def on_undone(self, commander: Commander) -> None:
        self.log.log(self.level, f"{commander.name} undone")


class MetricsCommanderListener(CommanderListener):
    """
    Feeds lifecycle events into ``CommanderMetrics`` and, optionally, a
    ``PrometheusMetrics`` collector.
    """

    def __init__(self, metrics: CommanderMetrics | None = None, prometheus: PrometheusMetrics | None = None):
        self.metrics = metrics or CommanderMetrics()
        self.prometheus = prometheus

    def _sinks(self) -> list:
        return [s for s in (self.metrics, self.prometheus) if s is not None]

    def on_executed(self, commander: Commander, duration: float) -> None:
        for sink in self._sinks():
            sink.record_execution(commander.name, CommanderState.EXECUTED, duration)

    def on_failed(self, commander: Commander, error: Exception, phase: Phase, duration: float = 0.0) -> None:
        for sink in self._sinks():
            if phase is Phase.VALIDATE:
                sink.record_rejection(commander.name)
            elif phase is Phase.EXECUTE:
                sink.record_execution(commander.name, CommanderState.EXECUTION_FAILED, duration)

    def on_rolled_back(self, commander: Commander, compensated: int, errors: list[RollbackFailure]) -> None:
        for sink in self._sinks():
            sink.record_rollback(commander.name, failures=len(errors))


def default_listeners() -> list[CommanderListener]:
    """Listeners installed by a default ``CommanderConfig``"""
    return [LoggingCommanderListener(), MetricsCommanderListener()]
