"""
Structured logging for commander execution

Every lifecycle phase runs inside ``commander_scope``, which publishes the
running commander's name, phase and a correlation id through a context
variable. ``CommanderJsonFormatter`` and ``CommanderContextFilter`` read that
variable so log lines emitted from inside hooks carry the same fields.
"""

import json
import logging
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import UTC, datetime
from typing import Any

# Context variables for propagating commander context
commander_context: ContextVar[dict[str, Any]] = ContextVar("commander_context", default={})


@contextmanager
def commander_scope(commander: str, phase: str, correlation_id: str | None = None) -> Iterator[dict[str, Any]]:
    """
    Publish commander context for the duration of a phase.

    Nested commanders inherit the enclosing correlation id, so every log line
    produced by one supervisor run can be grouped together.
    """
    parent = commander_context.get({})
    context = {
        "commander": commander,
        "phase": phase,
        "parent": parent.get("commander"),
        "correlation_id": correlation_id or parent.get("correlation_id") or str(uuid.uuid4()),
    }
    token = commander_context.set(context)
    try:
        yield context
    finally:
        commander_context.reset(token)


class CommanderJsonFormatter(logging.Formatter):
    """
    JSON formatter for commander logs with structured fields
    """

    # Fields to extract from log record if present
    _EXTRA_FIELDS = (
        "commander",
        "phase",
        "correlation_id",
        "duration_ms",
        "error_type",
        "step_index",
    )

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as structured JSON"""
        log_entry = self._build_base_entry(record)
        self._add_commander_context(log_entry)
        self._add_record_extras(log_entry, record)
        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_entry, default=str)

    def _build_base_entry(self, record: logging.LogRecord) -> dict[str, Any]:
        return {
            "timestamp": datetime.now(UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

    def _add_commander_context(self, log_entry: dict[str, Any]) -> None:
        context = commander_context.get({})
        if context:
            log_entry.update(
                {
                    "commander": context.get("commander"),
                    "phase": context.get("phase"),
                    "parent": context.get("parent"),
                    "correlation_id": context.get("correlation_id"),
                }
            )

    def _add_record_extras(self, log_entry: dict[str, Any], record: logging.LogRecord) -> None:
        for field in self._EXTRA_FIELDS:
            if hasattr(record, field):
                log_entry[field] = getattr(record, field)


class CommanderContextFilter(logging.Filter):
    """
    Logging filter that adds commander context to log records
    """

    def filter(self, record: logging.LogRecord) -> bool:
        context = commander_context.get({})

        record.commander = context.get("commander", "-")
        record.phase = context.get("phase", "-")
        record.correlation_id = context.get("correlation_id", "")

        return True


class CommanderLogger:
    """
    Commander-aware logger with automatic context propagation
    """

    def __init__(self, name: str):
        self.logger = logging.getLogger(name)
        self.logger.addFilter(CommanderContextFilter())

    def phase_started(self, commander: str, phase: str) -> None:
        self.logger.debug(f"{commander}: {phase} started")

    def phase_failed(self, commander: str, phase: str, error: Exception) -> None:
        self.logger.error(
            f"{commander}: {phase} failed - {error!s}",
            extra={"error_type": type(error).__name__},
        )

    def compensation_failed(self, commander: str, step_index: int, error: Exception) -> None:
        """Log compensation failure - critical error"""
        self.logger.critical(
            f"{commander}: compensation of step {step_index} FAILED - {error!s}",
            extra={"error_type": type(error).__name__, "step_index": step_index},
        )


def setup_commander_logging(
    log_level: str = "INFO", json_format: bool = True, include_console: bool = True
) -> CommanderLogger:
    """
    Set up structured logging for commanders

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        json_format: Use JSON formatting for structured logs
        include_console: Include console handler

    Returns:
        Configured CommanderLogger instance
    """
    root_logger = logging.getLogger("commandant")
    root_logger.setLevel(getattr(logging, log_level.upper()))

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    if include_console:
        console_handler = logging.StreamHandler()
        console_handler.addFilter(CommanderContextFilter())

        if json_format:
            console_handler.setFormatter(CommanderJsonFormatter())
        else:
            formatter = logging.Formatter(
                "%(asctime)s - %(name)s - %(levelname)s - [%(commander)s:%(phase)s] - %(message)s"
            )
            console_handler.setFormatter(formatter)

        root_logger.addHandler(console_handler)

    return CommanderLogger("commandant")
