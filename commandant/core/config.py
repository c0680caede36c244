"""
CommanderConfig - Unified configuration for Commandant.

Wires together the collaborators the lifecycle consumes from its host:
- Transaction boundary (wraps every top-level execute phase)
- Error sink (receives every recorded or swallowed failure)
- Strict mode (re-raise notification failures, for test suites)
- Observability listeners (logging, metrics)

Example:
    >>> from commandant import CommanderConfig, configure
    >>> from commandant.core.transaction import transaction_from_context
    >>>
    >>> config = CommanderConfig(
    ...     transaction=transaction_from_context(session.begin),
    ...     error_handler=sentry_sdk.capture_exception_with_context,
    ...     strict=False,
    ... )
    >>> configure(config)
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

import yaml

from commandant.core.env import get_env
from commandant.core.listeners import (
    CommanderListener,
    LoggingCommanderListener,
    MetricsCommanderListener,
)
from commandant.core.transaction import TransactionBoundary, null_transaction

logger = logging.getLogger(__name__)

ErrorHandler = Callable[[BaseException, Mapping[str, Any]], None]


def log_error(error: BaseException, context: Mapping[str, Any]) -> None:
    """Default error sink: log the failure with its commander context."""
    logging.getLogger("commandant.errors").error(
        f"[{context.get('commander', 'commander')}] {error!s}",
        extra={"commander_context": dict(context), "error_type": type(error).__name__},
        exc_info=(type(error), error, error.__traceback__),
    )


@dataclass
class CommanderConfig:
    """
    Unified configuration for Commandant.

    Attributes:
        transaction: Boundary wrapping the execute phase (``fn -> fn()``)
        error_handler: Sink called as ``error_handler(error, context)``
        strict: Re-raise notification failures instead of swallowing them
        logging: Enable lifecycle logging (True/False or a listener instance)
        metrics: Enable metrics collection (True/False or a listener instance)
        extra_listeners: Additional listeners appended after the built-ins

    Example:
        >>> # Minimal config (no storage transaction, log errors)
        >>> config = CommanderConfig()
        >>>
        >>> # Test suite config
        >>> config = CommanderConfig(strict=True, metrics=False)
    """

    transaction: TransactionBoundary = null_transaction
    error_handler: ErrorHandler = log_error
    strict: bool = False

    logging: bool | CommanderListener = True
    metrics: bool | CommanderListener = True
    extra_listeners: list[CommanderListener] = field(default_factory=list)

    # Internal: cached listeners list
    _listeners: list[CommanderListener] = field(default_factory=list, repr=False)

    def __post_init__(self) -> None:
        self._listeners = self._build_listeners()

    def _build_listeners(self) -> list[CommanderListener]:
        listeners: list[CommanderListener] = []

        if isinstance(self.logging, CommanderListener):
            listeners.append(self.logging)
        elif self.logging:
            listeners.append(LoggingCommanderListener())

        if isinstance(self.metrics, CommanderListener):
            listeners.append(self.metrics)
        elif self.metrics:
            listeners.append(MetricsCommanderListener())

        listeners.extend(self.extra_listeners)
        return listeners

    @property
    def listeners(self) -> list[CommanderListener]:
        """Get configured listeners list."""
        return self._listeners

    @property
    def metrics_listener(self) -> MetricsCommanderListener | None:
        """The first configured metrics listener, if any."""
        for listener in self._listeners:
            if isinstance(listener, MetricsCommanderListener):
                return listener
        return None

    def report(self, error: BaseException, context: Mapping[str, Any]) -> None:
        """
        Hand a failure to the error sink.

        A sink that raises must not change the outcome of the lifecycle, so
        its own errors are logged and dropped here.
        """
        try:
            self.error_handler(error, context)
        except Exception:
            logger.exception("Error handler raised while reporting %s", type(error).__name__)

    def _replace(self, **changes: Any) -> CommanderConfig:
        """Copy with ``changes``, sharing the listener instances already built."""
        kept: dict[str, Any] = {"extra_listeners": list(self.extra_listeners)}
        if self.logging is True:
            kept["logging"] = next(
                listener for listener in self._listeners if isinstance(listener, LoggingCommanderListener)
            )
        if self.metrics is True:
            kept["metrics"] = self.metrics_listener
        return replace(self, **{**kept, **changes})

    def with_transaction(self, transaction: TransactionBoundary) -> CommanderConfig:
        """Create a new config with a different transaction boundary (immutable update)."""
        return self._replace(transaction=transaction)

    def with_error_handler(self, error_handler: ErrorHandler) -> CommanderConfig:
        """Create a new config with a different error sink (immutable update)."""
        return self._replace(error_handler=error_handler)

    def with_strict(self, strict: bool = True) -> CommanderConfig:
        """Create a new config with strict mode toggled (immutable update)."""
        return self._replace(strict=strict)

    @classmethod
    def from_env(cls, load_dotenv: bool = True) -> CommanderConfig:
        """
        Create configuration from environment variables.

        Environment variables:
            COMMANDANT_STRICT: Re-raise notification failures (true/false)
            COMMANDANT_LOGGING: Enable lifecycle logging (true/false)
            COMMANDANT_METRICS: Enable metrics (true/false)
            COMMANDANT_LOG_LEVEL: Level used by the logging listener

        Args:
            load_dotenv: If True, loads .env file before reading variables
        """
        env = get_env()
        if load_dotenv:
            env.load()

        log_enabled = env.get_bool("COMMANDANT_LOGGING", True)
        level = env.get("COMMANDANT_LOG_LEVEL", "INFO").upper()

        return cls(
            strict=env.get_bool("COMMANDANT_STRICT", False),
            logging=LoggingCommanderListener(level=level) if log_enabled else False,
            metrics=env.get_bool("COMMANDANT_METRICS", True),
        )

    @classmethod
    def from_file(cls, file_path: str | Path, substitute_env: bool = True) -> CommanderConfig:
        """
        Load configuration from a YAML (or JSON) file.

        Supports environment variable substitution using ${VAR} syntax.

        Example file:
            strict: ${COMMANDANT_STRICT:-false}
            observability:
              logging:
                enabled: true
                level: DEBUG
              metrics:
                enabled: false
        """
        path = Path(file_path)
        if not path.exists():
            msg = f"Configuration file not found: {file_path}"
            raise FileNotFoundError(msg)

        with path.open() as f:
            data = yaml.safe_load(f)

        if not data:
            return cls()

        if substitute_env:
            env = get_env()
            env.load()
            data = env.substitute_dict(data)

        obs_data = data.get("observability", {}) or {}
        log_data = obs_data.get("logging", {}) or {}
        metrics_data = obs_data.get("metrics", {}) or {}

        log_enabled = _as_bool(log_data.get("enabled", True))
        level = str(log_data.get("level", "INFO")).upper()

        return cls(
            strict=_as_bool(data.get("strict", False)),
            logging=LoggingCommanderListener(level=level) if log_enabled else False,
            metrics=_as_bool(metrics_data.get("enabled", True)),
        )


def _as_bool(value: Any) -> bool:
    # Substituted values arrive as strings
    if isinstance(value, str):
        return value.strip().lower() in ("true", "1", "yes", "on")
    return bool(value)


# Global configuration singleton
_global_config: CommanderConfig | None = None


def get_config() -> CommanderConfig:
    """Get the global commander configuration."""
    global _global_config
    if _global_config is None:
        _global_config = CommanderConfig()
    return _global_config


def configure(config: CommanderConfig | None) -> None:
    """Set the global commander configuration (None restores the default)."""
    global _global_config
    _global_config = config
    if config is not None:
        logger.info(f"Commandant configured: strict={config.strict}, listeners={len(config.listeners)}")
