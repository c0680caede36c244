# ============================================
# FILE: commandant/core/__init__.py
# ============================================
"""
Core module for Commandant - the lifecycle, the saga engine and their configuration.
"""

from commandant.core.commander import Commander
from commandant.core.config import CommanderConfig, configure, get_config, log_error
from commandant.core.exceptions import (
    ArgumentMismatch,
    CommanderError,
    ConditionNotMet,
    ExecutionFailure,
    LifecycleError,
    RollbackFailure,
    ValidationError,
)
from commandant.core.listeners import (
    CommanderListener,
    LoggingCommanderListener,
    MetricsCommanderListener,
    default_listeners,
)
from commandant.core.outcome import Outcome, capture
from commandant.core.registry import BASE_ERRORS, CommanderRegistry, CommanderSpec
from commandant.core.step import Step
from commandant.core.supervisor import Supervisor
from commandant.core.transaction import in_transaction, null_transaction, transaction_from_context
from commandant.core.types import CommanderState, Phase

__all__ = [
    # Config
    "CommanderConfig",
    "configure",
    "get_config",
    "log_error",
    # Units of work
    "Commander",
    "Step",
    "Supervisor",
    # Exceptions
    "ArgumentMismatch",
    "CommanderError",
    "ConditionNotMet",
    "ExecutionFailure",
    "LifecycleError",
    "RollbackFailure",
    "ValidationError",
    # Listeners
    "CommanderListener",
    "LoggingCommanderListener",
    "MetricsCommanderListener",
    "default_listeners",
    # Registry
    "BASE_ERRORS",
    "CommanderRegistry",
    "CommanderSpec",
    # Helpers
    "Outcome",
    "capture",
    "in_transaction",
    "null_transaction",
    "transaction_from_context",
    # Types
    "CommanderState",
    "Phase",
]
