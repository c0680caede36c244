# ============================================
# FILE: commandant/__init__.py
# ============================================

"""
Commandant - Units of work with a validate / execute / notify lifecycle

Commanders wrap a single piece of business logic behind a uniform lifecycle:
- Declared argument types, checked before anything else runs
- Precondition checks against a per-type error catalog
- Execution inside a pluggable storage transaction boundary
- Post-success notifications that never invalidate committed work

Supervisors compose commanders (and inline actions) into a saga: when a step
fails, every step recorded before it is compensated in reverse order and the
original failure is surfaced.

Usage - single unit of work:
    >>> from commandant import Commander
    >>>
    >>> class AppendEntry(Commander):
    ...     argument_types = {"entries": list}
    ...     errors = {"too_many_entries": "The list is full"}
    ...
    ...     def check_conditions(self, entries, **options):
    ...         self.condition("too_many_entries", len(entries) < 10)
    ...
    ...     def up(self, entries, **options):
    ...         entries.append("entry")
    ...
    ...     def down(self):
    ...         self.options["entries"].pop()
    >>>
    >>> result = AppendEntry.run(entries=[])
    >>> result.success

Usage - saga of units:
    >>> from commandant import Supervisor
    >>>
    >>> class AppendTwice(Supervisor):
    ...     argument_types = {"entries": list}
    ...
    ...     def orchestrate(self, entries, **options):
    ...         self.commander_step(AppendEntry, entries=entries)
    ...         self.commander_step(AppendEntry, entries=entries)
    >>>
    >>> AppendTwice.run_or_raise(entries=[])

Host integration:
    >>> from commandant import CommanderConfig, configure, transaction_from_context
    >>>
    >>> configure(CommanderConfig(transaction=transaction_from_context(session.begin)))
"""

from commandant.core import (
    BASE_ERRORS,
    ArgumentMismatch,
    Commander,
    CommanderConfig,
    CommanderError,
    CommanderListener,
    CommanderRegistry,
    CommanderSpec,
    CommanderState,
    ConditionNotMet,
    ExecutionFailure,
    LifecycleError,
    LoggingCommanderListener,
    MetricsCommanderListener,
    Outcome,
    Phase,
    RollbackFailure,
    Step,
    Supervisor,
    ValidationError,
    capture,
    configure,
    default_listeners,
    get_config,
    in_transaction,
    null_transaction,
    transaction_from_context,
)

__version__ = "0.4.0"

__all__ = [
    # Primary exports
    "Commander",
    "Supervisor",
    "Step",
    # Configuration
    "CommanderConfig",
    "configure",
    "get_config",
    "in_transaction",
    "null_transaction",
    "transaction_from_context",
    # Types and results
    "CommanderState",
    "Phase",
    "Outcome",
    "capture",
    # Registry
    "BASE_ERRORS",
    "CommanderRegistry",
    "CommanderSpec",
    # Listeners
    "CommanderListener",
    "LoggingCommanderListener",
    "MetricsCommanderListener",
    "default_listeners",
    # Exceptions
    "ArgumentMismatch",
    "CommanderError",
    "ConditionNotMet",
    "ExecutionFailure",
    "LifecycleError",
    "RollbackFailure",
    "ValidationError",
]
