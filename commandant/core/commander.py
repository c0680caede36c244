# ============================================
# FILE: commandant/core/commander.py
# ============================================

"""
Commander - an atomic unit of work with a validate / execute / notify lifecycle.

Subclasses declare their inputs and error catalog as class attributes and
implement the hooks they need:

    >>> from commandant import Commander
    >>>
    >>> class ReserveSeat(Commander):
    ...     argument_types = {"flight": Flight, "passenger": Passenger}
    ...     errors = {"sold_out": "This flight is sold out"}
    ...
    ...     def check_conditions(self, flight, **options):
    ...         self.condition("sold_out", flight.free_seats > 0)
    ...
    ...     def up(self, flight, passenger, **options):
    ...         self.seat = flight.reserve(passenger)
    ...         return self.seat
    ...
    ...     def down(self):
    ...         self.seat.release()
    ...
    ...     def send_notifications(self, passenger, **options):
    ...         mailer.send(passenger.email, "Seat reserved")
    >>>
    >>> ReserveSeat.run_or_raise(flight=flight, passenger=passenger)   # raises on failure
    >>> result = ReserveSeat.run(flight=flight, passenger=passenger)   # captures failure
    >>> result.success, result.message

Entry points:
    run_or_raise / run          validate -> execute -> notify
    dry_run_or_raise / dry_run  validate only, never any side effect
    undo_or_raise / undo        prepare_inverse -> down

The ``*_or_raise`` variants record a failure and re-raise it; the others
record it and return the instance. Notification failures are reported to the
error sink and swallowed unless the configuration is in strict mode.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Mapping
from types import MappingProxyType
from typing import Any, ClassVar, TypeVar

from commandant.core.config import CommanderConfig, get_config
from commandant.core.exceptions import (
    ArgumentMismatch,
    CommanderError,
    ConditionNotMet,
    ExecutionFailure,
    LifecycleError,
)
from commandant.core.outcome import capture
from commandant.core.registry import CommanderRegistry, CommanderSpec, TypeDescriptor, build_spec
from commandant.core.transaction import run_in_transaction
from commandant.core.types import CommanderState, Phase
from commandant.monitoring.logging import CommanderLogger, commander_scope

logger = logging.getLogger(__name__)
lifecycle_log = CommanderLogger("commandant.lifecycle")

C = TypeVar("C", bound="Commander")

_FAILED_STATE = {
    Phase.VALIDATE: CommanderState.VALIDATION_FAILED,
    Phase.EXECUTE: CommanderState.EXECUTION_FAILED,
    Phase.UNDO: CommanderState.UNDO_FAILED,
}


class Commander:
    """
    Base class for units of work.

    Class Attributes:
        argument_types: Required options and their accepted type(s). A value
            may be a type, a tuple/list of types, or a dotted import string.
        errors: Error catalog mapping a symbolic code to its default message.

    Both catalogs are merged down the class hierarchy and frozen into a
    ``CommanderSpec`` when the subclass is defined.
    """

    argument_types: ClassVar[Mapping[str, TypeDescriptor]] = {}
    errors: ClassVar[Mapping[str, str]] = {}

    def __init_subclass__(cls, **kwargs):
        super().__init_subclass__(**kwargs)

        argument_types: dict[str, TypeDescriptor] = {}
        errors: dict[str, str] = {}
        for klass in reversed(cls.__mro__):
            argument_types.update(vars(klass).get("argument_types", {}))
            errors.update(vars(klass).get("errors", {}))

        CommanderRegistry.register(cls, build_spec(cls, argument_types, errors))

    def __init__(self, options: Mapping[str, Any] | None = None, /, *, config: CommanderConfig | None = None, **kwargs):
        """
        Args:
            options: Input options; keyword arguments are merged on top
            config: Configuration to use instead of the global one
        """
        merged = {str(k): v for k, v in {**(options or {}), **kwargs}.items()}
        self._options: Mapping[str, Any] = MappingProxyType(merged)
        self._config = config
        self._spec: CommanderSpec = CommanderRegistry.spec_for(type(self))

        self._state = CommanderState.CREATED
        self._failed = False
        self._error: Exception | None = None
        self._message: str | None = None
        self._return_value: Any = None

    def __repr__(self) -> str:
        return f"<{self.name} state={self._state.value}>"

    # -- Class-level entry points --

    @classmethod
    def run_or_raise(
        cls: type[C],
        options: Mapping[str, Any] | None = None,
        /,
        *,
        notify: bool = True,
        config: CommanderConfig | None = None,
        **kwargs,
    ) -> C:
        """Validate, execute and notify; validation/execution failures are raised."""
        phases = ["validate_or_raise", "execute_or_raise"]
        if notify:
            phases.append("notify")
        return cls._initialize_and_call(options, kwargs, config, phases)

    @classmethod
    def run(
        cls: type[C],
        options: Mapping[str, Any] | None = None,
        /,
        *,
        notify: bool = True,
        config: CommanderConfig | None = None,
        callback: Callable[[C], Any] | None = None,
        **kwargs,
    ) -> C:
        """Validate, execute and notify; failures are captured on the instance."""
        phases = ["validate", "execute"]
        if notify:
            phases.append("notify")
        instance = cls._initialize_and_call(options, kwargs, config, phases)
        if callback is not None:
            callback(instance)
        return instance

    @classmethod
    def dry_run_or_raise(cls: type[C], options: Mapping[str, Any] | None = None, /, *, config: CommanderConfig | None = None, **kwargs) -> C:
        """Validate only, raising on failure."""
        return cls._initialize_and_call(options, kwargs, config, ["validate_or_raise"])

    @classmethod
    def dry_run(cls: type[C], options: Mapping[str, Any] | None = None, /, *, config: CommanderConfig | None = None, **kwargs) -> C:
        """Validate only; check ``success`` on the returned instance."""
        return cls._initialize_and_call(options, kwargs, config, ["validate"])

    @classmethod
    def undo_or_raise(cls: type[C], options: Mapping[str, Any] | None = None, /, *, config: CommanderConfig | None = None, **kwargs) -> C:
        """Run the inverse of ``up`` for the given options, raising on failure."""
        return cls._initialize_and_call(options, kwargs, config, ["revert_or_raise"])

    @classmethod
    def undo(
        cls: type[C],
        options: Mapping[str, Any] | None = None,
        /,
        *,
        config: CommanderConfig | None = None,
        callback: Callable[[C], Any] | None = None,
        **kwargs,
    ) -> C:
        """Run the inverse of ``up``; failures are captured on the instance."""
        instance = cls._initialize_and_call(options, kwargs, config, ["revert"])
        if callback is not None:
            callback(instance)
        return instance

    @classmethod
    def _initialize_and_call(cls: type[C], options, kwargs, config, phases: list[str]) -> C:
        instance = cls(options, config=config, **kwargs)
        for phase in phases:
            getattr(instance, phase)()
            if instance.failure:
                break
        return instance

    # -- Status --

    @property
    def name(self) -> str:
        return self._spec.name

    @property
    def options(self) -> Mapping[str, Any]:
        """Read-only view of the input options."""
        return self._options

    @property
    def config(self) -> CommanderConfig:
        return self._config if self._config is not None else get_config()

    @property
    def state(self) -> CommanderState:
        return self._state

    @property
    def failed(self) -> bool:
        return self._failed

    @property
    def failure(self) -> bool:
        return self._failed

    @property
    def success(self) -> bool:
        return not self._failed

    @property
    def error(self) -> Exception | None:
        return self._error

    @property
    def message(self) -> str | None:
        """Human-readable failure message; None unless the commander failed."""
        return self._message

    @property
    def return_value(self) -> Any:
        """Value returned by ``up`` (or ``orchestrate``)."""
        return self._return_value

    def on_success(self: C, callback: Callable[[C], Any]) -> C:
        if self.success:
            callback(self)
        return self

    def on_failure(self: C, callback: Callable[[C], Any]) -> C:
        if self.failure:
            callback(self)
        return self

    @classmethod
    def possible_errors(cls, with_prefix: bool = False) -> dict[str, str]:
        """The merged error catalog, optionally keyed by prefixed code."""
        return CommanderRegistry.spec_for(cls).possible_errors(with_prefix)

    # -- Lifecycle --

    def validate_or_raise(self: C) -> C:
        """Check arguments, run ``prepare`` then ``check_conditions``."""
        self._require(Phase.VALIDATE, CommanderState.CREATED)
        self._state = CommanderState.VALIDATING

        with commander_scope(self.name, Phase.VALIDATE.value):
            lifecycle_log.phase_started(self.name, Phase.VALIDATE.value)
            try:
                self._check_arguments()
                self.prepare(**self._options)
                self.check_conditions(**self._options)
            except Exception as e:
                self._record_failure(e, Phase.VALIDATE)
                raise

        self._state = CommanderState.VALIDATED
        self._emit("on_validated", self)
        return self

    def validate(self: C) -> C:
        return self._captured(self.validate_or_raise)

    def execute_or_raise(self: C) -> C:
        """Run ``up`` inside the host transaction boundary."""
        self._require(Phase.EXECUTE, CommanderState.VALIDATED)
        self._state = CommanderState.EXECUTING

        started = time.perf_counter()
        with commander_scope(self.name, Phase.EXECUTE.value):
            lifecycle_log.phase_started(self.name, Phase.EXECUTE.value)
            try:
                self._return_value = run_in_transaction(self._perform, self.config.transaction)
            except Exception as e:
                self._record_failure(e, Phase.EXECUTE, duration=time.perf_counter() - started)
                raise

        self._state = CommanderState.EXECUTED
        self._emit("on_executed", self, time.perf_counter() - started)
        return self

    def execute(self: C) -> C:
        return self._captured(self.execute_or_raise)

    def notify(self: C) -> C:
        """
        Run the notification hook(s).

        Skipped when execution failed. Failures are reported to the error
        sink and only re-raised in strict mode.
        """
        if self._state is CommanderState.EXECUTION_FAILED:
            return self
        self._require(Phase.NOTIFY, CommanderState.EXECUTED)
        self._state = CommanderState.NOTIFYING

        with commander_scope(self.name, Phase.NOTIFY.value):
            error = self._deliver()

        self._state = CommanderState.DONE
        if error is not None:
            if self.config.strict:
                raise error
            return self

        self._emit("on_notified", self)
        return self

    def revert_or_raise(self: C) -> C:
        """Run ``prepare_inverse`` then ``down`` inside the transaction boundary."""
        if self._state not in (CommanderState.CREATED, CommanderState.EXECUTED, CommanderState.DONE):
            raise LifecycleError(Phase.UNDO.value, self._state)
        self._state = CommanderState.UNDOING

        with commander_scope(self.name, Phase.UNDO.value):
            try:
                self.prepare_inverse(**self._options)
                run_in_transaction(self.down, self.config.transaction)
            except Exception as e:
                self._record_failure(e, Phase.UNDO)
                raise

        self._state = CommanderState.UNDONE
        self._emit("on_undone", self)
        return self

    def revert(self: C) -> C:
        return self._captured(self.revert_or_raise)

    # -- Hooks (override in subclasses) --

    def prepare(self, **options) -> None:
        """Derive internal fields from the options before conditions are checked."""

    def check_conditions(self, **options) -> None:
        """Raise ``ConditionNotMet`` (see ``condition``) when a precondition fails."""

    def up(self, **options) -> Any:
        raise NotImplementedError(f"{type(self).__name__} must implement up()")

    def down(self) -> Any:
        """Inverse of ``up``. Does nothing unless overridden."""

    def prepare_inverse(self, **options) -> None:
        """Derive internal fields needed by ``down`` when undoing from scratch."""

    def send_notifications(self, **options) -> None:
        """Post-success side effects (emails, events, ...)."""

    # -- Helpers for subclasses --

    def condition(self, code: str, check: bool | Callable[[], Any], message: str | None = None) -> None:
        """Raise ``ConditionNotMet`` for ``code`` unless ``check`` is truthy."""
        passed = check() if callable(check) else check
        if not passed:
            self.raise_condition(code, message=message)

    def raise_condition(self, code: str, message: str | None = None) -> None:
        raise ConditionNotMet(
            code=self._spec.prefixed(code),
            message=message or self._spec.message_for(code),
        )

    def fail(self, code: str, message: str | None = None, **context) -> None:
        """Raise ``ExecutionFailure`` for ``code``, attaching ``context`` for the error sink."""
        raise ExecutionFailure(
            code=self._spec.prefixed(code),
            message=message or self._spec.message_for(code),
            context=context,
        )

    # -- Internals --

    def _perform(self) -> Any:
        return self.up(**self._options)

    def _deliver(self) -> Exception | None:
        """Send notifications; report and return the first failure."""
        outcome = capture(self.send_notifications, **self._options)
        if outcome.ok:
            return None
        self._report(outcome.error, Phase.NOTIFY)
        return outcome.error

    def _check_arguments(self) -> None:
        for constraint in self._spec.arguments:
            if constraint.name not in self._options:
                raise ArgumentMismatch(constraint.name, expected=constraint.expected, actual=None)
            value = self._options[constraint.name]
            if not constraint.accepts(value):
                raise ArgumentMismatch(constraint.name, expected=constraint.expected, actual=type(value).__name__)

    def _require(self, phase: Phase, *states: CommanderState) -> None:
        if self._state not in states:
            raise LifecycleError(phase.value, self._state)

    def _captured(self: C, fn: Callable[[], Any]) -> C:
        try:
            fn()
        except LifecycleError:
            raise
        except Exception:
            # Already recorded on the instance by the raising variant
            pass
        return self

    def _record_failure(self, error: Exception, phase: Phase, duration: float = 0.0) -> None:
        """Record the first failure of this instance and report it."""
        if self._failed:
            return

        self._failed = True
        self._error = error
        self._message = error.message if isinstance(error, CommanderError) else str(error)
        self._state = _FAILED_STATE[phase]

        lifecycle_log.phase_failed(self.name, phase.value, error)
        self._report(error, phase)
        self._emit("on_failed", self, error, phase, duration)

    def error_context(self, phase: Phase | None = None) -> dict[str, Any]:
        """Context handed to the error sink alongside an error."""
        context: dict[str, Any] = {"commander": self.name, "options": dict(self._options)}
        if phase is not None:
            context["phase"] = phase.value
        return context

    def _report(self, error: Exception, phase: Phase) -> None:
        context = self.error_context(phase)
        if isinstance(error, CommanderError) and error.code:
            context["code"] = error.code
        if isinstance(error, ExecutionFailure) and error.context:
            context["failure_context"] = dict(error.context)
        self.config.report(error, context)

    def _emit(self, hook: str, *args) -> None:
        for listener in self.config.listeners:
            outcome = capture(getattr(listener, hook), *args)
            if not outcome.ok:
                logger.warning(f"Listener {type(listener).__name__}.{hook} raised: {outcome.error!s}")


CommanderRegistry.register(Commander, build_spec(Commander, {}, {}))
