"""
Step - one recorded unit of change inside a Supervisor.

A step pairs a forward action with an optional compensating action and an
optional notification. Actions are bound to the owning supervisor when they
are registered, so they receive it explicitly as their first argument:

    up(owner) -> result
    down(owner, result)
    notify(owner, result)
"""

from collections.abc import Callable
from functools import partial
from typing import Any

UpAction = Callable[[Any], Any]
ResultAction = Callable[[Any, Any], Any]


class Step:
    """A forward action with its compensation and notification."""

    def __init__(self, owner: Any):
        self._owner = owner
        self._result: Any = None
        self._completed = False
        self._compensated = False
        self._down: Callable[[Any], Any] | None = None
        self._notify: Callable[[Any], Any] | None = None
        self._notify_reports_errors = False

    def __repr__(self) -> str:
        return f"<Step completed={self._completed} compensated={self._compensated}>"

    @property
    def owner(self) -> Any:
        return self._owner

    @property
    def result(self) -> Any:
        """Value produced by the forward action."""
        return self._result

    @property
    def completed(self) -> bool:
        """True once the forward action returned normally."""
        return self._completed

    @property
    def compensated(self) -> bool:
        return self._compensated

    @property
    def compensable(self) -> bool:
        return self._down is not None and self._completed and not self._compensated

    def run_up(self, action: UpAction) -> Any:
        self._result = partial(action, self._owner)()
        self._completed = True
        return self._result

    def set_down(self, action: ResultAction) -> None:
        self._down = partial(action, self._owner)

    def run_down(self) -> Any:
        """
        Compensate the forward action.

        No-op when no compensation was registered, when the forward action
        never completed, or when the step was already compensated.
        """
        if not self.compensable:
            return None
        value = self._down(self._result)
        self._compensated = True
        return value

    def set_notify(self, action: ResultAction, *, reports_errors: bool = False) -> None:
        """
        Register the notification. ``reports_errors`` marks an action that
        hands its own failures to the error sink before re-raising them.
        """
        self._notify = partial(action, self._owner)
        self._notify_reports_errors = reports_errors

    @property
    def notify_reports_errors(self) -> bool:
        return self._notify_reports_errors

    def run_notify(self) -> Any:
        if self._notify is None or not self._completed:
            return None
        return self._notify(self._result)
