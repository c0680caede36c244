# ============================================
# FILE: commandant/core/supervisor.py
# ============================================

"""
Supervisor - a Commander that orchestrates other commanders as a saga.

``orchestrate`` builds the saga one step at a time. Each step is recorded
before its forward action runs, so when step N raises, steps 1..N-1 are
already known and are compensated in reverse order before the original error
is re-raised. Nested commanders run with their notifications deferred; once
the whole orchestration succeeded, every step's notification runs in order,
followed by the supervisor's own ``send_notifications``.

Example:
    >>> class PlaceOrder(Supervisor):
    ...     argument_types = {"cart": Cart}
    ...     errors = {"empty_cart": "The cart is empty"}
    ...
    ...     def check_conditions(self, cart, **options):
    ...         self.condition("empty_cart", cart.items)
    ...
    ...     def orchestrate(self, cart, **options):
    ...         reservation = self.commander_step(ReserveStock, items=cart.items)
    ...         self.step(
    ...             lambda owner: payments.charge(cart.total),
    ...             down=lambda owner, charge: payments.refund(charge.id),
    ...         )
    ...         self.update_step(cart, {"status": "ordered"})
    ...         return reservation
"""

from __future__ import annotations

from collections.abc import Callable, Mapping, MutableMapping
from typing import Any

from commandant.core.commander import Commander, lifecycle_log
from commandant.core.exceptions import RollbackFailure
from commandant.core.outcome import capture
from commandant.core.step import ResultAction, Step, UpAction
from commandant.core.types import Phase
from commandant.monitoring.logging import commander_scope

_MISSING = object()


class Supervisor(Commander):
    """Orchestrating commander with reverse-order compensation."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._steps: list[Step] = []
        self._rollback_errors: list[RollbackFailure] = []

    @property
    def steps(self) -> tuple[Step, ...]:
        return tuple(self._steps)

    @property
    def rollback_errors(self) -> list[RollbackFailure]:
        """Compensation failures absorbed during the last rollback."""
        return list(self._rollback_errors)

    # -- Hooks --

    def orchestrate(self, **options) -> Any:
        raise NotImplementedError(f"{type(self).__name__} must implement orchestrate()")

    def up(self, **options) -> Any:
        return self.orchestrate(**options)

    def down(self) -> None:
        self.rollback()

    # -- Lifecycle --

    def _perform(self) -> Any:
        try:
            return self.up(**self._options)
        except Exception:
            self.rollback()
            raise

    def rollback(self) -> list[RollbackFailure]:
        """
        Compensate every recorded step, last first.

        A compensation that raises is wrapped in ``RollbackFailure``, reported
        and kept in ``rollback_errors``; the remaining compensations still run.
        """
        compensated = 0
        errors: list[RollbackFailure] = []

        with commander_scope(self.name, Phase.ROLLBACK.value):
            for index in reversed(range(len(self._steps))):
                step = self._steps[index]
                if not step.compensable:
                    continue

                outcome = capture(step.run_down)
                if outcome.ok:
                    compensated += 1
                    continue

                failure = RollbackFailure(outcome.error, step_index=index)
                errors.append(failure)
                lifecycle_log.compensation_failed(self.name, index, outcome.error)
                self._report(failure, Phase.ROLLBACK)

        self._rollback_errors.extend(errors)
        self._emit("on_rolled_back", self, compensated, errors)
        return errors

    def _deliver(self) -> Exception | None:
        """
        Notify every step in order, then run ``send_notifications``.

        A failing notification is reported once and the remaining ones still
        run; in strict mode delivery stops at the first failure instead.
        """
        first_error: Exception | None = None
        for step in self._steps:
            outcome = capture(step.run_notify)
            if outcome.ok:
                continue
            if not step.notify_reports_errors:
                self._report(outcome.error, Phase.NOTIFY)
            if self.config.strict:
                return outcome.error
            first_error = first_error or outcome.error

        return super()._deliver() or first_error

    # -- Step constructors --

    def step(self, up: UpAction, down: ResultAction | None = None, notify: ResultAction | None = None) -> Any:
        """
        Record an inline step and run its forward action.

        Args:
            up: ``up(owner)``; its return value becomes the step result
            down: ``down(owner, result)``, compensates ``up``
            notify: ``notify(owner, result)``, runs after the whole orchestration succeeded

        Returns:
            The value returned by ``up``
        """
        return self._record_step(up, down, notify)

    def _record_step(
        self,
        up: UpAction,
        down: ResultAction | None,
        notify: ResultAction | None,
        notify_reports_errors: bool = False,
    ) -> Any:
        step = Step(self)
        if down is not None:
            step.set_down(down)
        if notify is not None:
            step.set_notify(notify, reports_errors=notify_reports_errors)

        self._steps.append(step)
        return step.run_up(up)

    def commander_step(
        self,
        commander_cls: type[Commander],
        options: Mapping[str, Any] | None = None,
        /,
        *,
        notify: bool = True,
        **kwargs,
    ) -> Commander:
        """
        Run a nested commander as a step.

        The nested commander runs with ``run_or_raise`` and its notification
        deferred. Its ``down`` compensates the step and its ``notify`` is
        replayed once the supervisor succeeded (unless ``notify=False``).

        Returns:
            The nested commander instance
        """
        config = self._config

        def run_nested(owner: Supervisor) -> Commander:
            return commander_cls.run_or_raise(options, notify=False, config=config, **kwargs)

        return self._record_step(
            run_nested,
            _undo_nested,
            _notify_nested if notify else None,
            notify_reports_errors=True,
        )

    def update_step(self, target: Any, updates: Mapping[str, Any]) -> Any:
        """
        Set attributes (or keys, for mappings) on ``target`` as a step.

        The previous values are captured now; compensation restores them, and
        removes attributes/keys that did not exist before.

        Returns:
            ``target``
        """
        is_mapping = isinstance(target, MutableMapping)
        if is_mapping:
            previous = {key: target.get(key, _MISSING) for key in updates}
        else:
            previous = {key: getattr(target, key, _MISSING) for key in updates}

        def apply(owner: Supervisor) -> Any:
            _assign(target, updates, is_mapping)
            return target

        def restore(owner: Supervisor, result: Any) -> None:
            _assign(result, previous, is_mapping)

        return self.step(apply, down=restore)

    def create_step(self, factory: Callable[[], Any], destroy: Callable[[Any], Any]) -> Any:
        """
        Create a resource as a step; compensation destroys it.

        Example:
            >>> invoice = self.create_step(lambda: Invoice.create(order=order), Invoice.delete)

        Returns:
            The created resource
        """
        return self.step(
            lambda owner: factory(),
            down=lambda owner, created: destroy(created),
        )


def _undo_nested(owner: Supervisor, commander: Commander) -> Any:
    return commander.down()


def _notify_nested(owner: Supervisor, commander: Commander) -> Any:
    return commander.notify()


def _assign(target: Any, values: Mapping[str, Any], is_mapping: bool) -> None:
    for key, value in values.items():
        if is_mapping:
            if value is _MISSING:
                target.pop(key, None)
            else:
                target[key] = value
        elif value is _MISSING:
            if hasattr(target, key):
                delattr(target, key)
        else:
            setattr(target, key, value)
