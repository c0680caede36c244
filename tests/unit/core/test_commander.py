"""
Tests for the single-commander lifecycle.

Includes:
1. Entry points (run_or_raise, run, dry_run_or_raise, dry_run, undo)
2. Argument checks
3. Lifecycle ordering
4. Notification failure handling
5. Error catalog helpers
"""

from decimal import Decimal

import pytest

from commandant import (
    ArgumentMismatch,
    Commander,
    CommanderConfig,
    CommanderState,
    ConditionNotMet,
    ExecutionFailure,
    LifecycleError,
    Phase,
)
from commandant.core.listeners import CommanderListener
from examples.entries.commanders import EXECUTED, NOTIFIED, AppendEntry


class Tracked(Commander):
    """Records which hooks ran."""

    argument_types = {"count": int, "calls": list}

    def prepare(self, calls, **options):
        calls.append("prepare")

    def check_conditions(self, calls, **options):
        calls.append("check_conditions")

    def up(self, count, calls, **options):
        calls.append("up")
        return count * 2

    def send_notifications(self, calls, **options):
        calls.append("send_notifications")


class FailingNotification(Commander):
    def up(self, **options):
        return "done"

    def send_notifications(self, **options):
        raise RuntimeError("mailer down")


class Counter(Commander):
    """Increments a mapping; undo decrements it."""

    argument_types = {"store": dict}
    errors = {"frozen": "The counter is frozen"}

    def check_conditions(self, store, **options):
        self.condition("frozen", not store.get("frozen"))

    def up(self, store, **options):
        store["value"] = store.get("value", 0) + 1
        return store["value"]

    def prepare_inverse(self, store, **options):
        self.store = store

    def down(self):
        if self.store.get("frozen"):
            self.fail("frozen")
        self.store["value"] = self.store.get("value", 0) - 1


class Withdraw(Commander):
    argument_types = {"balance": (int, float), "amount": "decimal.Decimal"}
    errors = {"insufficient_funds": "Not enough money"}

    def up(self, balance, amount, **options):
        if amount > balance:
            self.fail("insufficient_funds", balance=balance, requested=str(amount))
        return balance - amount


class TestRunOrRaise:
    """run_or_raise: validate -> execute -> notify, raising on failure"""

    def test_returns_instance(self, entries, notifications):
        result = AppendEntry.run_or_raise(entries=[1], notifications=notifications)

        assert isinstance(result, AppendEntry)
        assert result.success
        assert not result.failure
        assert result.message is None
        assert result.state is CommanderState.DONE

    def test_executes_and_notifies(self, notifications):
        entries = ["one"]

        result = AppendEntry.run_or_raise({"entries": entries, "notifications": notifications})

        assert entries == ["one", EXECUTED]
        assert notifications == [NOTIFIED]
        assert result.return_value is entries
        assert result.entries == ["one", EXECUTED]

    def test_condition_failure_raises_without_side_effects(self, notifications):
        entries = ["one", "two"]

        with pytest.raises(ConditionNotMet) as exc_info:
            AppendEntry.run_or_raise(entries=entries, notifications=notifications)

        assert entries == ["one", "two"]
        assert notifications == []
        assert exc_info.value.message == "Array cannot have multiple elements"
        assert exc_info.value.code == "append_entry-array_has_multiple"

    def test_notify_false_skips_notifications(self, entries, notifications):
        result = AppendEntry.run_or_raise(entries=entries, notifications=notifications, notify=False)

        assert entries == [EXECUTED]
        assert notifications == []
        assert result.state is CommanderState.EXECUTED

    def test_hook_order(self):
        calls = []

        result = Tracked.run_or_raise(count=21, calls=calls)

        assert calls == ["prepare", "check_conditions", "up", "send_notifications"]
        assert result.return_value == 42

    def test_options_are_read_only(self):
        result = Tracked.run_or_raise(count=1, calls=[])

        with pytest.raises(TypeError):
            result.options["count"] = 2


class TestRun:
    """run: failures are captured on the instance"""

    def test_success(self, entries, notifications):
        result = AppendEntry.run(entries=entries, notifications=notifications)

        assert result.success
        assert result.message is None
        assert len(entries) == 1
        assert len(notifications) == 1

    def test_condition_failure_is_captured(self, notifications):
        entries = ["one", "two"]

        result = AppendEntry.run(entries=entries, notifications=notifications)

        assert result.failure
        assert result.state is CommanderState.VALIDATION_FAILED
        assert result.message == "Array cannot have multiple elements"
        assert isinstance(result.error, ConditionNotMet)
        assert entries == ["one", "two"]
        assert notifications == []

    def test_execution_failure_is_captured(self):
        result = Withdraw.run(balance=10, amount=Decimal("25"))

        assert result.failure
        assert result.state is CommanderState.EXECUTION_FAILED
        assert result.message == "Not enough money"
        assert result.error.code == "withdraw-insufficient_funds"
        assert result.error.context == {"balance": 10, "requested": "25"}

    def test_callback_receives_instance(self, entries, notifications):
        seen = []

        result = AppendEntry.run(entries=entries, notifications=notifications, callback=seen.append)

        assert seen == [result]

    def test_on_success_and_on_failure(self, entries, notifications):
        succeeded, failed = [], []

        result = AppendEntry.run(entries=entries, notifications=notifications)
        returned = result.on_success(succeeded.append).on_failure(failed.append)

        assert returned is result
        assert succeeded == [result]
        assert failed == []

        rejected = AppendEntry.run(entries=[1, 2], notifications=notifications)
        rejected.on_success(succeeded.append).on_failure(failed.append)

        assert failed == [rejected]


class TestDryRun:
    """dry_run / dry_run_or_raise: validation only"""

    def test_dry_run_never_executes(self, notifications):
        entries = ["one"]

        result = AppendEntry.dry_run(entries=entries, notifications=notifications)

        assert result.success
        assert result.state is CommanderState.VALIDATED
        assert result.message is None
        assert entries == ["one"]
        assert notifications == []

    def test_dry_run_is_repeatable(self, entries, notifications):
        first = AppendEntry.dry_run(entries=entries, notifications=notifications)
        second = AppendEntry.dry_run(entries=entries, notifications=notifications)

        assert first.success
        assert second.success
        assert entries == []

    def test_dry_run_captures_failure(self, notifications):
        entries = ["one", "two"]

        result = AppendEntry.dry_run(entries=entries, notifications=notifications)

        assert result.failure
        assert result.message == "Array cannot have multiple elements"
        assert entries == ["one", "two"]

    def test_dry_run_or_raise_raises(self, notifications):
        with pytest.raises(ConditionNotMet):
            AppendEntry.dry_run_or_raise(entries=[1, 2], notifications=notifications)

    def test_dry_run_or_raise_success(self, entries, notifications):
        result = AppendEntry.dry_run_or_raise(entries=entries, notifications=notifications)

        assert result.success
        assert entries == []


class TestArgumentChecks:
    """Declared argument types are checked before any hook runs"""

    def test_missing_argument(self):
        calls = []

        with pytest.raises(ArgumentMismatch) as exc_info:
            Tracked.run_or_raise(calls=calls)

        assert calls == []
        assert exc_info.value.param == "count"
        assert str(exc_info.value) == "count was expected to be a(n) int but was a(n) absent"

    def test_wrong_type(self):
        calls = []

        result = Tracked.run(count="3", calls=calls)

        assert result.failure
        assert calls == []
        assert result.message == "count was expected to be a(n) int but was a(n) str"

    def test_multiple_accepted_types(self):
        result = Withdraw.dry_run(balance="10", amount=Decimal("1"))

        assert result.message == "balance was expected to be a(n) int or float but was a(n) str"

    def test_dotted_type_descriptor(self):
        assert Withdraw.dry_run(balance=10.5, amount=Decimal("1")).success
        assert Withdraw.dry_run(balance=10.5, amount=1).failure

    def test_undeclared_options_are_passed_through(self):
        calls = []

        result = Tracked.run_or_raise(count=1, calls=calls, extra="ignored")

        assert result.options["extra"] == "ignored"

    def test_bool_is_not_an_int(self):
        calls = []

        result = Tracked.dry_run(count=True, calls=calls)

        assert result.failure
        assert result.message == "count was expected to be a(n) int but was a(n) bool"

    def test_option_named_options(self):
        class ApplySettings(Commander):
            argument_types = {"options": dict}

            def up(self, options, **rest):
                return options

        by_keyword = ApplySettings.run_or_raise(options={"retries": 3})
        by_mapping = ApplySettings.run_or_raise({"options": {"retries": 3}})

        assert by_keyword.return_value == {"retries": 3}
        assert by_mapping.return_value == {"retries": 3}


class TestLifecycleOrdering:
    """Phases must run in order"""

    def test_execute_requires_validation(self):
        commander = Tracked(count=1, calls=[])

        with pytest.raises(LifecycleError):
            commander.execute_or_raise()

    def test_execute_never_runs_after_validation_failure(self):
        calls = []
        commander = Tracked(count="1", calls=calls).validate()

        assert commander.failure
        with pytest.raises(LifecycleError):
            commander.execute()
        assert calls == []

    def test_notify_requires_execution(self):
        commander = Tracked(count=1, calls=[]).validate()

        with pytest.raises(LifecycleError) as exc_info:
            commander.notify()

        assert exc_info.value.code == "invalid_state_transition"

    def test_notify_is_skipped_after_execution_failure(self):
        commander = Withdraw(balance=1, amount=Decimal("5")).validate().execute()

        assert commander.notify() is commander
        assert commander.state is CommanderState.EXECUTION_FAILED

    def test_validate_twice_is_rejected(self):
        commander = Tracked(count=1, calls=[]).validate()

        with pytest.raises(LifecycleError):
            commander.validate()

    def test_phases_can_be_driven_manually(self):
        calls = []

        commander = Tracked(count=2, calls=calls)
        commander.validate_or_raise()
        commander.execute_or_raise()
        commander.notify()

        assert commander.state is CommanderState.DONE
        assert commander.return_value == 4

    def test_first_failure_is_kept(self):
        commander = Tracked(count="1", calls=[]).validate()
        first = commander.error

        commander._record_failure(RuntimeError("later"), Phase.EXECUTE)

        assert commander.error is first
        assert commander.state is CommanderState.VALIDATION_FAILED


class TestNotificationFailures:
    """Notification failures never invalidate executed work"""

    def test_strict_mode_reraises(self, error_sink):
        with pytest.raises(RuntimeError, match="mailer down"):
            FailingNotification.run_or_raise()

        assert len(error_sink.errors) == 1

    def test_lenient_mode_swallows_and_reports(self, lenient_config, error_sink):
        result = FailingNotification.run_or_raise()

        assert result.success
        assert result.message is None
        assert result.state is CommanderState.DONE
        assert str(error_sink.errors[0]) == "mailer down"
        assert error_sink.reports[0][1]["phase"] == "notify"

    def test_explicit_config_overrides_global(self, error_sink):
        reports = []
        config = CommanderConfig(error_handler=lambda e, c: reports.append(e), strict=False)

        result = FailingNotification.run(config=config)

        assert result.success
        assert len(reports) == 1
        assert error_sink.errors == []


class TestUndo:
    """undo / undo_or_raise run prepare_inverse then down"""

    def test_undo_from_scratch(self):
        store = {"value": 3}

        result = Counter.undo(store=store)

        assert result.success
        assert result.state is CommanderState.UNDONE
        assert store["value"] == 2

    def test_undo_failure_is_captured(self):
        store = {"value": 3, "frozen": True}

        result = Counter.undo(store=store)

        assert result.failure
        assert result.state is CommanderState.UNDO_FAILED
        assert result.message == "The counter is frozen"
        assert store["value"] == 3

    def test_undo_or_raise_raises(self):
        with pytest.raises(ExecutionFailure):
            Counter.undo_or_raise(store={"frozen": True})

    def test_revert_after_run(self):
        store = {}
        commander = Counter.run_or_raise(store=store)
        assert store["value"] == 1

        commander.revert_or_raise()

        assert store["value"] == 0
        assert commander.state is CommanderState.UNDONE

    def test_revert_rejected_mid_lifecycle(self):
        commander = Counter(store={}).validate()

        with pytest.raises(LifecycleError):
            commander.revert()


class TestErrorCatalog:
    """Error codes, messages and the error sink"""

    def test_possible_errors_include_base_catalog(self):
        errors = AppendEntry.possible_errors()

        assert errors["array_has_multiple"] == "Array cannot have multiple elements"
        assert errors["invalid_state_transition"] == "You cannot transition to this state"
        assert errors["action_already_performed"] == "This action has already been performed"

    def test_possible_errors_with_prefix(self):
        errors = AppendEntry.possible_errors(with_prefix=True)

        assert "append_entry-array_has_multiple" in errors
        assert "append_entry-invalid_state_transition" in errors

    def test_catalog_is_inherited(self):
        class StrictWithdraw(Withdraw):
            errors = {"account_locked": "The account is locked"}

        errors = StrictWithdraw.possible_errors()

        assert errors["insufficient_funds"] == "Not enough money"
        assert errors["account_locked"] == "The account is locked"
        assert "account_locked" not in Withdraw.possible_errors()

    def test_condition_message_override(self):
        class Guarded(Commander):
            errors = {"closed": "Closed"}

            def check_conditions(self, **options):
                self.condition("closed", False, message="Closed until Monday")

        result = Guarded.dry_run()

        assert result.message == "Closed until Monday"
        assert result.error.code == "guarded-closed"

    def test_raise_condition_is_unconditional(self):
        class Refused(Commander):
            errors = {"nope": "Refused"}

            def check_conditions(self, **options):
                self.raise_condition("nope")

        assert Refused.dry_run().message == "Refused"

    def test_recorded_failures_are_reported_with_context(self, error_sink):
        Withdraw.run(balance=1, amount=Decimal("5"))

        error, context = error_sink.reports[0]
        assert isinstance(error, ExecutionFailure)
        assert context["commander"] == "Withdraw"
        assert context["options"] == {"balance": 1, "amount": Decimal("5")}
        assert context["phase"] == "execute"
        assert context["code"] == "withdraw-insufficient_funds"
        assert context["failure_context"] == {"balance": 1, "requested": "5"}

    def test_error_sink_failure_is_absorbed(self):
        def broken_sink(error, context):
            raise ValueError("sink down")

        config = CommanderConfig(error_handler=broken_sink)

        result = Withdraw.run(balance=1, amount=Decimal("5"), config=config)

        assert result.failure
        assert result.message == "Not enough money"


class TestListeners:
    """Listeners observe the lifecycle and never affect it"""

    def test_listener_callbacks(self, error_sink, entries, notifications):
        events = []

        class Recorder(CommanderListener):
            def on_validated(self, commander):
                events.append("validated")

            def on_executed(self, commander, duration):
                events.append("executed")

            def on_notified(self, commander):
                events.append("notified")

        config = CommanderConfig(error_handler=error_sink, extra_listeners=[Recorder()])
        AppendEntry.run_or_raise(entries=entries, notifications=notifications, config=config)

        assert events == ["validated", "executed", "notified"]

    def test_failing_listener_is_ignored(self, error_sink, entries, notifications):
        class Broken(CommanderListener):
            def on_executed(self, commander, duration):
                raise RuntimeError("listener bug")

        config = CommanderConfig(error_handler=error_sink, extra_listeners=[Broken()])
        result = AppendEntry.run_or_raise(entries=entries, notifications=notifications, config=config)

        assert result.success
        assert entries == [EXECUTED]
