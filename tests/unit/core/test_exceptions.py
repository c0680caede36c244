"""Tests for the commander exception hierarchy."""

from commandant import (
    ArgumentMismatch,
    CommanderError,
    CommanderState,
    ConditionNotMet,
    ExecutionFailure,
    LifecycleError,
    RollbackFailure,
    ValidationError,
)


class TestExceptionHierarchy:
    def test_validation_errors(self):
        assert issubclass(ArgumentMismatch, ValidationError)
        assert issubclass(ConditionNotMet, ValidationError)
        assert issubclass(ValidationError, CommanderError)

    def test_execution_and_rollback_errors(self):
        assert not issubclass(ExecutionFailure, ValidationError)
        assert issubclass(ExecutionFailure, CommanderError)
        assert issubclass(RollbackFailure, CommanderError)
        assert issubclass(LifecycleError, CommanderError)


class TestArgumentMismatch:
    def test_message_with_actual_type(self):
        error = ArgumentMismatch("quantity", expected="int", actual="str")

        assert error.message == "quantity was expected to be a(n) int but was a(n) str"
        assert error.code == "argument_mismatch"

    def test_absent_argument(self):
        error = ArgumentMismatch("quantity", expected="int")

        assert error.actual == "absent"
        assert str(error) == "quantity was expected to be a(n) int but was a(n) absent"


class TestCommanderErrors:
    def test_condition_not_met_falls_back_to_code(self):
        error = ConditionNotMet("reserve-out_of_stock")

        assert error.message == "reserve-out_of_stock"
        assert error.code == "reserve-out_of_stock"

    def test_execution_failure_context(self):
        error = ExecutionFailure("pay-declined", "Declined", context={"amount": 10})

        assert error.message == "Declined"
        assert error.context == {"amount": 10}

    def test_execution_failure_without_context(self):
        assert ExecutionFailure("pay-declined").context == {}

    def test_rollback_failure_wraps_cause(self):
        cause = ConnectionError("refund service down")

        error = RollbackFailure(cause, step_index=2)

        assert error.cause is cause
        assert error.__cause__ is cause
        assert error.step_index == 2
        assert error.code == "rollback_failure"
        assert "step 2" in error.message
        assert "refund service down" in error.message

    def test_lifecycle_error(self):
        error = LifecycleError("execute", CommanderState.CREATED)

        assert error.code == "invalid_state_transition"
        assert error.message == "Cannot execute a commander in state 'created'"
