# ============================================
# FILE: commandant/core/exceptions.py
# ============================================

"""
All commander-related exceptions

Validation-phase failures (``ValidationError`` subclasses) mean the request
itself is invalid and should not be retried unmodified. ``ExecutionFailure``
means a valid request was blocked by a business rule at runtime.
"""

from collections.abc import Mapping
from typing import Any


class CommanderError(Exception):
    """Base commander error"""

    def __init__(self, message: str | None = None, code: str | None = None):
        self.message = message or ""
        self.code = code
        super().__init__(self.message)


class ValidationError(CommanderError):
    """Raised while validating a commander's input"""


class ArgumentMismatch(ValidationError):
    """
    A declared argument is missing or has the wrong type.

    Attributes:
        param: Name of the offending option
        expected: Human-readable descriptor of the accepted type(s)
        actual: Type name of the supplied value, or ``"absent"``
    """

    def __init__(self, param: str, expected: str, actual: str | None = None):
        self.param = param
        self.expected = expected
        self.actual = actual or "absent"
        super().__init__(
            f"{param} was expected to be a(n) {expected} but was a(n) {self.actual}",
            code="argument_mismatch",
        )


class ConditionNotMet(ValidationError):
    """A business precondition does not hold"""

    def __init__(self, code: str, message: str | None = None):
        super().__init__(message or code, code=code)


class ExecutionFailure(CommanderError):
    """
    Execution was blocked for a known reason.

    The optional context carries identifiers relevant to the failure and is
    forwarded to the error sink.
    """

    def __init__(self, code: str, message: str | None = None, context: Mapping[str, Any] | None = None):
        self.context = dict(context or {})
        super().__init__(message or code, code=code)


class RollbackFailure(CommanderError):
    """A compensating action raised while unwinding a supervisor"""

    def __init__(self, cause: BaseException, step_index: int | None = None):
        self.cause = cause
        self.step_index = step_index
        where = f"step {step_index}" if step_index is not None else "step"
        super().__init__(
            f"Compensation of {where} failed: {cause!s}",
            code="rollback_failure",
        )
        self.__cause__ = cause


class LifecycleError(CommanderError):
    """A lifecycle phase was invoked out of order"""

    def __init__(self, phase: str, state: Any):
        self.phase = phase
        self.state = state
        super().__init__(
            f"Cannot {phase} a commander in state '{getattr(state, 'value', state)}'",
            code="invalid_state_transition",
        )
