# ============================================
# FILE: commandant/core/types.py
# ============================================

"""
All type definitions and enums
"""

from enum import Enum


class CommanderState(Enum):
    """
    Lifecycle state of a commander instance.

    CREATED -> VALIDATING -> {VALIDATION_FAILED | VALIDATED}
    VALIDATED -> EXECUTING -> {EXECUTION_FAILED | EXECUTED}
    EXECUTED -> NOTIFYING -> DONE

    The inverse path (undo) runs UNDOING -> {UNDONE | UNDO_FAILED}.
    """

    CREATED = "created"
    VALIDATING = "validating"
    VALIDATION_FAILED = "validation_failed"
    VALIDATED = "validated"
    EXECUTING = "executing"
    EXECUTION_FAILED = "execution_failed"
    EXECUTED = "executed"
    NOTIFYING = "notifying"
    DONE = "done"

    UNDOING = "undoing"
    UNDONE = "undone"
    UNDO_FAILED = "undo_failed"

    @property
    def is_terminal(self) -> bool:
        return self in _TERMINAL_STATES

    @property
    def is_failed(self) -> bool:
        return self in (
            CommanderState.VALIDATION_FAILED,
            CommanderState.EXECUTION_FAILED,
            CommanderState.UNDO_FAILED,
        )


_TERMINAL_STATES = frozenset(
    {
        CommanderState.VALIDATION_FAILED,
        CommanderState.EXECUTION_FAILED,
        CommanderState.DONE,
        CommanderState.UNDONE,
        CommanderState.UNDO_FAILED,
    }
)


class Phase(Enum):
    """Lifecycle phase, used for logging context and error reports"""

    VALIDATE = "validate"
    EXECUTE = "execute"
    NOTIFY = "notify"
    ROLLBACK = "rollback"
    UNDO = "undo"
