"""
Transaction boundary used by the execute phase.

The host owns the storage transaction. It hands Commandant a function with
the shape ``transaction(fn) -> fn()`` that commits when ``fn`` returns and
rolls back (re-raising) when it raises. Commandant opens exactly one
boundary per top-level execute; commanders executed while a boundary is
already active (e.g. nested inside a Supervisor) join it instead of opening
their own.

Example (SQLAlchemy session):
    >>> from commandant import CommanderConfig, configure
    >>> from commandant.core.transaction import transaction_from_context
    >>>
    >>> configure(CommanderConfig(transaction=transaction_from_context(session.begin)))
"""

import contextvars
import logging
from collections.abc import Callable
from contextlib import AbstractContextManager
from typing import Any, TypeVar


logger = logging.getLogger(__name__)

T = TypeVar("T")

TransactionBoundary = Callable[[Callable[[], Any]], Any]

_active: contextvars.ContextVar[bool] = contextvars.ContextVar(
    "commandant_transaction_active", default=False
)


def null_transaction(fn: Callable[[], T]) -> T:
    """Boundary that just runs ``fn`` (no storage to protect)."""
    return fn()


def transaction_from_context(factory: Callable[[], AbstractContextManager]) -> TransactionBoundary:
    """
    Build a boundary from a context-manager factory.

    The context manager is expected to commit on a clean exit and roll back
    when an exception leaves the block, which is how ``session.begin()``,
    ``connection.transaction()`` and ``transaction.atomic()`` behave.
    """

    def boundary(fn: Callable[[], T]) -> T:
        with factory():
            return fn()

    return boundary


def in_transaction() -> bool:
    """True while a boundary opened by Commandant is active in this context."""
    return _active.get()


def run_in_transaction(fn: Callable[[], T], boundary: TransactionBoundary | None) -> T:
    """
    Run ``fn`` inside ``boundary`` unless a boundary is already active.

    Args:
        fn: Zero-argument callable (the execute body)
        boundary: Host-provided boundary; ``None`` means no boundary
    """
    if boundary is None or _active.get():
        return fn()

    token = _active.set(True)
    try:
        logger.debug("Opening transaction boundary")
        return boundary(fn)
    finally:
        _active.reset(token)
