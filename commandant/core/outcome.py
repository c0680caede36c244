"""
Outcome of a guarded call.

Phases that must never propagate errors (compensation, best-effort
notification, listener callbacks, the error sink itself) call through
``capture`` and inspect the returned ``Outcome`` instead of relying on
ad-hoc try/except blocks at every site.
"""

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class Outcome(Generic[T]):
    """Value or error produced by ``capture``"""

    value: T | None = None
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> T | None:
        """Return the value, re-raising the captured error if there is one."""
        if self.error is not None:
            raise self.error
        return self.value


def capture(fn: Callable[..., T], *args: Any, **kwargs: Any) -> Outcome[T]:
    """
    Call ``fn`` and wrap its result or its exception in an ``Outcome``.

    Only ``Exception`` subclasses are captured; ``KeyboardInterrupt`` and
    ``SystemExit`` still propagate.
    """
    try:
        return Outcome(value=fn(*args, **kwargs))
    except Exception as e:
        return Outcome(error=e)
