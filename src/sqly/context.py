"""
Cancellation and deadline signals for query issuance.

A Context is checked right before a query is dispatched and, where the
dialect strategy supports it, observed while the statement executes.
Row iteration after dispatch is never interrupted.

    >>> ctx = Context.background()
    >>> ctx.done()
    False
    >>> child, cancel = ctx.with_cancel()
    >>> cancel()
    >>> child.done(), type(child.err()).__name__
    (True, 'CancelledError')
    >>> Context.background().with_timeout(0).done()
    True
"""
import datetime
import threading
import time
from collections.abc import Callable
from typing import Self

from sqly.exceptions import CancelledError, ContextError
from sqly.exceptions import DeadlineExceededError

__all__ = ['Context']


class Context:
    """Cancellation/deadline signal passed to the query operations.

    Contexts form a tree: a child is done when its parent is done, when
    its own deadline passes, or when it is cancelled.
    """

    def __init__(self, deadline: float | None = None,
                 parent: 'Context | None' = None) -> None:
        self._deadline = deadline
        self._parent = parent
        self._cancelled = threading.Event()

    @classmethod
    def background(cls) -> Self:
        """Return a context that is never done."""
        return cls()

    def with_cancel(self) -> tuple[Self, Callable[[], None]]:
        """Return a child context and the function that cancels it."""
        child = type(self)(parent=self)
        return child, child.cancel

    def with_timeout(self, seconds: float) -> Self:
        """Return a child context that expires after `seconds`."""
        return type(self)(deadline=time.monotonic() + seconds, parent=self)

    def with_deadline(self, when: datetime.datetime) -> Self:
        """Return a child context that expires at the wall-clock time `when`."""
        now = datetime.datetime.now(tz=when.tzinfo)
        return self.with_timeout((when - now).total_seconds())

    def cancel(self) -> None:
        self._cancelled.set()

    @property
    def deadline(self) -> float | None:
        """Earliest monotonic deadline along the chain, or None."""
        deadlines = [c._deadline for c in self._chain() if c._deadline is not None]
        return min(deadlines) if deadlines else None

    def remaining(self) -> float | None:
        """Seconds until the deadline, or None when there is none."""
        deadline = self.deadline
        if deadline is None:
            return None
        return max(0.0, deadline - time.monotonic())

    def is_cancellable(self) -> bool:
        """Whether this context can ever become done."""
        return any(c._deadline is not None or c._parent is not None for c in self._chain())

    def err(self) -> ContextError | None:
        """Return the reason the context is done, or None while it is live."""
        for c in self._chain():
            if c._cancelled.is_set():
                return CancelledError()
        deadline = self.deadline
        if deadline is not None and time.monotonic() >= deadline:
            return DeadlineExceededError()
        return None

    def done(self) -> bool:
        return self.err() is not None

    def check(self) -> None:
        """Raise the context error if the context is done."""
        err = self.err()
        if err is not None:
            raise err

    def _chain(self):
        ctx = self
        while ctx is not None:
            yield ctx
            ctx = ctx._parent


if __name__ == '__main__':
    __import__('doctest').testmod(optionflags=4 | 8 | 32)
