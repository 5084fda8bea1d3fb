"""
Cancellation Context

A Context is the token handed to the *_context dispatch variants. namedsql
itself never inspects it: it is forwarded untouched to the backend, which
decides how to honour cancellation and deadlines (see namedsql.backends).

Usage:
    ctx = Context.background().with_timeout(5.0)
    rows = queries.query_context(backend, ctx, "find-users")

    # from another thread
    ctx.cancel()

A child context is done when it is cancelled, when its own deadline passes,
or when its parent is done. The earliest deadline in the chain wins.
"""

import threading
import time
from typing import Optional

from namedsql.exceptions import ContextCancelledError, ContextError, DeadlineExceededError


class Context:
    """Cancellation and deadline token."""

    def __init__(self, parent: Optional["Context"] = None, deadline: Optional[float] = None):
        self._parent = parent
        self._cancelled = threading.Event()

        # Deadlines are monotonic clock values
        if parent is not None and parent.deadline is not None:
            deadline = parent.deadline if deadline is None else min(deadline, parent.deadline)
        self.deadline = deadline

    @classmethod
    def background(cls) -> "Context":
        """Root context: never cancelled, no deadline."""
        return cls()

    def with_cancel(self) -> "Context":
        """Child context that can be cancelled independently."""
        return Context(parent=self)

    def with_timeout(self, seconds: float) -> "Context":
        """Child context whose deadline is `seconds` from now."""
        return Context(parent=self, deadline=time.monotonic() + seconds)

    def cancel(self) -> None:
        """Cancel this context and every context derived from it."""
        self._cancelled.set()

    def remaining(self) -> Optional[float]:
        """Seconds left before the deadline (None without a deadline)."""
        if self.deadline is None:
            return None
        return max(0.0, self.deadline - time.monotonic())

    def err(self) -> Optional[ContextError]:
        """
        Why the context is done.

        Returns:
            ContextCancelledError, DeadlineExceededError, or None while active
        """
        if self._cancelled.is_set():
            return ContextCancelledError()
        if self._parent is not None:
            parent_err = self._parent.err()
            if parent_err is not None:
                return parent_err
        if self.deadline is not None and time.monotonic() >= self.deadline:
            return DeadlineExceededError()
        return None

    def done(self) -> bool:
        return self.err() is not None

    def raise_if_done(self) -> None:
        """Raise the context error if the context is done."""
        error = self.err()
        if error is not None:
            raise error
