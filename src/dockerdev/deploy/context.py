"""Cooperative cancellation for deploy and status operations.

The Docker SDK is synchronous, so cancellation is cooperative: hooks call
:meth:`OperationContext.check` before each blocking engine call.
"""

from __future__ import annotations

import threading
import time

from dockerdev.lib.errors import OperationCancelledError


class OperationContext:
    """Cancellation flag with an optional deadline.

    Example:
        >>> ctx = OperationContext.with_timeout(30)
        >>> ctx.check("network.create")  # raises once cancelled or expired
    """

    def __init__(self, deadline: float | None = None) -> None:
        """Create a context.

        Args:
            deadline: Absolute ``time.monotonic()`` value after which the
                context counts as cancelled. ``None`` means no deadline.
        """
        self._cancelled = threading.Event()
        self.deadline = deadline

    @classmethod
    def with_timeout(cls, seconds: float) -> OperationContext:
        """Create a context that expires ``seconds`` from now."""
        return cls(deadline=time.monotonic() + seconds)

    def cancel(self) -> None:
        """Request cancellation. Safe to call from another thread."""
        self._cancelled.set()

    @property
    def cancelled(self) -> bool:
        """Whether the context was cancelled or its deadline passed."""
        if self._cancelled.is_set():
            return True
        return self.deadline is not None and time.monotonic() >= self.deadline

    def check(self, operation: str) -> None:
        """Raise if the operation should not proceed.

        Raises:
            OperationCancelledError: If cancelled or past the deadline
        """
        if self._cancelled.is_set():
            raise OperationCancelledError(operation, "operation was cancelled")
        if self.deadline is not None and time.monotonic() >= self.deadline:
            raise OperationCancelledError(operation, "operation deadline exceeded")


def background() -> OperationContext:
    """Return a context that is never cancelled unless asked to."""
    return OperationContext()
