"""
Call context.

Every external read or write takes a CallContext so the caller can bound it
with a timeout and cancel it from another thread.

The deadline starts when the context is created.
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass, field

from node_labeler.core.errors import Cancelled, LabelerError, StoreUnavailableError


@dataclass
class CallContext:
    """
    Cancellation and timeout signal for one operation.

    timeout_seconds
    None means no deadline.

    cancel_event
    Set it from any thread to abort work that has not started yet.
    """

    timeout_seconds: float | None = None
    cancel_event: threading.Event = field(default_factory=threading.Event)
    _started: float = field(default_factory=time.monotonic, repr=False)

    def cancel(self) -> None:
        self.cancel_event.set()

    @property
    def cancelled(self) -> bool:
        return self.cancel_event.is_set()

    def remaining(self) -> float | None:
        """Seconds left before the deadline, or None when unbounded."""
        if self.timeout_seconds is None:
            return None
        return max(0.0, self.timeout_seconds - (time.monotonic() - self._started))

    @property
    def expired(self) -> bool:
        remaining = self.remaining()
        return remaining is not None and remaining <= 0.0

    def check(self) -> None:
        """Raise Cancelled when the caller gave up or the deadline passed."""
        if self.cancelled:
            raise Cancelled("operation cancelled by caller")
        if self.expired:
            raise Cancelled(f"deadline of {self.timeout_seconds}s exceeded")

    def transport_failure(self, message: str) -> LabelerError:
        """
        Classify a transport error raised during a call.

        A timeout caused by this context's deadline or a cancel is Cancelled.
        Anything else is StoreUnavailableError.
        """
        if self.cancelled or self.expired:
            return Cancelled(message)
        return StoreUnavailableError(message)


def background() -> CallContext:
    """Return a context with no deadline that is never cancelled."""
    return CallContext()
