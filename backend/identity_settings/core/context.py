"""Cancellation and deadline propagation for store calls.

An :class:`OperationContext` is handed to the settings store by the caller
(typically a request handler) and checked before every statement, so a
cancelled request or an expired deadline stops the remaining round trips.
Derived contexts share the parent's cancel event: cancelling the parent
cancels every context derived from it.
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass, field
from typing import Optional

from identity_settings.domain.errors import DeadlineExceeded, OperationCancelled


@dataclass(frozen=True)
class OperationContext:
    deadline: Optional[float] = None  # time.monotonic() value
    cancel_event: threading.Event = field(default_factory=threading.Event, compare=False)

    @classmethod
    def background(cls) -> "OperationContext":
        """A context that is never cancelled by time."""
        return cls()

    def with_timeout(self, seconds: float) -> "OperationContext":
        """Derive a context expiring `seconds` from now (never later than ours)."""
        deadline = time.monotonic() + seconds
        if self.deadline is not None:
            deadline = min(deadline, self.deadline)
        return OperationContext(deadline=deadline, cancel_event=self.cancel_event)

    def cancel(self) -> None:
        self.cancel_event.set()

    @property
    def cancelled(self) -> bool:
        return self.cancel_event.is_set()

    def check(self) -> None:
        if self.cancel_event.is_set():
            raise OperationCancelled("context cancelled")
        if self.deadline is not None and time.monotonic() >= self.deadline:
            raise DeadlineExceeded("context deadline exceeded")
