"""Cooperative cancellation checked at database I/O boundaries."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field

from resmap.domain.errors import OperationCancelledError


@dataclass(frozen=True, slots=True)
class Cancellation:
    """Thread-safe cancellation flag.

    Checked before each command runs and before a query starts streaming rows.
    A row stream that is already running is not interrupted.
    """

    _event: threading.Event = field(default_factory=threading.Event, repr=False)

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        self._event.set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise OperationCancelledError("Operation was cancelled.")
