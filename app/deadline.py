"""
Deadline handed down a save so a caller can abort it before it commits.
"""

import threading
import time
from typing import Callable, Optional

from app.exceptions import OperationCancelledError


class Deadline:
    """Expires after ``timeout_sec`` or when cancel() is called from any thread."""

    def __init__(
        self,
        timeout_sec: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._clock = clock
        self._expires_at = None if timeout_sec is None else clock() + timeout_sec
        self._cancelled = threading.Event()

    def cancel(self) -> None:
        self._cancelled.set()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def remaining(self) -> Optional[float]:
        if self._expires_at is None:
            return None
        return max(0.0, self._expires_at - self._clock())

    def expired(self) -> bool:
        if self.cancelled:
            return True
        return self._expires_at is not None and self._clock() >= self._expires_at

    def check(self, stage: str) -> None:
        """Raise OperationCancelledError if the deadline passed before ``stage``."""
        if self.expired():
            reason = "cancelled" if self.cancelled else "deadline exceeded"
            raise OperationCancelledError(
                "Operation cancelled",
                details={"stage": stage, "reason": reason},
                code="CANCELLED",
            )
