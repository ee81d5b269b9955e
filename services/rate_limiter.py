"""
Fixed-window request rate limiter.

One RateLimiter is constructed at process start and shared by every request
handler. Per-identifier counters live in a dict guarded by a single lock; each
check() is one read-increment-write critical section. A daemon thread sweeps
expired entries so identifiers that stop calling do not accumulate.

Single-process only: counters are not shared between workers.
"""

import logging
import math
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional

from app.exceptions import RateLimitExceededError

logger = logging.getLogger("mealforge.rate_limit")

DEFAULT_MAX_REQUESTS = 10
DEFAULT_WINDOW_MS = 60 * 1000
DEFAULT_SWEEP_INTERVAL_SEC = 5 * 60
UNKNOWN_IDENTIFIER = "unknown"


def _now_ms() -> int:
    return int(time.time() * 1000)


@dataclass
class RateLimitEntry:
    count: int
    reset_at: int  # epoch ms


@dataclass(frozen=True)
class RateLimitResult:
    allowed: bool
    remaining: int
    reset_at: int
    limit: int

    def headers(self) -> Dict[str, str]:
        return {
            "X-RateLimit-Limit": str(self.limit),
            "X-RateLimit-Remaining": str(self.remaining),
            "X-RateLimit-Reset": str(self.reset_at),
        }


def resolve_identifier(
    explicit: Optional[str] = None,
    user_id: Optional[str] = None,
    address: Optional[str] = None,
) -> str:
    """Pick the rate limit bucket: explicit id, then user, then network address."""
    if explicit:
        return explicit
    if user_id:
        return f"user:{user_id}"
    if address:
        return f"ip:{address}"
    return UNKNOWN_IDENTIFIER


class RateLimiter:
    def __init__(
        self,
        max_requests: int = DEFAULT_MAX_REQUESTS,
        window_ms: int = DEFAULT_WINDOW_MS,
        sweep_interval_sec: float = DEFAULT_SWEEP_INTERVAL_SEC,
        clock: Callable[[], int] = _now_ms,
        on_limit_reached: Optional[Callable[[str], None]] = None,
    ):
        self.max_requests = max_requests
        self.window_ms = window_ms
        self.sweep_interval_sec = sweep_interval_sec
        self.clock = clock
        self.on_limit_reached = on_limit_reached
        self._entries: Dict[str, RateLimitEntry] = {}
        self._lock = threading.Lock()
        self._stop = threading.Event()
        self._sweeper: Optional[threading.Thread] = None

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def check(
        self,
        identifier: str,
        max_requests: Optional[int] = None,
        window_ms: Optional[int] = None,
    ) -> RateLimitResult:
        """Count one request for ``identifier`` and report whether it is allowed."""
        limit = self.max_requests if max_requests is None else max_requests
        window = self.window_ms if window_ms is None else window_ms

        with self._lock:
            now = self.clock()
            entry = self._entries.get(identifier)
            if entry is None or entry.reset_at < now:
                entry = RateLimitEntry(count=0, reset_at=now + window)
                self._entries[identifier] = entry
            entry.count += 1
            count, reset_at = entry.count, entry.reset_at

        allowed = count <= limit
        if not allowed:
            logger.info("Rate limit reached for %s (%d/%d)", identifier, count, limit)
            if self.on_limit_reached is not None:
                try:
                    self.on_limit_reached(identifier)
                except Exception:
                    logger.exception("on_limit_reached callback failed for %s", identifier)

        return RateLimitResult(
            allowed=allowed,
            remaining=max(0, limit - count),
            reset_at=reset_at,
            limit=limit,
        )

    def enforce(
        self,
        identifier: str,
        max_requests: Optional[int] = None,
        window_ms: Optional[int] = None,
    ) -> RateLimitResult:
        """check(), raising RateLimitExceededError when the call is not allowed."""
        result = self.check(identifier, max_requests, window_ms)
        if not result.allowed:
            retry_after = max(1, math.ceil((result.reset_at - self.clock()) / 1000))
            raise RateLimitExceededError(
                identifier=identifier,
                retry_after=retry_after,
                limit=result.limit,
                reset_at=result.reset_at,
                window_ms=self.window_ms if window_ms is None else window_ms,
            )
        return result

    def status(self, identifier: str, limit: Optional[int] = None) -> Optional[RateLimitResult]:
        """Current state without counting a request; None when absent or expired."""
        limit = self.max_requests if limit is None else limit
        with self._lock:
            entry = self._entries.get(identifier)
            if entry is None:
                return None
            if entry.reset_at < self.clock():
                del self._entries[identifier]
                return None
            count, reset_at = entry.count, entry.reset_at
        return RateLimitResult(
            allowed=count <= limit,
            remaining=max(0, limit - count),
            reset_at=reset_at,
            limit=limit,
        )

    def clear(self, identifier: str) -> None:
        with self._lock:
            self._entries.pop(identifier, None)

    def sweep(self) -> int:
        """Remove every expired entry; returns how many were removed."""
        now = self.clock()
        with self._lock:
            expired = [key for key, entry in self._entries.items() if entry.reset_at < now]
        removed = 0
        for key in expired:
            with self._lock:
                entry = self._entries.get(key)
                # the entry may have been renewed since the scan
                if entry is not None and entry.reset_at < now:
                    del self._entries[key]
                    removed += 1
        if removed:
            logger.debug("Swept %d expired rate limit entries", removed)
        return removed

    # ---------- background sweep ----------

    def start(self) -> None:
        if self._sweeper is not None and self._sweeper.is_alive():
            return
        self._stop.clear()
        self._sweeper = threading.Thread(
            target=self._run_sweeper, name="rate-limit-sweeper", daemon=True
        )
        self._sweeper.start()
        logger.info("Rate limit sweeper started (every %ss)", self.sweep_interval_sec)

    def stop(self, timeout: Optional[float] = 5.0) -> None:
        self._stop.set()
        if self._sweeper is not None:
            self._sweeper.join(timeout)
            self._sweeper = None
            logger.info("Rate limit sweeper stopped")

    def _run_sweeper(self) -> None:
        while not self._stop.wait(self.sweep_interval_sec):
            try:
                self.sweep()
            except Exception:
                logger.exception("Rate limit sweep failed")
