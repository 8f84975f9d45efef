"""Admission gates shared by every invocation style of one instance.

Future-style calls run on a background event loop while cooperative calls
run on the caller's loop, so both gates are built on ``threading`` locks and
work across threads and event loops at once.

- RateGate: sliding window of admission timestamps
- ConcurrencyGate: counting semaphore with scoped holds
"""

from __future__ import annotations

import asyncio
import logging
import threading
import time
from collections import deque
from collections.abc import AsyncIterator, Callable, Iterator
from contextlib import asynccontextmanager, contextmanager

logger = logging.getLogger("intentcall.gates")


# ─────────────────────────────────────────────────────────────────────────────
# Rate Gate
# ─────────────────────────────────────────────────────────────────────────────

class RateGate:
    """Admits at most ``max_per_window`` requests in any sliding window.

    Args:
        max_per_window: Admissions allowed per window
        window_ms: Window length in milliseconds
        clock: Monotonic clock in seconds

    Example:
        >>> gate = RateGate(60)
        >>> await gate.acquire_async()
    """

    __slots__ = ("_max", "_window", "_clock", "_timestamps", "_lock")

    def __init__(self, max_per_window: int, window_ms: float = 60_000, *, clock: Callable[[], float] = time.monotonic) -> None:
        if max_per_window <= 0:
            raise ValueError("max_per_window must be > 0")
        self._max = max_per_window
        self._window = window_ms / 1000.0
        self._clock = clock
        self._timestamps: deque[float] = deque()
        self._lock = threading.Lock()

    def try_acquire(self) -> float:
        """Admit now and return 0, or return the seconds to wait before retrying."""
        with self._lock:
            now = self._clock()
            while self._timestamps and now - self._timestamps[0] > self._window:
                self._timestamps.popleft()
            if len(self._timestamps) < self._max:
                self._timestamps.append(now)
                return 0.0
            return self._window - (now - self._timestamps[0]) + 0.001

    def acquire(self) -> None:
        """Block the calling thread until admitted."""
        while (wait := self.try_acquire()) > 0:
            logger.debug(f"Rate gate full, waiting {wait * 1000:.0f}ms")
            time.sleep(wait)

    async def acquire_async(self) -> None:
        """Suspend until admitted."""
        while (wait := self.try_acquire()) > 0:
            logger.debug(f"Rate gate full, waiting {wait * 1000:.0f}ms")
            await asyncio.sleep(wait)

    @property
    def in_window(self) -> int:
        with self._lock:
            return len(self._timestamps)


# ─────────────────────────────────────────────────────────────────────────────
# Concurrency Gate
# ─────────────────────────────────────────────────────────────────────────────

class _ThreadWaiter:
    __slots__ = ("event",)

    def __init__(self) -> None:
        self.event = threading.Event()

    def grant(self) -> bool:
        self.event.set()
        return True


class _AsyncWaiter:
    __slots__ = ("loop", "future", "gate")

    def __init__(self, gate: ConcurrencyGate) -> None:
        self.loop = asyncio.get_running_loop()
        self.future: asyncio.Future[None] = self.loop.create_future()
        self.gate = gate

    def grant(self) -> bool:
        try:
            self.loop.call_soon_threadsafe(self._wake)
        except RuntimeError:
            return False
        return True

    def _wake(self) -> None:
        if self.future.cancelled():
            # Permit was handed over after the waiter gave up; pass it on
            self.gate.release()
        else:
            self.future.set_result(None)


class ConcurrencyGate:
    """Counting semaphore bounding in-flight requests.

    A release hands the permit directly to the longest waiting caller, if any.

    Example:
        >>> gate = ConcurrencyGate(4)
        >>> async with gate.hold_async():
        ...     await call_backend()
    """

    __slots__ = ("_limit", "_available", "_waiters", "_lock", "_peak")

    def __init__(self, limit: int) -> None:
        if limit <= 0:
            raise ValueError("limit must be > 0")
        self._limit = limit
        self._available = limit
        self._waiters: deque[_ThreadWaiter | _AsyncWaiter] = deque()
        self._lock = threading.Lock()
        self._peak = 0

    @property
    def limit(self) -> int:
        return self._limit

    @property
    def in_flight(self) -> int:
        with self._lock:
            return self._limit - self._available

    @property
    def peak(self) -> int:
        with self._lock:
            return self._peak

    def _take_unlocked(self) -> None:
        self._available -= 1
        self._peak = max(self._peak, self._limit - self._available)

    def try_acquire(self) -> bool:
        with self._lock:
            if self._available > 0 and not self._waiters:
                self._take_unlocked()
                return True
            return False

    def acquire(self, timeout: float | None = None) -> bool:
        """Block the calling thread for a permit; False on timeout."""
        with self._lock:
            if self._available > 0 and not self._waiters:
                self._take_unlocked()
                return True
            waiter = _ThreadWaiter()
            self._waiters.append(waiter)
        if waiter.event.wait(timeout):
            return True
        with self._lock:
            if waiter in self._waiters:
                self._waiters.remove(waiter)
                return False
        return True

    async def acquire_async(self) -> None:
        """Suspend for a permit. Cancellation while waiting never leaks one."""
        with self._lock:
            if self._available > 0 and not self._waiters:
                self._take_unlocked()
                return
            waiter = _AsyncWaiter(self)
            self._waiters.append(waiter)
        try:
            await waiter.future
        except asyncio.CancelledError:
            with self._lock:
                queued = waiter in self._waiters
                if queued:
                    self._waiters.remove(waiter)
            if not queued and not waiter.future.cancelled():
                self.release()
            raise

    def release(self) -> None:
        with self._lock:
            while self._waiters:
                if self._waiters.popleft().grant():
                    return
            if self._available >= self._limit:
                raise RuntimeError("ConcurrencyGate released more times than acquired")
            self._available += 1

    @contextmanager
    def hold(self) -> Iterator[None]:
        self.acquire()
        try:
            yield
        finally:
            self.release()

    @asynccontextmanager
    async def hold_async(self) -> AsyncIterator[None]:
        await self.acquire_async()
        try:
            yield
        finally:
            self.release()
