"""Sync/async bridging for the future-style invocation path.

- BackgroundLoop: an event loop on a daemon thread accepting coroutines
  from any thread and returning ``concurrent.futures.Future`` handles
- run_sync: run a coroutine to completion from synchronous code
"""

from __future__ import annotations

import asyncio
import atexit
import threading
from collections.abc import Coroutine
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, TypeVar

T = TypeVar("T")


class BackgroundLoop:
    """Event loop running on its own daemon thread, started lazily."""

    __slots__ = ("_name", "_loop", "_thread", "_lock")

    def __init__(self, name: str = "intentcall-loop") -> None:
        self._name = name
        self._loop: asyncio.AbstractEventLoop | None = None
        self._thread: threading.Thread | None = None
        self._lock = threading.Lock()

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def _ensure_started(self) -> asyncio.AbstractEventLoop:
        with self._lock:
            if self._loop is None or self._loop.is_closed():
                loop = asyncio.new_event_loop()
                thread = threading.Thread(target=self._serve, args=(loop,), name=self._name, daemon=True)
                thread.start()
                self._loop, self._thread = loop, thread
            return self._loop

    @staticmethod
    def _serve(loop: asyncio.AbstractEventLoop) -> None:
        asyncio.set_event_loop(loop)
        try:
            loop.run_forever()
        finally:
            loop.close()

    def submit(self, coro: Coroutine[Any, Any, T]) -> Future[T]:
        """Schedule ``coro``; cancelling the returned future cancels the task."""
        return asyncio.run_coroutine_threadsafe(coro, self._ensure_started())

    def close(self) -> None:
        with self._lock:
            loop, thread = self._loop, self._thread
            self._loop = self._thread = None
        if loop is not None and not loop.is_closed():
            loop.call_soon_threadsafe(loop.stop)
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=5.0)


_background: BackgroundLoop | None = None
_background_lock = threading.Lock()


def get_background_loop() -> BackgroundLoop:
    """Shared loop used by future-style calls of every built instance."""
    global _background
    if _background is None:
        with _background_lock:
            if _background is None:
                _background = BackgroundLoop()
                atexit.register(_background.close)
    return _background


def reset_background_loop() -> None:
    """Stop the shared loop (useful for testing)."""
    global _background
    with _background_lock:
        if _background is not None:
            _background.close()
        _background = None


def run_sync(coro: Coroutine[Any, Any, T]) -> T:
    """Run ``coro`` from synchronous code.

    Without a running loop this is ``asyncio.run``; inside one, the coroutine
    runs on a fresh loop in a worker thread so the caller's loop is not
    re-entered.
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(coro)
    with ThreadPoolExecutor(max_workers=1, thread_name_prefix="intentcall-sync-") as pool:
        return pool.submit(asyncio.run, coro).result()
