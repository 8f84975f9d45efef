"""Tests for the rate and concurrency gates."""

from __future__ import annotations

import asyncio
import threading
import time

import pytest

from intentcall.runtime.concurrency import BackgroundLoop, ConcurrencyGate, RateGate, run_sync


# ─────────────────────────────────────────────────────────────────────────────
# Rate Gate
# ─────────────────────────────────────────────────────────────────────────────


class TestRateGate:

    def test_sliding_window(self, clock) -> None:
        gate = RateGate(2, window_ms=1000, clock=clock)
        assert gate.try_acquire() == 0
        clock.advance(0.5)
        assert gate.try_acquire() == 0
        wait = gate.try_acquire()
        assert wait == pytest.approx(0.501)
        clock.advance(0.51)
        assert gate.try_acquire() == 0
        assert gate.in_window == 2

    def test_rejects_non_positive_limit(self) -> None:
        with pytest.raises(ValueError):
            RateGate(0)

    @pytest.mark.asyncio
    async def test_acquire_async_waits_for_window(self) -> None:
        gate = RateGate(1, window_ms=50)
        started = time.monotonic()
        await gate.acquire_async()
        await gate.acquire_async()
        assert time.monotonic() - started >= 0.04

    def test_acquire_blocks_thread(self) -> None:
        gate = RateGate(1, window_ms=30)
        started = time.monotonic()
        gate.acquire()
        gate.acquire()
        assert time.monotonic() - started >= 0.02


# ─────────────────────────────────────────────────────────────────────────────
# Concurrency Gate
# ─────────────────────────────────────────────────────────────────────────────


class TestConcurrencyGate:

    @pytest.mark.asyncio
    async def test_peak_never_exceeds_limit(self) -> None:
        gate = ConcurrencyGate(2)

        async def work() -> None:
            async with gate.hold_async():
                await asyncio.sleep(0.01)

        await asyncio.gather(*(work() for _ in range(10)))
        assert gate.peak == 2
        assert gate.in_flight == 0

    @pytest.mark.asyncio
    async def test_cancelled_waiter_does_not_leak(self) -> None:
        gate = ConcurrencyGate(1)
        await gate.acquire_async()
        waiter = asyncio.create_task(gate.acquire_async())
        await asyncio.sleep(0)
        waiter.cancel()
        with pytest.raises(asyncio.CancelledError):
            await waiter
        gate.release()
        assert gate.in_flight == 0
        assert gate.try_acquire()

    @pytest.mark.asyncio
    async def test_release_hands_permit_to_waiter(self) -> None:
        gate = ConcurrencyGate(1)
        await gate.acquire_async()
        waiter = asyncio.create_task(gate.acquire_async())
        await asyncio.sleep(0)
        assert not waiter.done()
        gate.release()
        await asyncio.wait_for(waiter, 1)
        assert gate.in_flight == 1
        assert not gate.try_acquire()

    def test_over_release(self) -> None:
        with pytest.raises(RuntimeError):
            ConcurrencyGate(1).release()

    def test_thread_acquire_timeout(self) -> None:
        gate = ConcurrencyGate(1)
        assert gate.acquire()
        assert gate.acquire(timeout=0.01) is False
        gate.release()
        assert gate.in_flight == 0

    def test_handoff_between_threads(self) -> None:
        gate = ConcurrencyGate(1)
        gate.acquire()
        acquired = threading.Event()

        def worker() -> None:
            with gate.hold():
                acquired.set()

        thread = threading.Thread(target=worker)
        thread.start()
        assert not acquired.wait(0.02)
        gate.release()
        thread.join(timeout=1)
        assert acquired.is_set()
        assert gate.in_flight == 0

    def test_shared_across_event_loops(self) -> None:
        gate = ConcurrencyGate(2)
        loop = BackgroundLoop("gate-test")

        async def work() -> None:
            async with gate.hold_async():
                await asyncio.sleep(0.01)

        async def local() -> None:
            await asyncio.gather(*(work() for _ in range(5)))

        try:
            futures = [loop.submit(work()) for _ in range(5)]
            run_sync(local())
            for f in futures:
                f.result(timeout=2)
        finally:
            loop.close()
        assert gate.peak <= 2
        assert gate.in_flight == 0


@pytest.mark.asyncio
async def test_run_sync_inside_running_loop() -> None:
    async def answer() -> int:
        return 42

    assert run_sync(answer()) == 42
