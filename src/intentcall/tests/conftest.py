"""Shared fixtures: isolated settings, a clean background loop and recording helpers."""

from __future__ import annotations

import os
from typing import Any

import pytest

from intentcall.foundation.config import clear_settings_cache
from intentcall.foundation.core import PromptContext
from intentcall.runtime.concurrency import reset_background_loop
from intentcall.runtime.observability import RequestListener


class RecordingListener(RequestListener):
    """Listener keeping every lifecycle event in order."""

    def __init__(self) -> None:
        self.events: list[tuple[str, Any]] = []

    def on_start(self, context: PromptContext) -> None:
        self.events.append(("start", context.method_name))

    def on_complete(self, context: PromptContext, result: Any, duration_ms: float, usage: Any = None) -> None:
        self.events.append(("complete", result))

    def on_error(self, context: PromptContext, error: BaseException, duration_ms: float) -> None:
        self.events.append(("error", error))

    @property
    def kinds(self) -> list[str]:
        return [kind for kind, _ in self.events]


class FakeSleep:
    """Sleep replacement recording requested delays without waiting."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


class FakeClock:
    """Manually advanced monotonic clock (seconds)."""

    def __init__(self, start: float = 0.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch: pytest.MonkeyPatch) -> object:
    """Strip INTENTCALL_* variables so tests see default settings."""
    for key in [k for k in os.environ if k.startswith("INTENTCALL_")]:
        monkeypatch.delenv(key, raising=False)
    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture(scope="session", autouse=True)
def background_loop() -> object:
    yield
    reset_background_loop()


@pytest.fixture
def context() -> PromptContext:
    return PromptContext(system_instructions="sys", method_invocation='{"method": "greet"}', method_name="greet")


@pytest.fixture
def recorder() -> RecordingListener:
    return RecordingListener()


@pytest.fixture
def fake_sleep() -> FakeSleep:
    return FakeSleep()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()
