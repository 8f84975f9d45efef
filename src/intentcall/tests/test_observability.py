"""Tests for logging setup, listeners, usage tracking, errors, settings and memory.

Validates:
- configure_logging installs one handler with text or JSON output
- LoggingListener messages and levels
- UsageTracker per-model aggregation
- ErrorInfo classification and rendering
- Environment-driven settings
- InMemoryStore ordering and snapshots
"""

from __future__ import annotations

import io
import json
import logging
from collections.abc import Iterator

import pytest
from pydantic import ValidationError

from intentcall.adapters import UsageInfo
from intentcall.foundation.config import LoggingSettings, clear_settings_cache, get_settings
from intentcall.foundation.core import PromptContext
from intentcall.foundation.errors import (
    AdapterError,
    ArgumentError,
    ConfigurationError,
    ErrorCode,
    ErrorInfo,
    ResilienceError,
    classify_exception,
    is_fatal,
)
from intentcall.io.memory import InMemoryStore, MemoryStore
from intentcall.runtime.observability import LoggingListener, UsageTracker, configure_logging


@pytest.fixture
def intentcall_logger() -> Iterator[logging.Logger]:
    root = logging.getLogger("intentcall")
    handlers, level = list(root.handlers), root.level
    yield root
    for handler in [h for h in root.handlers if h not in handlers]:
        root.removeHandler(handler)
    root.setLevel(level)


# ═════════════════════════════════════════════════════════════════════════════
# configure_logging
# ═════════════════════════════════════════════════════════════════════════════


class TestConfigureLogging:

    def test_json_lines(self, intentcall_logger: logging.Logger) -> None:
        stream = io.StringIO()
        configure_logging(level="debug", format="json", output=stream)
        logging.getLogger("intentcall.pipeline").debug("hello")
        entry = json.loads(stream.getvalue().strip())
        assert (entry["level"], entry["logger"], entry["message"]) == ("DEBUG", "intentcall.pipeline", "hello")
        assert "timestamp" in entry

    def test_text_without_timestamps(self, intentcall_logger: logging.Logger) -> None:
        stream = io.StringIO()
        configure_logging(output=stream, settings=LoggingSettings(include_timestamps=False))
        logging.getLogger("intentcall.cache").info("hit")
        assert stream.getvalue() == "INFO    intentcall.cache: hit\n"

    def test_reconfigure_replaces_handler(self, intentcall_logger: logging.Logger) -> None:
        before = len(intentcall_logger.handlers)
        configure_logging(output=io.StringIO())
        configure_logging(output=io.StringIO())
        assert len(intentcall_logger.handlers) == before + 1

    def test_level_from_environment(self, monkeypatch: pytest.MonkeyPatch, intentcall_logger) -> None:
        monkeypatch.setenv("INTENTCALL_LOG_LEVEL", "warning")
        clear_settings_cache()
        assert configure_logging(output=io.StringIO()).level == logging.WARNING

    def test_unknown_format(self, intentcall_logger: logging.Logger) -> None:
        with pytest.raises(ValueError, match="Unknown format"):
            configure_logging(format="xml")


# ═════════════════════════════════════════════════════════════════════════════
# Listeners
# ═════════════════════════════════════════════════════════════════════════════


class TestLoggingListener:

    def test_completion_and_failure(self, context: PromptContext, caplog: pytest.LogCaptureFixture) -> None:
        caplog.set_level(logging.INFO, logger="intentcall.listeners")
        listener = LoggingListener()
        listener.on_start(context)
        listener.on_complete(context, "hi", 12.345, UsageInfo(model="m", input_tokens=1, output_tokens=2))
        listener.on_error(context, AdapterError("boom"), 1.0)
        assert [r.getMessage() for r in caplog.records] == [
            "[greet] Starting",
            "[greet] OK (12.3ms, 3 tokens)",
            "[greet] FAILED (1.0ms, EXTERNAL_SERVICE_ERROR): boom",
        ]
        assert caplog.records[-1].levelno == logging.WARNING

    def test_log_context(self, context: PromptContext, caplog: pytest.LogCaptureFixture) -> None:
        caplog.set_level(logging.INFO, logger="intentcall.listeners")
        LoggingListener(log_context=True).on_start(context)
        assert context.method_invocation in caplog.text

    def test_failure_classification(self, context: PromptContext, caplog: pytest.LogCaptureFixture) -> None:
        caplog.set_level(logging.WARNING, logger="intentcall.listeners")
        listener = LoggingListener()
        listener.on_error(context, ArgumentError("missing name"), 2.0)
        listener.on_error(context.evolve(method_name=""), TimeoutError("   "), 3.0)
        assert [r.getMessage() for r in caplog.records] == [
            "[greet] FAILED (2.0ms, INVALID_ARGUMENTS, fatal): missing name",
            "[unknown] FAILED (3.0ms, TIMEOUT): TimeoutError",
        ]


class TestUsageTracker:

    def test_aggregates_per_model(self, context: PromptContext) -> None:
        tracker = UsageTracker()
        priced = UsageInfo(model="m1", input_tokens=10, output_tokens=5, input_cost_per_token=0.001)
        tracker.on_complete(context, "a", 1.0, priced)
        tracker.on_complete(context, "b", 1.0, priced)
        tracker.on_complete(context, "c", 1.0, UsageInfo(model="m2", input_tokens=1))
        tracker.on_complete(context, "d", 1.0, None)

        m1 = tracker.by_model()["m1"]
        assert (m1.requests, m1.total_tokens) == (2, 30)
        assert m1.estimated_cost == pytest.approx(0.02)
        assert tracker.requests == 4
        assert tracker.total_tokens == 31
        assert tracker.summary()["unreported"] == 1

    def test_reset(self, context: PromptContext) -> None:
        tracker = UsageTracker()
        tracker.on_complete(context, "a", 1.0, UsageInfo(model="m", input_tokens=3))
        tracker.reset()
        assert tracker.summary() == {"requests": 0, "unreported": 0, "models": {}}


# ═════════════════════════════════════════════════════════════════════════════
# Errors
# ═════════════════════════════════════════════════════════════════════════════


@pytest.mark.parametrize(
    ("exc", "code"),
    [
        (TimeoutError("took too long"), ErrorCode.TIMEOUT),
        (ConnectionError("reset by peer"), ErrorCode.NETWORK_ERROR),
        (ValueError("bad input"), ErrorCode.INVALID_ARGUMENTS),
        (RuntimeError("boom"), ErrorCode.EXTERNAL_SERVICE_ERROR),
        (ConfigurationError("no adapter"), ErrorCode.CONFIGURATION),
        (ResilienceError("exhausted"), ErrorCode.EXHAUSTED),
    ],
)
def test_classify_exception(exc: BaseException, code: ErrorCode) -> None:
    assert classify_exception(exc) is code


def test_fatal_families() -> None:
    assert is_fatal(ConfigurationError("x"))
    assert is_fatal(ArgumentError("x"))
    assert not is_fatal(AdapterError("x"))
    assert not is_fatal(RuntimeError("x"))


class TestErrorInfo:

    def test_recoverable_error(self) -> None:
        info = ErrorInfo.from_exception("greet", AdapterError("backend down"))
        assert (info.code, info.recoverable, info.is_retryable) == (ErrorCode.EXTERNAL_SERVICE_ERROR, True, True)
        assert info.render().startswith("**Error (greet):** backend down")
        assert "may be recoverable" in str(info)

    def test_fatal_error(self) -> None:
        info = ErrorInfo.from_exception("greet", ArgumentError("missing name"))
        assert not info.recoverable
        assert not info.is_retryable
        assert info.render() == "**Error (greet):** missing name"

    def test_trace_and_defaults(self) -> None:
        try:
            raise RuntimeError("deep")
        except RuntimeError as e:
            info = ErrorInfo.from_exception("", e, include_trace=True)
        assert info.method_name == "unknown"
        assert "RuntimeError: deep" in info.details
        assert ErrorInfo(method_name="m", message=KeyError()).message == "KeyError"


# ═════════════════════════════════════════════════════════════════════════════
# Settings
# ═════════════════════════════════════════════════════════════════════════════


class TestSettings:

    def test_defaults(self) -> None:
        settings = get_settings()
        assert settings.resilience.max_retries == 0
        assert settings.cache.ttl_ms == 300_000
        assert settings.rate_limit.window_ms == 60_000
        assert settings.effective_log_level == "INFO"

    def test_environment_overrides(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("INTENTCALL_DEBUG", "true")
        monkeypatch.setenv("INTENTCALL_RESILIENCE_TIMEOUT_MS", "1500")
        monkeypatch.setenv("INTENTCALL_CACHE_MAX_ENTRIES", "7")
        clear_settings_cache()
        settings = get_settings()
        assert settings.effective_log_level == "DEBUG"
        assert settings.resilience.timeout_ms == 1500
        assert settings.cache.max_entries == 7

    def test_cached_until_cleared(self, monkeypatch: pytest.MonkeyPatch) -> None:
        first = get_settings()
        monkeypatch.setenv("INTENTCALL_RESILIENCE_MAX_RETRIES", "4")
        assert get_settings() is first
        clear_settings_cache()
        assert get_settings().resilience.max_retries == 4

    def test_invalid_value(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("INTENTCALL_CACHE_TTL_MS", "0")
        clear_settings_cache()
        with pytest.raises(ValidationError):
            get_settings()


# ═════════════════════════════════════════════════════════════════════════════
# Memory
# ═════════════════════════════════════════════════════════════════════════════


def test_memory_store() -> None:
    store = InMemoryStore()
    assert isinstance(store, MemoryStore)
    store.put("a", "1")
    store.put("b", "2")
    store.put("a", "3")
    snapshot = store.get_all()
    assert snapshot == {"b": "2", "a": "3"}
    assert list(snapshot) == ["b", "a"]
    snapshot["c"] = "x"
    assert "c" not in store
    assert (store.get("a"), store.get("zzz"), len(store)) == ("3", None, 2)
    store.clear()
    assert store.get_all() == {}
