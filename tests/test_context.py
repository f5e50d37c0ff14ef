"""Tests for the execution context and cancellation token."""

import threading
import time

import pytest

from orchestrator.core.context import CancellationToken, ExecutionContext
from orchestrator.core.exceptions import ExecutionCancelledError, HandlerExecutionError


class TestExecutionContext:
    """Test cases for ExecutionContext."""

    def test_set_and_get(self):
        context = ExecutionContext()
        context.set("form.city", "Sydney")

        assert context.get("form.city") == "Sydney"
        assert context.get("missing") is None
        assert context.get("missing", "fallback") == "fallback"
        assert "form.city" in context

    def test_typed_getters_default_on_absence(self):
        context = ExecutionContext()

        assert context.get_string("x") == ""
        assert context.get_float("x") == 0.0
        assert context.get_bool("x") is False
        assert context.get_mapping("x") == {}

    def test_typed_getters_default_on_mismatch(self):
        context = ExecutionContext()
        context.set("number", 3)
        context.set("text", "3")
        context.set("flag", True)

        assert context.get_string("number") == ""
        assert context.get_float("text") == 0.0
        assert context.get_float("flag") == 0.0
        assert context.get_bool("number") is False

    def test_get_float_accepts_int(self):
        context = ExecutionContext()
        context.set("weather.temperature", 21)

        assert context.get_float("weather.temperature") == 21.0

    def test_nested_values(self):
        context = ExecutionContext()
        context.set("data", {"items": [1, 2.5, "x", None, {"ok": True}]})

        assert context.get_mapping("data")["items"][4] == {"ok": True}

    def test_rejects_unsupported_values(self):
        context = ExecutionContext()

        with pytest.raises(TypeError):
            context.set("obj", object())
        with pytest.raises(TypeError):
            context.set("nested", {"when": time})
        with pytest.raises(TypeError):
            context.set(1, "value")

    def test_snapshot_is_deep_copy(self):
        context = ExecutionContext()
        context.set("data", {"items": [1]})

        snapshot = context.snapshot()
        snapshot["data"]["items"].append(2)

        assert context.get("data") == {"items": [1]}

    def test_step_counter(self):
        context = ExecutionContext()

        assert context.step_number == 0
        assert context.next_step() == 1
        assert context.next_step() == 2
        assert context.step_number == 2


class TestCancellationToken:
    """Test cases for CancellationToken."""

    def test_fresh_token(self):
        token = CancellationToken()

        assert not token.cancelled
        assert not token.expired
        assert token.remaining() is None
        token.raise_if_cancelled()

    def test_cancel(self):
        token = CancellationToken()
        token.cancel()

        assert token.cancelled
        with pytest.raises(ExecutionCancelledError) as exc_info:
            token.raise_if_cancelled()
        assert isinstance(exc_info.value, HandlerExecutionError)

    def test_cancel_from_other_thread(self):
        token = CancellationToken()
        worker = threading.Thread(target=token.cancel)
        worker.start()
        worker.join()

        assert token.cancelled

    def test_deadline(self):
        token = CancellationToken(timeout=0)

        assert token.expired
        assert token.cancelled
        assert token.remaining() == 0.0
        with pytest.raises(ExecutionCancelledError, match="deadline"):
            token.raise_if_cancelled()

    def test_remaining_counts_down(self):
        token = CancellationToken(timeout=60)

        remaining = token.remaining()
        assert remaining is not None
        assert 0 < remaining <= 60

    def test_context_check_cancelled(self):
        token = CancellationToken()
        context = ExecutionContext(token)
        context.check_cancelled()

        token.cancel()

        with pytest.raises(ExecutionCancelledError):
            context.check_cancelled()
