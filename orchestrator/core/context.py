"""Per-execution state and cancellation for workflow runs."""

import copy
import threading
import time
from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional

from .exceptions import ExecutionCancelledError

_SCALAR_TYPES = (str, int, float, bool, type(None))


def _is_supported_value(value: Any) -> bool:
    """Check that a value is JSON-like: scalars, mappings and lists of them."""
    if isinstance(value, _SCALAR_TYPES):
        return True
    if isinstance(value, Mapping):
        return all(isinstance(k, str) and _is_supported_value(v) for k, v in value.items())
    if isinstance(value, (list, tuple)):
        return all(_is_supported_value(item) for item in value)
    return False


class CancellationToken:
    """Cooperative cancellation signal with an optional deadline.

    The token is thread-safe: any thread may call ``cancel()`` while the
    executing thread polls ``cancelled`` or calls ``raise_if_cancelled()``.
    """

    def __init__(self, timeout: Optional[float] = None):
        """
        Args:
            timeout: Seconds until the token expires, or None for no deadline
        """
        self._event = threading.Event()
        self._deadline = time.monotonic() + timeout if timeout is not None else None

    def cancel(self) -> None:
        """Signal cancellation to the running execution."""
        self._event.set()

    @property
    def expired(self) -> bool:
        return self._deadline is not None and time.monotonic() >= self._deadline

    @property
    def cancelled(self) -> bool:
        """True when cancel() was called or the deadline has passed."""
        return self._event.is_set() or self.expired

    def remaining(self) -> Optional[float]:
        """Seconds left before the deadline, or None when there is none."""
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - time.monotonic())

    def raise_if_cancelled(self) -> None:
        """
        Raises:
            ExecutionCancelledError: If the token was cancelled or has expired
        """
        if self._event.is_set():
            raise ExecutionCancelledError("execution cancelled")
        if self.expired:
            raise ExecutionCancelledError("execution deadline exceeded")


class ExecutionContext:
    """Mutable state shared by the handlers of a single execution.

    A context is created by the executor for one ``execute`` call and is never
    shared between executions, so it needs no locking.
    """

    def __init__(self, cancellation: Optional[CancellationToken] = None):
        self._state: Dict[str, Any] = {}
        self._step_number = 0
        self.cancellation = cancellation or CancellationToken()
        self.started_at = datetime.now(timezone.utc)

    def set(self, key: str, value: Any) -> None:
        """
        Store a value under a key, replacing any previous value.

        Args:
            key: State key, conventionally namespaced like ``form.city``
            value: A string, number, bool, None, or a mapping/list of those

        Raises:
            TypeError: If the key is not a string or the value kind is unsupported
        """
        if not isinstance(key, str):
            raise TypeError(f"state keys must be strings, got {type(key).__name__}")
        if not _is_supported_value(value):
            raise TypeError(f"unsupported state value for '{key}': {type(value).__name__}")
        self._state[key] = value

    def get(self, key: str, default: Any = None) -> Any:
        return self._state.get(key, default)

    def get_string(self, key: str) -> str:
        value = self._state.get(key)
        return value if isinstance(value, str) else ""

    def get_float(self, key: str) -> float:
        """Numeric value of a key; bools and absent keys read as 0.0."""
        value = self._state.get(key)
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return 0.0
        return float(value)

    def get_bool(self, key: str) -> bool:
        value = self._state.get(key)
        return value if isinstance(value, bool) else False

    def get_mapping(self, key: str) -> Dict[str, Any]:
        value = self._state.get(key)
        return dict(value) if isinstance(value, Mapping) else {}

    def __contains__(self, key: object) -> bool:
        return key in self._state

    def snapshot(self) -> Dict[str, Any]:
        """Deep copy of the current state."""
        return copy.deepcopy(self._state)

    @property
    def step_number(self) -> int:
        return self._step_number

    def next_step(self) -> int:
        """Advance and return the step counter."""
        self._step_number += 1
        return self._step_number

    def check_cancelled(self) -> None:
        self.cancellation.raise_if_cancelled()
