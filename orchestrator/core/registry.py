"""Handler registry mapping node types to node handlers."""

import threading
from contextlib import contextmanager
from typing import TYPE_CHECKING, Dict, Iterator, List, Optional

from .exceptions import ConfigurationError
from .logging import get_logger

if TYPE_CHECKING:
    from ..handlers.base import NodeHandler

logger = get_logger(__name__)


class _ReadWriteLock:
    """Many concurrent readers or one exclusive writer."""

    def __init__(self):
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writing = False

    @contextmanager
    def read(self) -> Iterator[None]:
        with self._cond:
            while self._writing:
                self._cond.wait()
            self._readers += 1
        try:
            yield
        finally:
            with self._cond:
                self._readers -= 1
                if self._readers == 0:
                    self._cond.notify_all()

    @contextmanager
    def write(self) -> Iterator[None]:
        with self._cond:
            while self._writing or self._readers:
                self._cond.wait()
            self._writing = True
        try:
            yield
        finally:
            with self._cond:
                self._writing = False
                self._cond.notify_all()


class HandlerRegistry:
    """Registry of node handlers keyed by node type.

    Lookups may run concurrently from several executions; registration takes
    an exclusive lock.
    """

    def __init__(self):
        self._handlers: Dict[str, "NodeHandler"] = {}
        self._lock = _ReadWriteLock()

    def register(self, handler: "NodeHandler") -> None:
        """
        Register a handler under its ``node_type``.

        A later registration for the same type replaces the earlier one.

        Args:
            handler: Handler instance to register

        Raises:
            ConfigurationError: If the handler declares no node type
        """
        node_type = getattr(handler, "node_type", "") or ""
        if not node_type.strip():
            raise ConfigurationError(
                f"Handler {type(handler).__name__} declares no node type",
                config_key="node_type"
            )

        with self._lock.write():
            replaced = node_type in self._handlers
            self._handlers[node_type] = handler

        if replaced:
            logger.info(f"Replaced handler for node type '{node_type}' with {type(handler).__name__}")
        else:
            logger.debug(f"Registered handler {type(handler).__name__} for node type '{node_type}'")

    def get(self, node_type: str) -> Optional["NodeHandler"]:
        """Handler for a node type, or None when the type is unknown."""
        with self._lock.read():
            return self._handlers.get(node_type)

    def node_types(self) -> List[str]:
        with self._lock.read():
            return sorted(self._handlers)

    def __contains__(self, node_type: object) -> bool:
        with self._lock.read():
            return node_type in self._handlers

    def __len__(self) -> int:
        with self._lock.read():
            return len(self._handlers)
