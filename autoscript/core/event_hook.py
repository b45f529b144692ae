"""Minimal synchronous publish/subscribe hook.

Listeners are called on the emitting thread, in subscription order.
A listener that raises is logged and skipped so that a faulty observer
can never break the run that emitted the event.

Typical usage::

    hook: EventHook[ExecutionLog] = EventHook("log_generated")
    hook.subscribe(print)
    hook.emit(entry)
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from typing import Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class EventHook(Generic[T]):
    """A named list of callbacks receiving one value each.

    Args:
        name: Label used in diagnostic log messages.
    """

    def __init__(self, name: str = "event") -> None:
        self._name = name
        self._listeners: list[Callable[[T], object]] = []
        self._lock = threading.Lock()

    def subscribe(self, listener: Callable[[T], object]) -> None:
        """Register *listener*.  Subscribing twice calls it twice."""
        with self._lock:
            self._listeners.append(listener)

    def unsubscribe(self, listener: Callable[[T], object]) -> bool:
        """Remove one registration of *listener*.

        Returns:
            ``True`` if the listener was registered.
        """
        with self._lock:
            try:
                self._listeners.remove(listener)
            except ValueError:
                return False
        return True

    @property
    def listener_count(self) -> int:
        with self._lock:
            return len(self._listeners)

    def emit(self, value: T) -> None:
        """Deliver *value* to every listener registered right now."""
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(value)
            except Exception:
                logger.exception(
                    "Listener %r for %s raised", listener, self._name
                )

    def clear(self) -> None:
        with self._lock:
            self._listeners.clear()
