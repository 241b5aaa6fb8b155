"""No-payload change notifications."""

from __future__ import annotations

import logging
from typing import Callable

_log = logging.getLogger(__name__)

Listener = Callable[[], None]


class Signal:
    """A named notification that listeners subscribe to.

    A failing listener is logged and does not stop the remaining listeners.
    """

    def __init__(self, name: str) -> None:
        self.name = name
        self._listeners: list[Listener] = []

    def connect(self, listener: Listener) -> Callable[[], None]:
        """Subscribe a listener. Returns a callable that unsubscribes it."""
        self._listeners.append(listener)

        def disconnect() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return disconnect

    def fire(self) -> None:
        for listener in list(self._listeners):
            try:
                listener()
            except Exception:
                _log.exception("Listener for %s failed", self.name)

    def clear(self) -> None:
        self._listeners.clear()

    def __len__(self) -> int:
        return len(self._listeners)
