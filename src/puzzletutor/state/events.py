"""Named, payload-less notifications shared across the process."""

from __future__ import annotations

from typing import Callable

from loguru import logger

Listener = Callable[[], None]


class Signal:
    """Observer list fired with no arguments.

    A failing listener is logged and skipped; it never reaches the emitter
    and never stops the remaining listeners.
    """

    def __init__(self, name: str):
        self.name = name
        self._listeners: list[Listener] = []

    def connect(self, listener: Listener) -> Listener:
        if listener not in self._listeners:
            self._listeners.append(listener)
        return listener

    def disconnect(self, listener: Listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def emit(self) -> None:
        for listener in list(self._listeners):
            try:
                listener()
            except Exception:
                logger.exception("Listener for {} failed", self.name)

    def __repr__(self) -> str:
        return f"Signal({self.name!r})"


PROGRESS_UPDATED = Signal("pgn-puzzles:progress-updated")
