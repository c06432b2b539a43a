"""Presence sinks: where presence value changes are delivered.

A sink receives ``(name, present)`` on every state change. Calls are
fire-and-forget notifications; sinks must tolerate repeats and reordering.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from typing import Protocol

_logger = logging.getLogger(__name__)


class PresenceSink(Protocol):
    """Structural sink interface used by presence indicators."""

    def publish(self, name: str, present: bool) -> None:
        ...


class LoggingSink:
    """Log every presence update."""

    def __init__(self, logger: logging.Logger | None = None, level: int = logging.INFO) -> None:
        self._logger = logger or _logger
        self._level = level

    def publish(self, name: str, present: bool) -> None:
        self._logger.log(self._level, "[%s] - occupancy %s", name, "detected" if present else "not detected")


class CallbackSink:
    """Adapt a plain ``callback(name, present)`` to the sink interface."""

    def __init__(self, callback: Callable[[str, bool], None]) -> None:
        self._callback = callback

    def publish(self, name: str, present: bool) -> None:
        self._callback(name, present)


class FanoutSink:
    """Forward each update to several sinks.

    A failing sink is logged and skipped; the remaining sinks still receive
    the update.
    """

    def __init__(self, sinks: Iterable[PresenceSink]) -> None:
        self._sinks = list(sinks)

    def publish(self, name: str, present: bool) -> None:
        for sink in self._sinks:
            try:
                sink.publish(name, present)
            except Exception:
                _logger.warning("Sink %s failed for %s", type(sink).__name__, name, exc_info=True)


__all__ = [
    "CallbackSink",
    "FanoutSink",
    "LoggingSink",
    "PresenceSink",
]
