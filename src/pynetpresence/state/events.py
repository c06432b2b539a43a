"""Typed presence events and the channel registry that routes them.

Subscribers register for an ``(event kind, channel)`` pair. The registry is a
per-kind multimap from matched value to handlers, so any number of identities
can watch the same physical device through its hardware address, its network
address or its host name without the publisher knowing about them.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import StrEnum

from pynetpresence.models.device import DeviceSighting
from pynetpresence.models.identity import Channel, ChannelKind

_logger = logging.getLogger(__name__)


class EventKind(StrEnum):
    CONNECTED = "connected"
    DISCONNECTED = "disconnected"


@dataclass(frozen=True, slots=True)
class PresenceEvent:
    """A device appeared on or left a channel during one poll cycle."""

    kind: EventKind
    channel: Channel
    sighting: DeviceSighting

    @property
    def name(self) -> str:
        """Textual channel name, e.g. ``connected:mac:aa:bb:cc:dd:ee:ff``."""
        return f"{self.kind.value}:{self.channel}"


EventHandler = Callable[[PresenceEvent], None]
ErrorHandler = Callable[[Exception], None]
Unsubscribe = Callable[[], None]


class PresenceEventBus:
    """Synchronous dispatcher for presence events.

    Handlers run on the publisher's call stack in subscription order. A
    failing handler is logged and does not prevent delivery to the others.
    """

    def __init__(self) -> None:
        self._handlers: dict[tuple[EventKind, ChannelKind], dict[str, list[EventHandler]]] = {
            (event_kind, channel_kind): {} for event_kind in EventKind for channel_kind in ChannelKind
        }
        self._error_handlers: list[ErrorHandler] = []

    def subscribe(self, kind: EventKind, channel: Channel, handler: EventHandler) -> Unsubscribe:
        """Register *handler* for events of *kind* on *channel*.

        Returns a callable that removes exactly this registration.
        """
        by_value = self._handlers[(kind, channel.kind)]
        by_value.setdefault(channel.value, []).append(handler)
        _logger.debug("Subscribed %s:%s", kind.value, channel)

        removed = False

        def unsubscribe() -> None:
            nonlocal removed
            handlers = by_value.get(channel.value)
            if removed or handlers is None or handler not in handlers:
                return
            removed = True
            remaining = list(handlers)
            remaining.remove(handler)
            if remaining:
                by_value[channel.value] = remaining
            else:
                by_value.pop(channel.value, None)

        return unsubscribe

    def subscribe_errors(self, handler: ErrorHandler) -> Unsubscribe:
        self._error_handlers.append(handler)
        removed = False

        def unsubscribe() -> None:
            nonlocal removed
            if removed or handler not in self._error_handlers:
                return
            removed = True
            remaining = list(self._error_handlers)
            remaining.remove(handler)
            self._error_handlers = remaining

        return unsubscribe

    def subscriber_count(self, kind: EventKind, channel: Channel) -> int:
        return len(self._handlers[(kind, channel.kind)].get(channel.value, ()))

    def publish(self, event: PresenceEvent) -> None:
        handlers = self._handlers[(event.kind, event.channel.kind)].get(event.channel.value)
        _logger.debug("Publishing %s (%d subscribers)", event.name, len(handlers or ()))
        if not handlers:
            return
        # Copy so a handler may unsubscribe while we iterate.
        for handler in list(handlers):
            try:
                handler(event)
            except Exception:
                _logger.warning("Presence handler failed for %s", event.name, exc_info=True)

    def publish_error(self, error: Exception) -> None:
        for handler in list(self._error_handlers):
            try:
                handler(error)
            except Exception:
                _logger.debug("Error handler failed", exc_info=True)
