"""Debounced per-identity presence state machine.

Scans are lossy: a device that misses one poll cycle has not necessarily
left. A ``disconnected`` event therefore only arms a timer; the identity is
reported absent when the timer expires without an intervening
``connected`` event.

Transitions::

    ABSENT  --connected-->     PRESENT  (push True)
    PRESENT --connected-->     PRESENT  (cancel pending timer, no push)
    PRESENT --disconnected-->  PRESENT  (arm/re-arm timer)
    PRESENT --timer expiry-->  ABSENT   (push False)
    ABSENT  --disconnected-->  ABSENT   (no-op)
"""

from __future__ import annotations

import asyncio
import logging
from enum import StrEnum

from pynetpresence._constants import DEFAULT_THRESHOLD, minutes_to_seconds
from pynetpresence.models.device import DeviceSighting
from pynetpresence.models.identity import Channel, MonitoredIdentity
from pynetpresence.sinks import PresenceSink
from pynetpresence.state.events import EventKind, PresenceEvent, PresenceEventBus, Unsubscribe

_logger = logging.getLogger(__name__)


class PresenceState(StrEnum):
    ABSENT = "absent"
    PRESENT = "present"


class PresenceIndicator:
    """A named boolean presence value pushed to a sink on every change."""

    def __init__(self, name: str, *, sink: PresenceSink, serial: str) -> None:
        self.name = name
        self.serial = serial
        self.handle: int | None = None
        self._sink = sink
        self._present = False

    @property
    def present(self) -> bool:
        return self._present

    @property
    def state(self) -> PresenceState:
        return PresenceState.PRESENT if self._present else PresenceState.ABSENT

    def _set(self, present: bool) -> None:
        self._present = present
        try:
            self._sink.publish(self.name, present)
        except Exception:
            _logger.warning("[%s] - failed to push presence=%s", self.name, present, exc_info=True)

    def close(self) -> None:
        """Release timers and subscriptions. Safe to call more than once."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, serial={self.serial!r}, state={self.state.value})"


class PresenceStateMachine(PresenceIndicator):
    """Presence of one monitored identity, debounced on disconnect.

    Parameters
    ----------
    name : str
        Display name pushed to the sink.
    identity : MonitoredIdentity
        What to watch; the machine subscribes on ``identity.channel``.
    bus : PresenceEventBus
        Source of connected/disconnected events.
    sink : PresenceSink
        Receives ``(name, present)`` on every state change.
    threshold : float
        Minutes a disconnect must persist before the identity is absent.
        Zero reports absence on the next loop iteration.
    loop : asyncio.AbstractEventLoop or None
        Loop used for the disconnect timer; the running loop by default.
    """

    def __init__(
        self,
        name: str,
        identity: MonitoredIdentity,
        *,
        bus: PresenceEventBus,
        sink: PresenceSink,
        threshold: float = DEFAULT_THRESHOLD,
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> None:
        super().__init__(name, sink=sink, serial=identity.serial)
        self.identity = identity
        self.threshold = threshold
        self._delay = minutes_to_seconds(threshold)
        self._loop = loop
        self._timer: asyncio.TimerHandle | None = None
        # Bumped whenever the pending timer is cancelled or replaced; a
        # callback carrying an older generation is stale and must not fire.
        self._generation = 0
        self._closed = False

        channel = identity.channel
        _logger.debug("[%s] - Listening to %s", name, channel)
        self._unsubscribe: list[Unsubscribe] = [
            bus.subscribe(EventKind.CONNECTED, channel, self.handle_connected),
            bus.subscribe(EventKind.DISCONNECTED, channel, self.handle_disconnected),
        ]

    @property
    def channel(self) -> Channel:
        return self.identity.channel

    @property
    def disconnect_pending(self) -> bool:
        return self._timer is not None

    @property
    def generation(self) -> int:
        return self._generation

    def handle_connected(self, event: PresenceEvent) -> None:
        self._cancel_timer()
        if self._present:
            return
        _logger.info("[%s] - connected to the network (%s)", self.name, event.sighting.describe())
        self._set(True)

    def handle_disconnected(self, event: PresenceEvent) -> None:
        if not self._present or self._closed:
            return
        self._cancel_timer()
        loop = self._loop or asyncio.get_running_loop()
        generation = self._generation
        self._timer = loop.call_later(self._delay, self._expire, generation, event.sighting)
        _logger.debug("[%s] - disconnect seen, absent in %.0fs unless it reconnects", self.name, self._delay)

    def _cancel_timer(self) -> None:
        timer = self._timer
        self._timer = None
        if timer is not None:
            timer.cancel()
        self._generation += 1

    def _expire(self, generation: int, sighting: DeviceSighting) -> None:
        if self._closed or generation != self._generation:
            _logger.debug("[%s] - ignoring superseded disconnect timer", self.name)
            return
        self._timer = None
        _logger.info("[%s] - disconnected from the network (%s)", self.name, sighting.describe())
        self._set(False)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._cancel_timer()
        for unsubscribe in self._unsubscribe:
            unsubscribe()
        self._unsubscribe.clear()
