"""Network observer: poll the discovery adapter and publish presence changes."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import Any

from pynetpresence._constants import DEFAULT_POLL_INTERVAL
from pynetpresence._diff import ScanDelta, diff_snapshots
from pynetpresence.discovery import DiscoveryAdapter, parse_sightings
from pynetpresence.exceptions import MalformedSightingError, ScanError
from pynetpresence.models.device import EMPTY_SNAPSHOT, DeviceSighting, ScanSnapshot
from pynetpresence.models.identity import Channel, ChannelKind
from pynetpresence.state.events import EventKind, PresenceEvent, PresenceEventBus

_logger = logging.getLogger(__name__)


class NetworkObserver:
    """Periodically scan the network and broadcast the delta.

    The observer owns the only live :class:`ScanSnapshot`. It knows nothing
    about subscribers; presence state machines listen on the event bus.

    Usage::

        async with NetworkObserver(scan, bus=bus, range_spec="192.168.1.1-254"):
            ...
    """

    def __init__(
        self,
        scan: DiscoveryAdapter,
        *,
        bus: PresenceEventBus,
        range_spec: str | None = None,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
    ) -> None:
        if poll_interval < 0:
            raise ValueError(f"poll_interval must be >= 0 seconds, got {poll_interval}")
        self._scan = scan
        self._bus = bus
        self._range_spec = range_spec
        self._poll_interval = poll_interval
        self._snapshot = EMPTY_SNAPSHOT
        self._task: asyncio.Task[None] | None = None
        self._stopping = False

    @property
    def poll_interval(self) -> float:
        return self._poll_interval

    @property
    def range_spec(self) -> str | None:
        return self._range_spec

    @property
    def snapshot(self) -> ScanSnapshot:
        return self._snapshot

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> NetworkObserver:
        self.start()
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.stop()

    def start(self) -> None:
        if self.is_running:
            return
        _logger.info("Initiating network scanner (range=%s, interval=%ss)", self._range_spec, self._poll_interval)
        self._stopping = False
        self._task = asyncio.get_running_loop().create_task(self._run(), name="network-observer")

    async def stop(self) -> None:
        """Stop scheduling cycles; an in-flight scan is abandoned."""
        self._stopping = True
        task = self._task
        self._task = None
        if task is None:
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task

    async def _run(self) -> None:
        while not self._stopping:
            await self.poll_cycle()
            # Measured from the end of the cycle so slow scans never overlap.
            await asyncio.sleep(self._poll_interval)

    # ------------------------------------------------------------------
    # Poll cycle
    # ------------------------------------------------------------------

    async def poll_cycle(self) -> ScanDelta | None:
        """Run one scan, diff it against the cache and publish the delta.

        Returns the delta, or ``None`` when the scan failed. A failed scan is
        published on the error channel and leaves the cache untouched. An
        unreadable device is published on the error channel too, but the
        rest of the scan is still applied.
        """
        rejected: list[MalformedSightingError] = []
        try:
            raw = await self._scan(self._range_spec)
            sightings = parse_sightings(raw, range_spec=self._range_spec, on_invalid=rejected.append)
        except Exception as exc:
            self._report_failure(exc)
            return None

        for error in rejected:
            _logger.warning("Ignoring unreadable fields of a scanned device: %s", error)
            self._bus.publish_error(error)

        current = ScanSnapshot.from_sightings(sightings)
        delta = diff_snapshots(self._snapshot, current)
        try:
            self._publish_delta(delta)
        finally:
            self._snapshot = current

        _logger.debug(
            "Scan complete: %d devices, %d connected, %d disconnected",
            len(current),
            len(delta.connected),
            len(delta.disconnected),
        )
        return delta

    def _report_failure(self, exc: Exception) -> None:
        if isinstance(exc, ScanError):
            error = exc
        else:
            error = ScanError(f"network scan failed: {exc!r}", range_spec=self._range_spec)
            error.__cause__ = exc
        _logger.warning("Network scan failed, keeping previous results: %s", error)
        self._bus.publish_error(error)

    def _publish_delta(self, delta: ScanDelta) -> None:
        # Every connected event of a cycle goes out before any disconnected one.
        for sighting in delta.connected:
            self._publish(EventKind.CONNECTED, sighting, include_addresses=True)

        for sighting in delta.disconnected:
            # A device that rotated its hardware address but kept its network
            # address is still there as far as ip/hostname watchers care.
            self._publish(
                EventKind.DISCONNECTED,
                sighting,
                include_addresses=not delta.address_still_present(sighting),
            )

    def _publish(self, kind: EventKind, sighting: DeviceSighting, *, include_addresses: bool) -> None:
        assert sighting.hardware_address is not None  # noqa: S101
        channels = [Channel(ChannelKind.MAC, sighting.hardware_address)]
        if include_addresses:
            if sighting.network_address:
                channels.append(Channel(ChannelKind.IP, sighting.network_address))
            if sighting.host_name:
                channels.append(Channel(ChannelKind.HOSTNAME, sighting.host_name))
        for channel in channels:
            self._bus.publish(PresenceEvent(kind=kind, channel=channel, sighting=sighting))
