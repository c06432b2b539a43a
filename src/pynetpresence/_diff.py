"""Snapshot diffing for the network observer."""

from __future__ import annotations

from dataclasses import dataclass

from pynetpresence.models.device import DeviceSighting, ScanSnapshot


@dataclass(frozen=True)
class ScanDelta:
    """What changed between two consecutive snapshots."""

    connected: tuple[DeviceSighting, ...] = ()
    disconnected: tuple[DeviceSighting, ...] = ()
    # Network addresses of every current sighting, including untracked ones.
    present_addresses: frozenset[str] = frozenset()

    @property
    def is_empty(self) -> bool:
        return not self.connected and not self.disconnected

    def address_still_present(self, sighting: DeviceSighting) -> bool:
        return sighting.network_address in self.present_addresses


def diff_snapshots(previous: ScanSnapshot, current: ScanSnapshot) -> ScanDelta:
    """Classify tracked sightings as newly connected or disconnected.

    Sightings without a hardware address cannot be matched across cycles and
    are left out of the comparison; their network addresses still count as
    present. Each hardware address is reported at most once.
    """
    remaining = previous.by_hardware_address()
    connected: list[DeviceSighting] = []
    for hardware_address, sighting in current.by_hardware_address().items():
        if remaining.pop(hardware_address, None) is None:
            connected.append(sighting)

    return ScanDelta(
        connected=tuple(connected),
        disconnected=tuple(remaining.values()),
        present_addresses=current.network_addresses(),
    )
