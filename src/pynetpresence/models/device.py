"""Device sightings and scan snapshots."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from pydantic import AliasChoices, Field, field_validator

from pynetpresence.models._base import PresenceBaseModel, canonical_hardware_address, normalize_host_name


def _utcnow() -> datetime:
    return datetime.now(UTC)


class DeviceSighting(PresenceBaseModel):
    """One device observed during a single scan cycle.

    Discovery adapters usually report ``{"mac": ..., "ip": ..., "name": ...}``;
    those keys are accepted as aliases of the snake_case fields.
    """

    hardware_address: str | None = Field(
        default=None,
        validation_alias=AliasChoices("hardware_address", "hardwareAddress", "mac"),
        description="Canonical lowercase colon-delimited hardware address, if known.",
    )
    network_address: str = Field(
        default="",
        validation_alias=AliasChoices("network_address", "networkAddress", "ip"),
    )
    host_name: str = Field(
        default="",
        validation_alias=AliasChoices("host_name", "hostName", "hostname", "name"),
    )

    @field_validator("hardware_address", mode="before")
    @classmethod
    def _canonical_hardware_address(cls, value: Any) -> str | None:
        if value is None:
            return None
        if isinstance(value, str):
            if not value.strip():
                return None
            return canonical_hardware_address(value)
        return value

    @field_validator("host_name", mode="before")
    @classmethod
    def _normalize_host_name(cls, value: Any) -> Any:
        if value is None:
            return ""
        if isinstance(value, str):
            # Adapters report unresolved names as "?".
            name = normalize_host_name(value)
            return "" if name == "?" else name
        return value

    @property
    def is_tracked(self) -> bool:
        """Whether the sighting can be matched across scan cycles."""
        return self.hardware_address is not None

    def describe(self) -> str:
        return f"mac: {self.hardware_address} | ip: {self.network_address} | hostname: {self.host_name}"


@dataclass(frozen=True)
class ScanSnapshot:
    """All devices seen in one completed poll cycle."""

    sightings: tuple[DeviceSighting, ...] = ()
    taken_at: datetime = field(default_factory=_utcnow)

    @classmethod
    def from_sightings(cls, sightings: Iterable[DeviceSighting]) -> ScanSnapshot:
        return cls(sightings=tuple(sightings))

    def by_hardware_address(self) -> dict[str, DeviceSighting]:
        """Tracked sightings keyed by hardware address.

        Duplicate addresses collapse onto the last sighting in scan order.
        """
        lookup: dict[str, DeviceSighting] = {}
        for sighting in self.sightings:
            if sighting.hardware_address is not None:
                lookup[sighting.hardware_address] = sighting
        return lookup

    def network_addresses(self) -> frozenset[str]:
        """Every network address in the snapshot, tracked or not."""
        return frozenset(s.network_address for s in self.sightings if s.network_address)

    def __len__(self) -> int:
        return len(self.sightings)


EMPTY_SNAPSHOT = ScanSnapshot(taken_at=datetime.min.replace(tzinfo=UTC))
