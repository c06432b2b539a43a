"""Monitored identities and the channels they subscribe on."""

from __future__ import annotations

import dataclasses
from enum import StrEnum
from typing import Any

from pynetpresence.exceptions import IdentityConfigError
from pynetpresence.models._base import canonical_hardware_address, normalize_host_name, require_matcher


class ChannelKind(StrEnum):
    MAC = "mac"
    IP = "ip"
    HOSTNAME = "hostname"


@dataclasses.dataclass(frozen=True, slots=True)
class Channel:
    """A ``(kind, value)`` pair that presence events are routed on."""

    kind: ChannelKind
    value: str

    def __str__(self) -> str:
        return f"{self.kind.value}:{self.value}"


@dataclasses.dataclass(frozen=True)
class MonitoredIdentity:
    """What a presence state machine watches for.

    Up to three matchers may be given; the one used for subscription is the
    first present in the order hardware address, network address, host name.

    Raises
    ------
    InvalidMatcherError
        A matcher is not a string, is empty, or (for hardware addresses) is
        not colon-delimited hex.
    IdentityConfigError
        No matcher was supplied at all.
    """

    hardware_address: str | None = None
    network_address: str | None = None
    host_name: str | None = None

    def __post_init__(self) -> None:
        mac = require_matcher(self.hardware_address, "mac")
        ip = require_matcher(self.network_address, "ip")
        hostname = require_matcher(self.host_name, "hostname")

        if mac is None and ip is None and hostname is None:
            raise IdentityConfigError("identity needs a mac address, ip address or hostname")

        object.__setattr__(self, "hardware_address", canonical_hardware_address(mac) if mac is not None else None)
        object.__setattr__(self, "network_address", ip)
        object.__setattr__(self, "host_name", normalize_host_name(hostname) if hostname is not None else None)

    @classmethod
    def from_fields(cls, *, mac: Any = None, ip: Any = None, hostname: Any = None) -> MonitoredIdentity:
        return cls(hardware_address=mac, network_address=ip, host_name=hostname)

    @property
    def channel(self) -> Channel:
        if self.hardware_address is not None:
            return Channel(ChannelKind.MAC, self.hardware_address)
        if self.network_address is not None:
            return Channel(ChannelKind.IP, self.network_address)
        assert self.host_name is not None  # noqa: S101
        return Channel(ChannelKind.HOSTNAME, self.host_name)

    @property
    def serial(self) -> str:
        """Stable serial number for the identity (its channel value)."""
        return self.channel.value
