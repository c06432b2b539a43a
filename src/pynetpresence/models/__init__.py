"""Data models for devices, snapshots and monitored identities."""

from pynetpresence.models._base import canonical_hardware_address, normalize_host_name
from pynetpresence.models.device import EMPTY_SNAPSHOT, DeviceSighting, ScanSnapshot
from pynetpresence.models.identity import Channel, ChannelKind, MonitoredIdentity

__all__ = [
    "EMPTY_SNAPSHOT",
    "Channel",
    "ChannelKind",
    "DeviceSighting",
    "MonitoredIdentity",
    "ScanSnapshot",
    "canonical_hardware_address",
    "normalize_host_name",
]
