"""pynetpresence - Debounced network presence detection on asyncio."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("pynetpresence")
except PackageNotFoundError:
    __version__ = "0+local"
from pynetpresence.config import IdentityConfig, PresenceConfig
from pynetpresence.discovery import DiscoveryAdapter, parse_sightings
from pynetpresence.exceptions import (
    IdentityConfigError,
    InvalidMatcherError,
    MalformedSightingError,
    PresenceConfigError,
    PresenceError,
    ScanError,
    SinkError,
    UnsupportedAddressError,
)
from pynetpresence.models import (
    Channel,
    ChannelKind,
    DeviceSighting,
    MonitoredIdentity,
    ScanSnapshot,
    canonical_hardware_address,
)
from pynetpresence.observer import NetworkObserver
from pynetpresence.platform import PresencePlatform
from pynetpresence.sinks import CallbackSink, FanoutSink, LoggingSink, PresenceSink
from pynetpresence.state.aggregate import AggregatePresence
from pynetpresence.state.events import EventKind, PresenceEvent, PresenceEventBus
from pynetpresence.state.machine import PresenceState, PresenceStateMachine
from pynetpresence.state.registry import IdentityRegistry

__all__ = [
    "__version__",
    "AggregatePresence",
    "CallbackSink",
    "Channel",
    "ChannelKind",
    "DeviceSighting",
    "DiscoveryAdapter",
    "EventKind",
    "FanoutSink",
    "IdentityConfig",
    "IdentityConfigError",
    "IdentityRegistry",
    "InvalidMatcherError",
    "LoggingSink",
    "MalformedSightingError",
    "MonitoredIdentity",
    "NetworkObserver",
    "PresenceConfig",
    "PresenceConfigError",
    "PresenceError",
    "PresenceEvent",
    "PresenceEventBus",
    "PresencePlatform",
    "PresenceSink",
    "PresenceState",
    "PresenceStateMachine",
    "ScanError",
    "ScanSnapshot",
    "SinkError",
    "UnsupportedAddressError",
    "canonical_hardware_address",
    "parse_sightings",
]
