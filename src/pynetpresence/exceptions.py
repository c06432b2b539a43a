"""Custom exception hierarchy for pynetpresence."""

from __future__ import annotations


class PresenceError(Exception):
    """Base exception for all pynetpresence errors."""


class PresenceConfigError(PresenceError):
    """Invalid or missing configuration."""


class IdentityConfigError(PresenceConfigError):
    """Identity declares none of hardware address, network address or host name."""


class InvalidMatcherError(PresenceConfigError):
    """Identity matcher has the wrong type or an empty value.

    Kept separate from :class:`IdentityConfigError` so a wrong value type in
    the configuration can be told apart from a missing one.
    """

    def __init__(self, message: str, *, field: str = "") -> None:
        self.field = field
        super().__init__(message)


class UnsupportedAddressError(InvalidMatcherError):
    """Hardware address is not written as colon-delimited hex octets.

    Hyphen- or dot-separated forms are rejected rather than normalized so a
    configured identity never silently fails to match scan results.
    """


class ScanError(PresenceError):
    """A discovery scan failed (adapter error, timeout, response not a list)."""

    def __init__(self, message: str, *, range_spec: str | None = None) -> None:
        self.range_spec = range_spec
        super().__init__(message)


class MalformedSightingError(PresenceError):
    """One device in an otherwise usable scan result could not be read.

    The rest of the scan is still diffed; the offending fields are dropped.
    """

    def __init__(self, message: str, *, index: int, range_spec: str | None = None) -> None:
        self.index = index
        self.range_spec = range_spec
        super().__init__(message)


class SinkError(PresenceError):
    """A presence sink failed to deliver an update."""

    def __init__(self, message: str, *, sink: str = "") -> None:
        self.sink = sink
        super().__init__(message)
