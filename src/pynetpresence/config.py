"""Platform configuration for pynetpresence."""

from __future__ import annotations

import dataclasses
import os
from collections.abc import Mapping
from typing import Any

from pynetpresence._constants import ANYONE_NAME, DEFAULT_POLL_INTERVAL, DEFAULT_THRESHOLD
from pynetpresence.exceptions import IdentityConfigError, PresenceConfigError
from pynetpresence.models.identity import MonitoredIdentity


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


def _number(value: Any, field: str) -> float:
    if isinstance(value, bool):
        raise PresenceConfigError(f"{field} must be a number, got bool")
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise PresenceConfigError(f"{field} must be a number, got {value!r}") from exc


@dataclasses.dataclass(frozen=True)
class IdentityConfig:
    """One monitored device as written in the configuration.

    Parameters
    ----------
    name : str
        Display name of the presence indicator.
    mac, ip, hostname : str or None
        Matchers; at least one is required when building the identity.
    threshold : float or None
        Debounce threshold in minutes. ``None`` uses the platform default;
        ``0`` is a valid override. Checked by :meth:`PresenceConfig.threshold_for`.
    error : str or None
        Set when the entry could not be read at all; :meth:`identity` raises it.
    """

    name: str
    mac: Any = None
    ip: Any = None
    hostname: Any = None
    threshold: Any = None
    error: str | None = None

    @classmethod
    def from_mapping(cls, data: Any) -> IdentityConfig:
        if not isinstance(data, Mapping):
            return cls(name=repr(data), error=f"device entry must be a mapping, got {type(data).__name__}")
        return cls(
            name=str(data.get("name") or data.get("mac") or data.get("ip") or data.get("hostname") or ""),
            mac=data.get("mac"),
            ip=data.get("ip"),
            hostname=data.get("hostname"),
            threshold=data.get("threshold"),
        )

    def identity(self) -> MonitoredIdentity:
        """Build the monitored identity.

        Raises :class:`IdentityConfigError` or :class:`InvalidMatcherError`.
        """
        if self.error is not None:
            raise IdentityConfigError(self.error)
        return MonitoredIdentity.from_fields(mac=self.mac, ip=self.ip, hostname=self.hostname)


@dataclasses.dataclass(frozen=True)
class PresenceConfig:
    """Platform-wide configuration.

    Parameters
    ----------
    identities : tuple of IdentityConfig
        Devices to monitor.
    range_spec : str or None
        Scan range handed to the discovery adapter (e.g. ``"192.168.1.1-254"``).
        ``None`` lets the adapter choose.
    poll_interval : float
        Seconds between the end of one scan and the start of the next.
    aggregate_interval : float or None
        Seconds between recomputations of the aggregate identity. Defaults to
        ``poll_interval``.
    threshold : float
        Default debounce threshold in minutes.
    anyone_sensor : bool
        Add the aggregate "anyone present" identity.
    anyone_name : str
        Display name of the aggregate identity.
    """

    identities: tuple[IdentityConfig, ...] = ()
    range_spec: str | None = None
    poll_interval: float = DEFAULT_POLL_INTERVAL
    aggregate_interval: float | None = None
    threshold: float = DEFAULT_THRESHOLD
    anyone_sensor: bool = False
    anyone_name: str = ANYONE_NAME

    def __post_init__(self) -> None:
        if self.poll_interval <= 0:
            raise PresenceConfigError(f"poll_interval must be > 0 seconds, got {self.poll_interval}")
        if self.aggregate_interval is not None and self.aggregate_interval <= 0:
            raise PresenceConfigError(f"aggregate_interval must be > 0 seconds, got {self.aggregate_interval}")
        if self.threshold < 0:
            raise PresenceConfigError(f"threshold must be >= 0 minutes, got {self.threshold}")

    @property
    def effective_aggregate_interval(self) -> float:
        return self.aggregate_interval if self.aggregate_interval is not None else self.poll_interval

    def threshold_for(self, identity: IdentityConfig) -> float:
        """Per-identity threshold override, falling back to the platform default.

        Raises :class:`PresenceConfigError` when the override is not a
        non-negative number.
        """
        if identity.threshold is None:
            return self.threshold
        threshold = _number(identity.threshold, "threshold")
        if threshold < 0:
            raise PresenceConfigError(f"threshold must be >= 0 minutes, got {threshold}")
        return threshold

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> PresenceConfig:
        """Create configuration from a plugin-style mapping.

        Recognised keys: ``devices`` (list of ``{name, mac|ip|hostname,
        threshold}``), ``range``, ``interval`` (seconds), ``aggregateInterval``,
        ``threshold`` (minutes), ``anyoneSensor``, ``anyoneName``.
        """
        devices = data.get("devices") or []
        if not isinstance(devices, list):
            raise PresenceConfigError("devices must be a list")
        kwargs: dict[str, Any] = {
            "identities": tuple(IdentityConfig.from_mapping(device) for device in devices),
            "range_spec": data.get("range") or None,
            "anyone_sensor": bool(data.get("anyoneSensor", False)),
        }
        if data.get("interval") is not None:
            kwargs["poll_interval"] = _number(data["interval"], "interval")
        if data.get("aggregateInterval") is not None:
            kwargs["aggregate_interval"] = _number(data["aggregateInterval"], "aggregateInterval")
        if data.get("threshold") is not None:
            kwargs["threshold"] = _number(data["threshold"], "threshold")
        if data.get("anyoneName"):
            kwargs["anyone_name"] = str(data["anyoneName"])
        return cls(**kwargs)

    @classmethod
    def from_env(cls, **overrides: Any) -> PresenceConfig:
        """Create configuration from environment variables.

        Reads ``NETPRESENCE_RANGE``, ``NETPRESENCE_POLL_INTERVAL``,
        ``NETPRESENCE_AGGREGATE_INTERVAL``, ``NETPRESENCE_THRESHOLD`` and
        ``NETPRESENCE_ANYONE_SENSOR``. Identities cannot be expressed in the
        environment and must be passed as ``identities=...``. Explicit keyword
        arguments override environment values.
        """
        env = os.environ
        config_kwargs: dict[str, Any] = {}

        range_env = env.get("NETPRESENCE_RANGE")
        if range_env:
            config_kwargs["range_spec"] = range_env

        _ENV_NUMERIC_MAP = {
            "NETPRESENCE_POLL_INTERVAL": "poll_interval",
            "NETPRESENCE_AGGREGATE_INTERVAL": "aggregate_interval",
            "NETPRESENCE_THRESHOLD": "threshold",
        }
        for env_key, field_name in _ENV_NUMERIC_MAP.items():
            val = env.get(env_key)
            if val is not None and field_name not in overrides:
                config_kwargs[field_name] = _number(val, env_key)

        if "anyone_sensor" not in overrides:
            config_kwargs["anyone_sensor"] = _env_bool(env.get("NETPRESENCE_ANYONE_SENSOR"), False)

        config_kwargs.update(overrides)
        if "identities" in config_kwargs:
            config_kwargs["identities"] = tuple(config_kwargs["identities"])

        return cls(**config_kwargs)
