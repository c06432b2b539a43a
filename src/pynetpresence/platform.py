"""Presence platform: wires the observer, identities and aggregate together."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from pynetpresence.config import IdentityConfig, PresenceConfig
from pynetpresence.discovery import DiscoveryAdapter
from pynetpresence.exceptions import PresenceConfigError
from pynetpresence.observer import NetworkObserver
from pynetpresence.sinks import LoggingSink, PresenceSink
from pynetpresence.state.aggregate import AggregatePresence
from pynetpresence.state.events import PresenceEventBus
from pynetpresence.state.machine import PresenceStateMachine
from pynetpresence.state.registry import IdentityRegistry

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FailedIdentity:
    """A configured identity that could not be created."""

    config: IdentityConfig
    error: PresenceConfigError


class PresencePlatform:
    """Track every configured identity from one discovery adapter.

    Usage::

        async with PresencePlatform(config, scan, sink=my_sink) as platform:
            ...
            platform.values()  # {"Joe": True, "Anyone": True}

    Identities whose configuration is invalid (including a name already used
    by another identity) are logged, recorded in :attr:`failed` and skipped;
    the remaining identities still start.
    """

    def __init__(
        self,
        config: PresenceConfig,
        scan: DiscoveryAdapter,
        *,
        sink: PresenceSink | None = None,
    ) -> None:
        self._config = config
        self._sink: PresenceSink = sink if sink is not None else LoggingSink()
        self.bus = PresenceEventBus()
        self.registry = IdentityRegistry()
        self.observer = NetworkObserver(
            scan,
            bus=self.bus,
            range_spec=config.range_spec,
            poll_interval=config.poll_interval,
        )
        self.failed: list[FailedIdentity] = []
        self.machines: list[PresenceStateMachine] = []
        self.aggregate: AggregatePresence | None = None
        self._unsubscribe_errors = self.bus.subscribe_errors(self._on_scan_error)

        for identity_config in config.identities:
            self._add_identity(identity_config)

        if config.anyone_sensor:
            self.aggregate = AggregatePresence(
                self.registry,
                sink=self._sink,
                interval=config.effective_aggregate_interval,
                name=config.anyone_name,
            )

    @property
    def config(self) -> PresenceConfig:
        return self._config

    def _add_identity(self, identity_config: IdentityConfig) -> None:
        try:
            identity = identity_config.identity()
            threshold = self._config.threshold_for(identity_config)
            name = identity_config.name or identity.serial
            if name in self._reserved_names():
                raise PresenceConfigError(f"name {name!r} is already in use")
        except PresenceConfigError as exc:
            _logger.warning("Can't initiate %r: %s. Please change your config", identity_config.name, exc)
            self.failed.append(FailedIdentity(config=identity_config, error=exc))
            return

        machine = PresenceStateMachine(
            name,
            identity,
            bus=self.bus,
            sink=self._sink,
            threshold=threshold,
        )
        self.registry.add(machine)
        self.machines.append(machine)

    def _reserved_names(self) -> set[str]:
        names = {machine.name for machine in self.machines}
        if self._config.anyone_sensor:
            names.add(self._config.anyone_name)
        return names

    def _on_scan_error(self, error: Exception) -> None:
        _logger.warning("Error occurred during network scan: %s", error)

    def values(self) -> dict[str, bool]:
        return self.registry.values()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> PresencePlatform:
        self.start()
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.stop()

    def start(self) -> None:
        self.observer.start()
        if self.aggregate is not None:
            self.aggregate.start()

    async def stop(self) -> None:
        await self.observer.stop()
        if self.aggregate is not None:
            await self.aggregate.stop()
        self.registry.close()
        self._unsubscribe_errors()
