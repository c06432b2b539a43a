"""The aggregate "anyone present" identity."""

from __future__ import annotations

import asyncio
import contextlib
import logging

from pynetpresence._constants import ANYONE_NAME, ANYONE_SERIAL
from pynetpresence.sinks import PresenceSink
from pynetpresence.state.machine import PresenceIndicator
from pynetpresence.state.registry import IdentityRegistry

_logger = logging.getLogger(__name__)


class AggregatePresence(PresenceIndicator):
    """Present while at least one sibling identity is present.

    Siblings are read from the registry every *interval* seconds; no
    debounce is applied here because every sibling already debounces its own
    departures. The indicator registers itself and never counts itself.
    """

    def __init__(
        self,
        registry: IdentityRegistry,
        *,
        sink: PresenceSink,
        interval: float,
        name: str = ANYONE_NAME,
        serial: str = ANYONE_SERIAL,
    ) -> None:
        super().__init__(name, sink=sink, serial=serial)
        if interval <= 0:
            raise ValueError(f"aggregate interval must be > 0 seconds, got {interval}")
        self._registry = registry
        self._interval = interval
        self._task: asyncio.Task[None] | None = None
        registry.add(self)

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def recompute(self) -> bool:
        detected = self._registry.any_present(exclude=self.handle)
        if detected and not self._present:
            _logger.info("[%s] - Someone connected to the network", self.name)
            self._set(True)
        elif not detected and self._present:
            _logger.info("[%s] - No one is connected to the network", self.name)
            self._set(False)
        return self._present

    def start(self) -> None:
        if self.is_running:
            return
        self.recompute()
        self._task = asyncio.get_running_loop().create_task(self._run(), name=f"aggregate:{self.name}")

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            self.recompute()

    async def stop(self) -> None:
        task = self._task
        self._task = None
        if task is None:
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task

    def close(self) -> None:
        task = self._task
        self._task = None
        if task is not None:
            task.cancel()
