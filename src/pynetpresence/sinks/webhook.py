"""HTTP webhook presence sink."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import aiohttp

from pynetpresence.exceptions import SinkError

_logger = logging.getLogger(__name__)


class WebhookPresenceSink:
    """POST every presence update as JSON to a fixed URL.

    Usage::

        async with WebhookPresenceSink("http://hub.local/hooks/presence") as sink:
            ...

    :meth:`publish` is synchronous and schedules the request on the running
    loop; :meth:`send` performs one request and raises :class:`SinkError` on
    failure.
    """

    def __init__(
        self,
        url: str,
        *,
        session: aiohttp.ClientSession | None = None,
        timeout: float = 10.0,
        headers: dict[str, str] | None = None,
    ) -> None:
        self._url = url
        self._external_session = session is not None
        self._http_session = session
        self._timeout = aiohttp.ClientTimeout(total=timeout)
        self._headers = dict(headers or {})
        self._pending: set[asyncio.Task[None]] = set()

    async def __aenter__(self) -> WebhookPresenceSink:
        if self._http_session is None:
            self._http_session = aiohttp.ClientSession()
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.aclose()

    def _require_session(self) -> aiohttp.ClientSession:
        if self._http_session is None:
            raise SinkError("Webhook sink not initialized. Use 'async with WebhookPresenceSink(...)'", sink="webhook")
        return self._http_session

    async def send(self, name: str, present: bool) -> None:
        session = self._require_session()
        payload = {"name": name, "present": present}
        try:
            async with session.post(
                self._url,
                json=payload,
                headers=self._headers,
                timeout=self._timeout,
            ) as response:
                if response.status >= 400:
                    body = await response.text()
                    raise SinkError(
                        f"Webhook returned HTTP {response.status}: {body[:200]}",
                        sink="webhook",
                    )
        except aiohttp.ClientError as exc:
            raise SinkError(f"Webhook request failed: {exc}", sink="webhook") from exc

    def publish(self, name: str, present: bool) -> None:
        task = asyncio.get_running_loop().create_task(self._deliver(name, present))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _deliver(self, name: str, present: bool) -> None:
        try:
            await self.send(name, present)
        except SinkError:
            _logger.warning("Webhook delivery failed for %s", name, exc_info=True)

    async def flush(self) -> None:
        """Wait for every scheduled delivery to finish."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    async def aclose(self) -> None:
        await self.flush()
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
        self._http_session = None
