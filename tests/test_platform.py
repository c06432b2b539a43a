"""End-to-end tests: discovery adapter -> observer -> state machines -> sink."""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from typing import Any

import pytest

from pynetpresence.config import IdentityConfig, PresenceConfig
from pynetpresence.exceptions import IdentityConfigError, InvalidMatcherError, PresenceConfigError
from pynetpresence.platform import PresencePlatform
from pynetpresence.sinks import CallbackSink

DEVICE = {"mac": "aa:bb:cc:dd:ee:ff", "ip": "10.0.0.5"}


class _ScriptedScan:
    def __init__(self, *results: Sequence[Any] | Exception) -> None:
        self._results = list(results)
        self.calls = 0

    async def __call__(self, range_spec: str | None) -> Sequence[Any]:
        result = self._results[min(self.calls, len(self._results) - 1)]
        self.calls += 1
        if isinstance(result, Exception):
            raise result
        return result


def _platform(
    scan: _ScriptedScan,
    *identities: IdentityConfig,
    threshold: float = 0.005,
    **kwargs: Any,
) -> tuple[PresencePlatform, list[tuple[str, bool]]]:
    updates: list[tuple[str, bool]] = []
    config = PresenceConfig(
        identities=identities,
        range_spec="10.0.0.1-254",
        poll_interval=0.01,
        threshold=threshold,
        anyone_sensor=True,
        **kwargs,
    )
    return PresencePlatform(config, scan, sink=CallbackSink(lambda n, p: updates.append((n, p)))), updates


@pytest.mark.asyncio
async def test_presence_survives_until_threshold_expires() -> None:
    scan = _ScriptedScan([], [DEVICE], [])
    platform, updates = _platform(scan, IdentityConfig(name="Joe", mac="AA:BB:CC:DD:EE:FF"))
    aggregate = platform.aggregate
    assert aggregate is not None

    await platform.observer.poll_cycle()
    await platform.observer.poll_cycle()
    aggregate.recompute()
    assert platform.values() == {"Joe": True, "Anyone": True}

    await platform.observer.poll_cycle()
    assert platform.values()["Joe"] is True

    await asyncio.sleep(0.4)
    aggregate.recompute()
    assert platform.values() == {"Joe": False, "Anyone": False}
    assert updates == [("Joe", True), ("Anyone", True), ("Joe", False), ("Anyone", False)]
    await platform.stop()


@pytest.mark.asyncio
async def test_reappearing_device_cancels_pending_departure() -> None:
    scan = _ScriptedScan([], [DEVICE], [], [DEVICE])
    platform, updates = _platform(scan, IdentityConfig(name="Joe", mac="aa:bb:cc:dd:ee:ff"))

    for _ in range(4):
        await platform.observer.poll_cycle()
    await asyncio.sleep(0.4)

    assert platform.values()["Joe"] is True
    assert updates == [("Joe", True)]
    await platform.stop()


@pytest.mark.asyncio
async def test_identities_on_different_channels_track_the_same_device() -> None:
    scan = _ScriptedScan([{**DEVICE, "name": "Joes-Phone"}])
    platform, _updates = _platform(
        scan,
        IdentityConfig(name="By mac", mac="aa:bb:cc:dd:ee:ff"),
        IdentityConfig(name="By ip", ip="10.0.0.5"),
        IdentityConfig(name="By hostname", hostname="joes-phone"),
    )

    await platform.observer.poll_cycle()

    assert platform.values() == {"By mac": True, "By ip": True, "By hostname": True, "Anyone": False}
    await platform.stop()


@pytest.mark.asyncio
async def test_bad_identities_are_skipped() -> None:
    platform, _updates = _platform(
        _ScriptedScan([]),
        IdentityConfig(name="Nobody"),
        IdentityConfig(name="Typo", ip=10005),
        IdentityConfig(name="Hyphens", mac="aa-bb-cc-dd-ee-ff"),
        IdentityConfig(name="Negative", ip="10.0.0.7", threshold=-1),
        IdentityConfig(name="Joe", ip="10.0.0.5"),
    )

    assert [m.name for m in platform.machines] == ["Joe"]
    assert [f.config.name for f in platform.failed] == ["Nobody", "Typo", "Hyphens", "Negative"]
    assert isinstance(platform.failed[0].error, IdentityConfigError)
    assert isinstance(platform.failed[1].error, InvalidMatcherError)
    await platform.stop()


@pytest.mark.asyncio
async def test_unreadable_identity_entries_only_fail_themselves() -> None:
    config = PresenceConfig.from_mapping(
        {
            "devices": [
                {"name": "Joe", "mac": "aa:bb:cc:dd:ee:ff"},
                {"name": "Typo", "ip": "10.0.0.7", "threshold": "ten"},
                ["not", "a", "device"],
            ],
            "anyoneSensor": True,
        }
    )
    platform = PresencePlatform(config, _ScriptedScan([]))

    assert [m.name for m in platform.machines] == ["Joe"]
    assert [f.config.name for f in platform.failed] == ["Typo", "['not', 'a', 'device']"]
    assert isinstance(platform.failed[1].error, IdentityConfigError)
    await platform.stop()


@pytest.mark.asyncio
async def test_duplicate_names_are_rejected() -> None:
    platform, _updates = _platform(
        _ScriptedScan([]),
        IdentityConfig(name="Joe", ip="10.0.0.5"),
        IdentityConfig(name="Joe", ip="10.0.0.6"),
        IdentityConfig(name="Anyone", ip="10.0.0.7"),
    )

    assert [m.name for m in platform.machines] == ["Joe"]
    assert [f.config.name for f in platform.failed] == ["Joe", "Anyone"]
    assert all(isinstance(f.error, PresenceConfigError) for f in platform.failed)
    assert platform.values() == {"Joe": False, "Anyone": False}
    await platform.stop()


@pytest.mark.asyncio
async def test_platform_runs_and_stops(caplog: pytest.LogCaptureFixture) -> None:
    scan = _ScriptedScan(RuntimeError("adapter crashed"), [DEVICE])
    platform, _updates = _platform(scan, IdentityConfig(name="Joe", mac="aa:bb:cc:dd:ee:ff"), threshold=1)

    async with platform:
        for _ in range(200):
            if platform.values().get("Anyone"):
                break
            await asyncio.sleep(0.01)

    assert platform.values() == {"Joe": True, "Anyone": True}
    assert "Error occurred during network scan" in caplog.text
    assert not platform.observer.is_running
    calls = scan.calls
    await asyncio.sleep(0.05)
    assert scan.calls == calls


@pytest.mark.asyncio
async def test_anyone_sensor_is_optional() -> None:
    updates: list[tuple[str, bool]] = []
    config = PresenceConfig(identities=(IdentityConfig(name="Joe", ip="10.0.0.5"),))
    platform = PresencePlatform(config, _ScriptedScan([]), sink=CallbackSink(lambda n, p: updates.append((n, p))))

    assert platform.aggregate is None
    assert platform.values() == {"Joe": False}
    await platform.stop()
