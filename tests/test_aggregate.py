"""Tests for the identity registry and the aggregate identity."""

from __future__ import annotations

import asyncio

import pytest

from pynetpresence.sinks import CallbackSink
from pynetpresence.state.aggregate import AggregatePresence
from pynetpresence.state.machine import PresenceIndicator
from pynetpresence.state.registry import IdentityRegistry


class _Sibling(PresenceIndicator):
    def __init__(self, name: str) -> None:
        super().__init__(name, sink=CallbackSink(lambda _name, _present: None), serial=name)
        self.closed = False

    def set(self, present: bool) -> None:
        self._set(present)

    def close(self) -> None:
        self.closed = True


def _setup(count: int) -> tuple[IdentityRegistry, list[_Sibling], AggregatePresence, list[bool]]:
    registry = IdentityRegistry()
    siblings = [_Sibling(f"device-{i}") for i in range(count)]
    for sibling in siblings:
        registry.add(sibling)
    pushes: list[bool] = []
    aggregate = AggregatePresence(registry, sink=CallbackSink(lambda _name, present: pushes.append(present)), interval=0.01)
    return registry, siblings, aggregate, pushes


# ------------------------------------------------------------------
# IdentityRegistry
# ------------------------------------------------------------------


def test_registry_handles_are_stable_after_removal() -> None:
    registry = IdentityRegistry()
    first, second = _Sibling("a"), _Sibling("b")
    first_handle = registry.add(first)
    second_handle = registry.add(second)

    removed = registry.remove(first_handle)

    assert removed is first and first.closed
    assert registry.get(second_handle) is second
    assert len(registry) == 1
    with pytest.raises(KeyError):
        registry.get(first_handle)
    with pytest.raises(KeyError):
        registry.get(99)


def test_registry_rejects_double_registration() -> None:
    registry = IdentityRegistry()
    sibling = _Sibling("a")
    registry.add(sibling)
    with pytest.raises(ValueError):
        registry.add(sibling)


def test_registry_values_and_close() -> None:
    registry, siblings, aggregate, _pushes = _setup(2)
    siblings[1].set(True)

    assert registry.values() == {"device-0": False, "device-1": True, "Anyone": False}

    registry.close()
    assert all(s.closed for s in siblings)


# ------------------------------------------------------------------
# AggregatePresence
# ------------------------------------------------------------------


def test_aggregate_is_true_iff_any_sibling_is_present() -> None:
    _registry, siblings, aggregate, pushes = _setup(3)

    assert aggregate.recompute() is False
    assert pushes == []

    siblings[0].set(True)
    siblings[2].set(True)
    assert aggregate.recompute() is True

    siblings[0].set(False)
    assert aggregate.recompute() is True

    siblings[2].set(False)
    assert aggregate.recompute() is False
    assert pushes == [True, False]


def test_aggregate_only_pushes_on_change() -> None:
    _registry, siblings, aggregate, pushes = _setup(1)
    siblings[0].set(True)

    aggregate.recompute()
    aggregate.recompute()

    assert pushes == [True]


def test_aggregate_never_counts_itself() -> None:
    _registry, siblings, aggregate, _pushes = _setup(1)
    siblings[0].set(True)
    aggregate.recompute()
    siblings[0].set(False)

    # The aggregate is present right now, but must not keep itself present.
    assert aggregate.present
    assert aggregate.recompute() is False


def test_aggregate_without_siblings_is_absent() -> None:
    _registry, _siblings, aggregate, _pushes = _setup(0)
    assert aggregate.recompute() is False
    assert aggregate.serial == "12:34:56:78:9a:bc"


@pytest.mark.asyncio
async def test_aggregate_polls_on_its_interval() -> None:
    _registry, siblings, aggregate, pushes = _setup(2)

    aggregate.start()
    try:
        siblings[1].set(True)
        assert not aggregate.present  # not event driven
        await asyncio.sleep(0.05)
        assert aggregate.present

        siblings[1].set(False)
        await asyncio.sleep(0.05)
        assert not aggregate.present
    finally:
        await aggregate.stop()

    assert pushes == [True, False]
    assert not aggregate.is_running


def test_aggregate_rejects_non_positive_interval() -> None:
    with pytest.raises(ValueError):
        AggregatePresence(IdentityRegistry(), sink=CallbackSink(lambda _n, _p: None), interval=0)
