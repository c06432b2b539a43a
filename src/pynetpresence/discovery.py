"""Discovery adapter contract.

The library never scans the network itself. A discovery adapter is any
async callable that takes the configured range (``None`` meaning the
adapter's default) and returns the devices currently visible, either as
:class:`DeviceSighting` objects or as mappings with ``mac``/``ip``/``name``
keys. Adapters may fail or return incomplete results.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping, Sequence
from typing import Any, Protocol

from pydantic import ValidationError

from pynetpresence.exceptions import InvalidMatcherError, MalformedSightingError, ScanError
from pynetpresence.models.device import DeviceSighting

RawSighting = Mapping[str, Any] | DeviceSighting
InvalidSightingHandler = Callable[[MalformedSightingError], None]


class DiscoveryAdapter(Protocol):
    async def __call__(self, range_spec: str | None) -> Sequence[RawSighting]:
        ...


def _usable_fields(entry: Mapping[Any, Any]) -> dict[str, Any]:
    usable: dict[str, Any] = {}
    for key, value in entry.items():
        if not isinstance(key, str):
            continue
        try:
            DeviceSighting.model_validate({key: value})
        except (ValidationError, InvalidMatcherError):
            continue
        usable[key] = value
    return usable


def parse_sightings(
    raw: Iterable[RawSighting] | None,
    *,
    range_spec: str | None = None,
    on_invalid: InvalidSightingHandler | None = None,
) -> list[DeviceSighting]:
    """Validate an adapter response into sightings.

    Raises :class:`ScanError` when the response is not a list of sightings.
    A single unreadable device does not fail the scan: its unreadable fields
    are dropped (a device without a usable hardware address becomes
    untracked, but its network address still counts as present) and a
    :class:`MalformedSightingError` is handed to *on_invalid*. Entries that
    are not mappings at all are dropped entirely.
    """
    if raw is None or isinstance(raw, (str, bytes, Mapping)):
        raise ScanError(f"discovery returned {type(raw).__name__}, expected a list of devices", range_spec=range_spec)

    sightings: list[DeviceSighting] = []
    for index, entry in enumerate(raw):
        if isinstance(entry, DeviceSighting):
            sightings.append(entry)
            continue
        if not isinstance(entry, Mapping):
            _report_invalid(
                on_invalid,
                MalformedSightingError(
                    f"device #{index} is {type(entry).__name__}, expected a mapping",
                    index=index,
                    range_spec=range_spec,
                ),
            )
            continue
        try:
            sightings.append(DeviceSighting.model_validate(entry))
        except (ValidationError, InvalidMatcherError) as exc:
            error = MalformedSightingError(f"device #{index} is malformed: {exc}", index=index, range_spec=range_spec)
            error.__cause__ = exc
            _report_invalid(on_invalid, error)
            sightings.append(DeviceSighting.model_validate(_usable_fields(entry)))
    return sightings


def _report_invalid(on_invalid: InvalidSightingHandler | None, error: MalformedSightingError) -> None:
    if on_invalid is not None:
        on_invalid(error)
