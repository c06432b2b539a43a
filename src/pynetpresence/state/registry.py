"""Arena of presence indicators addressed by integer handle."""

from __future__ import annotations

from collections.abc import Iterator

from pynetpresence.state.machine import PresenceIndicator


class IdentityRegistry:
    """Holds every presence indicator of a platform.

    Handles are list indices and stay valid after removal (the slot is left
    empty), so the aggregate identity can exclude itself by handle.
    """

    def __init__(self) -> None:
        self._slots: list[PresenceIndicator | None] = []

    def add(self, indicator: PresenceIndicator) -> int:
        if indicator.handle is not None:
            raise ValueError(f"{indicator.name!r} is already registered")
        handle = len(self._slots)
        self._slots.append(indicator)
        indicator.handle = handle
        return handle

    def get(self, handle: int) -> PresenceIndicator:
        try:
            indicator = self._slots[handle]
        except IndexError:
            indicator = None
        if indicator is None:
            raise KeyError(handle)
        return indicator

    def remove(self, handle: int) -> PresenceIndicator:
        indicator = self.get(handle)
        self._slots[handle] = None
        indicator.handle = None
        indicator.close()
        return indicator

    def __iter__(self) -> Iterator[PresenceIndicator]:
        return (indicator for indicator in self._slots if indicator is not None)

    def __len__(self) -> int:
        return sum(1 for _ in self)

    def any_present(self, *, exclude: int | None = None) -> bool:
        return any(indicator.present for indicator in self if indicator.handle != exclude)

    def values(self) -> dict[str, bool]:
        return {indicator.name: indicator.present for indicator in self}

    def close(self) -> None:
        for indicator in self:
            indicator.close()
