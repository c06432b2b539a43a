"""Shared normalization helpers for presence models.

Hardware addresses are compared as plain strings, so every address that
enters the library (from configuration or from a scan) goes through
:func:`canonical_hardware_address` first.
"""

from __future__ import annotations

import string
from typing import Any

from pydantic import BaseModel, ConfigDict

from pynetpresence.exceptions import InvalidMatcherError, UnsupportedAddressError

_HEX_DIGITS = frozenset(string.hexdigits)
_OCTETS = 6


def canonical_hardware_address(value: str) -> str:
    """Return *value* as ``aa:bb:cc:dd:ee:ff``.

    Octets are lowercased and zero-padded to two digits, so ``A:b:0C:d:E:f``
    becomes ``0a:0b:0c:0d:0e:0f``. Anything other than six colon-separated
    hex octets raises :class:`UnsupportedAddressError`.
    """
    text = value.strip().lower()
    parts = text.split(":")
    if len(parts) != _OCTETS or any(not 1 <= len(part) <= 2 or not set(part) <= _HEX_DIGITS for part in parts):
        raise UnsupportedAddressError(
            f"unsupported hardware address {value!r}; expected colon-delimited hex octets (3e:34:ae:87:f1:cc)",
            field="mac",
        )
    return ":".join(part.zfill(2) for part in parts)


def normalize_host_name(value: str) -> str:
    """Host names compare case-insensitively."""
    return value.strip().lower()


def require_matcher(value: Any, field: str) -> str | None:
    """Validate an optional identity matcher value.

    ``None`` means "not configured". Anything else must be a non-empty string.
    """
    if value is None:
        return None
    if not isinstance(value, str):
        raise InvalidMatcherError(
            f"{field} must be a string, got {type(value).__name__}",
            field=field,
        )
    stripped = value.strip()
    if not stripped:
        raise InvalidMatcherError(f"{field} must not be empty", field=field)
    return stripped


class PresenceBaseModel(BaseModel):
    """Base for immutable presence models."""

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        str_strip_whitespace=True,
    )
