"""Validation of subgraph deployment IPFS hashes (CIDv0)."""

from __future__ import annotations

from typing import Any, Iterable, List

from .errors import InvalidHashFormat

BASE58_ALPHABET = "123456789ABCDEFGHJKLMNPQRSTUVWXYZabcdefghijkmnopqrstuvwxyz"
CIDV0_PREFIX = "Qm"
CIDV0_LENGTH = 46

_BASE58_CHARS = frozenset(BASE58_ALPHABET)


def is_valid_ipfshash(value: Any) -> bool:
    """Return True when ``value`` looks like a CIDv0 deployment hash."""
    if not isinstance(value, str):
        return False
    if len(value) != CIDV0_LENGTH or not value.startswith(CIDV0_PREFIX):
        return False
    return all(char in _BASE58_CHARS for char in value)


def invalid_ipfshashes(hashes: Iterable[Any]) -> List[Any]:
    return [item for item in hashes if not is_valid_ipfshash(item)]


def verify_ipfshashes(hashes: Iterable[Any]) -> bool:
    """True when every hash is valid. An empty collection is valid."""
    return all(is_valid_ipfshash(item) for item in hashes)


def require_valid_ipfshashes(*lists: Iterable[Any]) -> None:
    """Raise :class:`InvalidHashFormat` if any entry of any list is invalid."""
    invalid: List[Any] = []
    for hashes in lists:
        invalid.extend(invalid_ipfshashes(hashes))
    if invalid:
        raise InvalidHashFormat(str(item) for item in invalid)
