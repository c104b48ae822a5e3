"""
Request key normalization.

A RequestKey is an ordered tuple of hashable primitives, compared
structurally: ("jobs", 42) == ("jobs", 42).
"""

from collections.abc import Hashable
from typing import Union

RequestKey = tuple[Hashable, ...]
KeyLike = Union[str, RequestKey, list]


def make_key(key: KeyLike) -> RequestKey:
    """
    Normalize a key-like value into a RequestKey.

    A bare string becomes a 1-tuple, lists become tuples.

    Raises:
        TypeError: If the key has the wrong type or unhashable components
        ValueError: If the key has no components
    """
    if isinstance(key, str):
        normalized: RequestKey = (key,)
    elif isinstance(key, (tuple, list)):
        normalized = tuple(key)
    else:
        raise TypeError(f"Request key must be a str, tuple or list, got {type(key).__name__}")

    if not normalized:
        raise ValueError("Request key must have at least one component")

    try:
        hash(normalized)
    except TypeError as e:
        raise TypeError(f"Request key {normalized!r} has unhashable components") from e
    return normalized


def key_has_prefix(key: RequestKey, prefix: RequestKey) -> bool:
    """True if `key` starts with every component of `prefix`."""
    return len(key) >= len(prefix) and key[: len(prefix)] == prefix
