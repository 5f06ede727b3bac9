"""Container adapter — classify, snapshot keys, look values up live.

The registry never touches container storage directly; everything it needs
goes through these three functions. Nothing here mutates the container.
"""

from __future__ import annotations

from collections import deque
from collections.abc import Mapping, Sequence
from enum import Enum


class ContainerKind(Enum):
    KEYED = "keyed"
    ORDERED = "ordered"


class UnsupportedContainerError(TypeError):
    """The container is neither keyed nor ordered."""


# Explicit opt-ins for types that don't register with collections.abc.
_registered: dict[type, ContainerKind] = {}

# Sequences whose elements aren't meaningful as an indexable collection here.
_REJECTED = (str, bytes, bytearray)


def register_container(cls: type, kind: ContainerKind) -> type:
    """Teach the adapter how to treat cls. Subclasses inherit the choice.

    Usage:
        register_container(MyTable, ContainerKind.KEYED)

    The type must support `key in obj` and `obj[key]` (KEYED) or
    `len(obj)` and `obj[index]` (ORDERED); KEYED types also need keys().
    """
    _registered[cls] = kind
    return cls


def unregister_container(cls: type) -> None:
    _registered.pop(cls, None)


def classify(container: object) -> ContainerKind:
    for cls in type(container).__mro__:
        kind = _registered.get(cls)
        if kind is not None:
            return kind
    if isinstance(container, Mapping):
        return ContainerKind.KEYED
    if isinstance(container, Sequence) and not isinstance(container, _REJECTED):
        return ContainerKind.ORDERED
    raise UnsupportedContainerError(
        f"each needs a mapping or a sequence, got {type(container).__name__}"
    )


def snapshot_keys(container, kind: ContainerKind) -> deque:
    """Capture the keys (or indices) to visit, once."""
    if kind is ContainerKind.KEYED:
        return deque(list(container.keys()))
    return deque(range(len(container)))


def lookup(container, kind: ContainerKind, key, missing):
    """Current value at key, or `missing` if it no longer resolves.

    Membership is checked first so defaultdict-style __missing__ hooks are
    never triggered.
    """
    if kind is ContainerKind.KEYED:
        if key in container:
            return container[key]
        return missing
    if 0 <= key < len(container):
        return container[key]
    return missing
