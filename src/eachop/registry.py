"""Iteration registry — the per-call-point cursors behind each().

A Registry maps CompositeIdentity -> deque of pending keys. The first call
for an identity snapshots the container's keys; each later call pops one and
looks its value up live. The call after the last key deletes the entry and
reports exhaustion, so the next call starts over.

There is no reset. An identity seen again before it drained (recursion, an
early break) resumes where it left off. Cursors abandoned that way stay
resident until the identity is driven to the end or the registry is disposed.

Thread safety: unsynchronized unless constructed with threadsafe=True.
"""

from __future__ import annotations

import logging
import threading
from collections import deque
from contextlib import nullcontext
from typing import Hashable, NamedTuple

from eachop import adapter
from eachop.identity import CompositeIdentity, ContextKind, compose

logger = logging.getLogger("eachop.registry")


class _Sentinel:
    __slots__ = ("_name",)

    def __init__(self, name: str) -> None:
        self._name = name

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return self._name


# Value surrogate for a key/index that vanished after the snapshot.
ABSENT = _Sentinel("ABSENT")

# Returned once a cursor has drained.
EXHAUSTED = _Sentinel("EXHAUSTED")


class Found(NamedTuple):
    """One step of a traversal. A 2-tuple, so always truthy."""

    key: object
    value: object


class Registry:
    """Owns every in-flight cursor for the scope that created it."""

    __slots__ = ("_cursors", "_missing", "_lock")

    def __init__(self, *, missing: object = ABSENT, threadsafe: bool = False) -> None:
        self._cursors: dict[CompositeIdentity, deque] = {}
        self._missing = missing
        self._lock = threading.RLock() if threadsafe else nullcontext()

    def advance(self, container, kind: ContextKind, site: Hashable) -> Found | _Sentinel:
        """Step the cursor for (site, kind, container).

        Returns Found(key, value) while keys remain, then EXHAUSTED once.
        value is only looked up for ContextKind.PAIR; KEY steps carry None.
        Raises UnsupportedContainerError before touching any state.
        """
        container_kind = adapter.classify(container)
        identity = compose(site, kind, container)
        with self._lock:
            pending = self._cursors.get(identity)
            if pending is None:
                pending = adapter.snapshot_keys(container, container_kind)
                self._cursors[identity] = pending
                logger.debug("Started %r over %d keys", identity, len(pending))
            if not pending:
                del self._cursors[identity]
                logger.debug("Exhausted %r", identity)
                return EXHAUSTED
            key = pending.popleft()
        if kind is ContextKind.KEY:
            return Found(key, None)
        return Found(key, adapter.lookup(container, container_kind, key, self._missing))

    def next_pair(self, container, site: Hashable) -> Found | tuple[()]:
        """(key, value) for the next element, or () when exhausted.

        Usage:
            while pair := registry.next_pair(stuff, token):
                key, value = pair
        """
        step = self.advance(container, ContextKind.PAIR, site)
        return step if step is not EXHAUSTED else ()

    def next_key(self, container, site: Hashable, default: object = EXHAUSTED):
        """Next key or index, or `default` when exhausted.

        Keys can be falsy (0, "", None), so compare against the default:
            while (key := registry.next_key(stuff, token)) is not EXHAUSTED:
                ...
        """
        step = self.advance(container, ContextKind.KEY, site)
        return step.key if step is not EXHAUSTED else default

    def pending(self, identity: CompositeIdentity) -> tuple:
        """Keys still to be served for identity (empty if none in flight)."""
        with self._lock:
            return tuple(self._cursors.get(identity, ()))

    def dispose(self) -> int:
        """Drop every cursor, drained or abandoned. Returns how many were dropped."""
        with self._lock:
            count = len(self._cursors)
            self._cursors.clear()
        if count:
            logger.info("Disposed registry with %d unfinished iterations", count)
        return count

    def __len__(self) -> int:
        with self._lock:
            return len(self._cursors)

    def __contains__(self, identity: object) -> bool:
        with self._lock:
            return identity in self._cursors

    def __repr__(self) -> str:
        return f"Registry({len(self._cursors)} active)"
