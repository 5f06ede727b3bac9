"""each_pair() / each_key() — per-call-point iteration over dicts and lists.

Built-in iteration state lives on whoever holds the iterator; these functions
keep it per call point instead. The cursor is keyed by where each_pair() is
called from, so loops can nest over the same container, and reading,
copying or iterating it elsewhere in the loop body doesn't disturb them:

    while pair := each_pair(stuff):
        key, value = pair
        everything = list(stuff.items())      # fine
        while inner := each_pair(stuff):      # fine, its own cursor
            ...

Keys are snapshotted when a traversal starts; values are read live.
Keys removed mid-traversal come back with the ABSENT value.

Caveat: the same call point reached again before its traversal finished
(recursion, an early break, a loop re-entered) resumes that traversal.
Let it run to the end, pass an explicit LoopToken, or use registry_scope().
"""

from __future__ import annotations

from typing import Hashable, Iterator

from eachop._tracking import get_registry
from eachop.identity import ContextKind, callsite
from eachop.registry import EXHAUSTED, Found


def each_pair(container, token: Hashable | None = None) -> Found | tuple[()]:
    """Next (key, value) for this call point, or () when exhausted."""
    site = token if token is not None else callsite()
    return get_registry().next_pair(container, site)


def each_key(container, token: Hashable | None = None, default: object = EXHAUSTED):
    """Next key or index for this call point, or `default` when exhausted.

    Don't test the result for truth; 0 and "" are valid keys:
        while (key := each_key(stuff)) is not EXHAUSTED:
    """
    site = token if token is not None else callsite()
    return get_registry().next_key(container, site, default)


def iter_pairs(container, token: Hashable | None = None) -> Iterator[Found]:
    """Generator over the remaining pairs of this call point's cursor.

    The call point is fixed when iter_pairs() is called. Breaking out early
    leaves the cursor where it stopped, exactly like an abandoned
    each_pair() loop.
    """
    site = token if token is not None else callsite()
    return _drive(get_registry(), container, ContextKind.PAIR, site)


def iter_keys(container, token: Hashable | None = None) -> Iterator:
    site = token if token is not None else callsite()
    return (step.key for step in _drive(get_registry(), container, ContextKind.KEY, site))


def _drive(registry, container, kind: ContextKind, site: Hashable) -> Iterator[Found]:
    while (step := registry.advance(container, kind, site)) is not EXHAUSTED:
        yield step
