"""Identity composition — what a cursor is keyed by.

A cursor belongs to a call point, the shape of the call (pair or key), and
the container instance. Call points are either implicit (derived from the
calling frame) or explicit LoopTokens threaded through by the caller.
"""

from __future__ import annotations

import functools
import itertools
import sys
import threading
from enum import Enum
from types import CodeType
from typing import Hashable, NamedTuple


class ContextKind(Enum):
    """Which shape the caller wants back."""

    PAIR = "pair"
    KEY = "key"


class CallSite:
    """Implicit call point: a source span in one code object, per thread.

    Keyed by source position rather than bytecode offset, since the
    compiler may duplicate a call (a `while` test is emitted both before
    the loop and at its bottom). Code objects compare by identity; two
    identical functions in different modules are different call points.
    """

    __slots__ = ("code", "position", "thread")

    def __init__(self, code: CodeType, position: tuple, thread: int) -> None:
        self.code = code
        self.position = position
        self.thread = thread

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, CallSite):
            return NotImplemented
        return (
            self.code is other.code
            and self.position == other.position
            and self.thread == other.thread
        )

    def __hash__(self) -> int:
        return hash((id(self.code), self.position, self.thread))

    def __repr__(self) -> str:
        line, _, col, _ = self.position
        return (
            f"CallSite({self.code.co_filename}:{self.code.co_name}"
            f"@{line}:{col}, thread={self.thread})"
        )


class LoopToken:
    """Explicit call point for one logical loop instance.

    Equal only to itself. Create one per loop and pass it down through
    recursive calls that should share (or not share) the same cursor.

    Usage:
        outer = LoopToken("outer")
        while pair := registry.next_pair(stuff, outer):
            ...
    """

    __slots__ = ("label",)

    def __init__(self, label: str | None = None) -> None:
        self.label = label

    def __repr__(self) -> str:
        if self.label is None:
            return f"LoopToken(0x{id(self):x})"
        return f"LoopToken({self.label!r})"


class CompositeIdentity(NamedTuple):
    site: Hashable
    kind: ContextKind
    container_id: int


def callsite(depth: int = 1) -> CallSite:
    """Token for the frame `depth` levels above the caller of callsite().

    depth=1 names whoever called the function that called callsite(), which
    is what a primitive like each_pair() wants.
    """
    frame = sys._getframe(depth + 1)
    position = _position(frame.f_code, frame.f_lasti)
    return CallSite(frame.f_code, position, threading.get_ident())


@functools.lru_cache(maxsize=1024)
def _position(code: CodeType, offset: int) -> tuple:
    """(line, end_line, col, end_col) of the instruction at offset."""
    # co_positions() yields one entry per 2-byte code unit.
    return next(itertools.islice(code.co_positions(), offset // 2, None))


def compose(site: Hashable, kind: ContextKind, container: object) -> CompositeIdentity:
    return CompositeIdentity(site, kind, id(container))
