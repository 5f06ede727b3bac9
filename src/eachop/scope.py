"""Scopes — bound the lifetime of cursors to a block or a function.

Inside a registry_scope() or an @isolated function, implicit each() calls use
a registry of their own. When the scope exits, that registry is disposed,
taking any abandoned cursors with it.
"""

from __future__ import annotations

import contextvars
import functools
import inspect
from contextlib import contextmanager
from typing import Callable, Iterator, ParamSpec, TypeVar

from eachop._tracking import current_registry
from eachop.registry import Registry

P = ParamSpec("P")
R = TypeVar("R")


@contextmanager
def registry_scope(registry: Registry | None = None) -> Iterator[Registry]:
    """Context manager installing a registry for the enclosed block.

    A registry created here is disposed on exit. One passed in is only
    installed; its owner decides when to dispose it.

    Usage:
        with registry_scope():
            while pair := each_pair(stuff):
                if done(pair):
                    break
        # the half-finished cursor is gone here
    """
    owned = registry is None
    if owned:
        registry = Registry()
    token = current_registry.set(registry)
    try:
        yield registry
    finally:
        current_registry.reset(token)
        if owned:
            registry.dispose()


def isolated(fn: Callable[P, R]) -> Callable[P, R]:
    """Decorator: run every call of fn in its own registry_scope().

    Each call starts fresh cursors, so an early return never leaves
    state behind for the next call. A generator function gets one registry
    per generator, installed only while its body runs.

    Usage:
        @isolated
        def first_blue(colors):
            while pair := each_pair(colors):
                if pair.value == "blue":
                    return pair.key
    """
    if inspect.isgeneratorfunction(fn):
        return _isolated_generator(fn)

    @functools.wraps(fn)
    def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
        with registry_scope():
            return fn(*args, **kwargs)

    return wrapper


def _isolated_generator(fn):
    """Drive fn's generator inside a private context holding its own registry.

    The registry is installed only while the generator body runs, never in
    the consumer's context between yields, and disposed when it finishes
    or is closed.
    """

    @functools.wraps(fn)
    def wrapper(*args, **kwargs):
        registry = Registry()
        context = contextvars.copy_context()
        context.run(current_registry.set, registry)
        gen = context.run(fn, *args, **kwargs)
        method, arg = gen.send, None
        try:
            while True:
                try:
                    value = context.run(method, arg)
                except StopIteration as stop:
                    return stop.value
                try:
                    arg = yield value
                    method = gen.send
                except GeneratorExit:
                    context.run(gen.close)
                    raise
                except BaseException as exc:
                    method, arg = gen.throw, exc
        finally:
            registry.dispose()

    return wrapper
