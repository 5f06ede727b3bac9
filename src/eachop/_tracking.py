"""Ambient registry tracking.

Uses contextvars to record which Registry the implicit each() calls should
use. Outside any registry_scope() that is the process-wide default, which
lives until the process ends (or until set_default_registry replaces it).
"""

from __future__ import annotations

import contextvars

from eachop.registry import Registry

# The registry installed by the innermost enclosing registry_scope().
current_registry: contextvars.ContextVar[Registry | None] = contextvars.ContextVar(
    "current_registry", default=None
)

_default_registry: Registry = Registry()


def get_registry() -> Registry:
    """The registry implicit calls resolve to right now."""
    registry = current_registry.get()
    return registry if registry is not None else _default_registry


def set_default_registry(registry: Registry) -> Registry:
    """Replace the process-wide default. Returns the previous one.

    The previous registry is not disposed; call .dispose() on it if its
    unfinished cursors should be dropped.
    """
    global _default_registry
    previous = _default_registry
    _default_registry = registry
    return previous


def get_active_count() -> int:
    """Number of cursors in flight in the current registry. Useful for testing."""
    return len(get_registry())
