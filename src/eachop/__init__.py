"""eachop: per-call-point each() for Python mappings and sequences."""

from importlib.metadata import version as _version

__version__ = _version("eachop")

from eachop._tracking import get_registry, set_default_registry, get_active_count
from eachop.adapter import ContainerKind, UnsupportedContainerError, register_container
from eachop.identity import CallSite, CompositeIdentity, ContextKind, LoopToken, callsite
from eachop.registry import ABSENT, EXHAUSTED, Found, Registry
from eachop.each import each_pair, each_key, iter_pairs, iter_keys
from eachop.scope import registry_scope, isolated

__all__ = [
    "each_pair",
    "each_key",
    "iter_pairs",
    "iter_keys",
    "Registry",
    "Found",
    "ABSENT",
    "EXHAUSTED",
    "LoopToken",
    "CallSite",
    "CompositeIdentity",
    "ContextKind",
    "callsite",
    "ContainerKind",
    "UnsupportedContainerError",
    "register_container",
    "registry_scope",
    "isolated",
    "get_registry",
    "set_default_registry",
    "get_active_count",
]
