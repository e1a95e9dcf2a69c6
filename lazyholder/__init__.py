"""Deferred-initialization value holders."""

from __future__ import annotations

import importlib
from typing import Any

from lazyholder.capability import hide, is_capability_type, is_proxy, unwrap
from lazyholder.errors import (
    LazyError,
    LazyStateError,
    NotACapabilityTypeError,
    NullProviderError,
    ProviderReturnedNoneError,
)
from lazyholder.holder import (
    BaseLazy,
    Lazy,
    NullableLazy,
    SynchronizedLazy,
    hidden,
    lazy,
    synchronized,
)
from lazyholder.provider import Provider
from lazyholder.teardown import TeardownRegistry

__version__ = "0.3.0"
__license__ = "MIT"

# Config pulls in pydantic and PyYAML; load it only when asked for.
_LAZY_EXPORTS = {
    "Config": ("lazyholder.config", "Config"),
    "LazyFactory": ("lazyholder.config", "LazyFactory"),
    "configure_logging": ("lazyholder.logging_config", "configure_logging"),
}


def __getattr__(name: str) -> Any:
    if name not in _LAZY_EXPORTS:
        raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
    module_name, attr_name = _LAZY_EXPORTS[name]
    module = importlib.import_module(module_name)
    value = getattr(module, attr_name)
    globals()[name] = value
    return value


__all__ = [
    "__version__",
    "BaseLazy",
    "Config",
    "Lazy",
    "LazyError",
    "LazyFactory",
    "LazyStateError",
    "NotACapabilityTypeError",
    "NullProviderError",
    "NullableLazy",
    "Provider",
    "ProviderReturnedNoneError",
    "SynchronizedLazy",
    "TeardownRegistry",
    "configure_logging",
    "hidden",
    "hide",
    "is_capability_type",
    "is_proxy",
    "lazy",
    "synchronized",
    "unwrap",
]
