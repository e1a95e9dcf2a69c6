"""Capability masking for lazy holders.

``hide(capability, holder)`` hands out an object that already looks like the
value a holder will produce. Until the value exists that object is a proxy:
an instance of a generated subclass of ``capability`` whose every member
resolves ``holder.get()`` and forwards to the real value.

Only interface-like types can be masked: ``typing.Protocol`` classes and
abstract classes (which includes the ``collections.abc`` interfaces).
"""

from __future__ import annotations

import dataclasses
import enum
import functools
import inspect
import logging
import operator
import types
import typing
from typing import TYPE_CHECKING, Any, Callable, Dict

from lazyholder.errors import LazyStateError, NotACapabilityTypeError

if TYPE_CHECKING:
    from lazyholder.holder import BaseLazy

logger = logging.getLogger(__name__)

_HOLDER_ATTR = "_CapabilityProxy__holder"

_SKIPPED_DUNDERS = frozenset(
    {
        "__init__",
        "__new__",
        "__init_subclass__",
        "__subclasshook__",
        "__class_getitem__",
        "__getattribute__",
        "__getattr__",
        "__setattr__",
        "__delattr__",
        "__del__",
        "__set_name__",
        "__reduce__",
        "__reduce_ex__",
        "__getstate__",
        "__setstate__",
        "__annotate__",
    }
)
_SKIPPED_NAMES = frozenset({"_is_protocol", "_is_runtime_protocol"})

# Generated classes reference their capability, so the cache is bounded.
PROXY_CACHE_SIZE = 256


def _target(proxy: "CapabilityProxy") -> Any:
    return object.__getattribute__(proxy, _HOLDER_ATTR).get()


def _forward_op(func: Callable[..., Any]) -> Callable[..., Any]:
    def method(self, *args):
        return func(_target(self), *args)

    method.__name__ = getattr(func, "__name__", "method")
    return method


def _forward_method(name: str) -> Callable[..., Any]:
    def method(self, *args, **kwargs):
        return getattr(_target(self), name)(*args, **kwargs)

    method.__name__ = name
    return method


def _placeholder(name: str) -> property:
    # Instance reads never reach this; __getattribute__ forwards them first.
    # It only shadows abstract members so the proxy class is instantiable.
    return property(
        lambda self: getattr(_target(self), name),
        doc=f"Forwarded to the produced value's ``{name}``.",
    )


def _class_level_placeholder(name: str, value: Any) -> Any:
    def unavailable(*args, **kwargs):
        raise LazyStateError(
            f"{name} is abstract on the masked capability; call it on a proxy instance"
        )

    unavailable.__name__ = name
    if isinstance(value, classmethod):
        return classmethod(unavailable)
    return staticmethod(unavailable)


class CapabilityProxy:
    """Base of every generated proxy. Forwards all operations to ``holder.get()``."""

    def __init__(self, holder: "BaseLazy[Any]") -> None:
        object.__setattr__(self, _HOLDER_ATTR, holder)

    def __getattribute__(self, name: str) -> Any:
        # Dunders resolve on the proxy so isinstance(), copy and friends see
        # the proxy class; everything else is read from the value exactly once.
        if name == _HOLDER_ATTR or _is_dunder(name):
            try:
                return object.__getattribute__(self, name)
            except AttributeError:
                if name == _HOLDER_ATTR:
                    raise
        return getattr(_target(self), name)

    def __setattr__(self, name: str, value: Any) -> None:
        setattr(_target(self), name, value)

    def __delattr__(self, name: str) -> None:
        delattr(_target(self), name)

    def __call__(self, *args: Any, **kwargs: Any) -> Any:
        return _target(self)(*args, **kwargs)

    __repr__ = _forward_op(repr)
    __str__ = _forward_op(str)
    __bytes__ = _forward_op(bytes)
    __format__ = _forward_op(format)
    __dir__ = _forward_op(dir)
    __hash__ = _forward_op(hash)
    __bool__ = _forward_op(bool)

    __eq__ = _forward_op(operator.eq)
    __ne__ = _forward_op(operator.ne)
    __lt__ = _forward_op(operator.lt)
    __le__ = _forward_op(operator.le)
    __gt__ = _forward_op(operator.gt)
    __ge__ = _forward_op(operator.ge)

    __len__ = _forward_op(len)
    __iter__ = _forward_op(iter)
    __next__ = _forward_op(next)
    __reversed__ = _forward_op(reversed)
    __contains__ = _forward_op(operator.contains)
    __getitem__ = _forward_op(operator.getitem)
    __setitem__ = _forward_op(operator.setitem)
    __delitem__ = _forward_op(operator.delitem)

    __enter__ = _forward_method("__enter__")
    __exit__ = _forward_method("__exit__")


def _is_dunder(name: str) -> bool:
    return name.startswith("__") and name.endswith("__")


def _capability_origin(capability: Any) -> Any:
    # Sequence[str] -> collections.abc.Sequence
    origin = typing.get_origin(capability)
    return capability if origin is None else origin


def is_capability_type(candidate: Any) -> bool:
    """Return True when ``candidate`` is a Protocol or an abstract class."""
    candidate = _capability_origin(candidate)
    if not inspect.isclass(candidate):
        return False
    if candidate in (typing.Protocol, typing.Generic):
        return False
    if dataclasses.is_dataclass(candidate) or issubclass(candidate, enum.Enum):
        return False
    if issubclass(candidate, CapabilityProxy):
        return False
    return bool(getattr(candidate, "_is_protocol", False)) or inspect.isabstract(candidate)


def _declared_members(capability: type) -> Dict[str, Any]:
    """Collect forwarders for every member ``capability`` declares."""
    members: Dict[str, Any] = {}
    own = vars(CapabilityProxy)
    for base in reversed(capability.__mro__):
        if base in (object, typing.Protocol, typing.Generic):
            continue

        for name in inspect.get_annotations(base):
            if not _is_dunder(name) and name not in _SKIPPED_NAMES:
                members[name] = _placeholder(name)

        for name, value in vars(base).items():
            if name in _SKIPPED_NAMES or name.startswith("_abc_"):
                continue
            if isinstance(value, (classmethod, staticmethod)) and not _is_dunder(name):
                # Class-level access keeps working; only abstract ones are replaced.
                if getattr(value, "__isabstractmethod__", False):
                    members[name] = _class_level_placeholder(name, value)
                else:
                    members.pop(name, None)
            elif not _is_dunder(name):
                members[name] = _placeholder(name)
            elif name not in own and name not in _SKIPPED_DUNDERS and (
                callable(value) or isinstance(value, (classmethod, staticmethod))
            ):
                members[name] = _forward_method(name)
    return members


@functools.lru_cache(maxsize=PROXY_CACHE_SIZE)
def proxy_class_for(capability: type) -> type:
    """Return the (cached) proxy class that implements ``capability``."""
    members = _declared_members(capability)
    name = f"Lazy{capability.__name__}"
    cls = types.new_class(
        name,
        (CapabilityProxy, capability),
        exec_body=lambda namespace: namespace.update(members, __module__=__name__),
    )
    logger.debug("Built proxy class %s forwarding %d members", name, len(members))
    return cls


def hide(capability: Any, holder: "BaseLazy[Any]") -> Any:
    """Present ``holder`` as an instance of ``capability``.

    The type check runs before the holder is looked at, so masking a concrete
    type fails the same way whether or not the value was produced.
    """
    if not is_capability_type(capability):
        raise NotACapabilityTypeError(
            f"{capability!r} is not a Protocol or abstract class and cannot be masked"
        )

    if holder.has_value():
        return holder.get()

    logger.debug("Masking %s behind %s", holder, capability)
    return proxy_class_for(_capability_origin(capability))(holder)


def is_proxy(obj: Any) -> bool:
    return isinstance(obj, CapabilityProxy)


def unwrap(obj: Any) -> Any:
    """Return the real value behind a proxy, producing it if needed."""
    if is_proxy(obj):
        return _target(obj)
    return obj
