"""Deferred-value holders.

A holder owns one provider and calls it the first time ``get()`` is asked for
a value. The result is cached and returned on every later call.

``Lazy`` and ``NullableLazy`` are unsynchronized: two threads racing on the
first ``get()`` may both run the provider and the last write wins. Wrap them
in ``SynchronizedLazy`` (or build them with ``synchronized()``) when the
holder is shared between threads.
"""

from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from typing import Any, Callable, Generic, Optional, TypeVar, Union

from lazyholder.capability import hide as _hide
from lazyholder.errors import ProviderReturnedNoneError
from lazyholder.provider import ProviderLike, as_provide_callable

T = TypeVar("T")
H = TypeVar("H", bound="BaseLazy[Any]")

logger = logging.getLogger(__name__)


class BaseLazy(ABC, Generic[T]):
    """Common interface of every holder variant."""

    @abstractmethod
    def get(self) -> T:
        """Return the cached value, producing it first if needed."""

    @abstractmethod
    def has_value(self) -> bool:
        """Report whether the value has been produced. Never produces it."""

    def hide(self, capability: Any) -> Any:
        """Present this holder as ``capability`` without producing the value.

        Returns the cached value itself once it exists, otherwise a proxy that
        produces it on first use.
        """
        return _hide(capability, self)

    def accept(self: H, visitor: Callable[[H], Any]) -> H:
        """Call ``visitor`` with this holder and return the holder for chaining."""
        visitor(self)
        return self


class Lazy(BaseLazy[T]):
    """Unsynchronized holder whose provider must not return ``None``.

    A ``None`` result raises ``ProviderReturnedNoneError`` and is not cached,
    so the next ``get()`` calls the provider again.
    """

    def __init__(self, provider: ProviderLike[T]) -> None:
        self._provide = as_provide_callable(provider)
        self._produced = False
        self._value: Optional[T] = None

    def get(self) -> T:
        if self._produced:
            return self._value  # type: ignore[return-value]

        logger.debug("Producing value for %s", self)
        value = self._provide()
        if value is None:
            raise ProviderReturnedNoneError(f"Provider of {self} returned None")

        self._value = value
        self._produced = True
        return value

    def has_value(self) -> bool:
        return self._produced

    def __repr__(self) -> str:
        state = "produced" if self._produced else "pending"
        return f"{type(self).__name__}({state})"


class NullableLazy(Lazy[Optional[T]]):
    """Unsynchronized holder that caches ``None`` like any other value."""

    def get(self) -> Optional[T]:
        if self._produced:
            return self._value

        logger.debug("Producing value for %s", self)
        self._value = self._provide()
        self._produced = True
        return self._value


class SynchronizedLazy(BaseLazy[T]):
    """Serializes access to an inner holder through one lock.

    The first caller to take the lock produces the value; everyone else waits
    and then reads the cached result. A provider error releases the lock and
    leaves the inner holder unproduced, so the next caller retries.
    """

    def __init__(self, inner: BaseLazy[T]) -> None:
        self._inner = inner
        self._lock = threading.RLock()

    @property
    def inner(self) -> BaseLazy[T]:
        return self._inner

    def get(self) -> T:
        with self._lock:
            return self._inner.get()

    def has_value(self) -> bool:
        with self._lock:
            return self._inner.has_value()

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._inner!r})"


def lazy(provider: ProviderLike[T], *, allow_none: bool = False) -> BaseLazy[T]:
    """Build an unsynchronized holder.

    Usage:
        connection = lazy(open_connection)
        # Later, on first real use:
        connection.get().execute(...)
    """
    if allow_none:
        return NullableLazy(provider)  # type: ignore[return-value]
    return Lazy(provider)


def synchronized(
    provider_or_holder: Union[ProviderLike[T], BaseLazy[T]],
    *,
    allow_none: bool = False,
) -> BaseLazy[T]:
    """Build a thread-safe holder, or wrap an existing one.

    An existing holder is wrapped as is, even if it is already synchronized.
    """
    if isinstance(provider_or_holder, BaseLazy):
        return SynchronizedLazy(provider_or_holder)
    return SynchronizedLazy(lazy(provider_or_holder, allow_none=allow_none))


def hidden(capability: Any, provider: ProviderLike[T], *, allow_none: bool = False) -> Any:
    """Build a plain holder and immediately mask it behind ``capability``."""
    return lazy(provider, allow_none=allow_none).hide(capability)
