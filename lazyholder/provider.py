"""Provider contract for lazy holders."""

from __future__ import annotations

from typing import Any, Callable, Protocol, TypeVar, Union, runtime_checkable

from lazyholder.errors import NullProviderError

T_co = TypeVar("T_co", covariant=True)


@runtime_checkable
class Provider(Protocol[T_co]):
    """Computes the value a holder caches. Called at most once per holder."""

    def provide(self) -> T_co:
        ...


ProviderLike = Union[Provider[T_co], Callable[[], T_co]]


def as_provide_callable(provider: Any) -> Callable[[], Any]:
    """Return the zero-argument callable behind ``provider``.

    Objects exposing ``provide()`` win over plain callables, so a callable
    class that also implements the protocol is driven through ``provide``.
    """
    if provider is None:
        raise NullProviderError("Provider cannot be None")

    provide = getattr(provider, "provide", None)
    if callable(provide):
        return provide
    if callable(provider):
        return provider
    raise NullProviderError(
        f"Provider must be callable or define provide(), got {type(provider).__name__}"
    )
