"""Release resources held by lazy holders without producing them."""

from __future__ import annotations

import logging
import threading
from types import TracebackType
from typing import Any, Callable, List, Optional, Tuple, Type

from lazyholder.errors import LazyStateError
from lazyholder.holder import BaseLazy

logger = logging.getLogger(__name__)

Release = Callable[[Any], Any]


class TeardownRegistry:
    """Collects holders and releases the produced ones on ``close()``.

    Holders are attached through ``accept()`` at construction time:

        registry = TeardownRegistry()
        db = lazy(open_database).accept(registry.releasing(lambda conn: conn.close()))
        ...
        registry.close()

    Holders that were never used stay untouched: ``close()`` checks
    ``has_value()`` before it calls ``get()``.
    """

    def __init__(self) -> None:
        self._entries: List[Tuple[BaseLazy[Any], Release]] = []
        self._lock = threading.Lock()
        self._closed = False

    def register(self, holder: BaseLazy[Any], release: Release) -> BaseLazy[Any]:
        with self._lock:
            if self._closed:
                raise LazyStateError("TeardownRegistry is already closed")
            self._entries.append((holder, release))
        return holder

    def releasing(self, release: Release) -> Callable[[BaseLazy[Any]], BaseLazy[Any]]:
        """Return a visitor for ``accept()`` that registers the holder with ``release``."""

        def visitor(holder: BaseLazy[Any]) -> BaseLazy[Any]:
            return self.register(holder, release)

        return visitor

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        """Release produced values in reverse registration order.

        Every release is attempted; failures are re-raised together afterwards.
        """
        with self._lock:
            if self._closed:
                return
            self._closed = True
            entries = list(reversed(self._entries))
            self._entries.clear()

        errors: List[Exception] = []
        for holder, release in entries:
            if not holder.has_value():
                logger.debug("Skipping release of %s, value was never produced", holder)
                continue
            try:
                release(holder.get())
            except Exception as exc:
                logger.exception("Failed to release %s", holder)
                errors.append(exc)

        if errors:
            raise ExceptionGroup("Failed to release lazy values", errors)

    def __enter__(self) -> "TeardownRegistry":
        return self

    def __exit__(
        self,
        exc_type: Optional[Type[BaseException]] = None,
        exc_value: Optional[BaseException] = None,
        traceback: Optional[TracebackType] = None,
    ) -> None:
        self.close()
