from __future__ import annotations

import threading
import time
from concurrent.futures import ThreadPoolExecutor

import pytest

from lazyholder import Lazy, SynchronizedLazy, lazy, synchronized


def test_concurrent_gets_produce_exactly_once() -> None:
    calls = {"count": 0}
    workers = 16
    barrier = threading.Barrier(workers)

    def provide():
        calls["count"] += 1
        # Give racing threads a chance to pile up on the lock.
        time.sleep(0.05)
        return object()

    holder = synchronized(provide)

    def worker():
        barrier.wait()
        return holder.get()

    with ThreadPoolExecutor(max_workers=workers) as executor:
        results = list(executor.map(lambda _: worker(), range(workers)))

    assert calls["count"] == 1
    assert all(result is results[0] for result in results)
    assert holder.has_value() is True


def test_many_submissions_call_provider_once() -> None:
    calls = {"count": 0}

    def provide():
        calls["count"] += 1
        return calls["count"]

    holder = synchronized(provide)

    with ThreadPoolExecutor(max_workers=20) as executor:
        futures = [executor.submit(holder.get) for _ in range(1000)]
        values = {future.result() for future in futures}

    assert values == {1}
    assert calls["count"] == 1


def test_wraps_existing_holder() -> None:
    inner = lazy(object)

    holder = synchronized(inner)

    assert isinstance(holder, SynchronizedLazy)
    assert holder.inner is inner
    assert holder.get() is inner.get()
    assert inner.has_value() is True


def test_wrapping_synchronized_holder_wraps_again() -> None:
    once = synchronized(object)

    twice = synchronized(once)

    assert isinstance(twice, SynchronizedLazy)
    assert twice.inner is once
    assert twice.get() is once.get()


def test_builds_strict_holder_from_provider() -> None:
    holder = synchronized(object)

    assert isinstance(holder, SynchronizedLazy)
    assert isinstance(holder.inner, Lazy)
    assert holder.has_value() is False


def test_allow_none_caches_none() -> None:
    calls = {"count": 0}

    def provide():
        calls["count"] += 1
        return None

    holder = synchronized(provide, allow_none=True)

    assert holder.get() is None
    assert holder.get() is None
    assert holder.has_value() is True
    assert calls["count"] == 1


def test_provider_error_releases_lock_and_allows_retry() -> None:
    attempts = {"count": 0}

    def provide():
        attempts["count"] += 1
        if attempts["count"] == 1:
            raise RuntimeError("first attempt fails")
        return "value"

    holder = synchronized(provide)

    with pytest.raises(RuntimeError, match="first attempt fails"):
        holder.get()
    assert holder.has_value() is False

    # A retry from another thread must not block on a poisoned lock.
    with ThreadPoolExecutor(max_workers=1) as executor:
        assert executor.submit(holder.get).result(timeout=5) == "value"
    assert attempts["count"] == 2


def test_waiters_see_value_produced_by_first_caller() -> None:
    started = threading.Event()
    release = threading.Event()
    calls = {"count": 0}

    def provide():
        calls["count"] += 1
        started.set()
        release.wait(timeout=5)
        return "slow"

    holder = synchronized(provide)

    with ThreadPoolExecutor(max_workers=2) as executor:
        first = executor.submit(holder.get)
        assert started.wait(timeout=5)
        second = executor.submit(holder.get)
        release.set()
        assert first.result(timeout=5) == "slow"
        assert second.result(timeout=5) == "slow"

    assert calls["count"] == 1


def test_accept_returns_synchronized_holder() -> None:
    holder = synchronized(object)
    seen = []

    assert holder.accept(seen.append) is holder
    assert seen == [holder]
