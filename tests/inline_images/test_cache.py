"""Tests for the run-scoped remote cache."""

import threading

import pytest

from InlineImages.cache import RemoteCache
from InlineImages.core import Failure, ReasonCode, Success


def test_second_request_reuses_outcome():
    cache = RemoteCache()
    calls = []

    def _produce():
        calls.append(1)
        return Success("data:image/png;base64,AA==", size=1)

    first = cache.get_or_fetch("https://x/a.png", _produce)
    second = cache.get_or_fetch("https://x/a.png", _produce)

    assert first is second
    assert len(calls) == 1
    assert (cache.hits, cache.misses) == (1, 1)
    assert "https://x/a.png" in cache
    assert list(cache) == ["https://x/a.png"]


def test_failures_are_cached_too():
    cache = RemoteCache()
    failure = Failure(ReasonCode.REMOTE_HTTP_ERROR, status_code=404)

    assert cache.get_or_fetch("k", lambda: failure) is failure
    assert cache.get_or_fetch("k", lambda: pytest.fail("producer re-run")) is failure


def test_keys_are_exact_strings():
    cache = RemoteCache()
    cache.get_or_fetch("//x/a.png", lambda: Success("one"))
    cache.get_or_fetch("https://x/a.png", lambda: Success("two"))

    assert len(cache) == 2


def test_concurrent_requesters_share_one_fetch():
    cache = RemoteCache()
    started = threading.Event()
    release = threading.Event()
    calls = []
    results = []

    def _produce():
        calls.append(threading.current_thread().name)
        started.set()
        release.wait(timeout=5)
        return Success("data:image/gif;base64,R0lG", size=3)

    def _request():
        results.append(cache.get_or_fetch("https://x/slow.gif", _produce))

    owner = threading.Thread(target=_request, name="owner")
    owner.start()
    assert started.wait(timeout=5)

    waiters = [threading.Thread(target=_request, name=f"waiter-{i}") for i in range(3)]
    for waiter in waiters:
        waiter.start()
    release.set()
    for thread in [owner, *waiters]:
        thread.join(timeout=5)

    assert calls == ["owner"]
    assert len(results) == 4
    assert all(result is results[0] for result in results)


def test_producer_exception_reaches_every_requester():
    cache = RemoteCache()

    def _explode():
        raise RuntimeError("boom")

    with pytest.raises(RuntimeError, match="boom"):
        cache.get_or_fetch("k", _explode)
    with pytest.raises(RuntimeError, match="boom"):
        cache.get_or_fetch("k", lambda: Success("never"))
