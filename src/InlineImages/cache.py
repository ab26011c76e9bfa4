"""Run-scoped cache that coalesces remote fetches by raw reference text.

The first caller for a key installs a :class:`concurrent.futures.Future`,
runs the producer outside the lock and publishes the outcome; every later
caller for the same key blocks on that future. One key therefore costs at most
one network transfer per run, and all callers see the same outcome object.
Entries live as long as the cache object and are never invalidated.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Future
from typing import Callable, Dict, Iterator

from .core import Outcome

__all__ = ["RemoteCache"]

LOGGER = logging.getLogger(__name__)


class RemoteCache:
    """Thread-safe map from raw remote reference to its shared outcome."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._entries: Dict[str, "Future[Outcome]"] = {}
        self.hits = 0
        self.misses = 0

    def get_or_fetch(self, key: str, producer: Callable[[], Outcome]) -> Outcome:
        """Return the outcome for ``key``, calling ``producer`` only for the first requester.

        If ``producer`` raises, the exception is stored on the shared future and
        re-raised for every requester of ``key``.
        """

        with self._lock:
            future = self._entries.get(key)
            owner = future is None
            if owner:
                future = Future()
                self._entries[key] = future
                self.misses += 1
            else:
                self.hits += 1

        if not owner:
            if not future.done():
                LOGGER.debug("awaiting in-flight fetch", extra={"reference": key})
            return future.result()

        try:
            outcome = producer()
        except BaseException as exc:
            future.set_exception(exc)
            raise
        future.set_result(outcome)
        return outcome

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __iter__(self) -> Iterator[str]:
        with self._lock:
            return iter(list(self._entries))
