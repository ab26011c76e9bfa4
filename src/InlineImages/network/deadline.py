"""Wall-clock budget shared by every hop of one fetch."""

from __future__ import annotations

import time
from typing import Callable

import httpx

from ..errors import RemoteTimeout
from .policy import MIN_REQUEST_TIMEOUT

__all__ = ["Deadline"]


class Deadline:
    """Track the remaining time for a fetch, redirects included."""

    def __init__(self, timeout_s: float, *, clock: Callable[[], float] = time.monotonic) -> None:
        self.timeout_s = timeout_s
        self._clock = clock
        self._expires_at = clock() + timeout_s

    def remaining(self) -> float:
        return self._expires_at - self._clock()

    def expired(self) -> bool:
        return self.remaining() <= 0

    def check(self, url: str) -> None:
        """Raise :class:`RemoteTimeout` once the budget is spent."""

        if self.expired():
            raise RemoteTimeout(f"Fetch of {url} exceeded {self.timeout_s:g}s", url=url)

    def request_timeout(self) -> httpx.Timeout:
        """httpx timeout for the next request, capped by the remaining budget."""

        return httpx.Timeout(max(self.remaining(), MIN_REQUEST_TIMEOUT))
