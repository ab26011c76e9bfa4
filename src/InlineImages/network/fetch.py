"""Capped GET of remote images.

The size ceiling is enforced twice: a declared ``Content-Length`` above the
ceiling fails before the body is touched, and the streamed body is cut off as
soon as it would grow past the ceiling (servers may omit or misreport the
length). Transport failures are mapped onto the :class:`RemoteFetchError`
family so the engine can turn them into outcomes.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Callable, Optional, Tuple

import httpx

from ..errors import HttpStatusError, PayloadTooLarge, RemoteTimeout, RemoteTransportError
from ..settings import HttpSettings
from .deadline import Deadline
from .redirect import format_audit_trail, stream_with_redirects

__all__ = ["RemotePayload", "RemoteFetcher"]

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class RemotePayload:
    """Body and metadata of a successful fetch.

    Attributes:
        data: Full response body.
        content_type: ``Content-Type`` header of the final response, if any.
        final_url: URL that produced the body after redirects.
        hops: ``(url, status)`` audit trail of the chain.
    """

    data: bytes
    content_type: Optional[str]
    final_url: str
    hops: Tuple[Tuple[str, int], ...] = field(default_factory=tuple)


def _declared_length(response: httpx.Response) -> Optional[int]:
    length_header = response.headers.get("Content-Length")
    if not length_header:
        return None
    try:
        return int(length_header)
    except (TypeError, ValueError):
        return None


class RemoteFetcher:
    """Fetch remote images with redirect, timeout and size limits.

    Args:
        client: HTTPX client built with ``follow_redirects=False``.
        max_bytes: Byte ceiling for the response body.
        timeout_s: Wall-clock budget for the whole fetch, redirects included.
        max_redirects: Redirect hops allowed per fetch.
        chunk_size: Streaming chunk size.
        clock: Monotonic clock, injectable for tests.
    """

    def __init__(
        self,
        client: httpx.Client,
        *,
        max_bytes: int,
        timeout_s: float = 30.0,
        max_redirects: int = 5,
        chunk_size: int = 64 * 1024,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.client = client
        self.max_bytes = max_bytes
        self.timeout_s = timeout_s
        self.max_redirects = max_redirects
        self.chunk_size = chunk_size
        self._clock = clock

    @classmethod
    def from_settings(
        cls, client: httpx.Client, settings: HttpSettings, *, max_bytes: int
    ) -> "RemoteFetcher":
        return cls(
            client,
            max_bytes=max_bytes,
            timeout_s=settings.timeout_s,
            max_redirects=settings.max_redirects,
            chunk_size=settings.chunk_size_bytes,
        )

    def fetch(self, url: str) -> RemotePayload:
        """GET ``url`` and return its body.

        Raises:
            RedirectLoop, MissingLocationHeader, TooManyRedirects: Redirect failures.
            HttpStatusError: Terminal status outside ``[200, 300)``.
            PayloadTooLarge: Declared or streamed size above ``max_bytes``.
            RemoteTimeout: The wall-clock budget ran out.
            RemoteTransportError: Any other transport or URL failure.
        """

        deadline = Deadline(self.timeout_s, clock=self._clock)
        try:
            start_url = str(httpx.URL(url))
            with stream_with_redirects(
                self.client,
                start_url,
                max_redirects=self.max_redirects,
                deadline=deadline,
            ) as (response, hops):
                if not 200 <= response.status_code < 300:
                    raise HttpStatusError(str(response.url), response.status_code)

                declared = _declared_length(response)
                if declared is not None and declared > self.max_bytes:
                    raise PayloadTooLarge(str(response.url), declared, self.max_bytes)

                data = self._read_capped(response, deadline)
                payload = RemotePayload(
                    data=data,
                    content_type=response.headers.get("Content-Type"),
                    final_url=str(response.url),
                    hops=tuple(hops),
                )
        except httpx.TimeoutException as exc:
            raise RemoteTimeout(f"Fetch of {url} timed out: {exc}", url=url) from exc
        except (httpx.HTTPError, httpx.InvalidURL, httpx.StreamError) as exc:
            raise RemoteTransportError(f"Fetch of {url} failed: {exc}", url=url) from exc

        LOGGER.debug(
            "remote fetch complete",
            extra={
                "url": url,
                "final_url": payload.final_url,
                "bytes": len(payload.data),
                "redirects": format_audit_trail(payload.hops),
            },
        )
        return payload

    def _read_capped(self, response: httpx.Response, deadline: Deadline) -> bytes:
        url = str(response.url)
        buffer = bytearray()
        for chunk in response.iter_bytes(self.chunk_size):
            deadline.check(url)
            if not chunk:
                continue
            received = len(buffer) + len(chunk)
            if received > self.max_bytes:
                raise PayloadTooLarge(url, received, self.max_bytes)
            buffer.extend(chunk)
        return bytes(buffer)
