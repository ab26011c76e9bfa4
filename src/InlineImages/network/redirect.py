# === NAVMAP v1 ===
# {
#   "module": "InlineImages.network.redirect",
#   "purpose": "Manual redirect following with loop detection and a hop budget",
#   "sections": [
#     {
#       "id": "stream-with-redirects",
#       "name": "stream_with_redirects",
#       "anchor": "function-stream-with-redirects",
#       "kind": "function"
#     },
#     {
#       "id": "format-audit-trail",
#       "name": "format_audit_trail",
#       "anchor": "function-format-audit-trail",
#       "kind": "function"
#     }
#   ]
# }
# === /NAVMAP ===

"""Manual redirect following for image fetches.

The HTTP client is built with ``follow_redirects=False``; this module walks the
chain itself so each failure mode is distinct:

- **Visited set**: requesting a URL twice in one chain is a :class:`RedirectLoop`,
  whatever the remaining budget.
- **Hop budget**: more than ``max_redirects`` hops is :class:`TooManyRedirects`.
- **Location**: a 3xx without ``Location`` is :class:`MissingLocationHeader`.
- **Relative targets** are resolved against the URL that redirected.
- **Audit trail**: every ``(url, status)`` pair is recorded for logging.

Intermediate redirect bodies are drained and discarded, never buffered.

Example:
    >>> with stream_with_redirects(client, url, max_redirects=5, deadline=Deadline(30)) as (
    ...     response,
    ...     hops,
    ... ):
    ...     body = response.read()
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator, List, Mapping, Optional, Set, Tuple

import httpx

from ..errors import MissingLocationHeader, RedirectLoop, RemoteTransportError, TooManyRedirects
from .deadline import Deadline
from .policy import REDIRECT_STATUS_CODES

__all__ = ["AuditTrail", "stream_with_redirects", "format_audit_trail"]

logger = logging.getLogger(__name__)

AuditTrail = List[Tuple[str, int]]


def _drain(response: httpx.Response, deadline: Deadline, url: str) -> None:
    for _chunk in response.iter_raw():
        deadline.check(url)


def _resolve_location(response: httpx.Response, location: str, current_url: str) -> str:
    try:
        return str(response.url.join(location))
    except (httpx.InvalidURL, ValueError) as exc:
        raise RemoteTransportError(
            f"Invalid redirect location {location!r} from {current_url}: {exc}", url=current_url
        ) from exc


@contextmanager
def stream_with_redirects(
    client: httpx.Client,
    url: str,
    *,
    max_redirects: int,
    deadline: Deadline,
    headers: Optional[Mapping[str, str]] = None,
) -> Iterator[Tuple[httpx.Response, AuditTrail]]:
    """Open a streamed GET for ``url``, following redirects explicitly.

    Args:
        client: HTTPX client built with ``follow_redirects=False``.
        url: Initial absolute URL.
        max_redirects: Number of redirect hops allowed.
        deadline: Wall-clock budget shared by all hops.
        headers: Extra request headers.

    Yields:
        ``(response, audit_trail)`` for the first non-redirect response. The
        response body has not been read; it is closed when the block exits.

    Raises:
        RedirectLoop: A URL was requested twice in the chain.
        TooManyRedirects: The hop budget ran out.
        MissingLocationHeader: A redirect carried no ``Location``.
        RemoteTimeout: The deadline passed between hops or while draining.
        httpx.HTTPError: Transport failures are left for the caller to map.
    """

    audit_trail: AuditTrail = []
    visited: Set[str] = set()
    current_url = url
    redirects_left = max_redirects

    while True:
        if current_url in visited:
            logger.debug(
                "redirect loop detected",
                extra={"url": url, "target": current_url, "hops": len(audit_trail)},
            )
            raise RedirectLoop(current_url, [hop for hop, _ in audit_trail])
        visited.add(current_url)
        deadline.check(current_url)

        with client.stream(
            "GET", current_url, headers=headers, timeout=deadline.request_timeout()
        ) as response:
            status = response.status_code
            audit_trail.append((current_url, status))

            if status not in REDIRECT_STATUS_CODES:
                logger.debug(
                    "redirect following complete",
                    extra={"url": url, "final_status": status, "hops": len(audit_trail)},
                )
                yield response, audit_trail
                return

            _drain(response, deadline, current_url)
            location = response.headers.get("location")
            if not location:
                raise MissingLocationHeader(current_url, status)
            if redirects_left <= 0:
                raise TooManyRedirects(url, max_redirects)
            target_url = _resolve_location(response, location, current_url)

        redirects_left -= 1
        logger.debug(
            "following redirect",
            extra={
                "from": current_url,
                "to": target_url,
                "status": status,
                "hop": max_redirects - redirects_left,
            },
        )
        current_url = target_url


def format_audit_trail(audit_trail: AuditTrail) -> str:
    """Format an audit trail like ``http://a (301) → http://b (200)``."""

    return " → ".join(f"{hop} ({status})" for hop, status in audit_trail)
