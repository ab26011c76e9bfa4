"""Network subsystem: HTTP client factory, redirect walking and capped fetches.

Modules:
- client: HTTPX client construction (certifi TLS, pooling, manual redirects)
- policy: HTTP policy constants (redirect statuses, request headers)
- deadline: Wall-clock budget shared across redirect hops
- redirect: Explicit redirect loop with visited set and hop budget
- fetch: :class:`RemoteFetcher`, the size-capped GET used by the engine

Example:
    >>> from InlineImages.network import RemoteFetcher, build_http_client
    >>> client = build_http_client()
    >>> fetcher = RemoteFetcher(client, max_bytes=10 * 1024 * 1024)
    >>> payload = fetcher.fetch("https://example.org/logo.png")
"""

from InlineImages.network.client import build_http_client, default_headers
from InlineImages.network.deadline import Deadline
from InlineImages.network.fetch import RemoteFetcher, RemotePayload
from InlineImages.network.redirect import format_audit_trail, stream_with_redirects

__all__ = [
    "Deadline",
    "RemoteFetcher",
    "RemotePayload",
    "build_http_client",
    "default_headers",
    "format_audit_trail",
    "stream_with_redirects",
]
