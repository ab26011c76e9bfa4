# === NAVMAP v1 ===
# {
#   "module": "InlineImages.network.client",
#   "purpose": "HTTPX client construction for remote image fetches",
#   "sections": [
#     {"id": "helpers", "name": "Client construction helpers", "anchor": "HELP", "kind": "helpers"},
#     {"id": "api", "name": "Public API", "anchor": "API", "kind": "api"}
#   ]
# }
# === /NAVMAP ===

"""HTTPX client factory for one inlining run.

The client is owned by the run that built it (no process-wide singleton) and
never follows redirects itself; :mod:`InlineImages.network.redirect` walks
redirect chains explicitly so loops and budget exhaustion are observable.
"""

from __future__ import annotations

import logging
import ssl
from typing import Optional

import certifi
import httpx

from ..settings import HttpSettings
from .policy import (
    ACCEPT,
    ACCEPT_ENCODING,
    FOLLOW_REDIRECTS,
    KEEPALIVE_EXPIRY,
    MAX_KEEPALIVE_CONNECTIONS,
)

__all__ = ["build_http_client", "default_headers"]

LOGGER = logging.getLogger(__name__)

# --- Client construction helpers ----------------------------------------------


def _build_ssl_context() -> ssl.SSLContext:
    context = ssl.create_default_context()
    context.load_verify_locations(certifi.where())
    return context


def _limits_for(settings: HttpSettings) -> httpx.Limits:
    return httpx.Limits(
        max_connections=settings.max_connections,
        max_keepalive_connections=min(MAX_KEEPALIVE_CONNECTIONS, settings.max_connections),
        keepalive_expiry=KEEPALIVE_EXPIRY,
    )


# --- Public API ----------------------------------------------------------------


def default_headers(settings: HttpSettings) -> dict[str, str]:
    """Headers sent with every image request."""

    return {
        "User-Agent": settings.user_agent,
        "Accept": ACCEPT,
        "Accept-Encoding": ACCEPT_ENCODING,
    }


def build_http_client(
    settings: Optional[HttpSettings] = None,
    *,
    transport: Optional[httpx.BaseTransport] = None,
) -> httpx.Client:
    """Return an ``httpx.Client`` configured from ``settings``.

    Args:
        settings: HTTP settings; defaults apply when omitted.
        transport: Optional transport override (``httpx.MockTransport`` in tests).

    Returns:
        A client with manual redirects, pooled connections and the default
        image request headers. The caller closes it.
    """

    cfg = settings or HttpSettings()
    verify: "ssl.SSLContext | bool" = _build_ssl_context() if cfg.verify_tls else False
    client = httpx.Client(
        transport=transport,
        timeout=httpx.Timeout(cfg.timeout_s),
        limits=_limits_for(cfg),
        verify=verify,
        trust_env=True,
        follow_redirects=FOLLOW_REDIRECTS,
        headers=default_headers(cfg),
    )
    LOGGER.debug(
        "HTTP client created",
        extra={
            "user_agent": cfg.user_agent,
            "timeout_s": cfg.timeout_s,
            "max_connections": cfg.max_connections,
            "mock_transport": transport is not None,
        },
    )
    return client
