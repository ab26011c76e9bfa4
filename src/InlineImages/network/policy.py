"""HTTP policy constants for remote image fetches.

The fetcher issues plain GETs, follows redirects by hand, and asks servers not
to compress bodies so the streamed byte count matches the size ceiling.
"""

# --- Redirects ----------------------------------------------------------------

FOLLOW_REDIRECTS = False

REDIRECT_STATUS_CODES = frozenset({301, 302, 303, 307, 308})

# --- Request headers ----------------------------------------------------------

ACCEPT = "*/*"

# Identity encoding keeps Content-Length and streamed length comparable.
ACCEPT_ENCODING = "identity"

# --- Connection pooling -------------------------------------------------------

MAX_KEEPALIVE_CONNECTIONS = 5

KEEPALIVE_EXPIRY = 5.0

# --- Timeouts -----------------------------------------------------------------

# Floor used when handing the remaining wall-clock budget to httpx.
MIN_REQUEST_TIMEOUT = 0.001


__all__ = [
    "FOLLOW_REDIRECTS",
    "REDIRECT_STATUS_CODES",
    "ACCEPT",
    "ACCEPT_ENCODING",
    "MAX_KEEPALIVE_CONNECTIONS",
    "KEEPALIVE_EXPIRY",
    "MIN_REQUEST_TIMEOUT",
]
