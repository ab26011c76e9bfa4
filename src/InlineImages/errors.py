"""Exception hierarchy shared across configuration, document IO and fetching.

Per-reference failures never abort a run: the fetcher raises the
:class:`RemoteFetchError` family and the engine folds those into
:class:`~InlineImages.core.Failure` outcomes. Document-level failures
(:class:`DocumentError`) are fatal and carry the process exit code the CLI
should use.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Sequence

from .core import ReasonCode

__all__ = [
    "InlineImagesError",
    "ConfigError",
    "DocumentError",
    "DocumentReadError",
    "OutputOverwriteError",
    "DocumentWriteError",
    "RemoteFetchError",
    "RedirectLoop",
    "MissingLocationHeader",
    "TooManyRedirects",
    "HttpStatusError",
    "PayloadTooLarge",
    "RemoteTimeout",
    "RemoteTransportError",
]


class InlineImagesError(RuntimeError):
    """Base exception for the image inliner."""


class ConfigError(InlineImagesError):
    """Raised when configuration files, environment overrides or CLI values are invalid."""

    exit_code = 1


class DocumentError(InlineImagesError):
    """Raised when the input or output document cannot be accessed."""

    exit_code = 1

    def __init__(self, message: str, *, path: Optional[Path] = None) -> None:
        super().__init__(message)
        self.path = path


class DocumentReadError(DocumentError):
    """Raised when the input document cannot be read."""

    exit_code = 2


class OutputOverwriteError(DocumentError):
    """Raised when the output path would overwrite the input document."""

    exit_code = 3


class DocumentWriteError(DocumentError):
    """Raised when the rewritten document cannot be written."""

    exit_code = 4


class RemoteFetchError(InlineImagesError):
    """Base exception for a failed remote fetch; ``reason`` maps it to a taxonomy code."""

    reason = ReasonCode.REMOTE_ERROR

    def __init__(self, message: str, *, url: str) -> None:
        super().__init__(message)
        self.url = url


class RedirectLoop(RemoteFetchError):
    """A redirect chain revisited a URL it had already requested."""

    reason = ReasonCode.REMOTE_REDIRECT_LOOP

    def __init__(self, url: str, chain: Sequence[str]) -> None:
        self.chain = list(chain)
        super().__init__(f"Redirect loop detected: {' → '.join([*self.chain, url])}", url=url)


class MissingLocationHeader(RemoteFetchError):
    """A redirect response carried no ``Location`` header."""

    reason = ReasonCode.REMOTE_REDIRECT_NO_LOCATION

    def __init__(self, url: str, status: int) -> None:
        self.status = status
        super().__init__(
            f"Redirect response from {url} (status {status}) missing Location header", url=url
        )


class TooManyRedirects(RemoteFetchError):
    """The redirect budget was exhausted before a terminal response."""

    reason = ReasonCode.REMOTE_TOO_MANY_REDIRECTS

    def __init__(self, url: str, max_redirects: int) -> None:
        self.max_redirects = max_redirects
        super().__init__(f"Redirect chain from {url} exceeded {max_redirects} hops", url=url)


class HttpStatusError(RemoteFetchError):
    """The terminal response status was outside ``[200, 300)``."""

    reason = ReasonCode.REMOTE_HTTP_ERROR

    def __init__(self, url: str, status: int) -> None:
        self.status = status
        super().__init__(f"http_{status} for {url}", url=url)


class PayloadTooLarge(RemoteFetchError):
    """The declared or streamed body exceeded the byte budget."""

    reason = ReasonCode.TOO_LARGE

    def __init__(self, url: str, size: int, limit: int) -> None:
        self.size = size
        self.limit = limit
        super().__init__(f"Payload from {url} exceeds {limit} bytes (saw {size})", url=url)


class RemoteTimeout(RemoteFetchError):
    """The fetch did not finish within its wall-clock budget."""

    reason = ReasonCode.REMOTE_TIMEOUT


class RemoteTransportError(RemoteFetchError):
    """Any other transport-level failure, including unparseable URLs."""

    reason = ReasonCode.REMOTE_ERROR
