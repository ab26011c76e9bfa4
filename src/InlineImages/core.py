# === NAVMAP v1 ===
# {
#   "module": "InlineImages.core",
#   "purpose": "Outcome types, reason taxonomy, MIME classification and data URL encoding",
#   "sections": [
#     {"id": "reasoncode", "name": "ReasonCode", "anchor": "class-reasoncode", "kind": "class"},
#     {"id": "payload", "name": "Payload", "anchor": "class-payload", "kind": "class"},
#     {"id": "success", "name": "Success", "anchor": "class-success", "kind": "class"},
#     {"id": "failure", "name": "Failure", "anchor": "class-failure", "kind": "class"},
#     {"id": "classify-mime", "name": "classify_mime", "anchor": "function-classify-mime", "kind": "function"},
#     {"id": "encode-data-url", "name": "encode_data_url", "anchor": "function-encode-data-url", "kind": "function"},
#     {"id": "parse-size", "name": "parse_size", "anchor": "function-parse-size", "kind": "function"}
#   ]
# }
# === /NAVMAP ===

"""Core primitives shared by the inlining engine.

Responsibilities
----------------
- Define the canonical :class:`ReasonCode` taxonomy and the tagged
  :class:`Success` / :class:`Failure` outcomes every resolution produces.
- Carry fetched or loaded bytes in a :class:`Payload` until they are encoded.
- Classify payloads into MIME types from a declared ``Content-Type`` and/or a
  filename hint, and render the final ``data:`` URI.

Design Notes
------------
- Everything here is side-effect free so the loaders, the fetcher and the
  engine can be exercised in isolation.
- Outcomes are frozen dataclasses; the remote cache hands the same instance to
  every requester of a URL.
"""

from __future__ import annotations

import base64
import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

__all__ = (
    "ReasonCode",
    "Payload",
    "Success",
    "Failure",
    "Outcome",
    "EXTENSION_MIME_TYPES",
    "DEFAULT_MIME_TYPE",
    "DEFAULT_MAX_BYTES",
    "classify_mime",
    "encode_data_url",
    "parse_size",
)

DEFAULT_MAX_BYTES = 10 * 1024 * 1024
DEFAULT_MIME_TYPE = "application/octet-stream"

EXTENSION_MIME_TYPES = {
    "png": "image/png",
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "gif": "image/gif",
    "webp": "image/webp",
    "bmp": "image/bmp",
    "ico": "image/x-icon",
    "svg": "image/svg+xml",
    "avif": "image/avif",
}

_IMAGE_CONTENT_TYPE = re.compile(r"^\s*(image/[^\s;]+)\s*(?:;.*)?$", re.IGNORECASE | re.DOTALL)

_SIZE_SUFFIXES = {
    "b": 1,
    "kb": 1024,
    "mb": 1024**2,
    "gb": 1024**3,
}


class ReasonCode(Enum):
    """Machine-readable reason taxonomy for failed resolutions."""

    NOT_FOUND = "not_found"
    NOT_FILE = "not_file"
    TOO_LARGE = "too_large"
    READ_ERROR = "read_error"
    REMOTE_TIMEOUT = "remote_timeout"
    REMOTE_REDIRECT_LOOP = "remote_redirect_loop"
    REMOTE_REDIRECT_NO_LOCATION = "remote_redirect_no_location"
    REMOTE_TOO_MANY_REDIRECTS = "remote_too_many_redirects"
    REMOTE_HTTP_ERROR = "remote_http_error"
    REMOTE_ERROR = "remote_error"


@dataclass(frozen=True)
class Payload:
    """Bytes produced by a loader or the fetcher, awaiting encoding.

    Attributes:
        data: Raw image bytes; trusted as-is.
        content_type: ``Content-Type`` declared by a remote server, if any.
        name_hint: Path or URL path whose extension drives the MIME fallback.
    """

    data: bytes
    content_type: Optional[str] = None
    name_hint: Optional[str] = None

    @property
    def size(self) -> int:
        return len(self.data)


@dataclass(frozen=True)
class Success:
    """A reference that was resolved and encoded."""

    encoded: str
    size: int = 0

    ok = True


@dataclass(frozen=True)
class Failure:
    """A reference that could not be inlined.

    Attributes:
        reason: Taxonomy code describing the failure.
        size: Actual or declared byte count for ``too_large`` failures.
        status_code: HTTP status for ``remote_http_error`` failures.
        error: Underlying exception for I/O and transport failures.
    """

    reason: ReasonCode
    size: Optional[int] = None
    status_code: Optional[int] = None
    error: Optional[BaseException] = None

    ok = False

    def describe(self) -> str:
        """Return the human-readable explanation used in diagnostics."""

        reason = self.reason
        if reason is ReasonCode.NOT_FOUND:
            return "File not found"
        if reason is ReasonCode.NOT_FILE:
            return "Not a file"
        if reason is ReasonCode.TOO_LARGE:
            return f"File too large ({self.size} bytes)"
        if reason is ReasonCode.READ_ERROR:
            return f"Read error: {_error_message(self.error)}"
        if reason is ReasonCode.REMOTE_TIMEOUT:
            return "Request timed out"
        if reason is ReasonCode.REMOTE_REDIRECT_LOOP:
            return "Redirect loop"
        if reason is ReasonCode.REMOTE_REDIRECT_NO_LOCATION:
            return "Redirect without Location header"
        if reason is ReasonCode.REMOTE_TOO_MANY_REDIRECTS:
            return "Too many redirects"
        if reason is ReasonCode.REMOTE_HTTP_ERROR:
            return f"HTTP {self.status_code}"
        return f"Request failed: {_error_message(self.error)}"


Outcome = Union[Success, Failure]


def _error_message(error: Optional[BaseException]) -> str:
    if error is None:
        return "unknown"
    message = str(error)
    return message or type(error).__name__


def classify_mime(content_type: Optional[str], name_hint: Optional[str]) -> str:
    """Derive the MIME type for a payload.

    A declared ``image/*`` content type wins and is returned verbatim without
    its parameters. Otherwise the extension of ``name_hint`` (the text after
    its last ``.``, or the whole hint when it has none) is looked up in
    :data:`EXTENSION_MIME_TYPES`. Anything else is ``application/octet-stream``.

    Examples:
        >>> classify_mime("image/webp; charset=binary", "photo.png")
        'image/webp'
        >>> classify_mime(None, "banner.GIF")
        'image/gif'
        >>> classify_mime("text/html", "blob")
        'application/octet-stream'
    """

    if content_type:
        match = _IMAGE_CONTENT_TYPE.match(content_type)
        if match:
            return match.group(1)
    if name_hint:
        extension = name_hint.rsplit(".", 1)[-1].lower()
        mime = EXTENSION_MIME_TYPES.get(extension)
        if mime:
            return mime
    return DEFAULT_MIME_TYPE


def encode_data_url(data: bytes, mime: str) -> str:
    """Return ``data:<mime>;base64,<payload>`` for ``data``."""

    payload = base64.b64encode(data).decode("ascii")
    return f"data:{mime};base64,{payload}"


def parse_size(value: str) -> int:
    """Parse human-friendly sizes such as ``512kb`` or ``10MB`` into bytes."""

    text = value.strip().lower().replace(" ", "")
    match = re.match(r"^(\d+(?:\.\d+)?)([a-z]*)$", text)
    if not match:
        raise ValueError(f"Invalid size value: {value!r}")
    number, suffix = match.groups()
    multiplier = _SIZE_SUFFIXES.get(suffix or "b")
    if multiplier is None:
        raise ValueError(f"Unknown size suffix in {value!r}")
    return int(float(number) * multiplier)
