"""Map raw local image references onto filesystem paths.

HTML authored on case-insensitive filesystems often references ``Logo.PNG``
when the file on disk is ``logo.png``; references may also be percent-encoded
or carry cache-busting query strings. :func:`resolve_local_path` absorbs those
mismatches and always returns a best-effort absolute path; whether anything
exists there is for :mod:`InlineImages.local` to decide.
"""

from __future__ import annotations

import logging
import os
import re
from pathlib import Path
from typing import Optional, Union
from urllib.parse import urlsplit
from urllib.request import url2pathname

__all__ = (
    "decode_uri",
    "file_url_to_path",
    "resolve_local_path",
    "strip_query_and_fragment",
)

LOGGER = logging.getLogger(__name__)

_ESCAPE_RUN = re.compile(r"(?:%[0-9A-Fa-f]{2})+")
_MALFORMED_ESCAPE = re.compile(r"%(?![0-9A-Fa-f]{2})")
_URI_RESERVED = frozenset(";/?:@&=+$,#")
_SEPARATORS = re.compile(r"[\\/]+")


def decode_uri(text: str) -> str:
    """Percent-decode ``text`` leaving URI-reserved escapes (``%2F``, ``%3F``...) intact.

    Malformed escapes or byte runs that are not valid UTF-8 make the whole
    decode fail, in which case ``text`` is returned unchanged.

    Examples:
        >>> decode_uri("my%20photo.png")
        'my photo.png'
        >>> decode_uri("a%2Fb.png")
        'a%2Fb.png'
        >>> decode_uri("100%.png")
        '100%.png'
    """

    if "%" not in text or _MALFORMED_ESCAPE.search(text):
        return text

    def _decode_run(match: re.Match) -> str:
        run = match.group(0)
        pieces = []
        pending = bytearray()
        for index in range(0, len(run), 3):
            triplet = run[index : index + 3]
            value = int(triplet[1:], 16)
            if value < 0x80 and chr(value) in _URI_RESERVED:
                pieces.append(pending.decode("utf-8"))
                pending.clear()
                pieces.append(triplet)
            else:
                pending.append(value)
        pieces.append(pending.decode("utf-8"))
        return "".join(pieces)

    try:
        return _ESCAPE_RUN.sub(_decode_run, text)
    except UnicodeDecodeError:
        return text


def strip_query_and_fragment(text: str) -> str:
    """Truncate ``text`` at the first ``?`` or ``#``, whichever comes first."""

    cut = len(text)
    for delimiter in ("?", "#"):
        index = text.find(delimiter)
        if index != -1 and index < cut:
            cut = index
    return text[:cut]


def file_url_to_path(raw: str) -> Optional[Path]:
    """Convert a ``file://`` URL to a local path, or ``None`` if it cannot be decoded."""

    try:
        parts = urlsplit(raw)
    except ValueError:
        return None
    if parts.scheme.lower() != "file":
        return None
    if parts.netloc not in ("", "localhost"):
        return None
    if not parts.path or "%2f" in parts.path.lower():
        return None
    return Path(url2pathname(parts.path))


def _candidate_path(reference: str, base_dir: Path) -> Path:
    return Path(os.path.abspath(os.path.join(base_dir, reference)))


def _exists(path: Path) -> bool:
    try:
        return path.exists()
    except (OSError, ValueError):
        return False


def _is_dir(path: Path) -> bool:
    try:
        return path.is_dir()
    except (OSError, ValueError):
        return False


def _walk_case_insensitive(reference: str, base_dir: Path, candidate: Path) -> Path:
    # Absolute references are walked from base_dir too, so "/img/a.png" is site-root relative.
    normalized = os.path.normpath(reference)
    if os.path.isabs(normalized):
        normalized = normalized[len(Path(normalized).anchor):]
    current = Path(os.path.abspath(base_dir))

    for part in _SEPARATORS.split(normalized):
        if not part or part == ".":
            continue
        if not _is_dir(current):
            return candidate
        if part == "..":
            current = current.parent
            continue
        try:
            entries = os.listdir(current)
        except (OSError, ValueError):
            return candidate
        if part in entries:
            current = current / part
            continue
        folded = part.casefold()
        matched = next((entry for entry in sorted(entries) if entry.casefold() == folded), None)
        current = current / (matched or part)
    return current


def resolve_local_path(raw: str, base_dir: Union[str, Path]) -> Path:
    """Resolve ``raw`` against ``base_dir`` tolerating encoding and case mismatches.

    Steps:
      1. ``file://`` URLs are decoded directly when possible.
      2. Percent-escapes are decoded (see :func:`decode_uri`).
      3. ``?query`` and ``#fragment`` suffixes are stripped.
      4. If the path exists exactly as written, it is returned.
      5. Otherwise each segment is matched case-insensitively against the
         directory listing, walking from ``base_dir`` even for absolute
         references and falling back to the segment text verbatim.

    Filesystem checks that fail, for example on over-long names or NUL bytes,
    count as "missing", so this function never raises.

    Args:
        raw: Reference text as it appears in the attribute.
        base_dir: Directory relative references are resolved from.

    Returns:
        Absolute path that may or may not exist.
    """

    base_dir = Path(base_dir)
    if raw[:7].lower() == "file://":
        decoded_path = file_url_to_path(raw)
        if decoded_path is not None:
            return decoded_path

    reference = strip_query_and_fragment(decode_uri(raw))
    candidate = _candidate_path(reference, base_dir)
    if _exists(candidate):
        return candidate

    resolved = _walk_case_insensitive(reference, base_dir, candidate)
    if resolved != candidate:
        LOGGER.debug(
            "case-insensitive path fallback",
            extra={"reference": raw, "candidate": str(candidate), "resolved": str(resolved)},
        )
    return resolved
