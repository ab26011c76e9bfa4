# === NAVMAP v1 ===
# {
#   "module": "InlineImages.engine",
#   "purpose": "Classify raw image references and resolve them into data URIs",
#   "sections": [
#     {"id": "referencekind", "name": "ReferenceKind", "anchor": "class-referencekind", "kind": "class"},
#     {"id": "resolution", "name": "Resolution", "anchor": "class-resolution", "kind": "class"},
#     {"id": "classify-reference", "name": "classify_reference", "anchor": "function-classify-reference", "kind": "function"},
#     {"id": "referenceresolutionengine", "name": "ReferenceResolutionEngine", "anchor": "class-referenceresolutionengine", "kind": "class"}
#   ]
# }
# === /NAVMAP ===

"""Reference resolution engine.

Given the raw text of one ``src`` value or one ``srcset`` item, the engine
decides what it points at and produces a uniform :class:`Resolution`:

1. ``data:`` references are already inlined and are returned untouched.
2. ``http(s)://`` and protocol-relative ``//`` references are fetched through
   the run's :class:`~InlineImages.cache.RemoteCache`, keyed by the raw text,
   so identical references share one transfer.
3. Everything else is a local path: :func:`~InlineImages.paths.resolve_local_path`
   followed by :func:`~InlineImages.local.load_local_file`. Local references are
   not cached.

Successful payloads are classified with
:func:`~InlineImages.core.classify_mime` and encoded as ``data:`` URIs;
failures leave the reference unchanged and carry a
:class:`~InlineImages.core.Failure` for diagnostics.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional, Union
from urllib.parse import urlsplit

from .cache import RemoteCache
from .core import (
    Failure,
    Outcome,
    Payload,
    ReasonCode,
    Success,
    classify_mime,
    encode_data_url,
)
from .errors import HttpStatusError, PayloadTooLarge, RemoteFetchError
from .local import load_local_file
from .network.fetch import RemoteFetcher
from .paths import resolve_local_path

__all__ = (
    "ReferenceKind",
    "Resolution",
    "ReferenceResolutionEngine",
    "classify_reference",
    "normalize_remote_url",
)

LOGGER = logging.getLogger(__name__)

_DATA_PATTERN = re.compile(r"^data:", re.IGNORECASE)
_REMOTE_PATTERN = re.compile(r"^(?:https?:)?//", re.IGNORECASE)


class ReferenceKind(Enum):
    """What a raw reference points at."""

    DATA = "data"
    REMOTE = "remote"
    LOCAL = "local"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class Resolution:
    """Result of resolving one raw reference.

    Attributes:
        raw: Reference text as found in the document.
        value: Encoded ``data:`` URI on success, otherwise ``raw``.
        kind: Classification of the reference.
        outcome: ``Success``/``Failure``, or ``None`` when nothing was attempted.
    """

    raw: str
    value: str
    kind: ReferenceKind
    outcome: Optional[Outcome] = None

    @property
    def changed(self) -> bool:
        return self.outcome is not None and self.outcome.ok

    @property
    def failure(self) -> Optional[Failure]:
        if isinstance(self.outcome, Failure):
            return self.outcome
        return None


def classify_reference(raw: str) -> ReferenceKind:
    """Return ``DATA``, ``REMOTE`` or ``LOCAL`` for ``raw``."""

    if _DATA_PATTERN.match(raw):
        return ReferenceKind.DATA
    if _REMOTE_PATTERN.match(raw):
        return ReferenceKind.REMOTE
    return ReferenceKind.LOCAL


def normalize_remote_url(raw: str) -> str:
    """Give protocol-relative references an explicit ``https:`` scheme."""

    if raw.startswith("//"):
        return f"https:{raw}"
    return raw


def _failure_from_error(exc: RemoteFetchError) -> Failure:
    if isinstance(exc, PayloadTooLarge):
        return Failure(ReasonCode.TOO_LARGE, size=exc.size, error=exc)
    if isinstance(exc, HttpStatusError):
        return Failure(exc.reason, status_code=exc.status, error=exc)
    return Failure(exc.reason, error=exc)


def _encode(payload: Payload) -> Success:
    mime = classify_mime(payload.content_type, payload.name_hint)
    return Success(encode_data_url(payload.data, mime), size=payload.size)


class ReferenceResolutionEngine:
    """Resolve raw image references for one document run.

    Args:
        base_dir: Directory local references are resolved from.
        max_bytes: Byte ceiling shared by local reads and remote downloads.
        fetcher: Remote fetcher; ``None`` leaves remote references untouched.
        cache: Run-scoped remote cache; a fresh one is created when omitted.
    """

    def __init__(
        self,
        base_dir: Union[str, Path],
        max_bytes: int,
        *,
        fetcher: Optional[RemoteFetcher] = None,
        cache: Optional[RemoteCache] = None,
    ) -> None:
        if max_bytes <= 0:
            raise ValueError("max_bytes must be positive")
        self.base_dir = Path(base_dir)
        self.max_bytes = max_bytes
        self.fetcher = fetcher
        self.cache = cache if cache is not None else RemoteCache()

    def resolve(self, raw: str) -> Resolution:
        """Resolve ``raw`` into a :class:`Resolution`; never raises for per-reference failures."""

        kind = classify_reference(raw)
        if kind is ReferenceKind.DATA:
            return Resolution(raw=raw, value=raw, kind=kind)
        if kind is ReferenceKind.REMOTE:
            fetcher = self.fetcher
            if fetcher is None:
                return Resolution(raw=raw, value=raw, kind=ReferenceKind.SKIPPED)
            outcome = self.cache.get_or_fetch(raw, lambda: self._resolve_remote(raw, fetcher))
        else:
            outcome = self._resolve_local(raw)

        if isinstance(outcome, Success):
            return Resolution(raw=raw, value=outcome.encoded, kind=kind, outcome=outcome)
        return Resolution(raw=raw, value=raw, kind=kind, outcome=outcome)

    def _resolve_local(self, raw: str) -> Outcome:
        path = resolve_local_path(raw, self.base_dir)
        loaded = load_local_file(path, self.max_bytes)
        if isinstance(loaded, Failure):
            LOGGER.debug(
                "local reference failed",
                extra={"reference": raw, "path": str(path), "reason": loaded.reason.value},
            )
            return loaded
        return _encode(loaded)

    def _resolve_remote(self, raw: str, fetcher: RemoteFetcher) -> Outcome:
        url = normalize_remote_url(raw)
        try:
            fetched = fetcher.fetch(url)
        except RemoteFetchError as exc:
            failure = _failure_from_error(exc)
            LOGGER.debug(
                "remote reference failed",
                extra={"reference": raw, "url": url, "reason": failure.reason.value},
            )
            return failure

        payload = Payload(
            data=fetched.data,
            content_type=fetched.content_type,
            name_hint=urlsplit(fetched.final_url).path,
        )
        LOGGER.info(
            "fetched remote image",
            extra={"reference": raw, "final_url": fetched.final_url, "bytes": payload.size},
        )
        return _encode(payload)
