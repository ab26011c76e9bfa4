# === NAVMAP v1 ===
# {
#   "module": "InlineImages.pipeline",
#   "purpose": "Drive one HTML document through prefetch, ordered rewrite and IO",
#   "sections": [
#     {"id": "inlinereport", "name": "InlineReport", "anchor": "class-inlinereport", "kind": "class"},
#     {"id": "create-executor", "name": "create_executor", "anchor": "function-create-executor", "kind": "function"},
#     {"id": "prefetch-remote", "name": "prefetch_remote", "anchor": "function-prefetch-remote", "kind": "function"},
#     {"id": "inline-html", "name": "inline_html", "anchor": "function-inline-html", "kind": "function"},
#     {"id": "inline-file", "name": "inline_file", "anchor": "function-inline-file", "kind": "function"}
#   ]
# }
# === /NAVMAP ===

"""Document-level orchestration.

A run has two stages:

1. **Prefetch** (only when ``workers > 1``): every distinct remote reference in
   the document is resolved on a thread pool. Results land in the run's
   :class:`~InlineImages.cache.RemoteCache`.
2. **Rewrite**: ``<img>`` tags are visited in document order, ``src`` before
   ``srcset`` and ``srcset`` items left to right. Remote references hit the
   cache populated by the prefetch, so output and diagnostics are the same
   whatever the worker count.

:func:`inline_file` adds the document IO around :func:`inline_html` and maps
fatal conditions onto :class:`~InlineImages.errors.DocumentError` subclasses.
"""

from __future__ import annotations

import logging
import os
from concurrent import futures
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Tuple, Union

import httpx

from .cache import RemoteCache
from .diagnostics import DiagnosticsSink
from .engine import ReferenceKind, ReferenceResolutionEngine, classify_reference
from .errors import DocumentReadError, DocumentWriteError, OutputOverwriteError
from .html import (
    IMG_TAG_PATTERN,
    collect_references,
    find_attribute,
    format_srcset,
    parse_srcset,
    replace_attribute,
)
from .network.client import build_http_client
from .network.fetch import RemoteFetcher
from .settings import InlineConfig

__all__ = [
    "InlineReport",
    "create_executor",
    "inline_file",
    "inline_html",
    "prefetch_remote",
]

LOGGER = logging.getLogger(__name__)

Executor = futures.Executor


@dataclass
class InlineReport:
    """Result of inlining one document."""

    html: str
    src_inlined: int = 0
    srcset_updated: int = 0
    warnings: List[str] = field(default_factory=list)
    destination: str = "stdout"


def create_executor(workers: int) -> Tuple[Optional[Executor], bool]:
    """
    Return a thread pool for remote prefetching.

    Args:
        workers: Desired concurrency level.

    Returns:
        Tuple of (executor, needs_shutdown). ``(None, False)`` when
        ``workers <= 1``; the caller shuts down the returned executor otherwise.
    """
    if workers <= 1:
        return None, False
    return futures.ThreadPoolExecutor(max_workers=workers, thread_name_prefix="inline-fetch"), True


def _remote_references(html: str) -> List[str]:
    seen = set()
    ordered: List[str] = []
    for _site, raw in collect_references(html):
        if raw in seen or classify_reference(raw) is not ReferenceKind.REMOTE:
            continue
        seen.add(raw)
        ordered.append(raw)
    return ordered


def prefetch_remote(html: str, engine: ReferenceResolutionEngine, workers: int) -> int:
    """Resolve distinct remote references of ``html`` concurrently.

    Returns:
        Number of distinct remote references submitted.
    """

    if engine.fetcher is None:
        return 0
    references = _remote_references(html)
    if not references:
        return 0

    executor, needs_shutdown = create_executor(min(workers, len(references)))
    if executor is None:
        return 0

    LOGGER.debug(
        "prefetching remote references",
        extra={"references": len(references), "workers": workers},
    )
    try:
        pending = [executor.submit(engine.resolve, raw) for raw in references]
        for future in futures.as_completed(pending):
            future.result()
    finally:
        if needs_shutdown:
            executor.shutdown(wait=True)
    return len(references)


def _rewrite_tag(tag: str, engine: ReferenceResolutionEngine, diagnostics: DiagnosticsSink) -> str:
    src = find_attribute(tag, "src")
    if src is not None and src.value:
        resolution = engine.resolve(src.value)
        if resolution.changed:
            tag = replace_attribute(tag, src, resolution.value)
            diagnostics.record_src_inlined()
        elif resolution.failure is not None:
            diagnostics.report(f"src:{src.value}", resolution.failure)

    srcset = find_attribute(tag, "srcset")
    if srcset is None:
        return tag

    items = parse_srcset(srcset.value)
    rewritten = []
    changed = False
    for item in items:
        if not item.resolvable:
            rewritten.append(item)
            continue
        resolution = engine.resolve(item.url)
        if resolution.changed:
            rewritten.append(item.with_url(resolution.value))
            changed = True
            continue
        if resolution.failure is not None:
            diagnostics.report(f"srcset:{item.url}", resolution.failure)
        rewritten.append(item)

    if changed:
        tag = replace_attribute(tag, srcset, format_srcset(rewritten))
        diagnostics.record_srcset_updated()
    return tag


def inline_html(
    html: str,
    engine: ReferenceResolutionEngine,
    diagnostics: Optional[DiagnosticsSink] = None,
    *,
    workers: int = 1,
) -> InlineReport:
    """Inline every resolvable ``<img>`` reference of ``html``.

    Args:
        html: Document text.
        engine: Resolution engine for this run.
        diagnostics: Sink receiving warnings and counters; a fresh one by default.
        workers: Prefetch concurrency for remote references.

    Returns:
        :class:`InlineReport` with the rewritten document and counters.
    """

    sink = diagnostics if diagnostics is not None else DiagnosticsSink()
    if workers > 1:
        prefetch_remote(html, engine, workers)

    output = IMG_TAG_PATTERN.sub(lambda match: _rewrite_tag(match.group(0), engine, sink), html)
    return InlineReport(
        html=output,
        src_inlined=sink.src_inlined,
        srcset_updated=sink.srcset_updated,
        warnings=list(sink.warnings),
    )


def _same_path(first: Path, second: Path) -> bool:
    if first.resolve() == second.resolve():
        return True
    try:
        return os.path.samefile(first, second)
    except OSError:
        return False


def read_document(path: Path) -> str:
    try:
        with path.open("r", encoding="utf-8", newline="") as handle:
            return handle.read()
    except (OSError, UnicodeDecodeError) as exc:
        raise DocumentReadError(f"Could not read {path}: {exc}", path=path) from exc


def write_document(path: Path, html: str) -> None:
    try:
        with path.open("w", encoding="utf-8", newline="") as handle:
            handle.write(html)
    except OSError as exc:
        raise DocumentWriteError(f"Could not write {path}: {exc}", path=path) from exc


def inline_file(
    input_path: Union[str, Path],
    output_path: Optional[Union[str, Path]],
    config: Optional[InlineConfig] = None,
    *,
    diagnostics: Optional[DiagnosticsSink] = None,
    transport: Optional[httpx.BaseTransport] = None,
) -> InlineReport:
    """Inline the images of ``input_path`` and write the result.

    When ``output_path`` is ``None`` nothing is written; the caller prints
    ``report.html``.

    Raises:
        OutputOverwriteError: ``output_path`` designates the input document.
        DocumentReadError: The input cannot be read as UTF-8.
        DocumentWriteError: The output cannot be written.
    """

    cfg = config or InlineConfig()
    source = Path(input_path).absolute()
    target = Path(output_path) if output_path is not None else None
    if target is not None and _same_path(source, target):
        raise OutputOverwriteError(
            "Refusing to overwrite input. Choose a different output path.", path=target
        )

    html = read_document(source)
    base_dir = Path(cfg.root).absolute() if cfg.root is not None else source.parent
    sink = diagnostics if diagnostics is not None else DiagnosticsSink()

    client: Optional[httpx.Client] = None
    fetcher: Optional[RemoteFetcher] = None
    if cfg.fetch_remote:
        client = build_http_client(cfg.http, transport=transport)
        fetcher = RemoteFetcher.from_settings(client, cfg.http, max_bytes=cfg.max_bytes)

    cache = RemoteCache()
    engine = ReferenceResolutionEngine(base_dir, cfg.max_bytes, fetcher=fetcher, cache=cache)
    LOGGER.debug(
        "inlining document",
        extra={
            "input": str(source),
            "base_dir": str(base_dir),
            "max_bytes": cfg.max_bytes,
            "fetch_remote": cfg.fetch_remote,
            "config_hash": cfg.config_hash()[:8],
        },
    )
    try:
        report = inline_html(html, engine, sink, workers=cfg.workers)
    finally:
        if client is not None:
            client.close()

    LOGGER.debug(
        "remote cache statistics",
        extra={"entries": len(cache), "hits": cache.hits, "misses": cache.misses},
    )
    if target is not None:
        write_document(target, report.html)
        report.destination = str(target)
    return report
