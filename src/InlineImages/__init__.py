# === NAVMAP v1 ===
# {
#   "module": "InlineImages",
#   "purpose": "Package initialization for InlineImages",
#   "sections": [
#     {
#       "id": "getattr",
#       "name": "__getattr__",
#       "anchor": "function-getattr",
#       "kind": "function"
#     },
#     {
#       "id": "dir",
#       "name": "__dir__",
#       "anchor": "function-dir",
#       "kind": "function"
#     }
#   ]
# }
# === /NAVMAP ===

"""Public API for inlining HTML image references as ``data:`` URIs.

The facade exposes the resolution engine, the document pipeline and the
configuration loader. Exports are imported lazily so ``import InlineImages``
does not pull in httpx or pydantic until they are needed.
"""

from __future__ import annotations

from importlib import import_module
from typing import TYPE_CHECKING, Any, Dict, Tuple

__version__ = "0.1.0"

_EXPORT_MAP: Dict[str, Tuple[str, str]] = {
    "DiagnosticsSink": ("InlineImages.diagnostics", "DiagnosticsSink"),
    "Failure": ("InlineImages.core", "Failure"),
    "InlineConfig": ("InlineImages.settings", "InlineConfig"),
    "InlineReport": ("InlineImages.pipeline", "InlineReport"),
    "ReasonCode": ("InlineImages.core", "ReasonCode"),
    "ReferenceKind": ("InlineImages.engine", "ReferenceKind"),
    "ReferenceResolutionEngine": ("InlineImages.engine", "ReferenceResolutionEngine"),
    "RemoteCache": ("InlineImages.cache", "RemoteCache"),
    "Resolution": ("InlineImages.engine", "Resolution"),
    "Success": ("InlineImages.core", "Success"),
    "classify_mime": ("InlineImages.core", "classify_mime"),
    "encode_data_url": ("InlineImages.core", "encode_data_url"),
    "inline_file": ("InlineImages.pipeline", "inline_file"),
    "inline_html": ("InlineImages.pipeline", "inline_html"),
    "load_config": ("InlineImages.settings", "load_config"),
    "resolve_local_path": ("InlineImages.paths", "resolve_local_path"),
}

__all__ = ["__version__", *sorted(_EXPORT_MAP)]

if TYPE_CHECKING:  # pragma: no cover - import for static analysis only
    from .cache import RemoteCache
    from .core import Failure, ReasonCode, Success, classify_mime, encode_data_url
    from .diagnostics import DiagnosticsSink
    from .engine import ReferenceKind, ReferenceResolutionEngine, Resolution
    from .paths import resolve_local_path
    from .pipeline import InlineReport, inline_file, inline_html
    from .settings import InlineConfig, load_config


def __getattr__(name: str) -> Any:
    """Lazily import public exports on first access."""

    target = _EXPORT_MAP.get(name)
    if target is None:
        raise AttributeError(f"module '{__name__}' has no attribute '{name}'")
    module_name, attribute = target
    value = getattr(import_module(module_name), attribute)
    globals()[name] = value
    return value


def __dir__() -> list[str]:
    """Expose lazily-populated attributes in ``dir()`` results."""

    return sorted(set(globals()) | set(_EXPORT_MAP))
