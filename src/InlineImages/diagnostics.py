"""Per-run diagnostics: warn-once failure reporting and inlining counters."""

from __future__ import annotations

import logging
import threading
from typing import List, Optional, Set

from .core import Failure

__all__ = ["DiagnosticsSink", "format_warning"]

LOGGER = logging.getLogger(__name__)


def format_warning(key: str, failure: Failure) -> str:
    """Render ``<key> → <explanation>``, e.g. ``src:logo.png → File not found``."""

    return f"{key} → {failure.describe()}"


class DiagnosticsSink:
    """Collect diagnostics for one document run.

    Each distinct key (``"src:<raw>"`` or ``"srcset:<raw>"``) produces at most
    one warning for the lifetime of the sink. The emitted lines are kept in
    :attr:`warnings` in the order they were logged.
    """

    def __init__(self, logger: Optional[logging.Logger] = None) -> None:
        self._logger = logger or LOGGER
        self._lock = threading.Lock()
        self._seen: Set[str] = set()
        self.warnings: List[str] = []
        self.src_inlined = 0
        self.srcset_updated = 0

    def report(self, key: str, failure: Failure) -> bool:
        """Log ``failure`` under ``key`` unless that key was already reported.

        Returns:
            ``True`` when a warning was emitted, ``False`` for a repeated key.
        """

        with self._lock:
            if key in self._seen:
                return False
            self._seen.add(key)
            line = format_warning(key, failure)
            self.warnings.append(line)

        self._logger.warning(
            line,
            extra={
                "reference_key": key,
                "reason": failure.reason.value,
                "status": failure.status_code,
                "size": failure.size,
            },
        )
        return True

    def record_src_inlined(self) -> None:
        with self._lock:
            self.src_inlined += 1

    def record_srcset_updated(self) -> None:
        with self._lock:
            self.srcset_updated += 1

    def summary(self, destination: str) -> str:
        return (
            f"Inlined {self.src_inlined} src image(s), "
            f"updated {self.srcset_updated} srcset(s) → {destination}"
        )
