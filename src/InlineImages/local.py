"""Read resolved local image paths under a byte ceiling."""

from __future__ import annotations

import errno
import logging
import os
import stat
from pathlib import Path
from typing import Union

from .core import Failure, Payload, ReasonCode

__all__ = ("load_local_file",)

LOGGER = logging.getLogger(__name__)


def load_local_file(path: Path, max_bytes: int) -> Union[Payload, Failure]:
    """Load ``path`` into memory if it is a regular file no larger than ``max_bytes``.

    The size is checked from ``stat`` before any read. Files that grow between
    the check and the read are still caught: at most ``max_bytes + 1`` bytes
    are ever read.

    Paths the OS cannot stat because of an embedded NUL or an over-long name
    are reported as ``not_found``.

    Returns:
        A :class:`Payload` whose ``name_hint`` is ``path``, or a :class:`Failure`
        with one of ``not_found``, ``not_file``, ``too_large`` or ``read_error``.
    """

    try:
        info = os.stat(path)
    except (FileNotFoundError, NotADirectoryError, ValueError):
        return Failure(ReasonCode.NOT_FOUND)
    except OSError as exc:
        if exc.errno == errno.ENAMETOOLONG:
            return Failure(ReasonCode.NOT_FOUND)
        return Failure(ReasonCode.READ_ERROR, error=exc)

    if not stat.S_ISREG(info.st_mode):
        return Failure(ReasonCode.NOT_FILE)
    if info.st_size > max_bytes:
        return Failure(ReasonCode.TOO_LARGE, size=info.st_size)

    try:
        with path.open("rb") as handle:
            data = handle.read(max_bytes + 1)
    except (OSError, ValueError) as exc:
        LOGGER.debug("local read failed", extra={"path": str(path), "error": str(exc)})
        return Failure(ReasonCode.READ_ERROR, error=exc)

    if len(data) > max_bytes:
        try:
            size = os.stat(path).st_size
        except (OSError, ValueError):
            size = len(data)
        return Failure(ReasonCode.TOO_LARGE, size=max(size, len(data)))

    return Payload(data=data, name_hint=str(path))
