# === NAVMAP v1 ===
# {
#   "module": "tests.conftest",
#   "purpose": "Shared pytest fixtures for suite",
#   "sections": [
#     {
#       "id": "reset-inline-images-logger",
#       "name": "reset_inline_images_logger",
#       "anchor": "function-reset-inline-images-logger",
#       "kind": "function"
#     }
#   ]
# }
# === /NAVMAP ===

"""
Pytest Configuration

This module configures shared pytest behaviour: ``sys.path`` management for
``src``, the HTTP mocking and on-disk image fixtures, and logger isolation
between tests.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Generator

import pytest

# --- Globals ---

ROOT = Path(__file__).resolve().parent.parent
SRC = ROOT / "src"
for _path in (SRC, ROOT):
    if str(_path) not in sys.path:
        sys.path.insert(0, str(_path))

from tests.fixtures.documents import write_image  # noqa: E402,F401
from tests.fixtures.http_mocking import (  # noqa: E402,F401
    http_mock,
    image_server,
    mock_client,
)

# --- Fixtures ---


@pytest.fixture(autouse=True)
def reset_inline_images_logger() -> Generator[None, None, None]:
    """Undo handlers and propagation changes made by ``setup_logging``."""

    yield
    logger = logging.getLogger("InlineImages")
    for handler in list(logger.handlers):
        if getattr(handler, "_inline_images_managed", False):
            logger.removeHandler(handler)
            if isinstance(handler, logging.FileHandler):
                handler.close()
    logger.setLevel(logging.NOTSET)
    logger.propagate = True

