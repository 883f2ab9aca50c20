"""Shared setup for the maintenance scripts."""

from __future__ import annotations

import logging
import sys
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator

SRC_DIR = Path(__file__).resolve().parents[1] / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from cms_backend.config import PROJECT_ROOT, get_settings, resolve_under  # noqa: E402
from cms_backend.repository import ContentRepository  # noqa: E402


def configure_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


@asynccontextmanager
async def open_repository() -> AsyncIterator[ContentRepository]:
    """Open the configured database, creating tables when missing."""

    settings = get_settings()
    repository = ContentRepository(resolve_under(PROJECT_ROOT, settings.database_path))
    await repository.initialize()
    try:
        yield repository
    finally:
        await repository.close()
