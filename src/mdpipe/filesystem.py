"""Filesystem collaborator used by ``DocumentService.load_and_split``."""

from __future__ import annotations

import asyncio
import errno
import logging
from abc import ABC, abstractmethod
from pathlib import Path

__all__ = ["MAX_FILE_SIZE", "BaseFileSystem", "LocalFileSystem"]

logger = logging.getLogger(__name__)

MAX_FILE_SIZE: int = 50 * 1024 * 1024  # 50 MB


class BaseFileSystem(ABC):
    """Reads document text. Failures surface as ``OSError`` subclasses."""

    @abstractmethod
    async def read_text(self, path: str | Path) -> str:
        """Return the full text of ``path``.

        Raises:
            OSError: If the file is missing or cannot be read.
        """


class LocalFileSystem(BaseFileSystem):
    """Reads UTF-8 files from local disk in a worker thread."""

    async def read_text(self, path: str | Path) -> str:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, _read_text, Path(path))


def _read_text(path: Path) -> str:
    file_size = path.stat().st_size
    if file_size > MAX_FILE_SIZE:
        raise OSError(
            errno.EFBIG,
            f"{path.name} ({file_size} bytes) exceeds maximum size ({MAX_FILE_SIZE} bytes)",
            str(path),
        )

    try:
        return path.read_text(encoding="utf-8")
    except UnicodeDecodeError:
        logger.warning("UTF-8 decode failed for %s, retrying with replacement", path.name)
        return path.read_bytes().decode("utf-8", errors="replace")
