"""
File tab loading.

load_file() never raises: OS errors come back as a FileContent carrying the
error text, and oversized files come back as a placeholder instead of their
contents.
"""
from __future__ import annotations

import logging
import os

import aiofiles

from .config import MAX_FILE_SIZE
from .messages import FileContent

logger = logging.getLogger(__name__)


def format_file_size(size: int) -> str:
    if size < 1024:
        return f"{size} B"
    if size < 1024 * 1024:
        return f"{size // 1024} KB"
    return f"{size // (1024 * 1024)} MB"


def file_mtime(path: str) -> float | None:
    """Modification time of path, or None if it cannot be stat'ed."""
    try:
        return os.stat(path).st_mtime
    except OSError:
        return None


async def load_file(path: str, max_size: int = MAX_FILE_SIZE) -> FileContent:
    try:
        info = os.stat(path)
    except OSError as e:
        logger.warning("Cannot stat %s: %s", path, e)
        return FileContent(path=path, error=str(e))

    if info.st_size > max_size:
        return FileContent(
            path=path,
            content=f"(File too large to display: {format_file_size(info.st_size)})",
            mtime=info.st_mtime,
        )

    try:
        async with aiofiles.open(path, "r", encoding="utf-8", errors="replace") as f:
            content = await f.read()
    except OSError as e:
        logger.warning("Cannot read %s: %s", path, e)
        return FileContent(path=path, error=str(e), mtime=info.st_mtime)
    return FileContent(path=path, content=content, mtime=info.st_mtime)
