"""
Helper utilities for spotifydl-core
File sizes, directory handling and scoped temporary files
"""

import uuid
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Union

from .logger import get_logger


logger = get_logger(__name__)


def format_file_size(size_bytes: int) -> str:
    """
    Format file size in human-readable format

    Args:
        size_bytes: Size in bytes

    Returns:
        Formatted size string
    """
    if size_bytes < 1024:
        return f"{size_bytes} B"

    size = float(size_bytes)
    for unit in ('KB', 'MB', 'GB'):
        size /= 1024
        if size < 1024 or unit == 'GB':
            return f"{size:.1f} {unit}"


def ensure_directory(path: Union[str, Path]) -> Path:
    """
    Ensure directory exists, create if necessary

    Args:
        path: Directory path

    Returns:
        Path object
    """
    path = Path(path)
    path.mkdir(parents=True, exist_ok=True)
    return path


def remove_file_quietly(path: Union[str, Path]) -> bool:
    """
    Best-effort file removal

    A missing file counts as removed. Any other failure is logged as a
    warning and reported through the return value.

    Returns:
        True if the file no longer exists
    """
    try:
        Path(path).unlink(missing_ok=True)
        return True
    except OSError as e:
        logger.warning(f"Failed to remove temporary file {path}: {e}")
        return False


@contextmanager
def temporary_path(directory: Union[str, Path], suffix: str = ".mp3") -> Iterator[Path]:
    """
    Reserve a unique file path inside directory and remove it on exit

    The file itself is not created; whatever ends up at the path is deleted
    when the block exits, whether it exits normally or with an exception.

    Args:
        directory: Parent directory, created if missing
        suffix: File extension including the dot

    Yields:
        Path for the temporary file
    """
    path = ensure_directory(directory) / f"{uuid.uuid4().hex}{suffix}"
    try:
        yield path
    finally:
        remove_file_quietly(path)
