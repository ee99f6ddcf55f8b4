"""
File system utilities for jdkkit.

This module provides:
- Atomic writes (temp file + rename) for persisted state
- Installation content hashing for tamper detection
- Path utilities
"""

import hashlib
import logging
import tempfile
from pathlib import Path
from typing import Optional, Union

logger = logging.getLogger(__name__)


def is_relative_to(path: Path, parent: Path) -> bool:
    """
    Check if path is relative to (under) parent directory.

    Args:
        path: Path to check
        parent: Parent directory

    Returns:
        True if path is under parent directory

    Example:
        >>> is_relative_to(Path("/home/user/jdks/jdk_x64"), Path("/home/user"))
        True
    """
    try:
        path.relative_to(parent)
        return True
    except ValueError:
        return False


def atomic_write(
    file_path: Union[str, Path], content: Union[str, bytes], encoding: str = "utf-8"
) -> None:
    """
    Write file atomically using temp file + rename.

    This ensures the file is never in a partially-written state.
    If the write fails, the original file (if any) remains unchanged.

    Args:
        file_path: Path to write to
        content: Content to write (string or bytes)
        encoding: Text encoding (used only for string content)

    Example:
        >>> atomic_write('installations.json', '[]')
    """
    file_path = Path(file_path)
    file_path.parent.mkdir(parents=True, exist_ok=True)

    # Temp file in the same directory keeps the rename on one filesystem
    temp_fd, temp_path_str = tempfile.mkstemp(
        dir=file_path.parent, prefix=f".{file_path.name}.", suffix=".tmp"
    )
    temp_path = Path(temp_path_str)

    try:
        if isinstance(content, str):
            with open(temp_fd, "w", encoding=encoding) as f:
                f.write(content)
        else:
            with open(temp_fd, "wb") as f:
                f.write(content)

        temp_path.replace(file_path)

    except Exception:
        try:
            temp_path.unlink(missing_ok=True)
        except OSError:
            pass
        raise


def hash_installation(root: Union[str, Path], chunk_size: int = 8192) -> Optional[str]:
    """
    Compute a SHA-256 digest over every regular file of an installation.

    Files are visited in sorted relative-path order so the digest is stable.
    Only file contents contribute to the digest.

    Args:
        root: Installation root directory
        chunk_size: Number of bytes to read at once

    Returns:
        Hex digest, or None if hashing failed

    Example:
        >>> hash_installation('/home/user/.jdkkit/jdks/jdk_x64')
        'a3d5f6e8...'
    """
    root = Path(root)
    hasher = hashlib.sha256()

    try:
        files = sorted(
            (p for p in root.rglob("*") if p.is_file() and not p.is_symlink()),
            key=lambda p: p.relative_to(root).as_posix(),
        )
        for file in files:
            with open(file, "rb") as f:
                while chunk := f.read(chunk_size):
                    hasher.update(chunk)
    except OSError as e:
        logger.error(f"Failed to hash java installation {root}: {e}")
        return None

    return hasher.hexdigest()


__all__ = [
    "is_relative_to",
    "atomic_write",
    "hash_installation",
]
