"""
Concurrent access control for jdkkit.

This module provides file-based locking so that several processes sharing
one managed base directory do not corrupt the installation manifest or
extract into the same target directory at the same time.

Usage:
    from jdkkit.core.locking import LockManager

    lock_manager = LockManager(base_dir / ".locks")
    with lock_manager.manifest_lock(timeout=300):
        # Read, modify and save the manifest
        pass
"""

import logging
from contextlib import contextmanager
from pathlib import Path

from filelock import FileLock, Timeout

from jdkkit.core.exceptions import LockTimeout

logger = logging.getLogger(__name__)

LOCK_DIR_NAME = ".locks"


class LockManager:
    """
    Manages locks for jdkkit resources.

    Uses file-based locking with the `filelock` library for cross-platform
    compatibility and automatic release on process death.

    Attributes:
        lock_dir: Directory where lock files are stored
    """

    def __init__(self, lock_dir: Path):
        """
        Initialize lock manager.

        Args:
            lock_dir: Directory for lock files (created if missing)
        """
        self.lock_dir = Path(lock_dir)
        self.lock_dir.mkdir(parents=True, exist_ok=True)

    @classmethod
    def for_base_dir(cls, base_dir: Path) -> "LockManager":
        """Create a lock manager storing its locks inside a managed base directory."""
        return cls(Path(base_dir) / LOCK_DIR_NAME)

    @contextmanager
    def manifest_lock(self, timeout: int = 300):
        """
        Acquire the manifest lock for one read-modify-write cycle.

        The lock is held for the whole provision attempt, including the
        download, so the default timeout is generous.

        Args:
            timeout: Maximum wait time in seconds

        Raises:
            LockTimeout: If lock can't be acquired within timeout
        """
        with self._acquire(
            self.lock_dir / "manifest.lock",
            timeout,
            "Another process may be provisioning a JDK.",
        ):
            yield

    @contextmanager
    def install_lock(self, name: str, timeout: int = 300):
        """
        Acquire lock for creating one installation directory.

        Args:
            name: Installation directory name (e.g., 'jdk_x64')
            timeout: Maximum wait time in seconds

        Raises:
            LockTimeout: If lock can't be acquired within timeout
        """
        # Sanitize name to create valid filename
        safe_name = name.replace("/", "-").replace("\\", "-").replace(":", "-")
        with self._acquire(
            self.lock_dir / f"install-{safe_name}.lock",
            timeout,
            f"Another process may be extracting {name}.",
        ):
            yield

    @contextmanager
    def _acquire(self, lock_path: Path, timeout: int, hint: str):
        lock = FileLock(lock_path, timeout=timeout)

        try:
            lock.acquire()
        except Timeout as e:
            logger.error(f"Could not acquire lock {lock_path.name} after {timeout}s. {hint}")
            raise LockTimeout(
                f"Could not acquire lock {lock_path.name} after {timeout}s. {hint}"
            ) from e

        logger.debug(f"Acquired lock: {lock_path}")
        try:
            yield
        finally:
            lock.release()
            logger.debug(f"Released lock: {lock_path}")


__all__ = [
    "LockManager",
    "LOCK_DIR_NAME",
]
