"""
Opt-in concurrency control for acquisitions.

Two processes acquiring into the same destination directory can race on the
download, the extraction and the strip. Callers that run concurrent
acquisitions opt into a per-destination file lock; everyone else pays nothing.

Lock files live in a separate lock directory (see
binwrapper.core.directory.get_lock_dir), never inside the destination, so they
cannot show up in the unpacked layout.

Usage:
    from binwrapper.core.locking import LockManager

    lock_manager = LockManager()
    with lock_manager.destination_lock("vendor/bin", timeout=300):
        # Download and unpack into vendor/bin
        pass
"""

import hashlib
import logging
import os
from contextlib import contextmanager
from pathlib import Path
from typing import Optional, Union

from filelock import FileLock, Timeout

from binwrapper.core.directory import get_lock_dir
from binwrapper.core.exceptions import LockTimeout

logger = logging.getLogger(__name__)

DEFAULT_LOCK_TIMEOUT = 300


def destination_key(destination: Union[str, Path]) -> str:
    """
    Stable identifier for a destination directory.

    Different spellings of the same directory ('bin', './bin', '/abs/bin')
    map to the same key.
    """
    absolute = os.path.abspath(os.fspath(destination))
    return hashlib.sha256(absolute.encode("utf-8")).hexdigest()[:16]


class LockManager:
    """
    Manages per-destination locks.

    Uses file-based locking with the `filelock` library for cross-platform,
    cross-process locking with automatic cleanup on process death.

    Attributes:
        lock_dir: Directory where lock files are stored
    """

    def __init__(self, lock_dir: Optional[Path] = None):
        """
        Initialize lock manager.

        Args:
            lock_dir: Directory for lock files (default: get_lock_dir())
        """
        if lock_dir is None:
            lock_dir = get_lock_dir()

        self.lock_dir = Path(lock_dir)
        self.lock_dir.mkdir(parents=True, exist_ok=True)

    def lock_path(self, destination: Union[str, Path]) -> Path:
        """Lock file guarding a destination directory."""
        return self.lock_dir / f"dest-{destination_key(destination)}.lock"

    @contextmanager
    def destination_lock(
        self, destination: Union[str, Path], timeout: float = DEFAULT_LOCK_TIMEOUT
    ):
        """
        Acquire the lock for a destination directory.

        Args:
            destination: Destination directory being acquired into
            timeout: Maximum wait time in seconds (default: 300 for long downloads)

        Yields:
            None

        Raises:
            LockTimeout: If lock can't be acquired within timeout

        Example:
            >>> lock_manager = LockManager()
            >>> with lock_manager.destination_lock('vendor/bin', timeout=300):
            ...     download_and_extract(url, 'vendor/bin')
        """
        lock_path = self.lock_path(destination)
        lock = FileLock(lock_path, timeout=timeout)

        try:
            with lock:
                logger.debug(f"Acquired destination lock: {lock_path} ({destination})")
                yield
                logger.debug(f"Released destination lock: {lock_path}")
        except Timeout as e:
            logger.error(
                f"Could not acquire lock for {destination} after {timeout}s. "
                "Another process may be downloading into it."
            )
            raise LockTimeout(str(lock_path), timeout) from e


__all__ = [
    "DEFAULT_LOCK_TIMEOUT",
    "LockManager",
    "LockTimeout",
    "destination_key",
]
