"""
Acquisition orchestration: make sure the binary exists before it is run.

Pipeline:
1. Check whether the resolved path exists (done if it does)
2. Select the source for the running platform
3. Download it into the destination
4. Extract it when it is an archive
5. Strip wrapper directories (archives only, when configured)

Nothing is retried and nothing is cleaned up on failure; the next run starts
again from step 1.
"""

import logging
import os
from typing import TYPE_CHECKING, Callable, Optional

from binwrapper.core.download import DownloadProgress, download_file
from binwrapper.core.exceptions import (
    FilesystemError,
    NoMatchingSourceError,
    TransportError,
)
from binwrapper.core.filesystem import extract_if_archive, strip_directories
from binwrapper.core.locking import LockManager
from binwrapper.core.platform import PlatformInfo, detect_platform
from binwrapper.wrapper.paths import CURRENT_DIR, resolve_exec_name, resolve_path
from binwrapper.wrapper.source import Source, select_source

if TYPE_CHECKING:
    from binwrapper.wrapper.builder import BinWrapper

logger = logging.getLogger(__name__)


def binary_exists(path: str) -> bool:
    """
    Check whether the binary is present.

    Raises:
        FilesystemError: If the path cannot be checked for a reason other
            than not existing (e.g. permission denied)
    """
    try:
        os.stat(path)
    except FileNotFoundError:
        return False
    except OSError as e:
        raise FilesystemError(f"Failed to check '{path}': {e}") from e
    return True


def ensure_binary(
    config: "BinWrapper",
    platform: Optional[PlatformInfo] = None,
    lock_manager: Optional[LockManager] = None,
    progress_callback: Optional[Callable[[DownloadProgress], None]] = None,
) -> str:
    """
    Make sure the configured binary exists and return its path.

    Without sources (download skipped) the configured path is returned
    unchecked; running it will fail at start time if it is missing.

    Args:
        config: Wrapper configuration
        platform: Platform to select a source for (default: running host)
        lock_manager: Lock manager used when config.lock_timeout is set
        progress_callback: Optional download progress callback

    Returns:
        Resolved executable path

    Raises:
        NoMatchingSourceError: If a download is needed but no source fits
        TransportError: If the download fails
        FilesystemError: If checking, writing, extracting or stripping fails
        LockTimeout: If the destination lock cannot be acquired
    """
    if not config.sources:
        return resolve_path(config.destination, config.exec_name)

    platform = platform or detect_platform()
    destination = config.destination or CURRENT_DIR
    source = select_source(config.sources, platform.os, platform.arch)
    path = resolve_path(destination, resolve_exec_name(config.exec_name, source))

    if binary_exists(path):
        return path

    logger.info(f"{path} not found. Downloading...")

    if config.lock_timeout is None:
        _acquire(source, destination, config.strip_levels, platform, progress_callback)
        return path

    lock_manager = lock_manager or LockManager()
    with lock_manager.destination_lock(destination, timeout=config.lock_timeout):
        # Check again after acquiring lock (another process may have completed)
        if binary_exists(path):
            logger.info(f"{path} was acquired by another process")
            return path
        _acquire(source, destination, config.strip_levels, platform, progress_callback)

    return path


def _acquire(
    source: Optional[Source],
    destination: str,
    strip_levels: int,
    platform: PlatformInfo,
    progress_callback: Optional[Callable[[DownloadProgress], None]],
) -> None:
    if source is None:
        raise NoMatchingSourceError(platform.os, platform.arch)

    if not source.url:
        raise TransportError(
            f"Source selected for {platform.platform_string()} has no URL"
        )

    file_path = download_file(
        source.url, destination, progress_callback=progress_callback
    )
    logger.info(f"{file_path} downloaded. Trying to extract...")

    if extract_if_archive(file_path, destination) and strip_levels > 0:
        strip_directories(destination, strip_levels)


__all__ = [
    "binary_exists",
    "ensure_binary",
]
