"""
Core functionality for binwrapper.

This package contains the foundational modules the wrapper depends on:
platform detection, downloading, archive handling, locking and the
exception hierarchy.
"""

from .directory import (
    get_global_state_dir,
    get_lock_dir,
    get_download_timeout,
)

from .download import (
    DownloadProgress,
    download_file,
    file_name_from_url,
    format_progress,
)

from .filesystem import (
    detect_archive_format,
    extract_archive,
    extract_if_archive,
    strip_directories,
    safe_rmtree,
)

from .locking import (
    LockManager,
    LockTimeout,
)

from .platform import (
    PlatformInfo,
    detect_platform,
    clear_platform_cache,
)

from .exceptions import (
    BinWrapperError,
    NoMatchingSourceError,
    TransportError,
    FilesystemError,
    ArchiveExtractionError,
    UnsupportedArchiveFormat,
    InsecureArchiveError,
    ProcessError,
    ProcessStartError,
    ProcessExitError,
)

__all__ = [
    "get_global_state_dir",
    "get_lock_dir",
    "get_download_timeout",
    "DownloadProgress",
    "download_file",
    "file_name_from_url",
    "format_progress",
    "detect_archive_format",
    "extract_archive",
    "extract_if_archive",
    "strip_directories",
    "safe_rmtree",
    "LockManager",
    "LockTimeout",
    "PlatformInfo",
    "detect_platform",
    "clear_platform_cache",
    "BinWrapperError",
    "NoMatchingSourceError",
    "TransportError",
    "FilesystemError",
    "ArchiveExtractionError",
    "UnsupportedArchiveFormat",
    "InsecureArchiveError",
    "ProcessError",
    "ProcessStartError",
    "ProcessExitError",
]
