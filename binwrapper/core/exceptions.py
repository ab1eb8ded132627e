"""
Centralized exception hierarchy for binwrapper.

Every failure raised by the acquisition pipeline or the executor derives
from BinWrapperError, so callers can catch a single base class.
"""


# ============================================================================
# Base Exceptions
# ============================================================================


class BinWrapperError(Exception):
    """Base exception for all binwrapper errors."""

    pass


# ============================================================================
# Acquisition Exceptions
# ============================================================================


class NoMatchingSourceError(BinWrapperError):
    """Raised when no source fits the running platform but a download is required."""

    def __init__(self, os_name: str = "", arch: str = ""):
        self.os_name = os_name
        self.arch = arch
        msg = "No binary found matching your system. It's probably not supported."
        if os_name or arch:
            msg += f" (platform: {os_name}-{arch})"
        super().__init__(msg)


class TransportError(BinWrapperError):
    """Malformed URL, connection failure or non-success HTTP response."""

    pass


class LockTimeout(BinWrapperError):
    """Raised when a destination lock cannot be acquired in time."""

    def __init__(self, lock_file: str, timeout: float):
        self.lock_file = lock_file
        self.timeout = timeout
        super().__init__(
            f"Could not acquire lock {lock_file} within {timeout}s"
        )


class FilesystemError(BinWrapperError):
    """Directory creation, file read/write, rename or removal failure."""

    pass


class ArchiveExtractionError(FilesystemError):
    """Failed to extract an archive."""

    pass


class UnsupportedArchiveFormat(ArchiveExtractionError):
    """Archive format was recognized but cannot be unpacked here."""

    pass


class InsecureArchiveError(ArchiveExtractionError):
    """Archive contains insecure paths (directory traversal attempt)."""

    pass


# ============================================================================
# Process Exceptions
# ============================================================================


class ProcessError(BinWrapperError):
    """Base exception for running the wrapped binary."""

    pass


class ProcessStartError(ProcessError):
    """Raised when the executable is missing or cannot be started."""

    def __init__(self, path: str, reason: str = ""):
        self.path = path
        msg = f"Failed to start {path}"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


class ProcessExitError(ProcessError):
    """
    Raised when the binary exits with a non-zero status.

    The captured output is kept on the exception as ``result``.
    """

    def __init__(self, result):
        self.result = result
        self.returncode = result.returncode
        super().__init__(
            f"{result.args[0]} exited with status {result.returncode}"
        )

    @property
    def stdout(self) -> bytes:
        return self.result.stdout

    @property
    def stderr(self) -> bytes:
        return self.result.stderr


__all__ = [
    "BinWrapperError",
    "NoMatchingSourceError",
    "TransportError",
    "LockTimeout",
    "FilesystemError",
    "ArchiveExtractionError",
    "UnsupportedArchiveFormat",
    "InsecureArchiveError",
    "ProcessError",
    "ProcessStartError",
    "ProcessExitError",
]
