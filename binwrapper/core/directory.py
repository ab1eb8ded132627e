"""
Global state directory and environment-driven settings.

binwrapper keeps no configuration file. The few process-wide knobs are read
from environment variables:

    BINWRAPPER_HOME              state directory (default: ~/.binwrapper)
    BINWRAPPER_LOCK_DIR          lock file directory (default: <home>/lock)
    BINWRAPPER_DOWNLOAD_TIMEOUT  network timeout in seconds (default: 30)
"""

import os
from pathlib import Path

from binwrapper.core.exceptions import BinWrapperError

DEFAULT_DOWNLOAD_TIMEOUT = 30.0


def get_global_state_dir() -> Path:
    """
    Get the platform-specific global state directory path.

    Returns:
        Path: The state directory path.
            - $BINWRAPPER_HOME when set
            - Windows: %USERPROFILE%\\.binwrapper
            - Linux/macOS: ~/.binwrapper

    Raises:
        BinWrapperError: On Windows when USERPROFILE is not set
    """
    override = os.environ.get("BINWRAPPER_HOME")
    if override:
        return Path(override)

    if os.name == "nt":
        user_profile = os.environ.get("USERPROFILE")
        if not user_profile:
            raise BinWrapperError(
                "USERPROFILE environment variable is not set. "
                "Cannot determine global state directory."
            )
        return Path(user_profile) / ".binwrapper"
    else:
        return Path.home() / ".binwrapper"


def get_lock_dir() -> Path:
    """Directory holding per-destination lock files."""
    override = os.environ.get("BINWRAPPER_LOCK_DIR")
    if override:
        return Path(override)
    return get_global_state_dir() / "lock"


def get_download_timeout() -> float:
    """
    Network timeout (seconds) passed to every download request.

    Raises:
        ValueError: If BINWRAPPER_DOWNLOAD_TIMEOUT is not a positive number
    """
    raw = os.environ.get("BINWRAPPER_DOWNLOAD_TIMEOUT")
    if not raw:
        return DEFAULT_DOWNLOAD_TIMEOUT

    try:
        timeout = float(raw)
    except ValueError:
        raise ValueError(
            f"BINWRAPPER_DOWNLOAD_TIMEOUT must be a number of seconds, got {raw!r}"
        )

    if timeout <= 0:
        raise ValueError(f"BINWRAPPER_DOWNLOAD_TIMEOUT must be positive, got {raw!r}")
    return timeout


__all__ = [
    "DEFAULT_DOWNLOAD_TIMEOUT",
    "get_global_state_dir",
    "get_lock_dir",
    "get_download_timeout",
]
