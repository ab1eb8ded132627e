"""
Platform detection for binwrapper.

Sources are matched against the identifiers the host reports about itself,
exactly as reported: ``platform.system()`` for the OS ('Linux', 'Darwin',
'Windows', ...) and ``platform.machine()`` for the CPU ('x86_64', 'AMD64',
'arm64', 'aarch64', ...). Nothing is lowercased or mapped, so a source tagged
``arch="amd64"`` does not match a host reporting ``'x86_64'``.

Usage:
    from binwrapper.core.platform import detect_platform

    host = detect_platform()
    print(f"Running on {host}")
"""

import functools
import platform
from dataclasses import dataclass


@dataclass(frozen=True)
class PlatformInfo:
    """
    Identifiers of a platform.

    Attributes:
        os: OS name as reported by platform.system()
        arch: Machine type as reported by platform.machine()
        os_version: OS release (informational, never matched)
    """

    os: str
    arch: str
    os_version: str = ""

    def platform_string(self) -> str:
        """
        Example:
            >>> PlatformInfo('Linux', 'x86_64').platform_string()
            'Linux-x86_64'
        """
        return f"{self.os}-{self.arch}"

    def __str__(self) -> str:
        if self.os_version:
            return f"{self.platform_string()} ({self.os_version})"
        return self.platform_string()


@functools.lru_cache(maxsize=1)
def detect_platform() -> PlatformInfo:
    """
    Detect the running host.

    Cached: detection runs once per process, see clear_platform_cache().
    """
    return PlatformInfo(
        os=platform.system(),
        arch=platform.machine(),
        os_version=platform.release(),
    )


def clear_platform_cache():
    """Force the next detect_platform() call to re-detect."""
    detect_platform.cache_clear()


__all__ = [
    "PlatformInfo",
    "detect_platform",
    "clear_platform_cache",
]
