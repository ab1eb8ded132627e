"""
Download sources and platform-based source selection.
"""

from dataclasses import dataclass, replace
from typing import Iterable, Optional

from binwrapper.core.platform import PlatformInfo, detect_platform


@dataclass(frozen=True)
class Source:
    """
    One candidate download location and the platform it applies to.

    Attributes:
        url: File to download. Empty means the entry cannot be downloaded.
        os: Platform tag as reported by detect_platform() (empty = any OS)
        arch: Architecture tag as reported by detect_platform() (empty = any arch)
        exec_path: Executable name inside the destination once this source
            is selected (empty = keep the configured name)

    Example:
        >>> Source("https://example.com/tool-linux-x64.tar.gz", os="Linux", arch="x86_64")
    """

    url: Optional[str] = None
    os: str = ""
    arch: str = ""
    exec_path: str = ""

    def with_url(self, value: str) -> "Source":
        return replace(self, url=value)

    def with_os(self, value: str) -> "Source":
        return replace(self, os=value)

    def with_arch(self, value: str) -> "Source":
        return replace(self, arch=value)

    def with_exec_path(self, value: str) -> "Source":
        return replace(self, exec_path=value)

    @property
    def is_universal(self) -> bool:
        """True if the source applies to every platform."""
        return not self.os and not self.arch

    def matches(self, os_name: str, arch: str) -> bool:
        return (not self.os or self.os == os_name) and (
            not self.arch or self.arch == arch
        )


def select_source(
    sources: Iterable[Source], os_name: str, arch: str
) -> Optional[Source]:
    """
    Pick the source for a platform.

    The first source whose os and arch are each empty or equal to the given
    identifiers wins, even when a later source is more specific.

    Returns:
        The matching source, or None when nothing qualifies
    """
    for source in sources:
        if source.matches(os_name, arch):
            return source
    return None


def current_platform_source(
    sources: Iterable[Source], platform: Optional[PlatformInfo] = None
) -> Optional[Source]:
    """select_source() for the running (or given) platform."""
    platform = platform or detect_platform()
    return select_source(sources, platform.os, platform.arch)


__all__ = [
    "Source",
    "select_source",
    "current_platform_source",
]
