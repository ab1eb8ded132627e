"""
Fluent, immutable wrapper configuration.

Every configuration method returns a new BinWrapper, so a configured wrapper
can be shared and extended without aliasing surprises:

    >>> from binwrapper import BinWrapper, Source
    >>> base = (
    ...     BinWrapper()
    ...     .src(Source("https://example.com/tool-linux-x64.tar.gz", os="Linux", arch="x86_64"))
    ...     .src(Source("https://example.com/tool-macos.zip", os="Darwin", exec_path="tool"))
    ...     .dest("vendor/bin")
    ...     .exec_path("tool")
    ...     .strip(1)
    ... )
    >>> result = base.arg("--format", "json").run("input.txt")
    >>> result.stdout
"""

from dataclasses import dataclass, replace
from typing import Callable, Optional

from binwrapper.core.download import DownloadProgress
from binwrapper.core.locking import DEFAULT_LOCK_TIMEOUT, LockManager
from binwrapper.core.platform import PlatformInfo, detect_platform
from binwrapper.wrapper.acquisition import ensure_binary
from binwrapper.wrapper.executor import RunResult, run_binary
from binwrapper.wrapper.paths import CURRENT_DIR, resolve_exec_name, resolve_path
from binwrapper.wrapper.source import Source, select_source


@dataclass(frozen=True)
class BinWrapper:
    """
    Configuration of a wrapped command-line binary.

    Attributes:
        sources: Download sources, in match priority order
        destination: Directory the binary lives in (None = unset)
        exec_name: Executable file name inside the destination
        strip_levels: Wrapper directory levels to strip after extraction
        args: Arguments passed to every run, before call-time arguments
        lock_timeout: Per-destination lock timeout in seconds (None = no lock)
    """

    sources: tuple[Source, ...] = ()
    destination: Optional[str] = None
    exec_name: str = ""
    strip_levels: int = 0
    args: tuple[str, ...] = ()
    lock_timeout: Optional[float] = None

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    def src(self, source: Source) -> "BinWrapper":
        """Add a download source (earlier sources win ties)."""
        return replace(self, sources=self.sources + (source,))

    def dest(self, destination: str) -> "BinWrapper":
        """Set the directory files are downloaded to."""
        return replace(self, destination=destination)

    def exec_path(self, name: str) -> "BinWrapper":
        """Define which file inside the destination is the binary."""
        return replace(self, exec_name=name)

    def skip_download(self) -> "BinWrapper":
        """Drop all sources; the binary is expected to exist already."""
        return replace(self, sources=())

    def strip(self, levels: int) -> "BinWrapper":
        """Strip a number of leading directories after extraction."""
        return replace(self, strip_levels=levels)

    def arg(self, name: str, *values: str) -> "BinWrapper":
        """
        Add a command line argument and its values.

        Example:
            >>> BinWrapper().arg("--flag", "v1", "v2").args
            ('--flag', 'v1', 'v2')
        """
        return replace(self, args=self.args + (name, *values))

    def reset(self) -> "BinWrapper":
        """Remove all arguments added with arg()."""
        return replace(self, args=())

    def lock(self, timeout: float = DEFAULT_LOCK_TIMEOUT) -> "BinWrapper":
        """Serialize acquisitions into the destination with a file lock."""
        return replace(self, lock_timeout=timeout)

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def selected_source(self, platform: Optional[PlatformInfo] = None) -> Optional[Source]:
        """The source matching the running (or given) platform, if any."""
        platform = platform or detect_platform()
        return select_source(self.sources, platform.os, platform.arch)

    def path(self, platform: Optional[PlatformInfo] = None) -> str:
        """
        Full path to the binary. Does not touch the file system.

        The selected source's exec_path, if any, replaces the configured
        executable name.
        """
        if not self.sources:
            return resolve_path(self.destination, self.exec_name)

        exec_name = resolve_exec_name(self.exec_name, self.selected_source(platform))
        return resolve_path(self.destination or CURRENT_DIR, exec_name)

    def acquire(
        self,
        platform: Optional[PlatformInfo] = None,
        lock_manager: Optional[LockManager] = None,
        progress_callback: Optional[Callable[[DownloadProgress], None]] = None,
    ) -> str:
        """Download and unpack the binary if it is missing; return its path."""
        return ensure_binary(
            self,
            platform=platform,
            lock_manager=lock_manager,
            progress_callback=progress_callback,
        )

    def run(
        self,
        *args: str,
        platform: Optional[PlatformInfo] = None,
        lock_manager: Optional[LockManager] = None,
    ) -> RunResult:
        """
        Run the binary, acquiring it first if needed.

        Arguments added with arg() come first, followed by ``args``.

        Returns:
            RunResult with the captured stdout/stderr

        Raises:
            BinWrapperError: The first failure of acquisition or execution,
                including LockTimeout when lock() is set
        """
        path = self.acquire(platform=platform, lock_manager=lock_manager)
        return run_binary(path, self.args + args)


__all__ = [
    "BinWrapper",
]
