"""
binwrapper: use command-line tools as managed local dependencies.

A BinWrapper downloads the binary matching the running platform on first
use, unpacks it, and runs it with accumulated arguments:

    >>> from binwrapper import BinWrapper, Source
    >>> wrapper = (
    ...     BinWrapper()
    ...     .src(Source("https://example.com/tool-linux-x64.tar.gz", os="Linux", arch="x86_64"))
    ...     .dest("vendor/bin")
    ...     .exec_path("tool")
    ... )
    >>> wrapper.run("--version").stdout
"""

from binwrapper.core.exceptions import (
    BinWrapperError,
    NoMatchingSourceError,
    TransportError,
    LockTimeout,
    FilesystemError,
    ArchiveExtractionError,
    ProcessError,
    ProcessStartError,
    ProcessExitError,
)
from binwrapper.core.platform import PlatformInfo, detect_platform
from binwrapper.wrapper import (
    BinWrapper,
    RunResult,
    Source,
    select_source,
)

__version__ = "0.1.0"

__all__ = [
    "BinWrapper",
    "RunResult",
    "Source",
    "select_source",
    "PlatformInfo",
    "detect_platform",
    "BinWrapperError",
    "NoMatchingSourceError",
    "TransportError",
    "LockTimeout",
    "FilesystemError",
    "ArchiveExtractionError",
    "ProcessError",
    "ProcessStartError",
    "ProcessExitError",
]
