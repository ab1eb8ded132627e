"""
Binary wrapper: platform-aware acquisition and execution of a command-line tool.

This package provides:
- Download sources and platform-based source selection
- Executable path resolution
- Acquisition (download, extract, strip) when the binary is missing
- Execution with captured output
"""

from binwrapper.wrapper.source import (
    Source,
    select_source,
    current_platform_source,
)
from binwrapper.wrapper.paths import (
    resolve_exec_name,
    resolve_path,
)
from binwrapper.wrapper.acquisition import (
    binary_exists,
    ensure_binary,
)
from binwrapper.wrapper.executor import (
    RunResult,
    run_binary,
)
from binwrapper.wrapper.builder import BinWrapper

__all__ = [
    "Source",
    "select_source",
    "current_platform_source",
    "resolve_exec_name",
    "resolve_path",
    "binary_exists",
    "ensure_binary",
    "RunResult",
    "run_binary",
    "BinWrapper",
]
