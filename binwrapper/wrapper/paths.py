"""
Executable path resolution.

Both functions are pure: choosing the executable name for a selected source
is a separate step from joining it onto the destination.
"""

import os
from typing import Optional

from binwrapper.wrapper.source import Source

CURRENT_DIR = "."


def resolve_exec_name(exec_name: str, source: Optional[Source]) -> str:
    """The selected source's exec_path override, else the configured name."""
    if source is not None and source.exec_path:
        return source.exec_path
    return exec_name


def resolve_path(destination: Optional[str], exec_name: str) -> str:
    """
    Join the executable name onto its destination directory.

    A destination of exactly "." is joined with a plain separator so the
    result stays "./tool" instead of being normalized to "tool", which a
    process launcher would look up on PATH. Without a destination the bare
    name is returned and is looked up on PATH when run.

    Example:
        >>> resolve_path(".", "tool")
        './tool'
        >>> resolve_path("vendor/bin", "tool")
        'vendor/bin/tool'
    """
    if destination == CURRENT_DIR:
        return destination + os.sep + exec_name
    if not destination:
        return exec_name
    return os.path.join(destination, exec_name)


__all__ = [
    "CURRENT_DIR",
    "resolve_exec_name",
    "resolve_path",
]
