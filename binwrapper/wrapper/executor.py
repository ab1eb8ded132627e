"""
Process execution with in-memory output capture.
"""

import logging
import subprocess
from dataclasses import dataclass
from typing import Sequence

from binwrapper.core.exceptions import ProcessExitError, ProcessStartError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RunResult:
    """Outcome of one run of the wrapped binary."""

    args: tuple[str, ...]
    """Full argv, executable path first"""

    returncode: int

    stdout: bytes = b""

    stderr: bytes = b""

    @property
    def ok(self) -> bool:
        return self.returncode == 0


def run_binary(path: str, args: Sequence[str] = ()) -> RunResult:
    """
    Run an executable and capture its output.

    Both streams are read to the end before waiting for the exit status.
    There is no timeout: the call blocks until the process exits.

    Args:
        path: Executable path
        args: Arguments passed after the executable

    Returns:
        RunResult with captured stdout/stderr

    Raises:
        ProcessStartError: If the executable is missing or cannot be started
        ProcessExitError: If the process exits with a non-zero status
    """
    argv = (path, *args)
    logger.debug(f"Running: {' '.join(argv)}")

    try:
        process = subprocess.Popen(
            argv, stdout=subprocess.PIPE, stderr=subprocess.PIPE
        )
    except OSError as e:
        raise ProcessStartError(path, e.strerror or str(e)) from e

    # Capture is best effort: a read failure leaves the buffers empty
    try:
        stdout, stderr = process.communicate()
    except OSError as e:
        logger.warning(f"Failed to capture output of {path}: {e}")
        stdout, stderr = b"", b""
        process.wait()

    result = RunResult(
        args=argv,
        returncode=process.returncode,
        stdout=stdout or b"",
        stderr=stderr or b"",
    )

    if not result.ok:
        raise ProcessExitError(result)
    return result


__all__ = [
    "RunResult",
    "run_binary",
]
