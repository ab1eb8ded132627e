"""
File system utilities for binwrapper.

This module provides:
- Archive detection by extension or content signature
- Archive extraction (zip, tar, tar.gz, tar.xz, tar.bz2, 7z)
- Directory stripping: flattening wrapper directories produced by archives
- Safe recursive deletion

Downloaded files that are not archives are left alone: they are the binary.
"""

import logging
import os
import shutil
import sys
import tarfile
import uuid
import zipfile
from pathlib import Path
from typing import Optional, Union

from binwrapper.core.exceptions import (
    ArchiveExtractionError,
    FilesystemError,
    InsecureArchiveError,
    UnsupportedArchiveFormat,
)

logger = logging.getLogger(__name__)

# Checked in order, so compound suffixes come before plain ones
_EXTENSION_FORMATS = (
    (".tar.gz", "tar.gz"),
    (".tgz", "tar.gz"),
    (".tar.xz", "tar.xz"),
    (".txz", "tar.xz"),
    (".tar.bz2", "tar.bz2"),
    (".tbz2", "tar.bz2"),
    (".tar", "tar"),
    (".zip", "zip"),
    (".7z", "7z"),
)

_TAR_MODES = {
    "tar": "r:*",
    "tar.gz": "r:gz",
    "tar.xz": "r:xz",
    "tar.bz2": "r:bz2",
}

ZIP_SIGNATURES = (b"PK\x03\x04", b"PK\x05\x06")
SEVEN_ZIP_SIGNATURE = b"7z\xbc\xaf\x27\x1c"


# ============================================================================
# Archive Detection
# ============================================================================


def detect_archive_format(path: Union[str, Path]) -> Optional[str]:
    """
    Detect the archive format of a file.

    The file name extension is checked first, then the leading bytes.

    Args:
        path: File to inspect

    Returns:
        One of 'zip', 'tar', 'tar.gz', 'tar.xz', 'tar.bz2', '7z', or None
        when the file is not a recognized archive

    Raises:
        FilesystemError: If the file cannot be read
    """
    path = Path(path)
    name = path.name.lower()

    for suffix, fmt in _EXTENSION_FORMATS:
        if name.endswith(suffix):
            return fmt

    try:
        with open(path, "rb") as f:
            header = f.read(len(SEVEN_ZIP_SIGNATURE))

        if header.startswith(ZIP_SIGNATURES):
            return "zip"
        if header.startswith(SEVEN_ZIP_SIGNATURE):
            return "7z"
        # Sees through gzip, bzip2 and xz compression
        if tarfile.is_tarfile(path):
            return "tar"
    except OSError as e:
        raise FilesystemError(f"Failed to read '{path}': {e}") from e

    return None


# ============================================================================
# Archive Extraction
# ============================================================================


def _validate_archive_path(path: str, destination: Path) -> None:
    """
    Validate that an archive member path is safe to extract.

    Raises:
        InsecureArchiveError: If path attempts directory traversal
    """
    member_path = (destination / path).resolve()

    if not member_path.is_relative_to(destination.resolve()):
        raise InsecureArchiveError(
            f"Archive member '{path}' attempts directory traversal. "
            "This is a security risk and extraction has been blocked."
        )


def extract_archive(
    archive_path: Union[str, Path],
    destination: Union[str, Path],
    archive_format: Optional[str] = None,
) -> None:
    """
    Extract an archive to a destination directory.

    Args:
        archive_path: Path to the archive file
        destination: Directory to extract to
        archive_format: Format as returned by detect_archive_format()
            (detected when omitted)

    Raises:
        UnsupportedArchiveFormat: If archive format is not recognized
        ArchiveExtractionError: If extraction fails
        InsecureArchiveError: If archive contains malicious paths

    Example:
        >>> extract_archive('tool-1.2.3-linux.tar.gz', 'vendor/bin')
    """
    archive_path = Path(archive_path)
    destination = Path(destination)

    if not archive_path.exists():
        raise ArchiveExtractionError(f"Archive not found: {archive_path}")

    if archive_format is None:
        archive_format = detect_archive_format(archive_path)

    try:
        destination.mkdir(parents=True, exist_ok=True)

        if archive_format == "zip":
            _extract_zip(archive_path, destination)
        elif archive_format in _TAR_MODES:
            _extract_tar(archive_path, destination, _TAR_MODES[archive_format])
        elif archive_format == "7z":
            _extract_7z(archive_path, destination)
        else:
            raise UnsupportedArchiveFormat(
                f"Unsupported archive format: {archive_path.name}. "
                "Supported: .zip, .tar, .tar.gz, .tar.xz, .tar.bz2, .7z"
            )
    except (InsecureArchiveError, UnsupportedArchiveFormat):
        raise
    except Exception as e:
        raise ArchiveExtractionError(f"Failed to extract {archive_path}: {e}") from e


def _extract_zip(archive_path: Path, destination: Path) -> None:
    """Extract a ZIP archive, restoring Unix permission bits."""
    with zipfile.ZipFile(archive_path, "r") as zf:
        members = zf.infolist()

        for member in members:
            _validate_archive_path(member.filename, destination)

        for member in members:
            extracted = zf.extract(member, destination)
            mode = (member.external_attr >> 16) & 0o777
            if mode and not member.is_dir():
                os.chmod(extracted, mode)


def _extract_tar(archive_path: Path, destination: Path, mode: str) -> None:
    """Extract a tar archive with specified compression."""
    with tarfile.open(archive_path, mode) as tar:
        for member in tar.getmembers():
            _validate_archive_path(member.name, destination)

        # Extract with filter for security (Python 3.12+)
        # For older Python, we've already validated paths above
        if sys.version_info >= (3, 12):
            tar.extractall(destination, filter="data")
        else:
            tar.extractall(destination)


def _extract_7z(archive_path: Path, destination: Path) -> None:
    """Extract a .7z archive (requires py7zr)."""
    try:
        import py7zr
    except ImportError:
        raise UnsupportedArchiveFormat(
            "7z extraction requires 'py7zr' package. "
            "Install it with: pip install binwrapper[7z]"
        )

    with py7zr.SevenZipFile(archive_path, "r") as archive:
        for member in archive.getnames():
            _validate_archive_path(member, destination)

        archive.extractall(destination)


def extract_if_archive(file_path: Union[str, Path], destination: Union[str, Path]) -> bool:
    """
    Unpack a downloaded file when it is an archive.

    On success the archive itself is deleted. A file that is not a recognized
    archive is left in place untouched, since it is the binary itself.

    Args:
        file_path: Downloaded file
        destination: Directory to unpack into

    Returns:
        True if the file was extracted, False if it is not an archive

    Raises:
        ArchiveExtractionError: If unpacking fails (the archive is kept)
        FilesystemError: If the archive cannot be read or removed
    """
    file_path = Path(file_path)
    archive_format = detect_archive_format(file_path)

    if archive_format is None:
        logger.info(f"{file_path} is not an archive or has an unsupported format")
        return False

    logger.info(f"Extracting {archive_format} archive {file_path} to {destination}")
    extract_archive(file_path, destination, archive_format)

    try:
        file_path.unlink()
    except OSError as e:
        raise FilesystemError(f"Failed to remove archive '{file_path}': {e}") from e

    return True


# ============================================================================
# Directory Stripping
# ============================================================================


def _list_entries(directory: Path) -> list[Path]:
    """Entries of a directory, sorted by name."""
    try:
        with os.scandir(directory) as it:
            names = sorted(entry.name for entry in it)
    except OSError as e:
        raise FilesystemError(f"Failed to read directory '{directory}': {e}") from e
    return [directory / name for name in names]


def _first_subdirectory(directory: Path) -> Optional[Path]:
    for entry in _list_entries(directory):
        if entry.is_dir() and not entry.is_symlink():
            return entry
    return None


def strip_directories(destination: Union[str, Path], levels: int) -> None:
    """
    Flatten leading wrapper directories produced by an archive.

    Descends ``levels`` times into the first (by name) subdirectory, then
    moves everything found at the final depth into ``destination`` and
    removes the wrapper directories it descended through.

    A level without any subdirectory ends the descent early without error;
    content at that depth is moved as usual.

    Args:
        destination: Extraction root
        levels: Number of directory levels to strip (<= 0 does nothing)

    Raises:
        FilesystemError: If a directory cannot be read, or an entry cannot be
            moved or removed. Partial moves are not rolled back.

    Example:
        >>> # dest/tool-1.2.3/bin/tool
        >>> strip_directories('dest', 2)
        >>> # dest/tool
    """
    if levels <= 0:
        return

    destination = Path(destination)
    current = destination
    descended = []

    for depth in range(levels):
        subdir = _first_subdirectory(current)
        if subdir is None:
            logger.debug(
                f"No subdirectory in {current}, stripping stopped at depth {depth}"
            )
            break
        descended.append(subdir)
        current = subdir

    if not descended:
        return

    # Park the outermost wrapper under a unique name, so content sharing its
    # name (e.g. tool/tool) can move into the root
    wrapper = descended[0]
    staging = destination / f".binwrapper-strip-{uuid.uuid4().hex}"
    _move(wrapper, staging)
    current = staging / current.relative_to(wrapper)

    for entry in _list_entries(current):
        _move(entry, destination / entry.name)

    logger.debug(f"Stripped {len(descended)} level(s) into {destination}")
    safe_rmtree(staging, require_prefix=destination)


def _move(source: Path, target: Path) -> None:
    try:
        os.replace(source, target)
    except OSError as e:
        raise FilesystemError(f"Failed to move '{source}' to '{target}': {e}") from e


# ============================================================================
# Safe File Operations
# ============================================================================


def safe_rmtree(
    path: Union[str, Path], require_prefix: Optional[Union[str, Path]] = None
) -> None:
    """
    Safely remove a directory tree with safeguards.

    Args:
        path: Directory to remove
        require_prefix: If specified, path must be under this directory

    Raises:
        ValueError: If path is not under require_prefix
        FilesystemError: If deletion fails
    """
    path = Path(path).resolve()

    if require_prefix is not None:
        require_prefix = Path(require_prefix).resolve()
        if not path.is_relative_to(require_prefix):
            raise ValueError(
                f"Refusing to delete '{path}': not under required prefix '{require_prefix}'"
            )

    if not path.exists():
        return  # Already gone, nothing to do

    if not path.is_dir():
        raise FilesystemError(f"Path is not a directory: {path}")

    try:
        shutil.rmtree(path)
    except OSError as e:
        raise FilesystemError(f"Failed to remove directory '{path}': {e}") from e


__all__ = [
    "detect_archive_format",
    "extract_archive",
    "extract_if_archive",
    "strip_directories",
    "safe_rmtree",
]
