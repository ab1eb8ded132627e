"""
Network downloader with literal redirect forwarding and progress reporting.

This module fetches a single URL into a destination directory:
- The local file name is the last segment of the URL path
- Redirects are followed without re-quoting the target path, so servers that
  hand out percent-encoded asset locations receive them byte for byte
- Non-success responses fail before anything is written
- Optional progress reporting (bytes, percentage, speed, ETA)

There is no retry logic and no checksum verification.
"""

import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional, Union
from urllib.parse import unquote, urljoin, urlsplit

import requests
from requests.exceptions import RequestException, TooManyRedirects

from binwrapper.core.directory import get_download_timeout
from binwrapper.core.exceptions import FilesystemError, TransportError

logger = logging.getLogger(__name__)

DEFAULT_MAX_REDIRECTS = 10
CHUNK_SIZE = 8192


@dataclass
class DownloadProgress:
    """Progress information for a download."""

    bytes_downloaded: int
    total_bytes: int
    percentage: float
    speed_bps: float  # bytes per second
    eta_seconds: float  # estimated time remaining

    def __str__(self) -> str:
        """Format progress for display."""
        return format_progress(self)


def file_name_from_url(url: str) -> str:
    """
    Derive the local file name from the last segment of a URL path.

    Raises:
        TransportError: If the URL is malformed or its path has no file name

    Example:
        >>> file_name_from_url("https://example.com/releases/v1/tool.tar.gz?x=1")
        'tool.tar.gz'
    """
    try:
        parts = urlsplit(url)
    except ValueError as e:
        raise TransportError(f"Malformed URL {url!r}: {e}") from e

    if not parts.scheme or not parts.netloc:
        raise TransportError(f"Malformed URL {url!r}: missing scheme or host")

    file_name = unquote(parts.path).split("/")[-1]
    if not file_name:
        raise TransportError(f"Cannot derive a file name from URL {url!r}")
    return file_name


def download_file(
    url: str,
    destination_dir: Union[str, Path],
    progress_callback: Optional[Callable[[DownloadProgress], None]] = None,
    timeout: Optional[float] = None,
    max_redirects: int = DEFAULT_MAX_REDIRECTS,
    session: Optional[requests.Session] = None,
) -> Path:
    """
    Download a URL into a directory, truncating any existing file of the same name.

    Args:
        url: URL to download from
        destination_dir: Directory to save the file in (created if missing)
        progress_callback: Optional callback for progress updates
        timeout: Request timeout in seconds (default: BINWRAPPER_DOWNLOAD_TIMEOUT)
        max_redirects: Maximum number of redirects to follow
        session: Optional requests session to send requests with

    Returns:
        Path to downloaded file

    Raises:
        TransportError: Malformed URL, connection failure or non-success status
        FilesystemError: If the directory or file cannot be written

    Example:
        >>> from binwrapper.core.download import download_file
        >>> download_file("https://example.com/tool-linux.tar.gz", "vendor/bin")
        PosixPath('vendor/bin/tool-linux.tar.gz')
    """
    if not url:
        raise TransportError("URL cannot be empty")

    file_name = file_name_from_url(url)
    destination_dir = Path(destination_dir)

    try:
        destination_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise FilesystemError(
            f"Failed to create directory '{destination_dir}': {e}"
        ) from e

    destination = destination_dir / file_name
    if timeout is None:
        timeout = get_download_timeout()

    owns_session = session is None
    if owns_session:
        session = requests.Session()

    logger.info(f"Downloading from {url}")

    try:
        response = _send_following_redirects(session, url, timeout, max_redirects)
        try:
            response.raise_for_status()
            if not 200 <= response.status_code < 300:
                raise TransportError(
                    f"Failed to download {url}: unexpected status {response.status_code}"
                )
            _write_body(response, destination, progress_callback)
        finally:
            response.close()
    except RequestException as e:
        logger.error(f"Download of {url} failed: {e}")
        raise TransportError(f"Failed to download {url}: {e}") from e
    finally:
        if owns_session:
            session.close()

    logger.info(f"Download complete: {destination}")
    return destination


def _send_following_redirects(
    session: requests.Session, url: str, timeout: float, max_redirects: int
) -> requests.Response:
    """
    Send a GET request, following redirects by hand.

    requests re-quotes redirect targets before following them; here the
    Location value is placed on the next request as-is.
    """
    request = session.prepare_request(requests.Request("GET", url))

    for _ in range(max_redirects + 1):
        response = session.send(
            request, stream=True, timeout=timeout, allow_redirects=False
        )
        if not response.is_redirect:
            return response

        target = urljoin(response.url, session.get_redirect_target(response))
        response.close()

        logger.debug(f"Following redirect {response.status_code} to {target}")
        request = request.copy()
        request.url = target
        session.rebuild_auth(request, response)

    raise TooManyRedirects(f"Exceeded {max_redirects} redirects", response=response)


def _write_body(
    response: requests.Response,
    destination: Path,
    progress_callback: Optional[Callable[[DownloadProgress], None]],
) -> None:
    # 0 means unknown size
    try:
        total_size = int(response.headers.get("content-length") or 0)
    except ValueError:
        total_size = 0

    downloaded = 0
    start_time = time.time()
    last_progress_time = start_time

    try:
        with open(destination, "wb") as f:
            for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
                if not chunk:
                    continue
                f.write(chunk)
                downloaded += len(chunk)

                # Report progress (max once per 0.5 seconds to avoid spam)
                current_time = time.time()
                if progress_callback and (
                    current_time - last_progress_time >= 0.5
                    or downloaded == total_size
                ):
                    progress_callback(
                        _progress(downloaded, total_size, current_time - start_time)
                    )
                    last_progress_time = current_time

        destination.chmod(0o755)
    except OSError as e:
        raise FilesystemError(f"Failed to write '{destination}': {e}") from e


def _progress(downloaded: int, total_size: int, elapsed: float) -> DownloadProgress:
    speed = downloaded / elapsed if elapsed > 0 else 0
    remaining = total_size - downloaded if total_size > 0 else 0
    eta = remaining / speed if speed > 0 else 0

    return DownloadProgress(
        bytes_downloaded=downloaded,
        total_bytes=total_size if total_size > 0 else downloaded,
        percentage=(downloaded / total_size * 100) if total_size > 0 else 0,
        speed_bps=speed,
        eta_seconds=eta,
    )


def format_progress(progress: DownloadProgress) -> str:
    """
    Format progress for display.

    Example:
        >>> progress = DownloadProgress(52428800, 104857600, 50.0, 1048576, 50)
        >>> print(format_progress(progress))
        50.0/100.0 MB (50.0%) at 1.0 MB/s ETA: 50s
    """
    mb_downloaded = progress.bytes_downloaded / 1024 / 1024
    mb_total = progress.total_bytes / 1024 / 1024
    speed_mbps = progress.speed_bps / 1024 / 1024

    if progress.total_bytes > 0:
        return (
            f"{mb_downloaded:.1f}/{mb_total:.1f} MB "
            f"({progress.percentage:.1f}%) "
            f"at {speed_mbps:.1f} MB/s "
            f"ETA: {progress.eta_seconds:.0f}s"
        )
    else:
        # Unknown total size
        return f"{mb_downloaded:.1f} MB at {speed_mbps:.1f} MB/s"


__all__ = [
    "DownloadProgress",
    "download_file",
    "file_name_from_url",
    "format_progress",
]
