"""
Network download manager with progress tracking and integrity verification.

This module provides:
- Streaming HTTP/HTTPS downloads through an injected requests session
- Progress reporting (bytes, percentage, speed, ETA)
- Size and SHA256 verification of downloaded artifacts

Downloads are not retried: a transport failure is reported to the caller.
"""

import hashlib
import logging
import secrets
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional

import requests
from requests.exceptions import RequestException

from jdkkit.core.exceptions import (
    ChecksumMismatchError,
    SizeMismatchError,
    TransportError,
)

logger = logging.getLogger(__name__)


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


ProgressCallback = Callable[[DownloadProgress], None]


class StreamingHasher:
    """Compute hash incrementally for streaming downloads."""

    def __init__(self, algorithm: str = "sha256"):
        """
        Initialize streaming hasher.

        Args:
            algorithm: Hash algorithm ('sha256', 'sha512')

        Raises:
            ValueError: If algorithm is not supported
        """
        self.algorithm = algorithm.lower()

        if self.algorithm == "sha256":
            self.hasher = hashlib.sha256()
        elif self.algorithm == "sha512":
            self.hasher = hashlib.sha512()
        else:
            raise ValueError(f"Unsupported hash algorithm: {algorithm}")

    def update(self, data: bytes):
        """Add data to hash computation."""
        self.hasher.update(data)

    def finalize(self) -> str:
        """Get final hash value as hex string."""
        return self.hasher.hexdigest()

    def verify(self, expected_hash: str) -> bool:
        """
        Check if computed hash matches expected value.

        Uses constant-time comparison.

        Args:
            expected_hash: Expected hash value (hex string)

        Returns:
            True if hashes match, False otherwise
        """
        actual = self.finalize()
        return secrets.compare_digest(
            actual.lower().encode("utf-8"), expected_hash.strip().lower().encode("utf-8")
        )


def download_file(
    session: requests.Session,
    url: str,
    destination: Path,
    progress_callback: Optional[ProgressCallback] = None,
    timeout: int = 30,
) -> Path:
    """
    Download file from URL to destination.

    Args:
        session: HTTP session used for the request
        url: URL to download from
        destination: Local path to save file (truncated if it exists)
        progress_callback: Optional callback for progress updates
        timeout: Request timeout in seconds

    Returns:
        Path to downloaded file

    Raises:
        TransportError: If the request fails or returns a non-2xx status
        ValueError: If URL or destination is invalid

    Example:
        >>> def on_progress(progress):
        ...     print(f"Downloaded {progress.percentage:.1f}%")
        >>>
        >>> download_file(requests.Session(), url, Path("jdks/jdk.tar.gz"), on_progress)
    """
    if not url:
        raise ValueError("URL cannot be empty")

    if not destination:
        raise ValueError("Destination path cannot be empty")

    destination = Path(destination)
    destination.parent.mkdir(parents=True, exist_ok=True)

    logger.info(f"Downloading from {url}")

    try:
        with session.get(
            url, stream=True, timeout=timeout, allow_redirects=True
        ) as response:
            if not 200 <= response.status_code < 300:
                raise TransportError(
                    f"Failed to download {url}. Got non 2XX response {response.status_code}",
                    status_code=response.status_code,
                )
            _stream_to_file(response, destination, progress_callback)
    except RequestException as e:
        destination.unlink(missing_ok=True)
        raise TransportError(f"Failed to download {url}: {e}") from e
    except TransportError:
        destination.unlink(missing_ok=True)
        raise

    logger.info(f"Download complete: {destination}")
    return destination


def _stream_to_file(
    response: requests.Response,
    destination: Path,
    progress_callback: Optional[ProgressCallback],
) -> None:
    """
    Write a streamed response body to disk, reporting progress.

    This is an internal function called by download_file().
    """
    content_length = response.headers.get("content-length")
    total_size = int(content_length) if content_length else 0

    downloaded = 0
    start_time = time.time()
    last_progress_time = start_time

    with open(destination, "wb") as f:
        for chunk in response.iter_content(chunk_size=8192):
            if not chunk:
                continue
            f.write(chunk)
            downloaded += len(chunk)

            # Report progress (max once per 0.5 seconds to avoid spam)
            current_time = time.time()
            if progress_callback and (
                current_time - last_progress_time >= 0.5 or downloaded == total_size
            ):
                progress_callback(
                    _make_progress(downloaded, total_size, current_time - start_time)
                )
                last_progress_time = current_time

    # Unknown sizes never hit downloaded == total_size, report the end explicitly
    if progress_callback and downloaded != total_size:
        progress_callback(
            _make_progress(downloaded, downloaded, time.time() - start_time)
        )


def _make_progress(downloaded: int, total_size: int, elapsed: float) -> DownloadProgress:
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


def compute_sha256(file_path: Path) -> str:
    """
    Compute SHA256 of a file.

    Raises:
        FileNotFoundError: If file doesn't exist
    """
    if not file_path.exists():
        raise FileNotFoundError(f"File not found: {file_path}")

    hasher = StreamingHasher("sha256")
    with open(file_path, "rb") as f:
        while chunk := f.read(8192):
            hasher.update(chunk)

    return hasher.finalize()


def verify_download(file_path: Path, expected_size: int, expected_sha256: str) -> None:
    """
    Verify a downloaded file against declared size and SHA256.

    Size is checked first since it is cheap.

    Args:
        file_path: Downloaded file
        expected_size: Declared size in bytes
        expected_sha256: Declared SHA256 (hex string)

    Raises:
        SizeMismatchError: If the size differs
        ChecksumMismatchError: If the digest differs
        FileNotFoundError: If file doesn't exist
    """
    size = file_path.stat().st_size
    if size != expected_size:
        raise SizeMismatchError(file_path.name, expected_size, size)

    actual = compute_sha256(file_path)
    if not secrets.compare_digest(
        actual.encode("utf-8"), expected_sha256.strip().lower().encode("utf-8")
    ):
        raise ChecksumMismatchError(file_path.name, expected_sha256, actual)

    logger.debug(f"Verified {file_path.name}: {size} bytes, sha256 {expected_sha256}")


def format_progress(progress: DownloadProgress) -> str:
    """
    Format progress for display.

    Args:
        progress: Download progress information

    Returns:
        Formatted progress string

    Example:
        >>> progress = DownloadProgress(52428800, 104857600, 50.0, 1048576, 50)
        >>> print(format_progress(progress))
        50.0/100.0 MB (50.0%) at 1.0 MB/s ETA: 50s
    """
    mb_downloaded = progress.bytes_downloaded / 1024 / 1024
    mb_total = progress.total_bytes / 1024 / 1024
    speed_mbps = progress.speed_bps / 1024 / 1024

    if progress.total_bytes > 0 and progress.percentage > 0:
        return (
            f"{mb_downloaded:.1f}/{mb_total:.1f} MB "
            f"({progress.percentage:.1f}%) "
            f"at {speed_mbps:.1f} MB/s "
            f"ETA: {progress.eta_seconds:.0f}s"
        )
    else:
        # Unknown total size
        return f"{mb_downloaded:.1f} MB " f"at {speed_mbps:.1f} MB/s"


__all__ = [
    "DownloadProgress",
    "ProgressCallback",
    "StreamingHasher",
    "download_file",
    "compute_sha256",
    "verify_download",
    "format_progress",
]
