"""
Archive extraction for Java runtime packages.

Supported formats:
- .tar.gz, .tgz
- .zip

Extraction runs in two passes over the archive. The first pass establishes
the archive's base path (its single top-level wrapper directory); the second
extracts every entry with that prefix stripped, so the runtime lands directly
in the extraction directory. Timestamps and POSIX permissions are preserved
where the host and the archive format allow.
"""

import logging
import os
import shutil
import stat
import tarfile
import time
import zipfile
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Callable, IO, Iterator, List, Optional, Tuple, Union

from jdkkit.core.exceptions import (
    ArchiveExtractionError,
    InsecureArchiveError,
    UnsupportedArchiveFormat,
)
from jdkkit.core.filesystem import is_relative_to

logger = logging.getLogger(__name__)

IS_POSIX = os.name == "posix"

# Default modes as reported by tar implementations for directories and files.
DEFAULT_DIR_MODE = 0o40755
DEFAULT_FILE_MODE = 0o100644

_ARCHIVE_EXTENSIONS = (".tar.gz", ".tgz", ".zip")


@dataclass
class ArchiveEntry:
    """Format-independent view of one archive member."""

    name: str
    is_dir: bool = False
    mtime: Optional[float] = None
    mode: Optional[int] = None
    symlink_target: Optional[str] = None
    hardlink_target: Optional[str] = None


EntryOpener = Optional[Callable[[], IO[bytes]]]


def strip_archive_extension(file_name: str) -> str:
    """
    Remove a supported archive extension from a file name.

    Example:
        >>> strip_archive_extension("OpenJDK17U-jdk_x64_linux_hotspot_17.0.9_9.tar.gz")
        'OpenJDK17U-jdk_x64_linux_hotspot_17.0.9_9'
    """
    lowered = file_name.lower()
    for ext in _ARCHIVE_EXTENSIONS:
        if lowered.endswith(ext):
            return file_name[: -len(ext)]
    return file_name


def fix_mode(mode: int) -> int:
    """
    Normalize an archive mode into permission bits.

    Some archive writers store the octal digits of a mode as a decimal
    number (755 instead of 0o755). Known default modes are trusted as-is,
    small three digit values made only of octal digits are reinterpreted.

    Example:
        >>> oct(fix_mode(0o100644))
        '0o644'
        >>> oct(fix_mode(755))
        '0o755'
    """
    if mode in (DEFAULT_DIR_MODE, DEFAULT_FILE_MODE):
        return mode & 0o7777

    text = str(mode)
    if 0o777 < mode <= 777 and all(c in "01234567" for c in text):
        return int(text, 8)

    return mode & 0o7777


def extract_archive(
    base_dir: Union[str, Path],
    archive_path: Union[str, Path],
    dir_name: Optional[str] = None,
) -> Path:
    """
    Extract a runtime archive beneath base_dir.

    Args:
        base_dir: Directory the installation directory is created in
        archive_path: Path to the archive file
        dir_name: Name of the installation directory (default: archive name
            without its extension)

    Returns:
        Path to the installation root (base_dir / dir_name)

    Raises:
        UnsupportedArchiveFormat: If archive format is not recognized
        InsecureArchiveError: If archive contains malicious paths
        ArchiveExtractionError: If extraction fails

    Example:
        >>> extract_archive(Path('jdks'), Path('jdks/jdk.tar.gz'), 'jdk_x64')
        PosixPath('jdks/jdk_x64')
    """
    base_dir = Path(base_dir)
    archive_path = Path(archive_path)

    if not archive_path.exists():
        raise ArchiveExtractionError(f"Archive not found: {archive_path}")

    iterate = _select_reader(archive_path)
    extraction_dir = base_dir / (dir_name or strip_archive_extension(archive_path.name))

    try:
        base_path = _find_base_path(iterate(archive_path))
        logger.debug(
            f"Extracting {archive_path.name} to {extraction_dir} (base path '{base_path}')"
        )
        extraction_dir.mkdir(parents=True, exist_ok=True)
        _extract_entries(iterate(archive_path), extraction_dir, base_path)
    except ArchiveExtractionError:
        raise
    except (OSError, tarfile.TarError, zipfile.BadZipFile, EOFError) as e:
        raise ArchiveExtractionError(f"Failed to extract {archive_path}: {e}") from e

    return extraction_dir


def _select_reader(
    archive_path: Path,
) -> Callable[[Path], Iterator[Tuple[ArchiveEntry, EntryOpener]]]:
    name = archive_path.name.lower()
    if name.endswith(".zip"):
        return _iter_zip
    if name.endswith((".tar.gz", ".tgz")):
        return _iter_tar_gz

    raise UnsupportedArchiveFormat(
        f"Unable to extract archive. Unhandled file format: {archive_path.name}. "
        "Supported: .zip, .tar.gz"
    )


def _normalize_name(name: str) -> str:
    name = name.replace("\\", "/")
    while name.startswith("./"):
        name = name[2:]
    name = name.rstrip("/")
    return "" if name == "." else name


def _iter_tar_gz(archive_path: Path) -> Iterator[Tuple[ArchiveEntry, EntryOpener]]:
    """Stream entries of a gzip compressed tar in archive order."""
    with tarfile.open(archive_path, "r|gz") as tar:
        for member in tar:
            entry = ArchiveEntry(
                name=_normalize_name(member.name),
                is_dir=member.isdir(),
                mtime=member.mtime,
                mode=member.mode,
            )
            opener: EntryOpener = None
            if member.issym():
                entry.symlink_target = member.linkname
            elif member.islnk():
                entry.hardlink_target = _normalize_name(member.linkname)
            elif member.isfile():
                opener = lambda m=member: tar.extractfile(m)  # noqa: E731
            elif not member.isdir():
                logger.debug(f"Skipping special tar member: {member.name}")
                continue
            yield entry, opener


def _iter_zip(archive_path: Path) -> Iterator[Tuple[ArchiveEntry, EntryOpener]]:
    """Iterate entries of a zip archive in central directory order."""
    with zipfile.ZipFile(archive_path, "r") as zf:
        for info in zf.infolist():
            unix_mode = (info.external_attr >> 16) & 0xFFFF
            entry = ArchiveEntry(
                name=_normalize_name(info.filename),
                is_dir=info.is_dir(),
                mtime=time.mktime(info.date_time + (0, 0, -1)),
                mode=unix_mode or None,
            )
            opener: EntryOpener = None
            if unix_mode and stat.S_ISLNK(unix_mode):
                entry.symlink_target = zf.read(info).decode("utf-8")
            elif not entry.is_dir:
                opener = lambda i=info: zf.open(i)  # noqa: E731
            yield entry, opener


def _find_base_path(entries: Iterator[Tuple[ArchiveEntry, EntryOpener]]) -> str:
    """
    Scan the full archive and determine the prefix to strip.

    The first directory entry defines the base path. Archives without
    directory entries fall back to the top-level component shared by all
    entries. Nothing is stripped unless every entry lives under the base.
    """
    base_path: Optional[str] = None
    names: List[str] = []

    for entry, _ in entries:
        if not entry.name:
            continue
        _check_member_name(entry.name)
        if entry.is_dir and base_path is None:
            base_path = entry.name
        names.append(entry.name)

    if not names:
        raise ArchiveExtractionError(
            "Base path was not set during extraction. Empty archive?"
        )

    if base_path is None:
        tops = {name.split("/", 1)[0] for name in names}
        if len(tops) == 1 and any("/" in name for name in names):
            base_path = tops.pop()

    if base_path and all(
        name == base_path or name.startswith(base_path + "/") for name in names
    ):
        return base_path

    return ""


def _check_member_name(name: str) -> None:
    member = PurePosixPath(name)
    if member.is_absolute() or ".." in member.parts or ":" in member.parts[0]:
        raise InsecureArchiveError(
            f"Archive member '{name}' attempts directory traversal. "
            "This is a security risk and extraction has been blocked."
        )


def _strip_base(name: str, base_path: str) -> str:
    if not base_path:
        return name
    if name == base_path:
        return ""
    return name[len(base_path) + 1 :]


def _resolve_target(extraction_dir: Path, relative: str) -> Path:
    """Map a stripped entry name into the extraction directory, safely."""
    target = extraction_dir / relative if relative else extraction_dir
    if not is_relative_to(target.resolve(), extraction_dir.resolve()):
        raise InsecureArchiveError(
            f"Archive member '{relative}' attempts directory traversal. "
            "This is a security risk and extraction has been blocked."
        )
    return target


def _extract_entries(
    entries: Iterator[Tuple[ArchiveEntry, EntryOpener]],
    extraction_dir: Path,
    base_path: str,
) -> None:
    directories: List[Tuple[Path, ArchiveEntry]] = []

    for entry, opener in entries:
        if not entry.name:
            continue
        target = _resolve_target(extraction_dir, _strip_base(entry.name, base_path))

        if entry.is_dir:
            target.mkdir(parents=True, exist_ok=True)
            directories.append((target, entry))
            continue

        target.parent.mkdir(parents=True, exist_ok=True)

        if entry.symlink_target is not None:
            _create_symlink(target, entry.symlink_target, extraction_dir)
        elif entry.hardlink_target is not None:
            source = _resolve_target(
                extraction_dir, _strip_base(entry.hardlink_target, base_path)
            )
            shutil.copy2(source, target)
        elif opener is not None:
            with opener() as src, open(target, "wb") as dst:
                shutil.copyfileobj(src, dst)
            _write_attributes(target, entry)

    # Directory attributes last, writing children would bump their mtime
    for directory, entry in reversed(directories):
        _write_attributes(directory, entry)


def _create_symlink(link: Path, link_target: str, extraction_dir: Path) -> None:
    if not IS_POSIX:
        logger.warning(f"Skipping symlink {link} -> {link_target}, unsupported on this host")
        return

    resolved = (link.parent / link_target).resolve()
    if os.path.isabs(link_target) or not is_relative_to(
        resolved, extraction_dir.resolve()
    ):
        raise InsecureArchiveError(
            f"Archive symlink '{link.name}' points outside the extraction directory: "
            f"{link_target}"
        )

    if link.is_symlink() or link.exists():
        link.unlink()
    os.symlink(link_target, link)


def _write_attributes(path: Path, entry: ArchiveEntry) -> None:
    if entry.mtime is not None:
        os.utime(path, (entry.mtime, entry.mtime))

    if IS_POSIX and entry.mode is not None:
        os.chmod(path, fix_mode(entry.mode))


__all__ = [
    "ArchiveEntry",
    "extract_archive",
    "strip_archive_extension",
    "fix_mode",
    "DEFAULT_DIR_MODE",
    "DEFAULT_FILE_MODE",
]
