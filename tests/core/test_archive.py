"""
Unit tests for archive extraction.
"""

import io
import os
import stat
import tarfile
import zipfile

import pytest

from jdkkit.core.archive import (
    DEFAULT_DIR_MODE,
    DEFAULT_FILE_MODE,
    extract_archive,
    fix_mode,
    strip_archive_extension,
)
from jdkkit.core.exceptions import (
    ArchiveExtractionError,
    InsecureArchiveError,
    UnsupportedArchiveFormat,
)
from tests.fixtures.jdks import build_jdk_tar_gz, build_jdk_zip

posix_only = pytest.mark.skipif(os.name != "posix", reason="POSIX permissions only")


def _write_tar(path, members):
    """Write a tar.gz from (name, data_or_None_for_dir, mode) tuples."""
    with tarfile.open(path, "w:gz") as tar:
        for name, data, mode in members:
            info = tarfile.TarInfo(name)
            info.mode = mode
            info.mtime = 1600000000
            if data is None:
                info.type = tarfile.DIRTYPE
                tar.addfile(info)
            else:
                info.size = len(data)
                tar.addfile(info, io.BytesIO(data))
    return path


class TestStripArchiveExtension:
    """Test strip_archive_extension."""

    @pytest.mark.parametrize(
        "name,expected",
        [
            ("jdk.tar.gz", "jdk"),
            ("jdk.tgz", "jdk"),
            ("OpenJDK17U-jdk_x64_windows_hotspot_17.0.9_9.zip", "OpenJDK17U-jdk_x64_windows_hotspot_17.0.9_9"),
            ("jdk.TAR.GZ", "jdk"),
            ("jdk.tar.xz", "jdk.tar.xz"),
        ],
    )
    def test_strip(self, name, expected):
        assert strip_archive_extension(name) == expected


class TestFixMode:
    """Test fix_mode."""

    def test_default_modes(self):
        """Test default dir and file modes keep their permission bits."""
        assert fix_mode(DEFAULT_DIR_MODE) == 0o755
        assert fix_mode(DEFAULT_FILE_MODE) == 0o644

    def test_decimal_digits_reinterpreted(self):
        """Test octal digits stored as a decimal number are reinterpreted."""
        assert fix_mode(755) == 0o755
        assert fix_mode(644) == 0o644

    def test_plain_modes_unchanged(self):
        """Test ordinary permission values are kept."""
        assert fix_mode(0o755) == 0o755
        assert fix_mode(0o644) == 0o644
        assert fix_mode(0o100755) == 0o755

    def test_non_octal_digits_masked(self):
        """Test values with 8 or 9 digits are not reinterpreted."""
        assert fix_mode(598) == 598 & 0o7777


class TestExtractTarGz:
    """Test extraction of gzip compressed tars."""

    def test_strips_wrapper_directory(self, tmp_path):
        """Test the top-level wrapper directory is stripped."""
        archive = tmp_path / "jdk.tar.gz"
        archive.write_bytes(build_jdk_tar_gz())

        root = extract_archive(tmp_path, archive, "jdk_x64")

        assert root == tmp_path / "jdk_x64"
        assert (root / "bin" / "java").is_file()
        assert (root / "bin" / "javac").is_file()
        assert (root / "release").read_text().startswith("JAVA_RUNTIME_VERSION=17.0.9+9")
        assert not (root / "jdk-17.0.9+9").exists()

    def test_default_dir_name(self, tmp_path):
        """Test the directory defaults to the archive name without extension."""
        archive = tmp_path / "OpenJDK17U-jdk.tar.gz"
        archive.write_bytes(build_jdk_tar_gz())

        root = extract_archive(tmp_path, archive)

        assert root == tmp_path / "OpenJDK17U-jdk"

    def test_preserves_mtime(self, tmp_path):
        """Test file and directory timestamps come from the archive."""
        archive = tmp_path / "jdk.tar.gz"
        archive.write_bytes(build_jdk_tar_gz())

        root = extract_archive(tmp_path, archive, "jdk")

        assert int((root / "release").stat().st_mtime) == 1700000000
        assert int((root / "bin").stat().st_mtime) == 1700000000

    @posix_only
    def test_preserves_permissions(self, tmp_path):
        """Test POSIX permission bits come from the archive."""
        archive = tmp_path / "jdk.tar.gz"
        archive.write_bytes(build_jdk_tar_gz())

        root = extract_archive(tmp_path, archive, "jdk")

        assert stat.S_IMODE((root / "bin" / "java").stat().st_mode) == 0o755
        assert stat.S_IMODE((root / "release").stat().st_mode) == 0o644

    def test_files_without_directory_entries(self, tmp_path):
        """Test ancestor directories are created for file-only archives."""
        archive = _write_tar(
            tmp_path / "jdk.tar.gz",
            [
                ("jdk-21/bin/java", b"java", 0o755),
                ("jdk-21/lib/modules", b"modules", 0o644),
            ],
        )

        root = extract_archive(tmp_path, archive, "jdk21")

        assert (root / "bin" / "java").read_bytes() == b"java"
        assert (root / "lib" / "modules").read_bytes() == b"modules"

    def test_no_common_wrapper(self, tmp_path):
        """Test nothing is stripped when entries do not share the base path."""
        archive = _write_tar(
            tmp_path / "flat.tar.gz",
            [
                ("bin/", None, 0o755),
                ("bin/java", b"java", 0o755),
                ("release", b"JAVA_VERSION=17", 0o644),
            ],
        )

        root = extract_archive(tmp_path, archive, "flat")

        assert (root / "bin" / "java").is_file()
        assert (root / "release").is_file()

    def test_empty_archive(self, tmp_path):
        """Test an archive without entries is rejected."""
        archive = _write_tar(tmp_path / "empty.tar.gz", [])

        with pytest.raises(ArchiveExtractionError, match="Empty archive"):
            extract_archive(tmp_path, archive)

    def test_path_traversal_blocked(self, tmp_path):
        """Test entries escaping the extraction directory are rejected."""
        archive = _write_tar(
            tmp_path / "evil.tar.gz",
            [("../evil.txt", b"evil", 0o644)],
        )

        with pytest.raises(InsecureArchiveError):
            extract_archive(tmp_path / "out", archive)

        assert not (tmp_path / "evil.txt").exists()

    @posix_only
    def test_symlink_inside_archive(self, tmp_path):
        """Test relative symlinks inside the installation are recreated."""
        archive = tmp_path / "links.tar.gz"
        with tarfile.open(archive, "w:gz") as tar:
            data = b"lib"
            info = tarfile.TarInfo("jdk/lib/libjvm.so")
            info.size = len(data)
            tar.addfile(info, io.BytesIO(data))
            link = tarfile.TarInfo("jdk/lib/libjvm_link.so")
            link.type = tarfile.SYMTYPE
            link.linkname = "libjvm.so"
            tar.addfile(link)

        root = extract_archive(tmp_path, archive, "links")

        assert (root / "lib" / "libjvm_link.so").is_symlink()
        assert (root / "lib" / "libjvm_link.so").read_bytes() == b"lib"

    def test_corrupt_archive(self, tmp_path):
        """Test garbage data raises ArchiveExtractionError."""
        archive = tmp_path / "broken.tar.gz"
        archive.write_bytes(b"not a gzip stream")

        with pytest.raises(ArchiveExtractionError):
            extract_archive(tmp_path, archive)


class TestExtractZip:
    """Test extraction of zip archives."""

    def test_strips_wrapper_directory(self, tmp_path):
        """Test the wrapper directory of a zip is stripped."""
        archive = tmp_path / "jdk.zip"
        archive.write_bytes(build_jdk_zip())

        root = extract_archive(tmp_path, archive, "jdk_x64")

        assert (root / "bin" / "java").is_file()
        assert (root / "release").is_file()

    def test_zip_slip_blocked(self, tmp_path):
        """Test zip entries escaping the extraction directory are rejected."""
        archive = tmp_path / "evil.zip"
        with zipfile.ZipFile(archive, "w") as zf:
            zf.writestr("../../evil.txt", "evil")

        with pytest.raises(InsecureArchiveError):
            extract_archive(tmp_path / "out", archive)


class TestArchiveErrors:
    """Test archive selection errors."""

    def test_unsupported_format(self, tmp_path):
        """Test unknown extensions are rejected."""
        archive = tmp_path / "jdk.tar.xz"
        archive.write_bytes(b"data")

        with pytest.raises(UnsupportedArchiveFormat):
            extract_archive(tmp_path, archive)

    def test_missing_archive(self, tmp_path):
        """Test missing archives are reported."""
        with pytest.raises(ArchiveExtractionError, match="not found"):
            extract_archive(tmp_path, tmp_path / "missing.zip")
