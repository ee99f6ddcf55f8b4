"""
Unit tests for installation probing.

The java executable is never run; subprocess.run is mocked.
"""

import subprocess
from pathlib import Path
from unittest.mock import patch

import pytest

from jdkkit.core.platform import Architecture, OperatingSystem
from jdkkit.core.version import JavaVersion
from jdkkit.installation.probe import (
    JavaInstall,
    JavaPropertiesProbe,
    get_executable,
    get_home_directory,
    get_java_executable,
    parse_properties,
)

PROPERTIES_OUTPUT = """Property settings:
    file.encoding = UTF-8
    java.class.path = 
    java.home = {home}
    java.library.path = /usr/java/packages/lib
        /usr/lib64
        /lib64
    java.runtime.name = OpenJDK Runtime Environment
    java.runtime.version = 17.0.9+9
    java.vendor = Eclipse Adoptium
    java.version = 17.0.9
    java.vm.name = OpenJDK 64-Bit Server VM
    os.arch = amd64
    os.name = Linux

openjdk version "17.0.9" 2023-10-17
"""


def _completed(stderr="", stdout="", returncode=0):
    return subprocess.CompletedProcess(
        args=["java"], returncode=returncode, stdout=stdout, stderr=stderr
    )


def _make_home(root: Path, javac: bool = True) -> Path:
    (root / "bin").mkdir(parents=True)
    (root / "bin" / "java").write_text("")
    if javac:
        (root / "bin" / "javac").write_text("")
    return root


class TestPathHelpers:
    """Test installation path helpers."""

    def test_home_directory_macos(self, tmp_path):
        """Test macOS homes live in Contents/Home."""
        assert get_home_directory(tmp_path, OperatingSystem.MACOS) == (
            tmp_path / "Contents" / "Home"
        )

    def test_home_directory_linux(self, tmp_path):
        """Test other platforms use the root itself."""
        assert get_home_directory(tmp_path, OperatingSystem.LINUX) == tmp_path

    def test_executables(self, tmp_path):
        """Test executable names per platform."""
        assert get_executable(tmp_path, "javac", OperatingSystem.LINUX) == (
            tmp_path / "bin" / "javac"
        )
        assert get_java_executable(tmp_path, OperatingSystem.WINDOWS) == (
            tmp_path / "bin" / "java.exe"
        )
        assert get_java_executable(tmp_path, OperatingSystem.WINDOWS, use_javaw=True) == (
            tmp_path / "bin" / "javaw.exe"
        )
        assert get_java_executable(tmp_path, OperatingSystem.LINUX, use_javaw=True) == (
            tmp_path / "bin" / "java"
        )


class TestParseProperties:
    """Test parse_properties."""

    def test_parses_first_values(self):
        """Test key/value lines are parsed and continuation lines ignored."""
        properties = parse_properties(PROPERTIES_OUTPUT.format(home="/jdk").splitlines())

        assert properties["java.home"] == "/jdk"
        assert properties["java.runtime.version"] == "17.0.9+9"
        assert properties["java.library.path"] == "/usr/java/packages/lib"
        assert "/usr/lib64" not in properties.values()

    def test_ignores_other_lines(self):
        """Test non-property output is ignored."""
        assert parse_properties(["openjdk version \"17.0.9\"", ""]) == {}


class TestJavaInstall:
    """Test JavaInstall descriptor."""

    def test_lang_version(self, tmp_path):
        """Test the language version is parsed from the implementation version."""
        install = JavaInstall(
            tmp_path, "Azul", "OpenJDK 64-Bit Server VM", "1.8.0_392",
            "OpenJDK Runtime Environment", "1.8.0_392-b08", Architecture.X64,
        )
        assert install.lang_version == JavaVersion.JAVA_8
        assert install.is_openj9 is False

    def test_openj9(self, tmp_path):
        """Test OpenJ9 detection."""
        install = JavaInstall(
            tmp_path, "IBM", "Eclipse OpenJ9 VM", "17.0.9",
            "IBM Semeru Runtime", "17.0.9+9", Architecture.X64,
        )
        assert install.is_openj9 is True

    def test_invalid_version(self, tmp_path):
        """Test unparsable versions are rejected."""
        with pytest.raises(ValueError):
            JavaInstall(tmp_path, "v", "vm", "unknown", "rt", "rt", None)


class TestJavaPropertiesProbe:
    """Test JavaPropertiesProbe."""

    def test_missing_executable(self, tmp_path):
        """Test a missing executable is not probed."""
        probe = JavaPropertiesProbe(os=OperatingSystem.LINUX)
        with patch("jdkkit.installation.probe.subprocess.run") as mock_run:
            assert probe.probe(tmp_path / "bin" / "java") is None
        mock_run.assert_not_called()

    def test_probe_success(self, tmp_path):
        """Test properties are turned into a JavaInstall."""
        home = _make_home(tmp_path / "jdk")
        output = PROPERTIES_OUTPUT.format(home=home)
        probe = JavaPropertiesProbe(timeout=5, os=OperatingSystem.LINUX)

        with patch(
            "jdkkit.installation.probe.subprocess.run", return_value=_completed(stderr=output)
        ) as mock_run:
            install = probe.probe(home / "bin" / "java")

        assert install is not None
        assert install.java_home == home.absolute()
        assert install.vendor == "Eclipse Adoptium"
        assert install.runtime_version == "17.0.9+9"
        assert install.architecture == Architecture.X64
        assert install.has_compiler is True
        assert install.lang_version == JavaVersion.JAVA_17

        args, kwargs = mock_run.call_args
        assert args[0][1:] == ["-XshowSettings:properties", "-version"]
        assert kwargs["timeout"] == 5

    def test_jre_without_compiler(self, tmp_path):
        """Test has_compiler is False without javac."""
        home = _make_home(tmp_path / "jre", javac=False)
        probe = JavaPropertiesProbe(os=OperatingSystem.LINUX)

        with patch(
            "jdkkit.installation.probe.subprocess.run",
            return_value=_completed(stderr=PROPERTIES_OUTPUT.format(home=home)),
        ):
            install = probe.probe(home / "bin" / "java")

        assert install.has_compiler is False

    def test_nested_jre_home_lifted(self, tmp_path):
        """Test a java.home ending in jre is lifted to the JDK root."""
        home = _make_home(tmp_path / "jdk8")
        (home / "jre").mkdir()
        probe = JavaPropertiesProbe(os=OperatingSystem.LINUX)

        with patch(
            "jdkkit.installation.probe.subprocess.run",
            return_value=_completed(stderr=PROPERTIES_OUTPUT.format(home=home / "jre")),
        ):
            install = probe.probe(home / "bin" / "java")

        assert install.java_home == home.absolute()

    def test_timeout(self, tmp_path, caplog):
        """Test a hanging executable is treated as invalid."""
        home = _make_home(tmp_path / "jdk")
        probe = JavaPropertiesProbe(timeout=1, os=OperatingSystem.LINUX)

        with patch(
            "jdkkit.installation.probe.subprocess.run",
            side_effect=subprocess.TimeoutExpired(cmd="java", timeout=1),
        ):
            assert probe.probe(home / "bin" / "java") is None

        assert "Force closed" in caplog.text

    def test_nonzero_exit(self, tmp_path):
        """Test a failing executable is treated as invalid."""
        home = _make_home(tmp_path / "jdk")
        probe = JavaPropertiesProbe(os=OperatingSystem.LINUX)

        with patch(
            "jdkkit.installation.probe.subprocess.run",
            return_value=_completed(returncode=1),
        ):
            assert probe.probe(home / "bin" / "java") is None

    def test_os_error(self, tmp_path):
        """Test an executable that cannot be started is treated as invalid."""
        home = _make_home(tmp_path / "jdk")
        probe = JavaPropertiesProbe(os=OperatingSystem.LINUX)

        with patch(
            "jdkkit.installation.probe.subprocess.run",
            side_effect=PermissionError("not executable"),
        ):
            assert probe.probe(home / "bin" / "java") is None

    def test_missing_properties(self, tmp_path):
        """Test incomplete output is treated as invalid."""
        home = _make_home(tmp_path / "jdk")
        probe = JavaPropertiesProbe(os=OperatingSystem.LINUX)

        with patch(
            "jdkkit.installation.probe.subprocess.run",
            return_value=_completed(stderr="    java.version = 17.0.9\n"),
        ):
            assert probe.probe(home / "bin" / "java") is None
