"""
Java installation probing.

A probe runs a candidate ``java`` executable and extracts a structured
descriptor of the runtime it belongs to. Probing is used to validate
manifest records and to recover installations missing from the manifest.

Concepts:
    Installation root - the top-level extracted directory of one runtime.
    Java home - the directory containing the ``bin`` folder. On Linux and
    Windows this is the installation root, on macOS it is the
    ``Contents/Home`` folder within it.
"""

import logging
import re
import subprocess
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

from jdkkit.core.platform import Architecture, OperatingSystem
from jdkkit.core.version import JavaVersion

logger = logging.getLogger(__name__)

# Properties a probe needs to build a JavaInstall.
REQUIRED_PROPERTIES = (
    "java.home",
    "java.vendor",
    "java.vm.name",
    "java.version",
    "java.runtime.name",
    "java.runtime.version",
    "os.arch",
)

# "    key = value" lines from -XshowSettings:properties
_PROPERTY_LINE = re.compile(r"^ {4}(\S+) = (.*)$")


def get_home_directory(installation_dir: Path, os: Optional[OperatingSystem] = None) -> Path:
    """
    Get the Java home directory of an installation root.

    Args:
        installation_dir: Installation root directory
        os: Operating system the layout belongs to (default: current)

    Returns:
        Java home directory
    """
    os = os or OperatingSystem.current()
    if os.is_macos:
        return installation_dir / "Contents" / "Home"
    return installation_dir


def get_executable(
    home_dir: Path, executable: str, os: Optional[OperatingSystem] = None
) -> Path:
    """Get the named executable inside a Java home directory."""
    os = os or OperatingSystem.current()
    return home_dir / "bin" / os.exe_suffix(executable)


def get_java_executable(
    home_dir: Path, os: Optional[OperatingSystem] = None, use_javaw: bool = False
) -> Path:
    """
    Get the ``java`` executable for a Java home directory.

    Args:
        home_dir: Java home directory
        os: Operating system (default: current)
        use_javaw: Use ``javaw`` instead of ``java`` on Windows
    """
    os = os or OperatingSystem.current()
    name = "javaw" if os.is_windows and use_javaw else "java"
    return get_executable(home_dir, name, os)


@dataclass
class JavaInstall:
    """
    Properties of one Java installation, as reported by its runtime.

    Attributes:
        java_home: Java home directory
        vendor: java.vendor
        impl_name: java.vm.name
        impl_version: java.version
        runtime_name: java.runtime.name
        runtime_version: java.runtime.version (full build, e.g. '17.0.9+9')
        architecture: os.arch, normalized (None if unknown)
        has_compiler: Whether a javac executable sits next to java
    """

    java_home: Path
    vendor: str
    impl_name: str
    impl_version: str
    runtime_name: str
    runtime_version: str
    architecture: Optional[Architecture]
    has_compiler: bool = False
    lang_version: JavaVersion = field(init=False)

    def __post_init__(self):
        version = JavaVersion.parse(self.impl_version)
        if version is None:
            raise ValueError(f"Unable to parse java version: {self.impl_version}")
        self.lang_version = version

    @property
    def is_openj9(self) -> bool:
        return "J9" in self.impl_name


class InstallationProbe(ABC):
    """
    Abstract interface for extracting installation properties from a
    java executable.
    """

    @abstractmethod
    def probe(self, executable: Path) -> Optional[JavaInstall]:
        """
        Probe a java executable.

        Args:
            executable: Path to a java executable

        Returns:
            JavaInstall, or None if the executable is missing, fails,
            or does not answer in time
        """
        pass


class JavaPropertiesProbe(InstallationProbe):
    """
    Probe that runs ``java -XshowSettings:properties -version``.

    The child process is killed if it does not exit within the timeout,
    and the installation is then treated as invalid.
    """

    def __init__(self, timeout: int = 30, os: Optional[OperatingSystem] = None):
        """
        Args:
            timeout: Maximum seconds to wait for the child process
            os: Operating system used for executable naming (default: current)
        """
        self.timeout = timeout
        self.os = os or OperatingSystem.current()

    def probe(self, executable: Path) -> Optional[JavaInstall]:
        executable = Path(executable)
        if not executable.exists():
            logger.debug(f"Executable does not exist: {executable}")
            return None

        try:
            result = subprocess.run(
                [str(executable.resolve()), "-XshowSettings:properties", "-version"],
                capture_output=True,
                text=True,
                encoding="utf-8",
                errors="replace",
                timeout=self.timeout,
                check=False,
            )
        except subprocess.TimeoutExpired:
            logger.warning(
                f"Waited more than {self.timeout} seconds for {executable}. Force closed."
            )
            return None
        except OSError as e:
            logger.debug(f"Failed to run {executable}: {e}")
            return None

        if result.returncode != 0:
            logger.debug(f"{executable} exited with code {result.returncode}")
            return None

        # Properties go to stderr, some launchers print them to stdout
        properties = parse_properties(result.stderr.splitlines())
        properties.update(parse_properties(result.stdout.splitlines()))
        return self._build_install(executable, properties)

    def _build_install(
        self, executable: Path, properties: Dict[str, str]
    ) -> Optional[JavaInstall]:
        missing = [key for key in REQUIRED_PROPERTIES if not properties.get(key)]
        if missing:
            logger.debug(f"Missing properties {missing} for vm: {executable}")
            return None

        java_home = Path(properties["java.home"]).absolute()
        # Java 8 reports the nested jre folder, the real home is its parent
        if java_home.name == "jre" and (java_home.parent / "bin").exists():
            java_home = java_home.parent

        try:
            return JavaInstall(
                java_home=java_home,
                vendor=properties["java.vendor"],
                impl_name=properties["java.vm.name"],
                impl_version=properties["java.version"],
                runtime_name=properties["java.runtime.name"],
                runtime_version=properties["java.runtime.version"],
                architecture=Architecture.parse(properties["os.arch"]),
                has_compiler=get_executable(java_home, "javac", self.os).exists(),
            )
        except ValueError as e:
            logger.debug(f"Failed to parse java install {executable}: {e}")
            return None


def parse_properties(lines: List[str]) -> Dict[str, str]:
    """
    Parse ``-XshowSettings:properties`` output.

    Multi-valued properties print their extra values on further indented
    continuation lines, only the first value is kept.

    Example:
        >>> parse_properties(["Property settings:", "    java.version = 17.0.9"])
        {'java.version': '17.0.9'}
    """
    properties = {}
    for line in lines:
        match = _PROPERTY_LINE.match(line.rstrip("\r"))
        if match:
            properties[match.group(1)] = match.group(2).strip()
    return properties


__all__ = [
    "JavaInstall",
    "InstallationProbe",
    "JavaPropertiesProbe",
    "get_home_directory",
    "get_executable",
    "get_java_executable",
    "parse_properties",
]
