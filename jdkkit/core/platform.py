"""
Platform detection for jdkkit.

This module detects the current operating system and CPU architecture and
maps them onto the names used by Java runtime release catalogs.

Usage:
    from jdkkit.core.platform import detect_platform

    platform_info = detect_platform()
    print(f"OS: {platform_info.os.value}")
    print(f"Architecture: {platform_info.arch.value}")
"""

import functools
import platform
from dataclasses import dataclass
from enum import Enum
from typing import Optional


class OperatingSystem(Enum):
    """Host operating system."""

    WINDOWS = "windows"
    LINUX = "linux"
    MACOS = "macos"
    UNKNOWN = "unknown"

    @property
    def is_windows(self) -> bool:
        return self is OperatingSystem.WINDOWS

    @property
    def is_macos(self) -> bool:
        return self is OperatingSystem.MACOS

    @property
    def is_unix_like(self) -> bool:
        return self in (OperatingSystem.LINUX, OperatingSystem.MACOS)

    def exe_suffix(self, name: str) -> str:
        """
        Append the platform executable suffix to a program name.

        Example:
            >>> OperatingSystem.WINDOWS.exe_suffix("java")
            'java.exe'
        """
        if self.is_windows:
            return f"{name}.exe"
        return name

    @classmethod
    def current(cls) -> "OperatingSystem":
        """Detect the current operating system."""
        system = platform.system().lower()

        if system == "windows":
            return cls.WINDOWS
        elif system == "linux":
            return cls.LINUX
        elif system == "darwin":
            return cls.MACOS
        else:
            return cls.UNKNOWN


class Architecture(Enum):
    """CPU architecture, spelled as release catalogs spell it."""

    X86 = "x86"
    X64 = "x64"
    AARCH64 = "aarch64"
    ARM = "arm"
    PPC64 = "ppc64"
    PPC64LE = "ppc64le"
    S390X = "s390x"
    RISCV64 = "riscv64"

    @classmethod
    def parse(cls, text: Optional[str]) -> Optional["Architecture"]:
        """
        Parse an architecture name, normalizing common aliases.

        Args:
            text: Architecture name (e.g. 'amd64', 'x86_64', 'arm64')

        Returns:
            Architecture, or None if unknown

        Example:
            >>> Architecture.parse("amd64")
            <Architecture.X64: 'x64'>
        """
        if not text:
            return None

        machine = text.strip().lower()

        if machine in ("x86_64", "amd64", "x64"):
            return cls.X64
        elif machine in ("aarch64", "arm64"):
            return cls.AARCH64
        elif machine in ("i386", "i486", "i586", "i686", "x86", "x32"):
            return cls.X86
        elif machine in ("ppc64", "ppc64le", "s390x", "riscv64"):
            return cls(machine)
        elif machine.startswith("arm"):
            return cls.ARM
        else:
            return None

    @classmethod
    def current(cls) -> Optional["Architecture"]:
        """Detect the current CPU architecture."""
        return cls.parse(platform.machine())


@dataclass(frozen=True)
class PlatformInfo:
    """
    Host platform information.

    Attributes:
        os: Operating system
        arch: CPU architecture, or None if it could not be identified
    """

    os: OperatingSystem
    arch: Optional[Architecture]

    def platform_string(self) -> str:
        """
        Get canonical platform string (e.g., 'linux-x64', 'macos-aarch64').
        """
        arch = self.arch.value if self.arch else "unknown"
        return f"{self.os.value}-{arch}"

    def __str__(self) -> str:
        return self.platform_string()


@functools.lru_cache(maxsize=1)
def detect_platform() -> PlatformInfo:
    """
    Detect current platform information.

    This function is cached - it only runs detection once per process.

    Returns:
        PlatformInfo instance with detected platform information
    """
    return PlatformInfo(os=OperatingSystem.current(), arch=Architecture.current())


def clear_platform_cache():
    """
    Clear the platform detection cache.

    This forces the next call to detect_platform() to re-detect.
    """
    detect_platform.cache_clear()


__all__ = [
    "OperatingSystem",
    "Architecture",
    "PlatformInfo",
    "detect_platform",
    "clear_platform_cache",
]
