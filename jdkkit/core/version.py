"""
Java version model.

Parses and compares Java version strings. A JavaVersion only carries the
major (feature release) number; full build strings such as ``17.0.9+9`` are
compared with ``build_version_key``.

Usage:
    from jdkkit.core.version import JavaVersion

    version = JavaVersion.parse("1.8.0_392")
    assert version == JavaVersion.JAVA_8
"""

import re
from dataclasses import dataclass
from typing import Optional, Tuple

from jdkkit.core.exceptions import InvalidVersionError

# Leading "major[.minor]" of any JDK version string, optionally quoted.
_VERSION_PATTERN = re.compile(r'^\s*"?(\d+)(?:\.(\d+))?')

# 1.8.0_392-b08
_LEGACY_BUILD_PATTERN = re.compile(r"^1\.(\d+)(?:\.(\d+))?(?:_(\d+))?(?:-b(\d+))?")
# 17.0.9+9, 21+35, 21-ea+35
_BUILD_PATTERN = re.compile(r"^(\d+(?:\.\d+)*)[^+]*(?:\+(\d+))?")


@dataclass(frozen=True, order=True)
class JavaVersion:
    """
    A Java major (feature release) version.

    Two versions are equal iff their major numbers are equal.

    Attributes:
        major: Feature release number (8, 11, 17, ...)
    """

    major: int

    def __post_init__(self):
        if not isinstance(self.major, int) or self.major < 1:
            raise InvalidVersionError(f"Invalid Java major version: {self.major!r}")

    @property
    def short_string(self) -> str:
        """Version as used in release API paths (e.g. '17')."""
        return str(self.major)

    def __str__(self) -> str:
        return self.short_string

    @classmethod
    def parse(cls, text: Optional[str]) -> Optional["JavaVersion"]:
        """
        Parse a Java version string.

        Supports the old ``1.x`` scheme ('1.8', '1.8.0_392-b08') and the
        new single-number scheme ('17', '17.0.9+9', '21-ea').

        Args:
            text: Version string

        Returns:
            Parsed JavaVersion, or None if the string has no leading version

        Example:
            >>> JavaVersion.parse("17.0.9+9")
            JavaVersion(major=17)
            >>> JavaVersion.parse("1.8.0_392")
            JavaVersion(major=8)
        """
        if not text:
            return None

        match = _VERSION_PATTERN.match(text)
        if not match:
            return None

        first = int(match.group(1))
        second = match.group(2)

        # Old scheme: 1.x means Java x
        if first == 1 and second is not None:
            major = int(second)
        else:
            major = first

        if major < 1:
            return None
        return cls(major)


JavaVersion.JAVA_8 = JavaVersion(8)
JavaVersion.JAVA_11 = JavaVersion(11)
JavaVersion.JAVA_16 = JavaVersion(16)
JavaVersion.JAVA_17 = JavaVersion(17)
JavaVersion.JAVA_21 = JavaVersion(21)


def build_version_key(text: Optional[str]) -> Tuple[int, ...]:
    """
    Get a sort key for a full build version string.

    Keys are (feature, interim, update, patch, build). Missing dotted
    components count as zero, so the GA build '21+35' sorts before the
    update '21.0.1+12'. The old scheme '1.8.0_392-b08' maps to
    (8, 0, 392, 0, 8).

    Args:
        text: Build version string (e.g. '17.0.9+9', '1.8.0_392-b08')

    Returns:
        Tuple of five integers, empty for unparsable input

    Example:
        >>> build_version_key("17.0.9+9") < build_version_key("17.0.10+7")
        True
        >>> build_version_key("21+35") < build_version_key("21.0.1+12")
        True
    """
    if not text:
        return ()
    text = text.strip().strip('"')

    legacy = _LEGACY_BUILD_PATTERN.match(text)
    if legacy:
        feature, interim, update, build = (int(g) if g else 0 for g in legacy.groups())
        return (feature, interim, update, 0, build)

    match = _BUILD_PATTERN.match(text)
    if not match:
        return ()

    numbers = [int(part) for part in match.group(1).split(".")][:4]
    numbers += [0] * (4 - len(numbers))
    build = int(match.group(2)) if match.group(2) else 0
    return tuple(numbers) + (build,)


__all__ = [
    "JavaVersion",
    "build_version_key",
]
