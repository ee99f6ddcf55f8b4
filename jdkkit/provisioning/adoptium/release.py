"""
Adoptium release metadata.

Models the subset of the Adoptium v3 assets API response used for
provisioning. A response is a JSON array of releases:

    [
      {
        "release_name": "jdk-17.0.9+9",
        "version_data": {"openjdk_version": "17.0.9+9", "semver": "17.0.9+9"},
        "binaries": [
          {
            "image_type": "jdk",
            "package": {
              "checksum": "7b175dbe...",
              "link": "https://github.com/adoptium/.../OpenJDK17U-jdk_x64_linux_hotspot_17.0.9_9.tar.gz",
              "name": "OpenJDK17U-jdk_x64_linux_hotspot_17.0.9_9.tar.gz",
              "size": 192697000
            }
          }
        ]
      }
    ]
"""

from dataclasses import dataclass, field
from typing import Any, List, Optional

from jdkkit.core.exceptions import TransportError


@dataclass(frozen=True)
class Package:
    """Downloadable archive of one binary."""

    checksum: str
    link: str
    name: str
    size: int


@dataclass(frozen=True)
class Binary:
    """One binary of a release (image type plus its package)."""

    image_type: str
    package: Package


@dataclass(frozen=True)
class VersionData:
    """Version information of a release."""

    openjdk_version: str
    semver: Optional[str] = None


@dataclass(frozen=True)
class AdoptiumRelease:
    """One release returned by the assets API."""

    release_name: str
    version_data: VersionData
    binaries: List[Binary] = field(default_factory=list)


def _require(data: dict, key: str, kind, context: str):
    value = data.get(key)
    # bool is an int subclass and never a valid size
    if not isinstance(value, kind) or isinstance(value, bool):
        raise TransportError(f"Malformed release data: {context}.{key} is {value!r}")
    return value


def _parse_package(data: Any) -> Package:
    if not isinstance(data, dict):
        raise TransportError("Malformed release data: binary has no package")
    return Package(
        checksum=_require(data, "checksum", str, "package"),
        link=_require(data, "link", str, "package"),
        name=_require(data, "name", str, "package"),
        size=_require(data, "size", int, "package"),
    )


def _parse_binary(data: Any) -> Binary:
    if not isinstance(data, dict):
        raise TransportError("Malformed release data: binary is not an object")
    return Binary(
        image_type=_require(data, "image_type", str, "binary"),
        package=_parse_package(data.get("package")),
    )


def _parse_release(data: Any) -> AdoptiumRelease:
    if not isinstance(data, dict):
        raise TransportError("Malformed release data: release is not an object")

    version_data = data.get("version_data")
    if not isinstance(version_data, dict):
        raise TransportError("Malformed release data: release has no version_data")

    semver = version_data.get("semver")
    binaries = data.get("binaries", [])
    if not isinstance(binaries, list):
        raise TransportError("Malformed release data: binaries is not a list")

    return AdoptiumRelease(
        release_name=data.get("release_name") or "",
        version_data=VersionData(
            openjdk_version=_require(version_data, "openjdk_version", str, "version_data"),
            semver=semver if isinstance(semver, str) else None,
        ),
        binaries=[_parse_binary(binary) for binary in binaries],
    )


def parse_releases(payload: Any) -> List[AdoptiumRelease]:
    """
    Parse a decoded assets API response.

    Args:
        payload: Decoded JSON document

    Returns:
        List of releases, possibly empty

    Raises:
        TransportError: If the payload does not have the expected shape
    """
    if not isinstance(payload, list):
        raise TransportError(
            f"Malformed release data: expected a list, got {type(payload).__name__}"
        )
    return [_parse_release(release) for release in payload]


__all__ = [
    "AdoptiumRelease",
    "Binary",
    "Package",
    "VersionData",
    "parse_releases",
]
