"""
Persisted manifest of managed Java installations.

The manifest is a JSON file inside the managed base directory holding a list
of installation records:

    [
      {
        "version": "17.0.9+9",
        "isJdk": true,
        "architecture": "x64",
        "hash": "a3d5f6e8...",
        "path": "jdk_x64"
      }
    ]

Older releases wrote an object keyed by version string instead:

    {"17.0.9+9": {"hash": "a3d5f6e8...", "path": "/abs/path/jdk"}}

Such files are migrated into the list schema when loaded.
"""

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, List, Optional, Tuple

from jdkkit.core.exceptions import ManifestError
from jdkkit.core.filesystem import atomic_write
from jdkkit.core.platform import Architecture

logger = logging.getLogger(__name__)

MANIFEST_FILE_NAME = "installations.json"


@dataclass
class InstallationRecord:
    """
    One managed installation.

    Attributes:
        version: Full build version reported by the runtime (e.g. '17.0.9+9')
        is_jdk: Whether the installation has a compiler
        architecture: Architecture of the runtime, None if unknown
        hash: Content hash of the installation, None if hashing failed
        path: Installation root, relative to the base directory
    """

    version: str
    is_jdk: bool
    architecture: Optional[Architecture]
    hash: Optional[str]
    path: str

    def to_dict(self) -> dict:
        data: dict = {"version": self.version, "isJdk": self.is_jdk}
        if self.architecture is not None:
            data["architecture"] = self.architecture.value
        if self.hash is not None:
            data["hash"] = self.hash
        data["path"] = self.path
        return data

    @classmethod
    def from_dict(cls, data: Any) -> "InstallationRecord":
        """
        Deserialize one record of the list schema.

        Raises:
            ManifestError: If the entry does not match the schema
        """
        if not isinstance(data, dict):
            raise ManifestError(f"Manifest entry must be an object, got {type(data).__name__}")

        version = data.get("version")
        path = data.get("path")
        is_jdk = data.get("isJdk")
        if not isinstance(version, str) or not isinstance(path, str):
            raise ManifestError(f"Manifest entry missing version or path: {data}")
        if not isinstance(is_jdk, bool):
            raise ManifestError(f"Manifest entry has invalid isJdk: {data}")

        arch_name = data.get("architecture")
        architecture = Architecture.parse(arch_name) if arch_name is not None else None
        if arch_name is not None and architecture is None:
            logger.debug(f"Unknown architecture '{arch_name}' in manifest entry {version}")

        content_hash = data.get("hash")
        if content_hash is not None and not isinstance(content_hash, str):
            raise ManifestError(f"Manifest entry has invalid hash: {data}")

        return cls(
            version=version,
            is_jdk=is_jdk,
            architecture=architecture,
            hash=content_hash,
            path=path,
        )


def _parse_current(data: Any) -> List[InstallationRecord]:
    if not isinstance(data, list):
        raise ManifestError("Manifest is not a list of installations")
    return [InstallationRecord.from_dict(entry) for entry in data]


def _parse_legacy(data: Any) -> List[InstallationRecord]:
    if not isinstance(data, dict):
        raise ManifestError("Manifest is not a legacy installation mapping")

    records = []
    for version, entry in data.items():
        if not isinstance(entry, dict) or not isinstance(entry.get("path"), str):
            raise ManifestError(f"Legacy manifest entry for {version} has no path")
        content_hash = entry.get("hash")
        records.append(
            InstallationRecord(
                version=version,
                # Only JDKs were provisioned by the legacy layout
                is_jdk=True,
                architecture=None,
                hash=content_hash if isinstance(content_hash, str) else None,
                path=entry["path"],
            )
        )
    return records


def parse_manifest(data: Any) -> Tuple[List[InstallationRecord], bool]:
    """
    Deserialize manifest data, trying the current schema before the legacy one.

    Args:
        data: Decoded JSON document

    Returns:
        (records, migrated) where migrated is True if the legacy schema was used

    Raises:
        ManifestError: If neither schema matches
    """
    try:
        return _parse_current(data), False
    except ManifestError as current_error:
        try:
            records = _parse_legacy(data)
        except ManifestError:
            raise current_error
        logger.info(f"Migrated {len(records)} installation(s) from legacy manifest format")
        return records, True


def load_manifest(manifest_path: Path) -> Tuple[List[InstallationRecord], bool]:
    """
    Load the manifest from disk.

    Corrupt manifests are discarded with a warning rather than raised, so a
    damaged file never prevents startup.

    Args:
        manifest_path: Path to installations.json

    Returns:
        (records, rewrite). Records are empty if the file is missing or
        unreadable. rewrite is True when the file on disk should be replaced:
        it used the legacy schema or could not be parsed.
    """
    manifest_path = Path(manifest_path)
    if not manifest_path.exists():
        logger.debug(f"Manifest not found at {manifest_path}, starting empty")
        return [], False

    try:
        with open(manifest_path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except OSError as e:
        logger.warning(f"Failed to read manifest {manifest_path}, ignoring it: {e}")
        return [], False
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        logger.warning(f"Failed to parse manifest {manifest_path}, ignoring it: {e}")
        return [], True

    try:
        return parse_manifest(data)
    except ManifestError as e:
        logger.warning(f"Failed to parse manifest {manifest_path}, ignoring it: {e}")
        return [], True


def save_manifest(manifest_path: Path, records: List[InstallationRecord]) -> None:
    """
    Persist the manifest atomically.

    Raises:
        ManifestError: If the file cannot be written
    """
    content = json.dumps([record.to_dict() for record in records], indent=2)
    try:
        atomic_write(manifest_path, content + "\n")
    except OSError as e:
        logger.error(f"Failed to save manifest {manifest_path}: {e}")
        raise ManifestError(f"Failed to save manifest {manifest_path}: {e}") from e

    logger.debug(f"Saved manifest with {len(records)} installation(s)")


__all__ = [
    "InstallationRecord",
    "MANIFEST_FILE_NAME",
    "load_manifest",
    "parse_manifest",
    "save_manifest",
]
