"""
Installation management for provisioned Java runtimes.

The JdkInstallationManager owns the manifest of installations inside a
managed base directory. It answers find requests from the manifest, asks a
provisioner for new runtimes on a miss, and reconciles the manifest with the
directory contents every time it is constructed.

Example:
    >>> manager = JdkInstallationManager(base_dir, AdoptiumProvisioner())
    >>> request = ProvisionRequest.builder().for_java_version(JavaVersion.JAVA_17).build()
    >>> java_home = manager.provision_jdk(request)
"""

import dataclasses
import logging
from pathlib import Path
from typing import Iterator, List, Optional, Set, Tuple

import requests

from jdkkit.core.config import JdkKitConfig
from jdkkit.core.exceptions import InvalidProvisionResultError
from jdkkit.core.filesystem import hash_installation, is_relative_to
from jdkkit.core.locking import LockManager
from jdkkit.core.platform import Architecture, PlatformInfo, detect_platform
from jdkkit.core.version import JavaVersion, build_version_key
from jdkkit.installation.manifest import (
    MANIFEST_FILE_NAME,
    InstallationRecord,
    load_manifest,
    save_manifest,
)
from jdkkit.installation.probe import (
    InstallationProbe,
    JavaInstall,
    JavaPropertiesProbe,
    get_home_directory,
    get_java_executable,
)
from jdkkit.installation.request import ProvisionRequest
from jdkkit.provisioning.base import JdkProvisioner
from jdkkit.provisioning.registry import create_provisioner

logger = logging.getLogger(__name__)


class JdkInstallationManager:
    """
    Manages Java runtimes installed into one base directory.

    Attributes:
        base_dir: Managed base directory
        provisioner: Provisioner used on cache misses
        probe: Probe used to validate and recover installations
        platform: Host platform
        manifest_path: Path to the installations manifest
    """

    def __init__(
        self,
        base_dir: Path,
        provisioner: JdkProvisioner,
        probe: Optional[InstallationProbe] = None,
        platform: Optional[PlatformInfo] = None,
        lock_manager: Optional[LockManager] = None,
        lock_timeout: int = 300,
        logger: Optional[logging.Logger] = None,
    ):
        """
        Initialize the manager and validate the manifest against the disk.

        Args:
            base_dir: Managed base directory (created if missing)
            provisioner: Provisioner used on cache misses
            probe: Installation probe (default: JavaPropertiesProbe)
            platform: Host platform (default: detected)
            lock_manager: Lock manager (default: locks inside base_dir)
            lock_timeout: Seconds to wait for the manifest lock
            logger: Logger to report through (default: module logger)
        """
        self.base_dir = Path(base_dir).absolute()
        self.base_dir.mkdir(parents=True, exist_ok=True)
        self.provisioner = provisioner
        self.probe = probe or JavaPropertiesProbe()
        self.platform = platform or detect_platform()
        self.lock_manager = lock_manager or LockManager.for_base_dir(self.base_dir)
        self.lock_timeout = lock_timeout
        self.logger = logger or logging.getLogger(__name__)
        self.manifest_path = self.base_dir / MANIFEST_FILE_NAME
        self._installations: List[InstallationRecord] = []

        with self.lock_manager.manifest_lock(timeout=self.lock_timeout):
            records, rewrite = load_manifest(self.manifest_path)
            self._installations = records
            self._validate_installations(rewrite)

    @classmethod
    def from_config(
        cls,
        config: JdkKitConfig,
        session: Optional[requests.Session] = None,
        logger: Optional[logging.Logger] = None,
    ) -> "JdkInstallationManager":
        """
        Build a manager and its provisioner from configuration.

        Args:
            config: Loaded configuration
            session: HTTP session for the provisioner (default: new session)
            logger: Logger to report through

        Raises:
            ConfigError: If the configured provisioner is unknown
        """
        provisioner = create_provisioner(
            config.provisioner,
            session=session,
            api_base=config.api_base,
            timeout=config.request_timeout,
            lock_timeout=config.lock_timeout,
            logger=logger,
        )
        return cls(
            config.base_dir,
            provisioner,
            probe=JavaPropertiesProbe(timeout=config.probe_timeout),
            lock_timeout=config.lock_timeout,
            logger=logger,
        )

    @property
    def installations(self) -> List[InstallationRecord]:
        """Copy of the known installation records."""
        return [dataclasses.replace(record) for record in self._installations]

    def find_jdk(
        self,
        version: JavaVersion,
        semver: Optional[str] = None,
        jre: bool = False,
        force_x64_on_mac: bool = False,
    ) -> Optional[Path]:
        """
        Find a managed installation.

        Args:
            version: Java major version
            semver: Exact build to require, or None for any build
            jre: Whether a JRE is acceptable
            force_x64_on_mac: On macOS, look for x64 installations

        Returns:
            Home directory of the newest matching installation, or None
        """
        candidates = [
            record
            for record in self._installations
            if self._matches(record, version, semver, jre, force_x64_on_mac)
        ]
        if not candidates:
            return None

        candidates.sort(key=lambda r: build_version_key(r.version), reverse=True)
        return get_home_directory(self._resolve(candidates[0]), self.platform.os)

    def find_jdk_for(self, request: ProvisionRequest) -> Optional[Path]:
        """Find a managed installation satisfying a provision request."""
        return self.find_jdk(
            request.version,
            semver=request.semver,
            jre=request.jre,
            force_x64_on_mac=request.force_x64_on_mac,
        )

    def provision_jdk(self, request: ProvisionRequest) -> Path:
        """
        Get a runtime for a request, provisioning one if none is installed.

        Args:
            request: Provision request

        Returns:
            Home directory of the installation

        Raises:
            ProvisioningError: If the provisioner fails
            InvalidProvisionResultError: If the provisioner reports a
                directory that does not exist
            LockTimeout: If another process holds the manifest too long
        """
        existing = self.find_jdk_for(request)
        if existing is not None:
            self.logger.debug(f"Found existing installation for {request}: {existing}")
            return existing

        with self.lock_manager.manifest_lock(timeout=self.lock_timeout):
            # Another process may have provisioned while we waited for the lock
            self._merge_from_disk()
            existing = self.find_jdk_for(request)
            if existing is not None:
                return existing

            self.logger.info(f"Provisioning Java {request}")
            result = self.provisioner.provision_jdk(self.base_dir, request)

            root = Path(result.extracted_path)
            if not root.is_absolute():
                root = self.base_dir / root
            if not root.is_dir():
                raise InvalidProvisionResultError(
                    f"Provisioner reported installation {root} which does not exist"
                )

            record = InstallationRecord(
                version=result.semver,
                is_jdk=result.is_jdk,
                architecture=result.architecture,
                hash=hash_installation(root),
                path=self._relativize(root),
            )
            self._installations = [
                r for r in self._installations if r.path != record.path
            ]
            self._installations.append(record)
            self._save()

        self.logger.info(f"Provisioned Java {result.semver} at {record.path}")
        return get_home_directory(root, self.platform.os)

    def check_integrity(self) -> List[InstallationRecord]:
        """
        Re-hash every installation and report the ones that changed.

        Records without a recorded hash are skipped.

        Returns:
            Records whose content no longer matches their recorded hash
        """
        modified = []
        for record in self._installations:
            if record.hash is None:
                continue
            current = hash_installation(self._resolve(record))
            if current != record.hash:
                self.logger.warning(
                    f"Installation {record.version} at {record.path} has been modified"
                )
                modified.append(dataclasses.replace(record))
        return modified

    def _matches(
        self,
        record: InstallationRecord,
        version: JavaVersion,
        semver: Optional[str],
        jre: bool,
        force_x64_on_mac: bool,
    ) -> bool:
        if JavaVersion.parse(record.version) != version:
            return False

        if self.platform.os.is_macos:
            wanted = Architecture.X64 if force_x64_on_mac else self.platform.arch
            if record.architecture != wanted:
                return False

        if semver is not None and record.version != semver:
            return False

        return jre or record.is_jdk

    def _resolve(self, record: InstallationRecord) -> Path:
        path = Path(record.path)
        if path.is_absolute():
            return path
        return self.base_dir / path

    def _relativize(self, path: Path) -> str:
        if not path.is_absolute():
            return path.as_posix()
        if is_relative_to(path, self.base_dir):
            return path.relative_to(self.base_dir).as_posix()
        return str(path)

    def _save(self) -> None:
        save_manifest(self.manifest_path, self._installations)

    def _merge_from_disk(self) -> None:
        records, _ = load_manifest(self.manifest_path)
        known = {r.path for r in self._installations}
        for record in records:
            record.path = self._relativize(Path(record.path))
            if record.path not in known:
                self.logger.debug(f"Picked up installation {record.version} from manifest")
                self._installations.append(record)
                known.add(record.path)

    def _validate_installations(self, changed: bool) -> None:
        """Prune dead records, normalize paths, then recover orphaned directories."""
        valid = []
        for record in self._installations:
            root = self._resolve(record)
            executable = get_java_executable(
                get_home_directory(root, self.platform.os), self.platform.os
            )
            if self.probe.probe(executable) is None:
                self.logger.warning(
                    f"Removing installation {record.version} from manifest, "
                    f"{executable} is not a working java executable"
                )
                changed = True
                continue

            relative = self._relativize(root)
            if relative != record.path:
                self.logger.debug(f"Rewriting installation path {record.path} -> {relative}")
                record.path = relative
                changed = True
            valid.append(record)

        self._installations = valid
        if changed:
            self._save()

        recovered = 0
        for directory in self._uncovered_directories():
            found = self._probe_directory(directory)
            if found is None:
                self.logger.debug(f"No java installation found in {directory}")
                continue

            root, install = found
            record = InstallationRecord(
                version=install.runtime_version,
                is_jdk=install.has_compiler,
                architecture=install.architecture,
                hash=hash_installation(root),
                path=self._relativize(root),
            )
            self.logger.info(f"Recovered installation {record.version} at {record.path}")
            self._installations.append(record)
            recovered += 1

        if recovered:
            self._save()

    def _uncovered_directories(self) -> Iterator[Path]:
        covered: Set[Path] = set()
        for record in self._installations:
            root = self._resolve(record)
            covered.add(root)
            covered.add(root.parent)

        for child in sorted(self.base_dir.iterdir()):
            # Hidden directories hold locks and temporary state
            if child.name.startswith(".") or not child.is_dir():
                continue
            if child in covered:
                continue
            yield child

    def _probe_directory(self, directory: Path) -> Optional[Tuple[Path, JavaInstall]]:
        candidates = [directory]
        try:
            candidates.extend(sorted(p for p in directory.iterdir() if p.is_dir()))
        except OSError as e:
            self.logger.debug(f"Cannot list {directory}: {e}")

        for root in candidates:
            executable = get_java_executable(
                get_home_directory(root, self.platform.os), self.platform.os
            )
            if not executable.exists():
                continue
            install = self.probe.probe(executable)
            if install is not None:
                return root, install
        return None


__all__ = [
    "JdkInstallationManager",
]
