"""
Provisioner for Eclipse Adoptium (Temurin) runtimes.

Provisioning resolves a release through the assets API, downloads its
archive into the base directory, verifies the declared size and SHA-256,
extracts it into ``<archive name>_<architecture>`` and removes the archive.
"""

import logging
import shutil
from pathlib import Path
from typing import TYPE_CHECKING, Optional

import requests

from jdkkit.core.archive import extract_archive, strip_archive_extension
from jdkkit.core.config import DEFAULT_API_BASE
from jdkkit.core.download import download_file, verify_download
from jdkkit.core.exceptions import (
    ArchiveExtractionError,
    InstallationFailedError,
    ReleaseNotFoundError,
    UnsupportedPlatformError,
)
from jdkkit.core.locking import LockManager
from jdkkit.core.platform import PlatformInfo, detect_platform
from jdkkit.provisioning.adoptium.api import AdoptiumReleaseResolver
from jdkkit.provisioning.base import JdkProvisioner, ProvisionResult

if TYPE_CHECKING:
    from jdkkit.installation.request import ProvisionRequest

logger = logging.getLogger(__name__)


class AdoptiumProvisioner(JdkProvisioner):
    """
    Provisions runtimes from the Adoptium API.

    Example:
        >>> provisioner = AdoptiumProvisioner(requests.Session())
        >>> result = provisioner.provision_jdk(base_dir, request)
        >>> result.extracted_path
        PosixPath('/home/user/.jdkkit/jdks/OpenJDK17U-jdk_x64_linux_hotspot_17.0.9_9_x64')
    """

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        api_base: str = DEFAULT_API_BASE,
        timeout: int = 30,
        platform: Optional[PlatformInfo] = None,
        lock_timeout: int = 300,
        logger: Optional[logging.Logger] = None,
    ):
        """
        Args:
            session: HTTP session for API queries and downloads
            api_base: Base URL of the Adoptium API
            timeout: Request timeout in seconds
            platform: Platform to provision for (default: detected host)
            lock_timeout: Seconds to wait for an extraction lock
            logger: Logger to report through (default: module logger)
        """
        self.session = session or requests.Session()
        self.timeout = timeout
        self.platform = platform or detect_platform()
        self.lock_timeout = lock_timeout
        self.logger = logger or logging.getLogger(__name__)
        self.resolver = AdoptiumReleaseResolver(self.session, api_base, timeout)

    def provision_jdk(self, base_dir: Path, request: "ProvisionRequest") -> ProvisionResult:
        """
        Download and install a runtime for the request.

        Raises:
            ReleaseNotFoundError: If Adoptium has no matching release
            UnsupportedPlatformError: If the host platform is not supported
            TransportError: On API or download failures
            IntegrityError: If the archive fails size or checksum verification
            InstallationFailedError: If the archive cannot be stored or extracted
        """
        base_dir = Path(base_dir)
        self.logger.info(f"Attempting to provision Adoptium jvm for {request}")

        if self.platform.arch is None:
            raise UnsupportedPlatformError(
                f"Unsupported architecture on {self.platform.os.value}"
            )

        result = self.resolver.find_release(
            self.platform.os,
            self.platform.arch,
            request.version,
            semver=request.semver,
            jre=request.jre,
            force_x64_on_mac=request.force_x64_on_mac,
        )
        if result is None or not result.releases:
            raise ReleaseNotFoundError(
                request.version, request.semver, "Adoptium can't provide a jvm"
            )

        release = result.releases[0]
        if not release.binaries:
            raise ReleaseNotFoundError(
                request.version,
                request.semver,
                f"Adoptium release {release.release_name} has no binaries",
            )
        if len(release.binaries) > 1:
            self.logger.warning(
                f"Adoptium returned {len(release.binaries)} binaries for "
                f"{release.release_name}, using the first"
            )

        binary = release.binaries[0]
        package = binary.package
        self.logger.info(
            f"Release found {release.version_data.openjdk_version}, downloading {package.link}"
        )

        archive = base_dir / package.name
        dir_name = f"{strip_archive_extension(package.name)}_{result.architecture.value}"

        try:
            base_dir.mkdir(parents=True, exist_ok=True)
            download_file(
                self.session,
                package.link,
                archive,
                progress_callback=request.progress_listener,
                timeout=self.timeout,
            )
            verify_download(archive, package.size, package.checksum)

            lock_manager = LockManager.for_base_dir(base_dir)
            with lock_manager.install_lock(dir_name, timeout=self.lock_timeout):
                extracted = self._extract(base_dir, archive, dir_name)
        except OSError as e:
            raise InstallationFailedError(
                f"Failed to store {package.name} in {base_dir}: {e}"
            ) from e
        finally:
            archive.unlink(missing_ok=True)

        self.logger.info(f"Extracted {package.name} to {extracted}")
        return ProvisionResult(
            semver=release.version_data.openjdk_version,
            extracted_path=extracted,
            is_jdk=binary.image_type == "jdk",
            architecture=result.architecture,
        )

    def _extract(self, base_dir: Path, archive: Path, dir_name: str) -> Path:
        """Extract, removing a partially written installation on failure."""
        target = base_dir / dir_name
        existed = target.exists()
        try:
            return extract_archive(base_dir, archive, dir_name)
        except ArchiveExtractionError as e:
            if not existed and target.exists():
                shutil.rmtree(target, ignore_errors=True)
                self.logger.debug(f"Removed partial installation: {target}")
            raise InstallationFailedError(f"Failed to install {archive.name}: {e}") from e


__all__ = [
    "AdoptiumProvisioner",
]
