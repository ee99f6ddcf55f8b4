"""
Provisioner plugin contract.

A provisioner fetches a Java runtime from some remote source and extracts it
beneath the managed base directory. The installation manager owns the
manifest. Provisioners only produce the installation directory and describe
what they installed.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Optional

from jdkkit.core.platform import Architecture

if TYPE_CHECKING:
    from jdkkit.installation.request import ProvisionRequest


@dataclass(frozen=True)
class ProvisionResult:
    """
    Outcome of a successful provisioning.

    Attributes:
        semver: Full build version of the installed runtime (e.g. '17.0.9+9')
        extracted_path: Installation root directory
        is_jdk: Whether a full JDK was installed
        architecture: Architecture actually installed, which can differ from
            the host's under macOS x64 emulation
    """

    semver: str
    extracted_path: Path
    is_jdk: bool
    architecture: Optional[Architecture]


class JdkProvisioner(ABC):
    """
    Abstract interface for Java runtime provisioners.

    Implementations raise ProvisioningError subclasses on failure:
    ReleaseNotFoundError when no release matches, IntegrityError when a
    download fails verification and TransportError on network failures.
    """

    @abstractmethod
    def provision_jdk(self, base_dir: Path, request: "ProvisionRequest") -> ProvisionResult:
        """
        Provision a runtime matching the request.

        Args:
            base_dir: Managed base directory to install into
            request: What to provision

        Returns:
            ProvisionResult describing the new installation
        """
        pass


__all__ = [
    "JdkProvisioner",
    "ProvisionResult",
]
