"""
Provision requests.

A ProvisionRequest describes which Java runtime a caller needs. Requests are
immutable and built through ProvisionRequestBuilder.

Example:
    >>> request = (
    ...     ProvisionRequest.builder()
    ...     .for_java_version(JavaVersion.JAVA_17)
    ...     .prefer_jre(True)
    ...     .build()
    ... )
"""

from dataclasses import dataclass
from typing import Optional

from jdkkit.core.download import ProgressCallback
from jdkkit.core.exceptions import InvalidRequestError
from jdkkit.core.version import JavaVersion


@dataclass(frozen=True)
class ProvisionRequest:
    """
    Request for a Java runtime.

    Attributes:
        version: Java major version
        semver: Exact build filter (e.g. '17.0.9+9'), or None for any build
        jre: Whether a JRE is acceptable instead of a full JDK
        force_x64_on_mac: On aarch64 macOS, use x64 runtimes (Rosetta)
        progress_listener: Optional callback receiving download progress
    """

    version: JavaVersion
    semver: Optional[str] = None
    jre: bool = False
    force_x64_on_mac: bool = False
    progress_listener: Optional[ProgressCallback] = None

    @staticmethod
    def builder() -> "ProvisionRequestBuilder":
        return ProvisionRequestBuilder()

    def __str__(self) -> str:
        return f"{self.version}({self.semver})"


class ProvisionRequestBuilder:
    """Builder for ProvisionRequest."""

    def __init__(self):
        self._version: Optional[JavaVersion] = None
        self._semver: Optional[str] = None
        self._jre = False
        self._force_x64_on_mac = False
        self._progress_listener: Optional[ProgressCallback] = None

    def for_java_version(self, version: JavaVersion) -> "ProvisionRequestBuilder":
        self._version = version
        return self

    def for_semver(self, semver: Optional[str]) -> "ProvisionRequestBuilder":
        """Require an exact build. The version may be omitted, it is derived from it."""
        self._semver = semver
        return self

    def prefer_jre(self, jre: bool = True) -> "ProvisionRequestBuilder":
        self._jre = jre
        return self

    def force_x64_on_mac(self, force: bool = True) -> "ProvisionRequestBuilder":
        self._force_x64_on_mac = force
        return self

    def with_progress_listener(
        self, listener: Optional[ProgressCallback]
    ) -> "ProvisionRequestBuilder":
        self._progress_listener = listener
        return self

    def build(self) -> ProvisionRequest:
        """
        Build the request.

        Raises:
            InvalidRequestError: If no version can be determined, or the
                exact build disagrees with the requested version
        """
        version = self._version
        if self._semver is not None:
            semver_version = JavaVersion.parse(self._semver)
            if semver_version is None:
                raise InvalidRequestError(f"Unable to parse semver: {self._semver}")
            if version is None:
                version = semver_version
            elif version != semver_version:
                raise InvalidRequestError(
                    f"Semver {self._semver} does not match Java version {version}"
                )

        if version is None:
            raise InvalidRequestError("Either a Java version or a semver is required")

        return ProvisionRequest(
            version=version,
            semver=self._semver,
            jre=self._jre,
            force_x64_on_mac=self._force_x64_on_mac,
            progress_listener=self._progress_listener,
        )


__all__ = [
    "ProvisionRequest",
    "ProvisionRequestBuilder",
]
