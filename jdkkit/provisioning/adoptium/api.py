"""
Release resolution against the Adoptium v3 assets API.

Resolution issues one query and, when the catalog answers 404, walks a fixed
fallback chain of narrower queries:

1. On aarch64 macOS, retry the same query for x64 (Rosetta emulation).
2. Otherwise, if a JRE was requested, retry the same query for a full JDK.
3. Otherwise give up.

Each step changes one dimension of the query exactly once, so at most three
queries are issued per resolution.
"""

import logging
from dataclasses import dataclass, replace
from typing import Dict, List, Optional

import requests
from requests.exceptions import RequestException

from jdkkit.core.config import DEFAULT_API_BASE
from jdkkit.core.exceptions import TransportError, UnsupportedPlatformError
from jdkkit.core.platform import Architecture, OperatingSystem
from jdkkit.core.version import JavaVersion
from jdkkit.provisioning.adoptium.release import AdoptiumRelease, parse_releases

logger = logging.getLogger(__name__)

# Operating system names as the assets API spells them
_API_OS_NAMES = {
    OperatingSystem.WINDOWS: "windows",
    OperatingSystem.LINUX: "linux",
    OperatingSystem.MACOS: "mac",
}

# Safety limit only; the fallback chain above never exceeds it.
MAX_QUERIES = 3


@dataclass(frozen=True)
class AdoptiumQuery:
    """One assets API query."""

    os: OperatingSystem
    arch: Architecture
    version: JavaVersion
    semver: Optional[str] = None
    jre: bool = False

    @property
    def image_type(self) -> str:
        return "jre" if self.jre else "jdk"

    def path(self) -> str:
        if self.semver is not None:
            return f"/v3/assets/version/{self.semver}"
        return f"/v3/assets/feature_releases/{self.version.short_string}/ga"

    def params(self) -> Dict[str, str]:
        api_os = _API_OS_NAMES.get(self.os)
        if api_os is None:
            raise UnsupportedPlatformError(f"Unsupported operating system: {self.os.value}")

        return {
            "project": "jdk",
            "image_type": self.image_type,
            "vendor": "eclipse",
            "jvm_impl": "hotspot",
            "heap_size": "normal",
            "architecture": self.arch.value,
            "os": api_os,
        }

    def __str__(self) -> str:
        return f"{self.version}({self.semver}) {self.image_type} {self.os.value}-{self.arch.value}"


def next_fallback(query: AdoptiumQuery) -> Optional[AdoptiumQuery]:
    """
    Get the query to try after a 404.

    Args:
        query: Query that was answered with 404

    Returns:
        Next query in the fallback chain, or None when exhausted

    Example:
        >>> q = AdoptiumQuery(OperatingSystem.MACOS, Architecture.AARCH64, JavaVersion.JAVA_8, jre=True)
        >>> next_fallback(q).arch
        <Architecture.X64: 'x64'>
    """
    if query.os.is_macos and query.arch == Architecture.AARCH64:
        return replace(query, arch=Architecture.X64)
    if query.jre:
        return replace(query, jre=False)
    return None


@dataclass(frozen=True)
class ReleaseResult:
    """Releases found, and the architecture they were resolved for."""

    releases: List[AdoptiumRelease]
    architecture: Architecture


class AdoptiumReleaseResolver:
    """
    Resolves releases from the Adoptium assets API.

    Example:
        >>> resolver = AdoptiumReleaseResolver(requests.Session())
        >>> result = resolver.find_release(
        ...     OperatingSystem.LINUX, Architecture.X64, JavaVersion.JAVA_17
        ... )
        >>> result.releases[0].version_data.openjdk_version
        '17.0.9+9'
    """

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        api_base: str = DEFAULT_API_BASE,
        timeout: int = 30,
    ):
        """
        Args:
            session: HTTP session (default: new session)
            api_base: Base URL of the API
            timeout: Request timeout in seconds
        """
        self.session = session or requests.Session()
        self.api_base = api_base.rstrip("/")
        self.timeout = timeout

    def find_release(
        self,
        os: OperatingSystem,
        arch: Architecture,
        version: JavaVersion,
        semver: Optional[str] = None,
        jre: bool = False,
        force_x64_on_mac: bool = False,
    ) -> Optional[ReleaseResult]:
        """
        Find releases for a platform and version.

        Args:
            os: Target operating system
            arch: Target architecture
            version: Java major version
            semver: Exact build, or None for the latest GA build
            jre: Whether a JRE is acceptable
            force_x64_on_mac: Resolve x64 builds on aarch64 macOS

        Returns:
            ReleaseResult, or None if the catalog has nothing matching

        Raises:
            UnsupportedPlatformError: If the operating system is not supported
            TransportError: On network failures and unexpected HTTP statuses
        """
        if os.is_macos and arch == Architecture.AARCH64 and force_x64_on_mac:
            logger.info("Forcing x64 resolve for aarch64 macOS")
            arch = Architecture.X64

        query: Optional[AdoptiumQuery] = AdoptiumQuery(os, arch, version, semver, jre)
        attempts = 0
        while query is not None and attempts < MAX_QUERIES:
            attempts += 1
            response = self._execute(query)
            if response is not None:
                if not response:
                    logger.debug(f"No releases for {query}")
                    return None
                return ReleaseResult(response, query.arch)

            fallback = next_fallback(query)
            if fallback is not None:
                logger.warning(f"No release found for {query}, trying {fallback}")
            query = fallback

        logger.debug(f"Exhausted release queries for {version}({semver})")
        return None

    def _execute(self, query: AdoptiumQuery) -> Optional[List[AdoptiumRelease]]:
        """Run one query. None means 404."""
        url = self.api_base + query.path()
        params = query.params()
        logger.debug(f"Querying {url} with {params}")

        try:
            response = self.session.get(url, params=params, timeout=self.timeout)
        except RequestException as e:
            raise TransportError(f"Failed to query {url}: {e}") from e

        with response:
            if response.status_code == 404:
                return None
            if not 200 <= response.status_code < 300:
                raise TransportError(
                    f"Release query {url} failed with HTTP {response.status_code}",
                    status_code=response.status_code,
                )
            try:
                payload = response.json()
            except ValueError as e:
                raise TransportError(f"Release query {url} returned invalid JSON: {e}") from e

        return parse_releases(payload)


__all__ = [
    "AdoptiumQuery",
    "AdoptiumReleaseResolver",
    "ReleaseResult",
    "next_fallback",
    "MAX_QUERIES",
]
