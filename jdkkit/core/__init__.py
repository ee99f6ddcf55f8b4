"""
Core functionality for jdkkit.

This package contains the foundational modules that the installation and
provisioning layers depend on.
"""

from .exceptions import (
    JdkKitError,
    InvalidVersionError,
    InvalidRequestError,
    ConfigError,
    ManifestError,
    LockTimeout,
    ArchiveExtractionError,
    UnsupportedArchiveFormat,
    InsecureArchiveError,
    ProvisioningError,
    ReleaseNotFoundError,
    IntegrityError,
    SizeMismatchError,
    ChecksumMismatchError,
    TransportError,
    UnsupportedPlatformError,
    InstallationFailedError,
    InvalidProvisionResultError,
)

from .version import (
    JavaVersion,
    build_version_key,
)

from .platform import (
    OperatingSystem,
    Architecture,
    PlatformInfo,
    detect_platform,
    clear_platform_cache,
)

from .locking import (
    LockManager,
)

from .config import (
    JdkKitConfig,
    load_config,
    get_default_base_dir,
)

__all__ = [
    "JdkKitError",
    "InvalidVersionError",
    "InvalidRequestError",
    "ConfigError",
    "ManifestError",
    "LockTimeout",
    "ArchiveExtractionError",
    "UnsupportedArchiveFormat",
    "InsecureArchiveError",
    "ProvisioningError",
    "ReleaseNotFoundError",
    "IntegrityError",
    "SizeMismatchError",
    "ChecksumMismatchError",
    "TransportError",
    "UnsupportedPlatformError",
    "InstallationFailedError",
    "InvalidProvisionResultError",
    "JavaVersion",
    "build_version_key",
    "OperatingSystem",
    "Architecture",
    "PlatformInfo",
    "detect_platform",
    "clear_platform_cache",
    "LockManager",
    "JdkKitConfig",
    "load_config",
    "get_default_base_dir",
]
