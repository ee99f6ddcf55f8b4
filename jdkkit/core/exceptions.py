"""
Centralized exception hierarchy for jdkkit.

This module defines all custom exceptions used across the codebase
to provide clear exception semantics for callers.
"""


# ============================================================================
# Base Exceptions
# ============================================================================


class JdkKitError(Exception):
    """Base exception for all jdkkit errors."""

    pass


# ============================================================================
# Version and Request Exceptions
# ============================================================================


class InvalidVersionError(JdkKitError):
    """Invalid Java version value or format."""

    pass


class InvalidRequestError(JdkKitError):
    """Raised when a provision request cannot be built."""

    pass


class ConfigError(JdkKitError):
    """Configuration parsing or validation error."""

    pass


# ============================================================================
# Manifest and Locking Exceptions
# ============================================================================


class ManifestError(JdkKitError):
    """Raised when the installation manifest cannot be read or written."""

    pass


class LockTimeout(JdkKitError):
    """Raised when a lock cannot be acquired within timeout."""

    pass


# ============================================================================
# Archive Exceptions
# ============================================================================


class ArchiveExtractionError(JdkKitError):
    """Failed to extract an archive."""

    pass


class UnsupportedArchiveFormat(ArchiveExtractionError):
    """Archive format is not supported."""

    pass


class InsecureArchiveError(ArchiveExtractionError):
    """Archive contains insecure paths (directory traversal attempt)."""

    pass


# ============================================================================
# Provisioning Exceptions
# ============================================================================


class ProvisioningError(JdkKitError):
    """Base exception when a JDK could not be provisioned."""

    pass


class ReleaseNotFoundError(ProvisioningError):
    """Raised when no release matches a provision request."""

    def __init__(self, version, semver=None, detail: str = ""):
        self.version = version
        self.semver = semver
        msg = f"No release available for Java {version}({semver})"
        if detail:
            msg += f": {detail}"
        super().__init__(msg)


class IntegrityError(ProvisioningError):
    """Base exception when a downloaded artifact fails verification."""

    pass


class SizeMismatchError(IntegrityError):
    """Downloaded artifact has the wrong size."""

    def __init__(self, file_name: str, expected: int, actual: int):
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Downloaded archive size incorrect for {file_name}. "
            f"Expected {expected}, got {actual}"
        )


class ChecksumMismatchError(IntegrityError):
    """Downloaded artifact has the wrong SHA-256 digest."""

    def __init__(self, file_name: str, expected: str, actual: str):
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Downloaded archive hash incorrect for {file_name}. "
            f"Expected {expected}, got {actual}"
        )


class TransportError(ProvisioningError):
    """Raised on network failures and unexpected HTTP responses."""

    def __init__(self, message: str, status_code=None):
        self.status_code = status_code
        super().__init__(message)


class UnsupportedPlatformError(ProvisioningError):
    """Raised when the host platform cannot be served by a provisioner."""

    pass


class InvalidProvisionResultError(ProvisioningError):
    """Raised when a provisioner returns a result violating its contract."""

    pass


class InstallationFailedError(ProvisioningError):
    """Raised when a verified artifact could not be stored or extracted."""

    pass
