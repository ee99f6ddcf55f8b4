"""
Eclipse Adoptium provisioner.
"""

from jdkkit.provisioning.adoptium.api import (
    AdoptiumQuery,
    AdoptiumReleaseResolver,
    ReleaseResult,
    next_fallback,
)
from jdkkit.provisioning.adoptium.provisioner import AdoptiumProvisioner
from jdkkit.provisioning.adoptium.release import AdoptiumRelease, parse_releases

__all__ = [
    "AdoptiumQuery",
    "AdoptiumReleaseResolver",
    "ReleaseResult",
    "next_fallback",
    "AdoptiumProvisioner",
    "AdoptiumRelease",
    "parse_releases",
]
