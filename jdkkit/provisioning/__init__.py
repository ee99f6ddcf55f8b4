"""
Java runtime provisioners.
"""

from jdkkit.provisioning.base import JdkProvisioner, ProvisionResult
from jdkkit.provisioning.registry import PROVISIONERS, create_provisioner

__all__ = [
    "JdkProvisioner",
    "ProvisionResult",
    "PROVISIONERS",
    "create_provisioner",
]
