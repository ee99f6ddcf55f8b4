"""
Provisioner registry.

Maps configuration names to provisioner implementations so the provider
used by an installation manager is selected by configuration.
"""

import logging
from typing import Dict, Type

from jdkkit.core.exceptions import ConfigError
from jdkkit.provisioning.adoptium.provisioner import AdoptiumProvisioner
from jdkkit.provisioning.base import JdkProvisioner

logger = logging.getLogger(__name__)

PROVISIONERS: Dict[str, Type[JdkProvisioner]] = {
    "adoptium": AdoptiumProvisioner,
}


def create_provisioner(name: str, **kwargs) -> JdkProvisioner:
    """
    Create a provisioner by name.

    Args:
        name: Registered provisioner name (case-insensitive)
        **kwargs: Passed to the provisioner's constructor

    Returns:
        Provisioner instance

    Raises:
        ConfigError: If no provisioner is registered under the name

    Example:
        >>> create_provisioner("adoptium", timeout=60)
        <jdkkit.provisioning.adoptium.provisioner.AdoptiumProvisioner object at ...>
    """
    provisioner_class = PROVISIONERS.get(name.strip().lower())
    if provisioner_class is None:
        available = ", ".join(sorted(PROVISIONERS))
        raise ConfigError(f"Unknown provisioner '{name}'. Available: {available}")

    logger.debug(f"Creating provisioner '{name}'")
    return provisioner_class(**kwargs)


__all__ = [
    "PROVISIONERS",
    "create_provisioner",
]
