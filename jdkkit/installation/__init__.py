"""
Installation management for jdkkit.

Tracks provisioned Java runtimes in a manifest and answers requests for them.
"""

from jdkkit.installation.manager import JdkInstallationManager
from jdkkit.installation.manifest import InstallationRecord
from jdkkit.installation.probe import (
    InstallationProbe,
    JavaInstall,
    JavaPropertiesProbe,
    get_home_directory,
    get_java_executable,
)
from jdkkit.installation.request import ProvisionRequest, ProvisionRequestBuilder

__all__ = [
    "JdkInstallationManager",
    "InstallationRecord",
    "InstallationProbe",
    "JavaInstall",
    "JavaPropertiesProbe",
    "get_home_directory",
    "get_java_executable",
    "ProvisionRequest",
    "ProvisionRequestBuilder",
]
