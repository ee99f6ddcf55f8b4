"""YAML configuration for jdkkit.

This module locates the managed base directory and parses optional
jdkkit.yaml configuration files.

Example jdkkit.yaml:

    base_dir: ~/.jdkkit/jdks
    provisioner: adoptium
    api_base: https://api.adoptium.net
    request_timeout: 30
    lock_timeout: 300
    probe_timeout: 30
"""

import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Optional, Union

import yaml

from jdkkit.core.exceptions import ConfigError

DEFAULT_API_BASE = "https://api.adoptium.net"
CONFIG_FILE_NAME = "jdkkit.yaml"
HOME_ENV_VAR = "JDKKIT_HOME"


def get_default_base_dir() -> Path:
    """
    Get the platform-specific default base directory for managed JDKs.

    Returns:
        Path: $JDKKIT_HOME if set, otherwise
            - Windows: %USERPROFILE%\\.jdkkit\\jdks
            - Linux/macOS: ~/.jdkkit/jdks

    Raises:
        ConfigError: If the home directory cannot be determined
    """
    override = os.environ.get(HOME_ENV_VAR)
    if override:
        return Path(override).expanduser()

    if os.name == "nt":
        user_profile = os.environ.get("USERPROFILE")
        if not user_profile:
            raise ConfigError(
                "USERPROFILE environment variable is not set. "
                "Cannot determine default JDK directory."
            )
        return Path(user_profile) / ".jdkkit" / "jdks"
    return Path.home() / ".jdkkit" / "jdks"


@dataclass
class JdkKitConfig:
    """Resolved jdkkit configuration."""

    base_dir: Path = field(default_factory=get_default_base_dir)
    provisioner: str = "adoptium"
    api_base: str = DEFAULT_API_BASE
    request_timeout: int = 30
    lock_timeout: int = 300
    probe_timeout: int = 30


_TIMEOUT_KEYS = ("request_timeout", "lock_timeout", "probe_timeout")


def parse_config(data: Optional[dict]) -> JdkKitConfig:
    """
    Build a configuration from a parsed YAML mapping.

    Args:
        data: Mapping loaded from YAML (None means all defaults)

    Returns:
        JdkKitConfig

    Raises:
        ConfigError: On unknown keys or invalid values
    """
    if data is None:
        return JdkKitConfig()

    if not isinstance(data, dict):
        raise ConfigError("Configuration must be a mapping")

    known = {f.name for f in fields(JdkKitConfig)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ConfigError(f"Unknown configuration keys: {', '.join(unknown)}")

    kwargs = {}

    if "base_dir" in data:
        base_dir = data["base_dir"]
        if not isinstance(base_dir, str) or not base_dir.strip():
            raise ConfigError("'base_dir' must be a non-empty string")
        kwargs["base_dir"] = Path(os.path.expandvars(base_dir)).expanduser()

    for key in ("provisioner", "api_base"):
        if key in data:
            value = data[key]
            if not isinstance(value, str) or not value.strip():
                raise ConfigError(f"'{key}' must be a non-empty string")
            kwargs[key] = value.strip()

    if "api_base" in kwargs:
        kwargs["api_base"] = kwargs["api_base"].rstrip("/")

    for key in _TIMEOUT_KEYS:
        if key in data:
            value = data[key]
            # bool is an int subclass, reject it explicitly
            if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
                raise ConfigError(f"'{key}' must be a positive integer, got {value!r}")
            kwargs[key] = value

    return JdkKitConfig(**kwargs)


def load_config(config_path: Optional[Union[str, Path]] = None) -> JdkKitConfig:
    """
    Load configuration from a YAML file.

    Args:
        config_path: Path to jdkkit.yaml. Defaults to the file of that name
            next to the default base directory's parent (~/.jdkkit/jdkkit.yaml).

    Returns:
        JdkKitConfig (defaults when the file does not exist)

    Raises:
        ConfigError: If the file cannot be parsed or is invalid
    """
    if config_path is None:
        config_path = get_default_base_dir().parent / CONFIG_FILE_NAME
    config_path = Path(config_path)

    if not config_path.exists():
        return JdkKitConfig()

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {config_path}: {e}") from e
    except OSError as e:
        raise ConfigError(f"Failed to read {config_path}: {e}") from e

    return parse_config(data)


__all__ = [
    "JdkKitConfig",
    "load_config",
    "parse_config",
    "get_default_base_dir",
    "DEFAULT_API_BASE",
]
