"""Configuration loader for dockerdev.

This module provides the ConfigLoader class for loading, parsing, and
validating platform configuration from YAML files.
"""

import logging
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError as PydanticValidationError

from dockerdev.config.env_loader import load_env_file, substitute_env_vars
from dockerdev.config.validator import flatten_pydantic_errors
from dockerdev.lib.errors import ConfigError, FileNotFoundError
from dockerdev.models.deployment import PlatformConfig

logger = logging.getLogger(__name__)

PLATFORM_SECTION = "platform"

# Environment variable to field name mapping
ENV_VAR_MAP = {
    "force_pull": "DOCKERDEV_FORCE_PULL",
    "service_port": "DOCKERDEV_SERVICE_PORT",
}


def _parse_env_value(field_name: str, value: str) -> Any:
    """Parse environment variable value to appropriate type.

    Raises:
        ValueError: If value cannot be parsed
    """
    if field_name == "service_port":
        return int(value)
    elif field_name == "force_pull":
        return value.lower() in ("true", "1", "yes", "on")
    else:
        return value


def _env_overrides(env_vars: Mapping[str, str]) -> dict[str, Any]:
    """Collect configuration overrides from environment variables.

    Values that cannot be parsed are ignored with a warning.
    """
    overrides: dict[str, Any] = {}
    for field_name, env_var_name in ENV_VAR_MAP.items():
        if env_var_name not in env_vars:
            continue
        try:
            overrides[field_name] = _parse_env_value(field_name, env_vars[env_var_name])
        except ValueError:
            logger.warning(
                "Ignoring %s: cannot parse %r", env_var_name, env_vars[env_var_name]
            )
    return overrides


def _read_yaml_with_env_substitution(path: Path) -> dict[str, Any] | None:
    """Read a YAML file with environment variable substitution.

    Raises:
        OSError: If file cannot be read
        yaml.YAMLError: If YAML parsing fails
        ConfigError: If env var substitution fails
    """
    raw_text = path.read_text(encoding="utf-8")
    substituted = substitute_env_vars(raw_text)
    content = yaml.safe_load(substituted)
    return content if content else None


class ConfigLoader:
    """Load platform configuration files.

    The platform settings may live under a top-level ``platform:`` key or
    make up the whole document.

    Example:
        >>> loader = ConfigLoader()
        >>> config = loader.load_platform_config("dockerdev.yaml")
        >>> config.service_port
        3000
    """

    def __init__(self, env: dict[str, str] | None = None) -> None:
        """Initialize the loader.

        Args:
            env: Environment used for overrides; defaults to ``os.environ``
        """
        self._env = env

    def load_platform_config(self, file_path: str | Path) -> PlatformConfig:
        """Load and validate platform configuration from YAML.

        Configuration precedence (highest to lowest):
        1. DOCKERDEV_* environment variables
        2. Settings in the YAML file
        3. Model defaults

        Args:
            file_path: Path to the YAML configuration

        Returns:
            Validated PlatformConfig instance

        Raises:
            FileNotFoundError: If the file doesn't exist
            ConfigError: If YAML parsing or validation fails
        """
        path = Path(file_path)
        load_env_file(path.parent)

        try:
            document = _read_yaml_with_env_substitution(path)
        except OSError as e:
            raise FileNotFoundError(
                str(file_path),
                f"Configuration file not found at {file_path}. "
                f"Please ensure the file exists at this path.",
            ) from e
        except yaml.YAMLError as e:
            raise ConfigError(
                "yaml_parse",
                f"Failed to parse YAML file {file_path}: {str(e)}",
            ) from e

        document = document or {}
        if not isinstance(document, dict):
            raise ConfigError(
                "yaml_parse",
                f"Expected a mapping at the top of {file_path}",
            )

        section = document.get(PLATFORM_SECTION, document)
        if section is None:
            section = {}
        if not isinstance(section, dict):
            raise ConfigError(
                PLATFORM_SECTION,
                f"Expected '{PLATFORM_SECTION}' to be a mapping in {file_path}",
            )

        env = os.environ if self._env is None else self._env
        merged = {**section, **_env_overrides(env)}
        logger.debug("Loaded platform configuration from %s", path)

        try:
            return PlatformConfig(**merged)
        except PydanticValidationError as e:
            error_text = "\n".join(flatten_pydantic_errors(e, section=PLATFORM_SECTION))
            raise ConfigError(
                "platform_validation",
                f"Invalid platform configuration in {file_path}:\n{error_text}",
            ) from e
