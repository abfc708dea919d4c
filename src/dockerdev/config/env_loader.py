"""Environment variable helpers for configuration files.

Supports the ``${VAR_NAME}`` substitution pattern in YAML text and loading
a ``.env`` file that sits next to the configuration.
"""

from __future__ import annotations

import os
import re
from pathlib import Path

from dotenv import load_dotenv

from dockerdev.lib.errors import ConfigError

_ENV_VAR_PATTERN = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)\}")


def substitute_env_vars(text: str, env: dict[str, str] | None = None) -> str:
    """Replace ``${VAR_NAME}`` references with environment values.

    Args:
        text: Raw configuration text
        env: Mapping to read from, defaults to ``os.environ``

    Returns:
        Text with all references substituted

    Raises:
        ConfigError: If a referenced variable is not set
    """
    source = os.environ if env is None else env

    def _replace(match: re.Match[str]) -> str:
        name = match.group(1)
        if name not in source:
            raise ConfigError(
                name,
                f"Environment variable '{name}' is referenced but not set",
            )
        return source[name]

    return _ENV_VAR_PATTERN.sub(_replace, text)


def get_env_var(name: str, default: str | None = None) -> str | None:
    """Return an environment variable or a default."""
    return os.environ.get(name, default)


def load_env_file(directory: Path) -> bool:
    """Load ``.env`` from a directory without overriding existing variables.

    Returns:
        True if a file was found and loaded
    """
    env_path = directory / ".env"
    if not env_path.is_file():
        return False
    return load_dotenv(env_path, override=False)
