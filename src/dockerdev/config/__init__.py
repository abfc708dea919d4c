"""Configuration loading and validation for dockerdev.

Main components:
- ConfigLoader: Load and validate platform configuration YAML files
- Environment variable substitution (${VAR_NAME} pattern)
- Validation utilities for configuration data
"""

from dockerdev.config.env_loader import get_env_var, load_env_file, substitute_env_vars
from dockerdev.config.loader import ConfigLoader

__all__ = [
    "ConfigLoader",
    "substitute_env_vars",
    "get_env_var",
    "load_env_file",
]
