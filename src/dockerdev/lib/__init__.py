"""Shared utilities and error handling for dockerdev."""

from dockerdev.lib.errors import (
    ConfigError,
    DeploymentError,
    DockerDevError,
    DockerNotAvailableError,
    ResourceDestroyError,
    ResourceStateError,
)

__all__ = [
    "ConfigError",
    "DeploymentError",
    "DockerDevError",
    "DockerNotAvailableError",
    "ResourceDestroyError",
    "ResourceStateError",
]
