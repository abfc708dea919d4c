"""Pytest configuration and shared fixtures for dockerdev tests."""

import os
from collections.abc import Generator
from pathlib import Path

import pytest


@pytest.fixture
def isolated_env() -> Generator[dict[str, str]]:
    """Provide isolated environment variables for testing.

    Saves current environment and restores after test.

    Yields:
        Dictionary of original environment variables
    """
    original_env = os.environ.copy()
    yield original_env
    os.environ.clear()
    os.environ.update(original_env)


@pytest.fixture
def platform_config_file(tmp_path: Path) -> Path:
    """Write a minimal platform configuration file.

    Returns:
        Path to dockerdev.yaml in a temporary directory
    """
    config_file = tmp_path / "dockerdev.yaml"
    config_file.write_text(
        """
platform:
  service_port: 8080
  static_environment:
    LOG_LEVEL: debug
  labels:
    team: web
""",
        encoding="utf-8",
    )
    return config_file
