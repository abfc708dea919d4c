"""Tests for platform configuration loading.

Covers the ``platform:`` section layout, environment variable
substitution and overrides, ``.env`` loading, and error reporting.
"""

from pathlib import Path
from typing import Any

import pytest
import yaml

from dockerdev.config.loader import ConfigLoader
from dockerdev.lib.errors import ConfigError, FileNotFoundError
from dockerdev.models.deployment import ClientConfig, PlatformConfig


def _write(path: Path, content: dict[str, Any] | str) -> Path:
    text = content if isinstance(content, str) else yaml.safe_dump(content)
    path.write_text(text, encoding="utf-8")
    return path


class TestLoadPlatformConfig:
    """Tests for ConfigLoader.load_platform_config."""

    def test_platform_section(self, platform_config_file: Path) -> None:
        """Settings are read from the platform section."""
        config = ConfigLoader(env={}).load_platform_config(platform_config_file)

        assert isinstance(config, PlatformConfig)
        assert config.service_port == 8080
        assert config.static_environment == {"LOG_LEVEL": "debug"}
        assert config.labels == {"team": "web"}

    def test_bare_document(self, tmp_path: Path) -> None:
        """A document without a platform key is the platform section."""
        path = _write(
            tmp_path / "dockerdev.yaml",
            {"force_pull": True, "published_ports": "3000:3001"},
        )

        config = ConfigLoader(env={}).load_platform_config(path)

        assert config.force_pull is True
        assert config.published_ports == "3000:3001"

    def test_empty_file_gives_defaults(self, tmp_path: Path) -> None:
        """An empty file yields the default configuration."""
        path = _write(tmp_path / "dockerdev.yaml", "")

        config = ConfigLoader(env={}).load_platform_config(path)

        assert config == PlatformConfig()
        assert config.effective_service_port == 3000

    def test_client_config(self, tmp_path: Path) -> None:
        """Engine connection overrides are parsed."""
        path = _write(
            tmp_path / "dockerdev.yaml",
            {"platform": {"client_config": {"host": "tcp://docker:2376"}}},
        )

        config = ConfigLoader(env={}).load_platform_config(path)

        assert config.client_config == ClientConfig(host="tcp://docker:2376")

    def test_missing_file(self, tmp_path: Path) -> None:
        """A missing file raises the dockerdev FileNotFoundError."""
        with pytest.raises(FileNotFoundError) as exc_info:
            ConfigLoader(env={}).load_platform_config(tmp_path / "missing.yaml")

        assert "missing.yaml" in exc_info.value.path

    def test_invalid_yaml(self, tmp_path: Path) -> None:
        """YAML syntax errors are configuration errors."""
        path = _write(tmp_path / "dockerdev.yaml", "platform: [unclosed")

        with pytest.raises(ConfigError) as exc_info:
            ConfigLoader(env={}).load_platform_config(path)

        assert exc_info.value.field == "yaml_parse"

    def test_non_mapping_document(self, tmp_path: Path) -> None:
        """A top-level list is rejected."""
        path = _write(tmp_path / "dockerdev.yaml", "- one\n- two\n")

        with pytest.raises(ConfigError, match="mapping"):
            ConfigLoader(env={}).load_platform_config(path)

    def test_non_mapping_platform_section(self, tmp_path: Path) -> None:
        """The platform key must hold a mapping."""
        path = _write(tmp_path / "dockerdev.yaml", {"platform": "docker"})

        with pytest.raises(ConfigError) as exc_info:
            ConfigLoader(env={}).load_platform_config(path)

        assert exc_info.value.field == "platform"

    def test_unknown_field(self, tmp_path: Path) -> None:
        """Unknown keys are reported with their path."""
        path = _write(tmp_path / "dockerdev.yaml", {"platform": {"replicas": 3}})

        with pytest.raises(ConfigError) as exc_info:
            ConfigLoader(env={}).load_platform_config(path)

        assert exc_info.value.field == "platform_validation"
        assert "platform.replicas" in exc_info.value.message

    def test_invalid_port(self, tmp_path: Path) -> None:
        """Out of range ports fail validation."""
        path = _write(tmp_path / "dockerdev.yaml", {"platform": {"extra_ports": [-1]}})

        with pytest.raises(ConfigError, match="extra_ports"):
            ConfigLoader(env={}).load_platform_config(path)

    def test_unknown_resource_limit(self, tmp_path: Path) -> None:
        """Only memory and cpu limits are supported."""
        path = _write(
            tmp_path / "dockerdev.yaml", {"platform": {"resources": {"gpu": "1"}}}
        )

        with pytest.raises(ConfigError, match="gpu"):
            ConfigLoader(env={}).load_platform_config(path)


class TestEnvironmentHandling:
    """Tests for environment substitution and overrides."""

    def test_env_overrides_file(self, platform_config_file: Path) -> None:
        """DOCKERDEV_* variables take precedence over the file."""
        loader = ConfigLoader(
            env={"DOCKERDEV_SERVICE_PORT": "9090", "DOCKERDEV_FORCE_PULL": "yes"}
        )

        config = loader.load_platform_config(platform_config_file)

        assert config.service_port == 9090
        assert config.force_pull is True

    def test_unparsable_override_ignored(self, platform_config_file: Path) -> None:
        """An override that cannot be parsed keeps the file value."""
        loader = ConfigLoader(env={"DOCKERDEV_SERVICE_PORT": "http"})

        config = loader.load_platform_config(platform_config_file)

        assert config.service_port == 8080

    def test_variable_substitution(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """${VAR} references are substituted from the environment."""
        monkeypatch.setenv("DOCKERDEV_TEST_TEAM", "payments")
        path = _write(
            tmp_path / "dockerdev.yaml",
            "platform:\n  labels:\n    team: ${DOCKERDEV_TEST_TEAM}\n",
        )

        config = ConfigLoader(env={}).load_platform_config(path)

        assert config.labels == {"team": "payments"}

    def test_missing_variable(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Referencing an unset variable is a configuration error."""
        monkeypatch.delenv("DOCKERDEV_TEST_UNSET", raising=False)
        path = _write(
            tmp_path / "dockerdev.yaml",
            "platform:\n  labels:\n    team: ${DOCKERDEV_TEST_UNSET}\n",
        )

        with pytest.raises(ConfigError) as exc_info:
            ConfigLoader(env={}).load_platform_config(path)

        assert exc_info.value.field == "DOCKERDEV_TEST_UNSET"

    def test_dotenv_file_loaded(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch, isolated_env: Any
    ) -> None:
        """A .env file next to the config feeds substitution."""
        monkeypatch.delenv("DOCKERDEV_TEST_DOTENV", raising=False)
        (tmp_path / ".env").write_text("DOCKERDEV_TEST_DOTENV=from-dotenv\n")
        path = _write(
            tmp_path / "dockerdev.yaml",
            "platform:\n  labels:\n    source: ${DOCKERDEV_TEST_DOTENV}\n",
        )

        config = ConfigLoader(env={}).load_platform_config(path)

        assert config.labels == {"source": "from-dotenv"}
