"""Tests for validation utility functions."""

import pytest
from pydantic import ValidationError as PydanticValidationError

from dockerdev.config.validator import flatten_pydantic_errors
from dockerdev.models.deployment import PlatformConfig


def _errors(**kwargs: object) -> PydanticValidationError:
    with pytest.raises(PydanticValidationError) as exc_info:
        PlatformConfig(**kwargs)
    return exc_info.value


class TestFlattenPydanticErrors:
    """Tests for flatten_pydantic_errors() function."""

    def test_type_error_names_field(self) -> None:
        """Type errors name the offending field."""
        result = flatten_pydantic_errors(_errors(service_port="http"))

        assert len(result) == 1
        assert result[0].startswith("Field 'service_port'")

    def test_section_prefix(self) -> None:
        """A section name is prefixed to field paths."""
        result = flatten_pydantic_errors(
            _errors(service_port="http"), section="platform"
        )

        assert result[0].startswith("Field 'platform.service_port'")

    def test_extra_field_includes_input(self) -> None:
        """Unknown fields show the received value."""
        result = flatten_pydantic_errors(_errors(replicas=3))

        assert "replicas" in result[0]
        assert "(received: 3)" in result[0]

    def test_value_error_includes_input(self) -> None:
        """Validator failures show the received value."""
        result = flatten_pydantic_errors(_errors(resources={"gpu": "1"}))

        assert "Unknown resource limits: gpu" in result[0]
        assert "received:" in result[0]

    def test_multiple_errors(self) -> None:
        """Each failing field yields its own message."""
        result = flatten_pydantic_errors(
            _errors(service_port="http", force_pull="maybe")
        )

        assert len(result) == 2
        assert all(isinstance(item, str) for item in result)
