"""Validation utilities for dockerdev configuration."""

from pydantic import ValidationError as PydanticValidationError


def flatten_pydantic_errors(
    exc: PydanticValidationError, section: str | None = None
) -> list[str]:
    """Flatten a Pydantic ValidationError into one message per field.

    Args:
        exc: Pydantic ValidationError exception
        section: Optional configuration section prefixed to field paths
            (e.g. "platform" gives "platform.service_port")

    Returns:
        List of human-readable error messages

    Example:
        >>> from dockerdev.models.deployment import PlatformConfig
        >>> try:
        ...     PlatformConfig(service_port="http")
        ... except PydanticValidationError as e:
        ...     flatten_pydantic_errors(e, section="platform")[0].startswith(
        ...         "Field 'platform.service_port'"
        ...     )
        True
    """
    errors: list[str] = []

    for error in exc.errors():
        loc = [str(item) for item in error.get("loc", ())]
        if section:
            loc.insert(0, section)
        field_path = ".".join(loc) if loc else "unknown"

        msg = error.get("msg", "Unknown error")
        if error.get("type") in ("value_error", "extra_forbidden"):
            received = error.get("input")
            formatted = f"Field '{field_path}': {msg} (received: {received!r})"
        else:
            formatted = f"Field '{field_path}': {msg}"

        errors.append(formatted)

    return errors if errors else ["Validation failed with unknown error"]
