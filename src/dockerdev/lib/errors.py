"""Custom exception hierarchy for dockerdev configuration and operations."""

from __future__ import annotations

from collections.abc import Sequence


class DockerDevError(Exception):
    """Base exception for all dockerdev errors.

    All dockerdev-specific exceptions inherit from this class, enabling
    centralized exception handling in the CLI and in host plugins.
    """

    pass


class ConfigError(DockerDevError):
    """Exception raised for configuration errors.

    This exception is raised when configuration loading or parsing fails.
    It includes field-specific information to help users identify and fix
    configuration issues.

    Attributes:
        field: The configuration field that caused the error
        message: Human-readable error message describing the issue
    """

    def __init__(self, field: str, message: str) -> None:
        """Initialize ConfigError with field and message.

        Args:
            field: Configuration field name where error occurred
            message: Descriptive error message
        """
        self.field = field
        self.message = message
        super().__init__(f"Configuration error in '{field}': {message}")


class PortSpecError(ConfigError):
    """Exception raised when a published-ports specification is malformed."""

    def __init__(self, value: str, message: str) -> None:
        """Create a port spec error for the offending entry."""
        self.value = value
        super().__init__("published_ports", f"{message}: {value!r}")


class FileNotFoundError(DockerDevError):
    """Exception raised when a configuration file is not found.

    Attributes:
        path: Path to the file that was not found
        message: Human-readable error message
    """

    def __init__(self, path: str, message: str) -> None:
        """Initialize FileNotFoundError with path and message.

        Args:
            path: Path to the file that was not found
            message: Descriptive error message, optionally with suggestions
        """
        self.path = path
        self.message = message
        super().__init__(f"File not found: {path}\n{message}")


class DeploymentError(DockerDevError):
    """Exception raised when a deployment operation fails.

    Covers precondition failures against the Docker engine (cannot list or
    create a network, cannot pull an image, cannot create or start a
    container) as well as failures reading persisted deployment state.

    Attributes:
        operation: Name of the operation that failed (e.g. "network.create")
        message: Human-readable error message including the target identifier
    """

    def __init__(self, operation: str, message: str) -> None:
        """Initialize DeploymentError with operation and message.

        Args:
            operation: Operation that failed
            message: Descriptive error message
        """
        self.operation = operation
        self.message = message
        super().__init__(f"{operation}: {message}")


class DockerNotAvailableError(DeploymentError):
    """Error raised when the Docker engine cannot be reached."""

    def __init__(self, operation: str, detail: str | None = None) -> None:
        """Create an error with connection guidance.

        Args:
            operation: Operation that required the Docker engine
            detail: Optional underlying error text
        """
        message = (
            "Docker is not available. Ensure the Docker daemon is running "
            "and DOCKER_HOST points at it."
        )
        if detail:
            message += f"\nOriginal error: {detail}"
        super().__init__(operation, message)


class ResourceStateError(DeploymentError):
    """Error raised when resource state is inconsistent.

    Indicates that the resource manager topology or the persisted snapshot
    diverged from what the code expects. Never transient.
    """

    pass


class ResourceDestroyError(DeploymentError):
    """Error raised when one or more resources failed to destroy.

    Attributes:
        failures: (resource name, exception) pairs in the order attempted
    """

    def __init__(self, failures: Sequence[tuple[str, BaseException]]) -> None:
        """Create an aggregated destroy error."""
        self.failures = list(failures)
        details = "; ".join(f"{name}: {exc}" for name, exc in self.failures)
        super().__init__(
            "destroy",
            f"{len(self.failures)} resource(s) failed to destroy: {details}",
        )


class OperationCancelledError(DeploymentError):
    """Error raised when an operation is cancelled or its deadline passes."""

    pass
