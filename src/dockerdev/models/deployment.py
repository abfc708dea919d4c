"""Pydantic models for deployment configuration and deploy inputs.

This module defines the platform configuration schema for dockerdev
deployments and the records exchanged with the host: the built image
reference, the application source, job metadata, and the deployment itself.
"""

from __future__ import annotations

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
)

from dockerdev.models.resource import ResourceManagerSnapshot

DEFAULT_SERVICE_PORT = 3000


class ClientConfig(BaseModel):
    """Docker engine connection overrides.

    When omitted entirely the client is configured from the standard
    DOCKER_HOST, DOCKER_CERT_PATH, DOCKER_TLS_VERIFY and DOCKER_API_VERSION
    environment variables.

    Attributes:
        host: Engine URL (e.g. tcp://10.0.0.5:2376 or unix:///var/run/docker.sock)
        cert_path: Directory holding ca.pem, cert.pem and key.pem
        api_version: Docker API version to use, empty for negotiation
    """

    model_config = ConfigDict(extra="forbid")

    host: str = Field(default="", description="Docker engine host URL")
    cert_path: str = Field(default="", description="Path to TLS certificates")
    api_version: str = Field(default="", description="Docker API version")


class PlatformConfig(BaseModel):
    """Configuration for deploying an application as a local container.

    Attributes:
        binds: Host paths or volumes to mount into the container
        client_config: Docker engine connection overrides
        command: Command to run in the container, executed without a shell
        force_pull: Always pull the image even when it is cached locally
        labels: User labels; reserved dockerdev labels take precedence
        networks: Additional networks to connect the container to
        resources: Resource limits, ``memory`` (human size) and ``cpu`` (shares)
        scratch_path: Directory for the service to store temporary data
        static_environment: Static environment variables for the container
        extra_ports: Additional TCP ports the application listens on
        service_port: Port the service listens on inside the container
        published_ports: CSV of ``containerPort[:hostPort][/proto]`` entries
        use_app_as_container_name: Name the container after the app only
    """

    model_config = ConfigDict(extra="forbid")

    binds: list[str] = Field(default_factory=list, description="Container binds")
    client_config: ClientConfig | None = Field(
        default=None, description="Docker engine connection overrides"
    )
    command: list[str] = Field(default_factory=list, description="Command override")
    force_pull: bool = Field(default=False, description="Always pull the image")
    labels: dict[str, str] = Field(default_factory=dict, description="User labels")
    networks: list[str] = Field(
        default_factory=list, description="Additional networks to connect"
    )
    resources: dict[str, str] = Field(
        default_factory=dict, description="Resource limits (memory, cpu)"
    )
    scratch_path: str | None = Field(
        default=None, description="Directory for temporary service data"
    )
    static_environment: dict[str, str] = Field(
        default_factory=dict, description="Static environment variables"
    )
    extra_ports: list[int] = Field(
        default_factory=list, description="Additional TCP ports to expose"
    )
    service_port: int = Field(
        default=DEFAULT_SERVICE_PORT,
        ge=0,
        le=65535,
        description="Port the service listens on (0 means default)",
    )
    published_ports: str = Field(
        default="", description="CSV of containerPort[:hostPort][/proto]"
    )
    use_app_as_container_name: bool = Field(
        default=False, description="Use the app name as the container name"
    )

    @field_validator("extra_ports")
    @classmethod
    def validate_extra_ports(cls, v: list[int]) -> list[int]:
        """Validate extra ports are unsigned 16-bit values."""
        for port in v:
            if port < 0 or port > 65535:
                raise ValueError(f"Invalid port: {port}. Must be within 0-65535")
        return v

    @field_validator("resources")
    @classmethod
    def validate_resources(cls, v: dict[str, str]) -> dict[str, str]:
        """Validate only known resource limit keys are used."""
        unknown = sorted(set(v) - {"memory", "cpu"})
        if unknown:
            raise ValueError(
                f"Unknown resource limits: {', '.join(unknown)}. "
                "Supported keys are 'memory' and 'cpu'"
            )
        return v

    @property
    def effective_service_port(self) -> int:
        """Service port with the default applied when unset."""
        return self.service_port or DEFAULT_SERVICE_PORT


class Image(BaseModel):
    """Reference to a previously built container image."""

    model_config = ConfigDict(extra="forbid")

    image: str = Field(..., description="Image repository name")
    tag: str = Field(default="latest", description="Image tag")

    @property
    def reference(self) -> str:
        """Full image reference (name:tag)."""
        return f"{self.image}:{self.tag}"


class Source(BaseModel):
    """Application being deployed."""

    model_config = ConfigDict(extra="forbid")

    app: str = Field(..., description="Application name")
    path: str = Field(default=".", description="Application source path")


class JobInfo(BaseModel):
    """Metadata about the job running the deployment."""

    model_config = ConfigDict(extra="forbid")

    id: str = Field(default="", description="Job identifier")
    workspace: str = Field(default="default", description="Workspace name")


class DeploymentConfig(BaseModel):
    """Deploy-time settings supplied by the host."""

    model_config = ConfigDict(extra="forbid")

    env: dict[str, str] = Field(
        default_factory=dict, description="Environment variables injected at deploy"
    )


class Deployment(BaseModel):
    """Result of a successful deploy.

    Attributes:
        id: Generated deployment identifier
        name: Application name
        container: Docker container ID
        resource_state: Snapshot of all resource states; ``None`` for
            deployments created before snapshots were recorded
    """

    model_config = ConfigDict(extra="forbid")

    id: str = Field(default="", description="Deployment identifier")
    name: str = Field(default="", description="Application name")
    container: str = Field(default="", description="Docker container ID")
    resource_state: ResourceManagerSnapshot | None = Field(
        default=None, description="Resource manager snapshot"
    )


class DeployInputs(BaseModel):
    """Shared inputs handed to every resource create hook during deploy."""

    model_config = ConfigDict(extra="forbid")

    source: Source
    job: JobInfo = Field(default_factory=JobInfo)
    image: Image
    deploy_config: DeploymentConfig = Field(default_factory=DeploymentConfig)
    deployment: Deployment = Field(..., description="Deployment being built")
