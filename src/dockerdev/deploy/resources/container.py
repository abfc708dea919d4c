"""Docker container resource.

Creates, removes, and reports on the single application container of a
deployment. The container attaches to the network recorded by the network
resource, which must be created first.
"""

from __future__ import annotations

import copy
import json
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from docker.errors import DockerException, NotFound

from dockerdev.deploy.image import pull_image
from dockerdev.deploy.parsing import (
    default_labels,
    merge_labels,
    parse_cpu_shares,
    parse_docker_timestamp,
    parse_human_size,
    parse_published_ports,
)
from dockerdev.deploy.progress import StepStatus
from dockerdev.deploy.resources.base import Resource, ResourceContext
from dockerdev.lib.errors import DeploymentError, ResourceStateError
from dockerdev.models.deployment import DeployInputs, PlatformConfig
from dockerdev.models.resource import (
    CategoryDisplayHint,
    ContainerState,
    Health,
    NetworkState,
    ResourceStatus,
    StatusReport,
)

SCRATCH_MOUNT = "/input"

_HEALTHCHECK_STATUS = {
    "healthy": (Health.READY, "container is running"),
    "unhealthy": (Health.DOWN, "container is down"),
    "starting": (Health.ALIVE, "container is starting"),
}


@dataclass
class ContainerSpec:
    """Everything needed to create the application container.

    Attributes:
        name: Container name
        image: Full image reference
        network: Network attached at creation time
        environment: ``KEY=value`` entries, ``PORT`` first
        labels: Container labels
        ports: Docker port map, ``None`` values request a random host port
        volumes: Bind specifications
        command: Command override, empty to use the image default
        mem_limit: Memory limit in bytes
        cpu_shares: Relative CPU weight
    """

    name: str
    image: str
    network: str
    environment: list[str] = field(default_factory=list)
    labels: dict[str, str] = field(default_factory=dict)
    ports: dict[str, str | None] = field(default_factory=dict)
    volumes: list[str] = field(default_factory=list)
    command: list[str] = field(default_factory=list)
    mem_limit: int | None = None
    cpu_shares: int | None = None

    def create_kwargs(self) -> dict[str, Any]:
        """Keyword arguments for ``client.containers.create``."""
        kwargs: dict[str, Any] = {
            "image": self.image,
            "name": self.name,
            "environment": self.environment,
            "labels": self.labels,
            "ports": self.ports,
            "volumes": self.volumes,
            "network": self.network,
            "stdin_open": True,
            "detach": True,
        }
        if self.command:
            kwargs["command"] = self.command
        if self.mem_limit is not None:
            kwargs["mem_limit"] = self.mem_limit
        if self.cpu_shares is not None:
            kwargs["cpu_shares"] = self.cpu_shares
        return kwargs


def build_container_spec(
    config: PlatformConfig, inputs: DeployInputs, network: str
) -> ContainerSpec:
    """Translate platform configuration and deploy inputs into a container spec.

    Does not modify ``config`` or ``inputs``.

    Raises:
        ConfigError: If published ports or resource limits are malformed
    """
    app = inputs.source.app
    service_port = config.effective_service_port

    ports: dict[str, str | None] = {}
    for port in parse_published_ports(config.published_ports):
        ports[port.key] = port.host_port or None
    # Extra and service ports get a random host port
    for port_number in [*config.extra_ports, service_port]:
        ports[f"{port_number}/tcp"] = None

    environment = [f"PORT={service_port}"]
    environment.extend(f"{k}={v}" for k, v in config.static_environment.items())
    environment.extend(f"{k}={v}" for k, v in inputs.deploy_config.env.items())

    mem_limit = None
    if "memory" in config.resources:
        mem_limit = parse_human_size(config.resources["memory"])
    cpu_shares = None
    if "cpu" in config.resources:
        cpu_shares = parse_cpu_shares(config.resources["cpu"])

    deployment_id = inputs.deployment.id
    name = app if config.use_app_as_container_name else f"{app}-{deployment_id}"

    return ContainerSpec(
        name=name,
        image=inputs.image.reference,
        network=network,
        environment=environment,
        labels=merge_labels(
            config.labels,
            default_labels(deployment_id, app, inputs.job.workspace),
        ),
        ports=ports,
        volumes=[f"{app}-scratch:{SCRATCH_MOUNT}", *config.binds],
        command=list(config.command),
        mem_limit=mem_limit,
        cpu_shares=cpu_shares,
    )


def container_health(state: Mapping[str, Any]) -> tuple[Health, str]:
    """Derive health from the ``State`` section of a container inspect result.

    A configured Docker health check takes precedence over the raw run state.
    """
    health_check = state.get("Health")
    if health_check:
        status = str(health_check.get("Status", "")).lower()
        return _HEALTHCHECK_STATUS.get(
            status,
            (Health.UNKNOWN, "unknown status reported by docker for container"),
        )

    exit_code = state.get("ExitCode", 0)
    if state.get("Running") and exit_code == 0:
        return Health.READY, "container is running"
    if state.get("Restarting") or state.get("Status") == "created":
        return Health.ALIVE, "container is still starting"
    if state.get("Dead") or state.get("OOMKilled") or exit_code != 0:
        return Health.DOWN, "container is down"
    return Health.UNKNOWN, "unknown status for container"


def describe_container(info: Mapping[str, Any]) -> ResourceStatus:
    """Build a resource status from a container inspect result.

    Environment variables are redacted before the inspect result is
    serialized, since they may hold secrets.

    Raises:
        ResourceStateError: If the creation timestamp cannot be parsed
    """
    container_id = info.get("Id", "")
    created = info.get("Created", "")
    try:
        created_time = parse_docker_timestamp(created)
    except ValueError as e:
        raise ResourceStateError(
            operation="container.status",
            message=f"failed to parse docker timestamp {created!r}: {e}",
        ) from e

    health, message = container_health(info.get("State") or {})

    redacted = copy.deepcopy(dict(info))
    redacted["Config"] = {**(redacted.get("Config") or {}), "Env": []}
    container_state: dict[str, Any] = {"dockerContainerInfo": redacted}

    networks = (info.get("NetworkSettings") or {}).get("Networks") or {}
    if len(networks) == 1:
        (network,) = networks.values()
        container_state["ipAddress"] = (network or {}).get("IPAddress", "")

    return ResourceStatus(
        name=str(info.get("Name", "")).removeprefix("/"),
        id=container_id,
        category_display_hint=CategoryDisplayHint.INSTANCE,
        health=health,
        health_message=message,
        created_time=created_time,
        state_json=json.dumps(container_state, default=str),
    )


class ContainerResource(Resource[ContainerState]):
    """The deployed application container."""

    state_type = ContainerState
    category_display_hint = CategoryDisplayHint.INSTANCE

    def __init__(
        self,
        name: str,
        config: PlatformConfig,
        platform: str = "",
        network_resource: str = "network",
    ) -> None:
        """Initialize the container resource.

        Args:
            name: Resource name
            config: Platform configuration (read only)
            platform: Informational platform tag
            network_resource: Name of the resource whose state holds the
                network to attach to
        """
        super().__init__(name, platform)
        self.config = config
        self.network_resource = network_resource

    def _network_name(self, created: Mapping[str, Resource[Any]]) -> str:
        network = created.get(self.network_resource)
        if network is None or not isinstance(network.state, NetworkState):
            raise ResourceStateError(
                operation="container.create",
                message=(
                    f"resource {self.network_resource!r} must be created "
                    "before the container"
                ),
            )
        if not network.state.name:
            raise ResourceStateError(
                operation="container.create",
                message="network state has no name",
            )
        return network.state.name

    def create(
        self,
        ctx: ResourceContext,
        inputs: DeployInputs,
        created: Mapping[str, Resource[Any]],
    ) -> ContainerState:
        """Pull the image, then create, connect, and start the container."""
        network = self._network_name(created)
        spec = build_container_spec(self.config, inputs, network)

        pull_image(
            ctx.client,
            inputs.image,
            ctx.log,
            force=self.config.force_pull,
            context=ctx.context,
        )

        with ctx.log.add("Creating new container...") as step:
            ctx.context.check("container.create")
            try:
                container = ctx.client.containers.create(**spec.create_kwargs())
            except DockerException as e:
                raise DeploymentError(
                    operation="container.create",
                    message=f"unable to create Docker container {spec.name!r}: {e}",
                ) from e
            ctx.logger.debug("Created container %s (%s)", spec.name, container.id)

            # Only one network can be attached at creation time
            if self.config.networks:
                step.update("Connecting additional networks to container...")
            for extra_network in self.config.networks:
                ctx.context.check("container.connect")
                try:
                    ctx.client.networks.get(extra_network).connect(container.id)
                except DockerException as e:
                    step.update("Failed to connect additional network")
                    step.status(StepStatus.ERROR)
                    raise DeploymentError(
                        operation="container.connect",
                        message=(
                            f"unable to connect container {spec.name!r} "
                            f"to network {extra_network!r}: {e}"
                        ),
                    ) from e

            step.update("Starting container")
            ctx.context.check("container.start")
            try:
                container.start()
            except DockerException as e:
                raise DeploymentError(
                    operation="container.start",
                    message=f"unable to start Docker container {spec.name!r}: {e}",
                ) from e
            step.done()

        return ContainerState(id=container.id, name=spec.name)

    def destroy(self, ctx: ResourceContext) -> None:
        """Force-remove the container; a missing container counts as removed."""
        container_id = self.state.id
        if not container_id:
            ctx.logger.debug("No container recorded, nothing to destroy")
            return

        ctx.context.check("container.destroy")
        try:
            container = ctx.client.containers.get(container_id)
        except NotFound:
            ctx.logger.debug("Container %s already removed", container_id)
            return
        except DockerException as e:
            raise DeploymentError(
                operation="container.destroy",
                message=f"unable to inspect container {container_id}: {e}",
            ) from e

        with ctx.log.add(f"Deleting container: {container_id}") as step:
            try:
                container.remove(force=True)
            except NotFound:
                ctx.logger.debug("Container %s vanished during removal", container_id)
            except DockerException as e:
                raise DeploymentError(
                    operation="container.destroy",
                    message=f"unable to remove container {container_id}: {e}",
                ) from e
            step.done()

    def status(self, ctx: ResourceContext, report: StatusReport) -> None:
        """Report the container's health from an engine inspect."""
        message = "Checking status of the Docker container resource..."
        missing = ResourceStatus(
            name=self.state.name,
            id=self.state.id,
            category_display_hint=self.category_display_hint,
            health=Health.MISSING,
            health_message="container is missing",
        )
        with ctx.log.add(message) as step:
            if not self.state.id:
                ctx.logger.debug("No container recorded, reporting it as missing")
                report.resources.append(missing)
                step.update("Finished building report for Docker container resource")
                step.done()
                return

            ctx.logger.debug("Querying docker for container health")
            ctx.context.check("container.status")
            try:
                info = ctx.client.api.inspect_container(self.state.id)
            except NotFound:
                # Expected but absent: removed since it was deployed
                resource = missing
            except DockerException as e:
                raise DeploymentError(
                    operation="container.status",
                    message=(
                        f"error querying docker for container {self.state.id!r} "
                        f"status: {e}"
                    ),
                ) from e
            else:
                ctx.logger.debug("Found docker container %s", self.state.id)
                resource = describe_container(info)

            report.resources.append(resource)
            step.update("Finished building report for Docker container resource")
            step.done()
