"""Deploy, status, and destroy entry points for the local Docker platform.

:class:`Platform` binds the generic resource manager to the network and
container resources and maps its output onto :class:`Deployment` and
:class:`StatusReport` records.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import TYPE_CHECKING

from ulid import ULID

from dockerdev.deploy.client import create_docker_client
from dockerdev.deploy.context import OperationContext
from dockerdev.deploy.progress import NullStepGroup, StepGroup, StepStatus
from dockerdev.deploy.resources.container import ContainerResource
from dockerdev.deploy.resources.manager import ResourceManager
from dockerdev.deploy.resources.network import NETWORK_NAME, NetworkResource
from dockerdev.lib.errors import ResourceStateError
from dockerdev.lib.logging_config import get_logger
from dockerdev.models.deployment import (
    Deployment,
    DeploymentConfig,
    DeployInputs,
    Image,
    JobInfo,
    PlatformConfig,
    Source,
)
from dockerdev.models.resource import (
    ContainerState,
    Health,
    NetworkState,
    StatusReport,
)

if TYPE_CHECKING:
    import docker

PLATFORM_NAME = "dockerdev"
NETWORK_RESOURCE = "network"
CONTAINER_RESOURCE = "container"

MIXED_HEALTH_WARNING = (
    "The current deployment is not ready, however your application\n"
    "might be available or still starting up."
)

logger = get_logger(__name__)


class Platform:
    """Deploy an application image as a container on a Docker engine.

    Example:
        >>> platform = Platform(PlatformConfig(service_port=8080))
        >>> deployment = platform.deploy(
        ...     Source(app="web"), JobInfo(), Image(image="web", tag="v1")
        ... )
        >>> report = platform.status(deployment)
        >>> report.health
        <Health.READY: 'READY'>
    """

    def __init__(
        self,
        config: PlatformConfig | None = None,
        client_factory: Callable[[], docker.DockerClient] | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        """Initialize the platform.

        Args:
            config: Platform configuration; never modified
            client_factory: Callable returning a Docker client. Defaults to
                one built from ``config.client_config``.
            logger: Logger for resource manager output
        """
        self.config = config or PlatformConfig()
        self._client_factory = client_factory or self._default_client
        self.logger = logger or get_logger(__name__)

    def _default_client(self) -> docker.DockerClient:
        return create_docker_client(self.config.client_config)

    def resource_manager(self) -> ResourceManager:
        """Build the network-then-container resource topology."""
        return ResourceManager(
            [
                NetworkResource(NETWORK_RESOURCE, platform=PLATFORM_NAME),
                ContainerResource(
                    CONTAINER_RESOURCE,
                    self.config,
                    platform=PLATFORM_NAME,
                    network_resource=NETWORK_RESOURCE,
                ),
            ],
            client_provider=self._client_factory,
            logger=self.logger.getChild("resource_manager"),
        )

    def deploy(
        self,
        source: Source,
        job: JobInfo,
        image: Image,
        deploy_config: DeploymentConfig | None = None,
        *,
        log: StepGroup | None = None,
        context: OperationContext | None = None,
    ) -> Deployment:
        """Create the network and container for a new deployment.

        Args:
            source: Application being deployed
            job: Job metadata (workspace is recorded as a label)
            image: Previously built image to run
            deploy_config: Deploy-time environment from the host
            log: Step group receiving progress
            context: Cancellation context

        Returns:
            Deployment with the container ID and a snapshot of resource state

        Raises:
            DeploymentError: If any resource fails to create. Resources
                created before the failure are not rolled back.
        """
        log = log if log is not None else NullStepGroup()
        deployment = Deployment(id=str(ULID()), name=source.app)
        inputs = DeployInputs(
            source=source,
            job=job,
            image=image,
            deploy_config=deploy_config or DeploymentConfig(),
            deployment=deployment,
        )

        with log:
            manager = self.resource_manager()
            manager.create_all(inputs, log=log, context=context)

            deployment.resource_state = manager.state()

            container_state = manager.resource(CONTAINER_RESOURCE).state
            if not (isinstance(container_state, ContainerState) and container_state.id):
                raise ResourceStateError(
                    operation="deploy",
                    message="container state is empty after create",
                )

            with log.add(f"App deployed as container: {container_state.name}") as step:
                step.done()

            deployment.container = container_state.id

        logger.info(
            "Deployed %s as container %s (deployment %s)",
            source.app,
            container_state.name,
            deployment.id,
        )
        return deployment

    def _restore(self, deployment: Deployment) -> ResourceManager:
        """Rebuild the topology and restore state for an existing deployment."""
        manager = self.resource_manager()

        # Deployments recorded before snapshots only know the container ID
        if deployment.resource_state is None:
            logger.debug(
                "Deployment %s has no resource state, restoring legacy layout",
                deployment.id,
            )
            manager.resource(CONTAINER_RESOURCE).set_state(
                ContainerState(id=deployment.container)
            )
            manager.resource(NETWORK_RESOURCE).set_state(
                NetworkState(name=NETWORK_NAME)
            )
        else:
            manager.load_state(deployment.resource_state)
        return manager

    def status(
        self,
        deployment: Deployment,
        *,
        log: StepGroup | None = None,
        context: OperationContext | None = None,
    ) -> StatusReport:
        """Build a health report for an existing deployment.

        A non-ready deployment is reported in the returned health fields,
        never raised.

        Raises:
            DeploymentError: If the engine cannot be queried
            ResourceStateError: If the stored snapshot does not match the
                resource topology
        """
        log = log if log is not None else NullStepGroup()

        with log:
            with log.add("Gathering health report for Docker platform...") as step:
                manager = self._restore(deployment)
                report = manager.status_report(log=log, context=context)
                logger.debug("Status report complete")
                step.update("Finished building report for Docker platform")
                step.done()

            with log.add("Determining overall container health...") as summary:
                summary.update(report.health_message)
                if report.health == Health.READY:
                    summary.status(StepStatus.OK)
                elif report.health == Health.PARTIAL:
                    summary.status(StepStatus.WARNING)
                else:
                    summary.status(StepStatus.ERROR)
                summary.done()

            # A report taken right after deploy may only reflect startup latency
            if report.health != Health.READY:
                with log.add(MIXED_HEALTH_WARNING) as advisory:
                    advisory.status(StepStatus.WARNING)
                    advisory.done()

        return report

    def destroy(
        self,
        deployment: Deployment,
        *,
        log: StepGroup | None = None,
        context: OperationContext | None = None,
    ) -> None:
        """Tear down the resources of an existing deployment.

        The shared network is left in place for later deployments.

        Raises:
            ResourceDestroyError: If any resource failed to destroy
        """
        log = log if log is not None else NullStepGroup()
        with log:
            manager = self._restore(deployment)
            manager.destroy_all(log=log, context=context)
        logger.info("Destroyed deployment %s", deployment.id)
