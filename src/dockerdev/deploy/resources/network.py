"""Docker network resource.

The network is shared by every deployment and is never removed, so this
resource keeps the default no-op destroy.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from datetime import datetime
from typing import Any

from docker.errors import DockerException

from dockerdev.deploy.parsing import parse_docker_timestamp
from dockerdev.deploy.resources.base import Resource, ResourceContext
from dockerdev.lib.errors import DeploymentError, ResourceStateError
from dockerdev.models.resource import (
    CategoryDisplayHint,
    Health,
    NetworkState,
    ResourceStatus,
    StatusReport,
)

NETWORK_NAME = "waypoint"
NETWORK_DRIVER = "bridge"


def network_label_filter(name: str) -> dict[str, str]:
    """Engine filter selecting networks labelled ``use=<name>``."""
    return {"label": f"use={name}"}


class NetworkResource(Resource[NetworkState]):
    """Bridge network the deployed container attaches to."""

    state_type = NetworkState
    category_display_hint = CategoryDisplayHint.ROUTER

    def create(
        self,
        ctx: ResourceContext,
        inputs: Any,
        created: Mapping[str, Resource[Any]],
    ) -> NetworkState:
        """Create the shared network unless it already exists."""
        with ctx.log.add("Setting up network...") as step:
            ctx.context.check("network.list")
            try:
                networks = ctx.client.networks.list(
                    filters=network_label_filter(NETWORK_NAME)
                )
            except DockerException as e:
                raise DeploymentError(
                    operation="network.list",
                    message=f"unable to list Docker networks: {e}",
                ) from e

            if not networks:
                ctx.logger.debug("Creating network %s", NETWORK_NAME)
                ctx.context.check("network.create")
                try:
                    ctx.client.networks.create(
                        NETWORK_NAME,
                        driver=NETWORK_DRIVER,
                        internal=False,
                        attachable=True,
                        labels={"use": NETWORK_NAME},
                    )
                except DockerException as e:
                    raise DeploymentError(
                        operation="network.create",
                        message=(
                            f"unable to create Docker network {NETWORK_NAME!r}: {e}"
                        ),
                    ) from e
            step.done()

        return NetworkState(name=NETWORK_NAME)

    def status(self, ctx: ResourceContext, report: StatusReport) -> None:
        """Report every network labelled with the recorded name."""
        step_message = "Checking status of the Docker network resource..."
        with ctx.log.add(step_message) as step:
            ctx.logger.debug("Querying docker for network status")
            ctx.context.check("network.status")
            try:
                networks = ctx.client.networks.list(
                    filters=network_label_filter(self.state.name)
                )
            except DockerException as e:
                raise DeploymentError(
                    operation="network.status",
                    message=f"unable to list Docker networks: {e}",
                ) from e

            if not networks:
                report.resources.append(
                    ResourceStatus(
                        name=self.state.name,
                        category_display_hint=self.category_display_hint,
                        health=Health.MISSING,
                        health_message="network does not exist",
                    )
                )

            # Normally a single network; report duplicates if there are any
            for network in networks:
                attrs = network.attrs or {}
                report.resources.append(
                    ResourceStatus(
                        name=network.name,
                        id=network.id,
                        category_display_hint=self.category_display_hint,
                        health=Health.READY,
                        health_message="exists",
                        created_time=_created_time(network.id, attrs),
                        state_json=json.dumps({"dockerNetwork": attrs}, default=str),
                    )
                )

            step.update("Finished building report for Docker network resource")
            step.done()


def _created_time(network_id: str, attrs: dict[str, Any]) -> datetime | None:
    created = attrs.get("Created")
    if not created:
        return None
    try:
        return parse_docker_timestamp(created)
    except ValueError as e:
        raise ResourceStateError(
            operation="network.status",
            message=(
                f"failed to parse docker timestamp for network {network_id!r}: {e}"
            ),
        ) from e
