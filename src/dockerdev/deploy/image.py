"""Image pulling for the container resource."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

import docker
from docker.errors import DockerException

from dockerdev.deploy.context import OperationContext
from dockerdev.deploy.progress import StepGroup
from dockerdev.lib.errors import DeploymentError
from dockerdev.lib.logging_config import get_logger
from dockerdev.models.deployment import Image

logger = get_logger(__name__)


def format_pull_message(entry: dict[str, Any]) -> str | None:
    """Render one decoded pull progress message as a single line.

    Returns:
        Line to display, or None for entries without displayable text

    Raises:
        DeploymentError: If the entry reports a pull error
    """
    if "error" in entry:
        raise DeploymentError(
            operation="image.pull",
            message=f"Docker reported an error while pulling: {entry['error']}",
        )
    status = entry.get("status")
    if not isinstance(status, str):
        return None
    parts = [entry["id"]] if entry.get("id") else []
    parts.append(status)
    progress = entry.get("progress")
    if isinstance(progress, str) and progress:
        parts.append(progress)
    return " ".join(parts)


def pull_image(
    client: docker.DockerClient,
    image: Image,
    log: StepGroup,
    *,
    force: bool = False,
    context: OperationContext | None = None,
) -> None:
    """Pull an image unless it is already present in the local cache.

    Args:
        client: Docker client
        image: Image reference to pull
        log: Step group receiving progress
        force: Skip the local cache check and always pull
        context: Cancellation context

    Raises:
        DeploymentError: If listing or pulling fails
    """
    ref = image.reference

    with log.add("") as step:
        if not force:
            step.update(f"Checking Docker image cache for Image {ref}")
            if context:
                context.check("image.list")
            try:
                cached = client.images.list(filters={"reference": ref})
            except DockerException as e:
                raise DeploymentError(
                    operation="image.list",
                    message=f"unable to list images in local Docker cache: {e}",
                ) from e

            if cached:
                step.update(f"Docker image {ref!r} up to date!")
                step.done()
                return

        step.update(f"Pulling Docker Image {ref}")
        logger.debug("Pulling image %s", ref)
        if context:
            context.check("image.pull")
        try:
            stream: Iterable[dict[str, Any]] = client.api.pull(
                image.image, tag=image.tag, stream=True, decode=True
            )
            for entry in stream:
                line = format_pull_message(entry)
                if line:
                    step.output(line)
        except DockerException as e:
            raise DeploymentError(
                operation="image.pull",
                message=f"unable to pull image {ref}: {e}",
            ) from e

        step.done()
