"""Ordered lifecycle management for a fixed set of resources.

The :class:`ResourceManager` creates resources in registration order,
destroys them in reverse order, serializes their state into a
:class:`~dockerdev.models.resource.ResourceManagerSnapshot`, and folds
their status into one deployment-level health value.

Example:
    >>> manager = ResourceManager(
    ...     [NetworkResource("network"), ContainerResource("container")],
    ...     client_provider=create_docker_client,
    ... )
    >>> manager.create_all(inputs, log=step_group)
    >>> snapshot = manager.state()
"""

from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Callable, Iterable, Mapping, Sequence
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from dockerdev.deploy.context import OperationContext
from dockerdev.deploy.progress import NullStepGroup, StepGroup
from dockerdev.deploy.resources.base import Resource, ResourceContext
from dockerdev.lib.errors import ResourceDestroyError, ResourceStateError
from dockerdev.lib.logging_config import get_logger
from dockerdev.models.resource import (
    Health,
    ResourceManagerSnapshot,
    ResourceStatus,
    StatusReport,
)

if TYPE_CHECKING:
    import docker

ClientProvider = Callable[[], "docker.DockerClient"]


def aggregate_health(resources: Sequence[ResourceStatus]) -> tuple[Health, str]:
    """Compute the deployment health from per-resource health.

    All READY gives READY, identical values give that value, and any mix
    gives PARTIAL.

    Args:
        resources: Per-resource statuses in report order

    Returns:
        Tuple of (aggregate health, health message)
    """
    if not resources:
        return Health.UNKNOWN, "No resources reported a status"

    counts = Counter(status.health for status in resources)
    if len(counts) == 1:
        health = resources[0].health
        return health, f"All resources are reported as {health.value}"

    summary = ", ".join(
        f"{counts[health]} {health.value}" for health in Health if health in counts
    )
    return (
        Health.PARTIAL,
        f"Resource health is mixed ({summary}); "
        "the deployment may still be transitioning",
    )


class ResourceManager:
    """Drive an ordered set of resources through their lifecycle.

    Each deploy or status call builds its own manager, so no locking is
    needed around resource state.
    """

    def __init__(
        self,
        resources: Iterable[Resource[Any]],
        client_provider: ClientProvider | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        """Initialize the manager.

        Args:
            resources: Resources in creation order; names must be unique
            client_provider: Callable returning the Docker client, invoked
                at most once and only when a hook needs the engine
            logger: Logger for lifecycle debug output

        Raises:
            ValueError: If two resources share a name
        """
        self._resources: dict[str, Resource[Any]] = {}
        for resource in resources:
            if resource.name in self._resources:
                raise ValueError(f"Duplicate resource name: {resource.name!r}")
            self._resources[resource.name] = resource

        self._client_provider = client_provider
        self._client: docker.DockerClient | None = None
        self.logger = logger or get_logger(__name__)

    @property
    def resources(self) -> list[Resource[Any]]:
        """Registered resources in creation order."""
        return list(self._resources.values())

    def resource(self, name: str) -> Resource[Any]:
        """Return the resource registered under ``name``.

        Raises:
            KeyError: If no such resource is registered. Resource sets are
                fixed at construction, so this is a programming error.
        """
        try:
            return self._resources[name]
        except KeyError:
            raise KeyError(
                f"Unknown resource {name!r}; registered: {list(self._resources)}"
            ) from None

    def _get_client(self) -> docker.DockerClient:
        if self._client is None:
            if self._client_provider is None:
                raise ResourceStateError(
                    operation="resource_manager.client",
                    message="no Docker client provider configured",
                )
            self._client = self._client_provider()
        return self._client

    def _hook_context(
        self, log: StepGroup | None, context: OperationContext | None
    ) -> ResourceContext:
        return ResourceContext(
            client_provider=self._get_client,
            log=log if log is not None else NullStepGroup(),
            logger=self.logger,
            context=context if context is not None else OperationContext(),
        )

    def create_all(
        self,
        inputs: Any,
        *,
        log: StepGroup | None = None,
        context: OperationContext | None = None,
    ) -> None:
        """Create every resource in registration order.

        Each create hook receives the resources created before it. The
        first failure is re-raised immediately; resources created before
        it are left in place for an explicit destroy.

        Args:
            inputs: Shared inputs passed to every create hook
            log: Step group receiving progress
            context: Cancellation context
        """
        ctx = self._hook_context(log, context)
        created: dict[str, Resource[Any]] = {}

        for resource in self._resources.values():
            self.logger.debug("Creating resource %s", resource.name)
            new_state = resource.create(ctx, inputs, MappingProxyType(dict(created)))
            resource.set_state(new_state)
            created[resource.name] = resource
            self.logger.debug("Created resource %s", resource.name)

    def destroy_all(
        self,
        *,
        log: StepGroup | None = None,
        context: OperationContext | None = None,
    ) -> None:
        """Destroy every resource in reverse registration order.

        Every resource is attempted even when an earlier destroy fails.

        Raises:
            ResourceDestroyError: If one or more destroy hooks failed
        """
        ctx = self._hook_context(log, context)
        failures: list[tuple[str, BaseException]] = []

        for resource in reversed(self._resources.values()):
            self.logger.debug("Destroying resource %s", resource.name)
            try:
                resource.destroy(ctx)
            except Exception as e:
                self.logger.warning(
                    "Failed to destroy resource %s: %s", resource.name, e
                )
                failures.append((resource.name, e))

        if failures:
            raise ResourceDestroyError(failures)

    def state(self) -> ResourceManagerSnapshot:
        """Serialize the state of every registered resource."""
        return ResourceManagerSnapshot(
            resources=[resource.snapshot() for resource in self._resources.values()]
        )

    def load_state(
        self, snapshot: ResourceManagerSnapshot | Mapping[str, Any] | str
    ) -> None:
        """Restore resource states from a snapshot.

        Registered resources missing from the snapshot keep their empty
        state. Nothing is restored when any entry is invalid.

        Args:
            snapshot: Snapshot model, its dict form, or its JSON text

        Raises:
            ResourceStateError: If the snapshot cannot be decoded, names a
                resource that is not registered, or carries a state of the
                wrong type for a resource
        """
        if not isinstance(snapshot, ResourceManagerSnapshot):
            snapshot = _decode_snapshot(snapshot)

        unknown = [name for name in snapshot.names() if name not in self._resources]
        if unknown:
            raise ResourceStateError(
                operation="resource_manager.load_state",
                message=(
                    f"snapshot contains unregistered resource(s): {unknown}; "
                    f"registered: {list(self._resources)}"
                ),
            )

        for entry in snapshot.resources:
            resource = self._resources[entry.name]
            if not isinstance(entry.state, resource.state_type):
                raise ResourceStateError(
                    operation="resource_manager.load_state",
                    message=(
                        f"snapshot state for {entry.name!r} has kind "
                        f"{entry.state.kind!r}, expected "
                        f"{resource.state_type.__name__}"
                    ),
                )

        for entry in snapshot.resources:
            self._resources[entry.name].set_state(entry.state.model_copy(deep=True))

    def status_report(
        self,
        *,
        log: StepGroup | None = None,
        context: OperationContext | None = None,
    ) -> StatusReport:
        """Collect the status of every resource and aggregate it.

        A failing status hook aborts the whole report.

        Returns:
            StatusReport with per-resource entries in registration order
        """
        ctx = self._hook_context(log, context)
        report = StatusReport()

        for resource in self._resources.values():
            self.logger.debug("Checking status of resource %s", resource.name)
            resource.status(ctx, report)

        report.health, report.health_message = aggregate_health(report.resources)
        return report


def _decode_snapshot(raw: Mapping[str, Any] | str) -> ResourceManagerSnapshot:
    try:
        if isinstance(raw, str):
            return ResourceManagerSnapshot.model_validate_json(raw)
        return ResourceManagerSnapshot.model_validate(raw)
    except ValidationError as e:
        raise ResourceStateError(
            operation="resource_manager.load_state",
            message=f"invalid resource snapshot: {e}",
        ) from e
