"""Base interface for managed resources."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Callable, Mapping
from typing import TYPE_CHECKING, Any, ClassVar, Generic, TypeVar

from pydantic import BaseModel

from dockerdev.deploy.context import OperationContext
from dockerdev.deploy.progress import StepGroup
from dockerdev.lib.errors import ResourceStateError
from dockerdev.models.resource import (
    CategoryDisplayHint,
    ResourceSnapshotEntry,
    StatusReport,
)

if TYPE_CHECKING:
    import docker

StateT = TypeVar("StateT", bound=BaseModel)


class ResourceContext:
    """Everything a resource hook needs besides its own state.

    The Docker client is created on first use through the provider, so
    hooks that never touch the engine never open a connection.

    Attributes:
        log: Step group receiving progress
        logger: Logger for debug output
        context: Cancellation context
    """

    def __init__(
        self,
        client_provider: Callable[[], docker.DockerClient],
        log: StepGroup,
        logger: logging.Logger,
        context: OperationContext,
    ) -> None:
        self._client_provider = client_provider
        self.log = log
        self.logger = logger
        self.context = context

    @property
    def client(self) -> docker.DockerClient:
        """Docker client from the value provider."""
        return self._client_provider()


class Resource(ABC, Generic[StateT]):
    """A named unit of infrastructure with a typed, serializable state.

    Subclasses declare ``state_type`` and implement :meth:`create`.
    :meth:`destroy` and :meth:`status` are optional and default to no-ops
    that succeed.
    """

    state_type: ClassVar[type[BaseModel]]
    category_display_hint: ClassVar[CategoryDisplayHint] = CategoryDisplayHint.OTHER

    def __init__(self, name: str, platform: str = "") -> None:
        """Create the resource with an empty state.

        Args:
            name: Resource name, unique within a manager
            platform: Informational platform tag
        """
        self.name = name
        self.platform = platform
        self._state: StateT = self.new_state()

    def new_state(self) -> StateT:
        """Return a fresh, zero-valued state object."""
        return self.state_type()  # type: ignore[return-value]

    @property
    def state(self) -> StateT:
        """Current state of this resource."""
        return self._state

    def set_state(self, value: object) -> None:
        """Replace the state after checking its type.

        Raises:
            ResourceStateError: If ``value`` is not a ``state_type`` instance
        """
        if not isinstance(value, self.state_type):
            raise ResourceStateError(
                operation="resource.set_state",
                message=(
                    f"resource {self.name!r} expects state of type "
                    f"{self.state_type.__name__}, got {type(value).__name__}"
                ),
            )
        self._state = value  # type: ignore[assignment]

    def snapshot(self) -> ResourceSnapshotEntry:
        """Serialize this resource's state into a snapshot entry."""
        return ResourceSnapshotEntry(
            name=self.name,
            platform=self.platform,
            category_display_hint=self.category_display_hint,
            state=self._state.model_copy(deep=True),  # type: ignore[arg-type]
        )

    @abstractmethod
    def create(
        self,
        ctx: ResourceContext,
        inputs: Any,
        created: Mapping[str, Resource[Any]],
    ) -> StateT:
        """Create the remote object and return the resulting state.

        Args:
            ctx: Hook context (client, progress, logger, cancellation)
            inputs: Shared inputs passed to every create hook
            created: Resources already created earlier in the manager order

        Returns:
            New state for this resource. The manager stores it only when
            this method returns normally.

        Raises:
            DeploymentError: If creation fails
        """

    def destroy(self, ctx: ResourceContext) -> None:  # noqa: B027
        """Destroy the remote object. Resources without teardown keep this no-op.

        A remote object that no longer exists counts as destroyed.
        """

    def status(self, ctx: ResourceContext, report: StatusReport) -> None:  # noqa: B027
        """Append the current status of the remote object(s) to ``report``.

        Must not modify the resource state.
        """
