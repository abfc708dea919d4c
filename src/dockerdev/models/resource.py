"""Pydantic models for managed resources, their state, and status reports.

Resource state objects are a tagged union keyed by the literal ``kind``
field, so a persisted snapshot is decoded by tag rather than by matching
resource names.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field


class Health(str, Enum):
    """Health of a single resource or of a whole deployment."""

    READY = "READY"
    ALIVE = "ALIVE"
    DOWN = "DOWN"
    MISSING = "MISSING"
    UNKNOWN = "UNKNOWN"
    PARTIAL = "PARTIAL"


class CategoryDisplayHint(str, Enum):
    """Display grouping for a resource in status reports."""

    OTHER = "OTHER"
    INSTANCE = "INSTANCE"
    INSTANCE_MANAGER = "INSTANCE_MANAGER"
    ROUTER = "ROUTER"
    POLICY = "POLICY"
    CONFIG = "CONFIG"
    FUNCTION = "FUNCTION"
    STORAGE = "STORAGE"


class NetworkState(BaseModel):
    """Recorded state of the Docker network resource."""

    model_config = ConfigDict(extra="forbid")

    kind: Literal["network"] = "network"
    name: str = Field(default="", description="Docker network name")


class ContainerState(BaseModel):
    """Recorded state of the Docker container resource."""

    model_config = ConfigDict(extra="forbid")

    kind: Literal["container"] = "container"
    id: str = Field(default="", description="Docker container ID")
    name: str = Field(default="", description="Docker container name")


AnyResourceState = Annotated[
    NetworkState | ContainerState, Field(discriminator="kind")
]


class ResourceSnapshotEntry(BaseModel):
    """Serialized state of one resource inside a manager snapshot."""

    model_config = ConfigDict(extra="forbid")

    name: str = Field(..., description="Resource name, unique within a manager")
    platform: str = Field(default="", description="Informational platform tag")
    category_display_hint: CategoryDisplayHint = Field(
        default=CategoryDisplayHint.OTHER, description="Report grouping hint"
    )
    state: AnyResourceState = Field(..., description="Resource state, tagged by kind")


class ResourceManagerSnapshot(BaseModel):
    """Ordered serialized state of every resource in a manager."""

    model_config = ConfigDict(extra="forbid")

    resources: list[ResourceSnapshotEntry] = Field(
        default_factory=list, description="Resource states in registration order"
    )

    def names(self) -> list[str]:
        """Return resource names in snapshot order."""
        return [entry.name for entry in self.resources]

    def get(self, name: str) -> ResourceSnapshotEntry | None:
        """Return the entry for a resource name, if present."""
        for entry in self.resources:
            if entry.name == name:
                return entry
        return None


class ResourceStatus(BaseModel):
    """Point-in-time status of one remote object backing a resource.

    Attributes:
        name: Remote object name (e.g. the container name)
        id: Remote object identifier
        category_display_hint: Report grouping hint
        health: Health of this object
        health_message: Human-readable explanation of the health value
        created_time: When the remote object was created, if known
        state_json: Engine-reported state serialized as JSON text
    """

    model_config = ConfigDict(extra="forbid")

    name: str = ""
    id: str = ""
    category_display_hint: CategoryDisplayHint = CategoryDisplayHint.OTHER
    health: Health = Health.UNKNOWN
    health_message: str = ""
    created_time: datetime | None = None
    state_json: str = ""


class StatusReport(BaseModel):
    """Health report for a whole deployment.

    Hooks append to ``resources``; the resource manager fills in the
    aggregate ``health`` and ``health_message`` afterwards.
    """

    model_config = ConfigDict(extra="forbid")

    resources: list[ResourceStatus] = Field(default_factory=list)
    health: Health = Health.UNKNOWN
    health_message: str = ""
    generated_time: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )
    external: bool = Field(
        default=True, description="Whether the report was generated by a plugin"
    )
