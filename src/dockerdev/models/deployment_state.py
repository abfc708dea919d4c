"""Deployment state models for persisted deployments."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from dockerdev.models.deployment import Deployment


class DeploymentRecord(BaseModel):
    """Persisted deployment record for a single application."""

    model_config = ConfigDict(extra="forbid")

    deployment: Deployment = Field(..., description="Deployment returned by deploy")
    image_uri: str = Field(..., description="Deployed container image reference")
    status: str = Field(default="DEPLOYED", description="Last known status")
    created_at: datetime | None = Field(
        default=None, description="Initial deployment timestamp"
    )
    updated_at: datetime | None = Field(
        default=None, description="Last update timestamp"
    )


class DeploymentState(BaseModel):
    """Top-level deployment state stored on disk."""

    model_config = ConfigDict(extra="forbid")

    version: str = Field(default="1.0", description="State file version")
    deployments: dict[str, DeploymentRecord] = Field(
        default_factory=dict, description="Deployments keyed by application name"
    )
