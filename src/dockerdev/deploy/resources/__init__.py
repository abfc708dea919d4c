"""Managed resources and the resource manager."""

from __future__ import annotations

from dockerdev.deploy.resources.base import Resource, ResourceContext
from dockerdev.deploy.resources.container import ContainerResource
from dockerdev.deploy.resources.manager import ResourceManager, aggregate_health
from dockerdev.deploy.resources.network import NETWORK_NAME, NetworkResource

__all__ = [
    "NETWORK_NAME",
    "ContainerResource",
    "NetworkResource",
    "Resource",
    "ResourceContext",
    "ResourceManager",
    "aggregate_health",
]
