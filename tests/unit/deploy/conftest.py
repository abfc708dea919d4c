"""Fixtures for deployment engine tests.

The Docker SDK is replaced with MagicMock clients; networks and
containers returned by the mocks carry real ``attrs`` dicts so status
serialization can run unchanged.
"""

from __future__ import annotations

from typing import Any
from unittest.mock import MagicMock

import pytest

from dockerdev.deploy.context import OperationContext
from dockerdev.deploy.progress import NullStepGroup
from dockerdev.deploy.resources.base import ResourceContext
from dockerdev.lib.logging_config import get_logger
from dockerdev.models.deployment import (
    Deployment,
    DeploymentConfig,
    DeployInputs,
    Image,
    JobInfo,
    Source,
)

CREATED_AT = "2024-03-01T10:15:30.123456789Z"


def _make_network(
    name: str = "waypoint", network_id: str = "net-1", created: str = CREATED_AT
) -> MagicMock:
    """Build a mock docker Network object."""
    network = MagicMock()
    network.name = name
    network.id = network_id
    network.attrs = {
        "Name": name,
        "Id": network_id,
        "Created": created,
        "Driver": "bridge",
        "Labels": {"use": name},
    }
    return network


def _make_inspect(
    *,
    container_id: str = "c0ffee",
    name: str = "/web-01",
    state: dict[str, Any] | None = None,
    networks: dict[str, Any] | None = None,
    env: list[str] | None = None,
) -> dict[str, Any]:
    """Build a container inspect result as returned by the low-level API."""
    return {
        "Id": container_id,
        "Name": name,
        "Created": CREATED_AT,
        "State": state if state is not None else {"Running": True, "ExitCode": 0},
        "Config": {"Env": env if env is not None else ["SECRET=hunter2"]},
        "NetworkSettings": {
            "Networks": (
                networks
                if networks is not None
                else {"waypoint": {"IPAddress": "172.18.0.2"}}
            )
        },
    }


@pytest.fixture
def mock_client() -> MagicMock:
    """Docker client with an existing network and a cached image."""
    client = MagicMock()
    client.networks.list.return_value = [_make_network()]
    client.images.list.return_value = [MagicMock()]

    container = MagicMock()
    container.id = "c0ffee"
    client.containers.create.return_value = container
    client.api.inspect_container.return_value = _make_inspect()
    return client


@pytest.fixture
def resource_ctx(mock_client: MagicMock) -> ResourceContext:
    """Resource hook context bound to the mock client."""
    return ResourceContext(
        client_provider=lambda: mock_client,
        log=NullStepGroup(),
        logger=get_logger("tests"),
        context=OperationContext(),
    )


@pytest.fixture
def deploy_inputs() -> DeployInputs:
    """Deploy inputs for an app named ``web``."""
    return DeployInputs(
        source=Source(app="web"),
        job=JobInfo(workspace="staging"),
        image=Image(image="example/web", tag="v1"),
        deploy_config=DeploymentConfig(env={"DB_URL": "postgres://db"}),
        deployment=Deployment(id="01", name="web"),
    )


@pytest.fixture
def network_factory() -> Any:
    """Factory for mock docker Network objects."""
    return _make_network


@pytest.fixture
def inspect_factory() -> Any:
    """Factory for container inspect results."""
    return _make_inspect
