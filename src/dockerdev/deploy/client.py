"""Docker client construction.

Without explicit connection overrides the client is configured from the
standard Docker environment variables, the same way the Docker CLI does.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import docker
from docker.errors import DockerException
from docker.tls import TLSConfig

from dockerdev.lib.errors import DockerNotAvailableError
from dockerdev.lib.logging_config import get_logger
from dockerdev.models.deployment import ClientConfig

logger = get_logger(__name__)


def build_tls_config(cert_path: str) -> TLSConfig:
    """Build a TLS configuration from a directory of Docker certificates.

    Args:
        cert_path: Directory holding ca.pem, cert.pem and key.pem

    Returns:
        TLSConfig verifying the engine against ca.pem
    """
    base = Path(cert_path)
    return TLSConfig(
        client_cert=(str(base / "cert.pem"), str(base / "key.pem")),
        ca_cert=str(base / "ca.pem"),
        verify=True,
    )


def create_docker_client(config: ClientConfig | None = None) -> docker.DockerClient:
    """Create a Docker client, applying connection overrides when given.

    Args:
        config: Optional host, certificate path, and API version overrides

    Returns:
        Connected DockerClient

    Raises:
        DockerNotAvailableError: If the client cannot be created
    """
    try:
        if config is None:
            logger.debug("Creating Docker client from environment")
            return docker.from_env()  # type: ignore[attr-defined]

        kwargs: dict[str, Any] = {"version": config.api_version or "auto"}
        if config.host:
            kwargs["base_url"] = config.host
        if config.cert_path:
            kwargs["tls"] = build_tls_config(config.cert_path)

        logger.debug(
            "Creating Docker client for host=%s api_version=%s",
            config.host or "<default>",
            kwargs["version"],
        )
        return docker.DockerClient(**kwargs)
    except DockerException as e:
        raise DockerNotAvailableError(operation="client", detail=str(e)) from e
