"""Parsers and pure helpers used when creating the container.

Covers the published-ports mini-format, human readable memory sizes,
container labels, and Docker engine timestamps.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime

from dockerdev.lib.errors import ConfigError, PortSpecError

DEFAULT_PROTO = "tcp"

LABEL_ID = "waypoint.hashicorp.com/id"
LABEL_APP = "app"
LABEL_WORKSPACE = "workspace"

# Decimal multipliers, matching the Docker CLI's human size parsing
_SIZE_PATTERN = re.compile(r"^(\d+(?:\.\d+)?) ?([kKmMgGtTpP])?[iI]?[bB]?$")
_SIZE_MULTIPLIERS = {
    "k": 1000,
    "m": 1000**2,
    "g": 1000**3,
    "t": 1000**4,
    "p": 1000**5,
}

_TIMESTAMP_PATTERN = re.compile(
    r"^(\d{4}-\d{2}-\d{2}[Tt]\d{2}:\d{2}:\d{2})(?:\.(\d+))?([Zz]|[+-]\d{2}:\d{2})$"
)


@dataclass(frozen=True)
class PortField:
    """One published port entry.

    Attributes:
        container_port: Port inside the container
        host_port: Host port, empty for a random assignment
        proto: Transport protocol (tcp, udp, sctp)
    """

    container_port: int
    host_port: str
    proto: str = DEFAULT_PROTO

    @property
    def key(self) -> str:
        """Port key in Docker's ``<port>/<proto>`` notation."""
        return f"{self.container_port}/{self.proto}"

    def __str__(self) -> str:
        return (
            f"ContainerPort={self.container_port} "
            f"HostPort={self.host_port} Proto={self.proto}"
        )


def parse_published_ports(value: str) -> list[PortField]:
    """Parse a comma separated list of published ports.

    Each entry is ``containerPort[:hostPort][/proto]``; proto defaults to tcp.

    Args:
        value: CSV port specification, may be empty

    Returns:
        Parsed port fields in input order

    Raises:
        PortSpecError: If an entry is malformed

    Example:
        >>> [p.key for p in parse_published_ports("3000:3001/tcp,8080:80")]
        ['3000/tcp', '8080/tcp']
    """
    if not value:
        return []
    return [_parse_port_field(entry) for entry in value.split(",")]


def _parse_port_field(entry: str) -> PortField:
    parts = entry.strip().split(":")
    if len(parts) == 1:
        container_port, proto = _parse_proto_field(parts[0])
        return PortField(_port_number(container_port, entry), "", proto)

    if len(parts) == 2:
        host_port, proto = _parse_proto_field(parts[1])
        if host_port:
            _port_number(host_port, entry)
        return PortField(_port_number(parts[0], entry), host_port, proto)

    raise PortSpecError(entry, "invalid port field")


def _parse_proto_field(value: str) -> tuple[str, str]:
    parts = value.split("/")
    if len(parts) == 1:
        return parts[0], DEFAULT_PROTO
    if len(parts) == 2:
        return parts[0], parts[1] or DEFAULT_PROTO
    raise PortSpecError(value, "invalid port/proto format")


def _port_number(value: str, entry: str) -> int:
    try:
        port = int(value)
    except ValueError:
        raise PortSpecError(entry, f"port {value!r} is not a number") from None
    if port < 0 or port > 65535:
        raise PortSpecError(entry, f"port {port} is out of range")
    return port


def parse_human_size(value: str) -> int:
    """Convert a human readable size (e.g. "512MB", "1.5g") to bytes.

    Raises:
        ConfigError: If the value is not a valid size
    """
    match = _SIZE_PATTERN.match(value.strip())
    if not match:
        raise ConfigError("resources.memory", f"invalid size: {value!r}")

    number = float(match.group(1))
    unit = match.group(2)
    multiplier = _SIZE_MULTIPLIERS[unit.lower()] if unit else 1
    return int(number * multiplier)


def parse_cpu_shares(value: str) -> int:
    """Parse the cpu resource limit as integer CPU shares.

    Raises:
        ConfigError: If the value is not an integer
    """
    try:
        return int(value.strip())
    except ValueError:
        raise ConfigError("resources.cpu", f"invalid cpu shares: {value!r}") from None


def default_labels(deployment_id: str, app: str, workspace: str) -> dict[str, str]:
    """Labels every deployed container carries."""
    return {
        LABEL_ID: deployment_id,
        LABEL_APP: app,
        LABEL_WORKSPACE: workspace,
    }


def merge_labels(
    user_labels: Mapping[str, str] | None, system_labels: Mapping[str, str]
) -> dict[str, str]:
    """Merge user labels with system labels into a new mapping.

    System labels win on conflicting keys. Neither input is modified.
    """
    merged = dict(user_labels or {})
    merged.update(system_labels)
    return merged


def parse_docker_timestamp(value: str) -> datetime:
    """Parse an RFC 3339 timestamp as reported by the Docker engine.

    Docker reports nanosecond precision, which is truncated to microseconds.

    Raises:
        ValueError: If the value is not an RFC 3339 timestamp
    """
    match = _TIMESTAMP_PATTERN.match(value or "")
    if not match:
        raise ValueError(f"not an RFC 3339 timestamp: {value!r}")

    base, fraction, offset = match.groups()
    micros = (fraction or "")[:6].ljust(6, "0")
    if offset in ("Z", "z"):
        offset = "+00:00"
    return datetime.fromisoformat(f"{base.replace('t', 'T')}.{micros}{offset}")
