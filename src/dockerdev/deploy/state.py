"""Deployment state tracking helpers.

Deployments are persisted per application in ``.dockerdev/deployments.json``
next to the platform configuration file, so that ``status`` and ``destroy``
can restore the resource manager snapshot in a later process.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path

from pydantic import ValidationError

from dockerdev.lib.errors import DeploymentError
from dockerdev.models.deployment_state import DeploymentRecord, DeploymentState

STATE_VERSION = "1.0"


def get_state_path(config_path: Path) -> Path:
    """Return the deployment state file path for a platform config."""
    return config_path.parent / ".dockerdev" / "deployments.json"


def load_state(state_path: Path) -> DeploymentState:
    """Load deployment state data from disk."""
    if not state_path.exists():
        return DeploymentState(version=STATE_VERSION)

    try:
        content = state_path.read_text(encoding="utf-8")
        if not content.strip():
            return DeploymentState(version=STATE_VERSION)
    except OSError as exc:
        raise DeploymentError(
            operation="state",
            message=f"Failed to read deployment state at {state_path}: {exc}",
        ) from exc

    try:
        state = DeploymentState.model_validate_json(content)
    except ValidationError as exc:
        raise DeploymentError(
            operation="state",
            message=f"Invalid deployment state format in {state_path}: {exc}",
        ) from exc

    if not state.version:
        state = state.model_copy(update={"version": STATE_VERSION})
    return state


def save_state(state_path: Path, state: DeploymentState) -> None:
    """Persist deployment state data to disk."""
    try:
        state_path.parent.mkdir(parents=True, exist_ok=True)
        payload = json.dumps(state.model_dump(mode="json"), indent=2, sort_keys=True)
        state_path.write_text(payload, encoding="utf-8")
    except OSError as exc:
        raise DeploymentError(
            operation="state",
            message=f"Failed to write deployment state to {state_path}: {exc}",
        ) from exc


def get_deployment_record(state_path: Path, app_name: str) -> DeploymentRecord | None:
    """Return the deployment record for an application."""
    state = load_state(state_path)
    return state.deployments.get(app_name)


def update_deployment_record(
    state_path: Path, app_name: str, record: DeploymentRecord
) -> DeploymentRecord:
    """Store the deployment record for an application and persist it.

    ``created_at`` is preserved from an existing record unless the new record
    sets its own; ``updated_at`` is always refreshed.
    """
    state = load_state(state_path)
    existing = state.deployments.get(app_name)
    now = datetime.now(timezone.utc)

    created_at = record.created_at or (existing.created_at if existing else None) or now
    updated_record = record.model_copy(
        update={"created_at": created_at, "updated_at": now}
    )

    state.deployments[app_name] = updated_record
    save_state(state_path, state)
    return updated_record


def remove_deployment_record(state_path: Path, app_name: str) -> bool:
    """Drop the record for an application.

    Returns:
        True if a record was removed
    """
    state = load_state(state_path)
    if state.deployments.pop(app_name, None) is None:
        return False
    save_state(state_path, state)
    return True
