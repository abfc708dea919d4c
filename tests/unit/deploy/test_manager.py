"""Unit tests for the resource manager lifecycle."""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any
from unittest.mock import MagicMock

import pytest

from dockerdev.deploy.resources.base import Resource, ResourceContext
from dockerdev.deploy.resources.manager import ResourceManager, aggregate_health
from dockerdev.lib.errors import (
    DeploymentError,
    ResourceDestroyError,
    ResourceStateError,
)
from dockerdev.models.resource import (
    ContainerState,
    Health,
    NetworkState,
    ResourceManagerSnapshot,
    ResourceStatus,
    StatusReport,
)


class RecordingNetwork(Resource[NetworkState]):
    """Network-like resource that records hook calls."""

    state_type = NetworkState

    def __init__(
        self,
        name: str,
        calls: list[str],
        *,
        fail_create: bool = False,
        fail_destroy: bool = False,
        health: Health = Health.READY,
    ) -> None:
        super().__init__(name)
        self.calls = calls
        self.fail_create = fail_create
        self.fail_destroy = fail_destroy
        self.health = health
        self.seen_created: list[str] = []

    def create(
        self,
        ctx: ResourceContext,
        inputs: Any,
        created: Mapping[str, Resource[Any]],
    ) -> NetworkState:
        self.calls.append(f"create:{self.name}")
        self.seen_created = list(created)
        if self.fail_create:
            raise DeploymentError("test.create", f"{self.name} failed")
        return NetworkState(name=f"net-{self.name}")

    def destroy(self, ctx: ResourceContext) -> None:
        self.calls.append(f"destroy:{self.name}")
        if self.fail_destroy:
            raise DeploymentError("test.destroy", f"{self.name} failed")

    def status(self, ctx: ResourceContext, report: StatusReport) -> None:
        report.resources.append(ResourceStatus(name=self.name, health=self.health))


class RecordingContainer(RecordingNetwork):
    """Container-like resource that records hook calls."""

    state_type = ContainerState

    def create(
        self,
        ctx: ResourceContext,
        inputs: Any,
        created: Mapping[str, Resource[Any]],
    ) -> ContainerState:  # type: ignore[override]
        self.calls.append(f"create:{self.name}")
        self.seen_created = list(created)
        if self.fail_create:
            raise DeploymentError("test.create", f"{self.name} failed")
        return ContainerState(id=f"id-{self.name}", name=self.name)


class NoopResource(Resource[NetworkState]):
    """Resource relying on the default destroy and status hooks."""

    state_type = NetworkState

    def create(
        self,
        ctx: ResourceContext,
        inputs: Any,
        created: Mapping[str, Resource[Any]],
    ) -> NetworkState:
        return NetworkState(name="noop")


def _manager(*resources: Resource[Any]) -> ResourceManager:
    return ResourceManager(resources, client_provider=MagicMock)


class TestResourceManagerConstruction:
    """Tests for resource registration."""

    def test_duplicate_names_rejected(self) -> None:
        """Two resources with one name cannot be registered."""
        calls: list[str] = []
        with pytest.raises(ValueError, match="Duplicate resource name"):
            _manager(RecordingNetwork("a", calls), RecordingNetwork("a", calls))

    def test_resources_start_with_empty_state(self) -> None:
        """New resources hold the zero value of their state type."""
        manager = _manager(RecordingNetwork("net", []), RecordingContainer("app", []))

        assert manager.resource("net").state == NetworkState()
        assert manager.resource("app").state == ContainerState()

    def test_unknown_resource_lookup_raises(self) -> None:
        """Looking up an unregistered name is a KeyError."""
        manager = _manager(RecordingNetwork("net", []))

        with pytest.raises(KeyError, match="missing"):
            manager.resource("missing")

    def test_client_requires_provider(self) -> None:
        """Hooks touching the client fail without a provider."""
        manager = ResourceManager([RecordingNetwork("net", [])])
        ctx = manager._hook_context(None, None)

        with pytest.raises(ResourceStateError):
            _ = ctx.client

    def test_client_provider_called_once(self) -> None:
        """The client is created lazily and reused."""
        provider = MagicMock()
        manager = ResourceManager([RecordingNetwork("net", [])], provider)
        ctx = manager._hook_context(None, None)

        assert ctx.client is ctx.client
        provider.assert_called_once_with()


class TestCreateAll:
    """Tests for ordered creation."""

    def test_creates_in_registration_order(self) -> None:
        """Resources are created in the order they were registered."""
        calls: list[str] = []
        manager = _manager(
            RecordingNetwork("a", calls),
            RecordingNetwork("b", calls),
            RecordingContainer("c", calls),
        )

        manager.create_all(inputs=None)

        assert calls == ["create:a", "create:b", "create:c"]

    def test_create_sees_only_earlier_resources(self) -> None:
        """Each hook receives the resources created before it."""
        a = RecordingNetwork("a", [])
        b = RecordingNetwork("b", [])
        c = RecordingContainer("c", [])
        manager = _manager(a, b, c)

        manager.create_all(inputs=None)

        assert a.seen_created == []
        assert b.seen_created == ["a"]
        assert c.seen_created == ["a", "b"]

    def test_created_mapping_is_read_only(self) -> None:
        """Create hooks cannot add entries to the created view."""

        class Mutating(NoopResource):
            def create(self, ctx, inputs, created):  # type: ignore[no-untyped-def]
                created["x"] = self  # type: ignore[index]
                return NetworkState()

        manager = _manager(NoopResource("first"), Mutating("second"))

        with pytest.raises(TypeError):
            manager.create_all(inputs=None)

    def test_state_stored_after_create(self) -> None:
        """Returned state objects become the resource state."""
        manager = _manager(RecordingNetwork("net", []), RecordingContainer("app", []))

        manager.create_all(inputs=None)

        assert manager.resource("net").state == NetworkState(name="net-net")
        assert manager.resource("app").state == ContainerState(
            id="id-app", name="app"
        )

    def test_stops_at_first_failure(self) -> None:
        """A failing create aborts the remaining creates."""
        calls: list[str] = []
        manager = _manager(
            RecordingNetwork("a", calls),
            RecordingNetwork("b", calls, fail_create=True),
            RecordingContainer("c", calls),
        )

        with pytest.raises(DeploymentError, match="b failed"):
            manager.create_all(inputs=None)

        assert calls == ["create:a", "create:b"]

    def test_failed_create_leaves_state_unchanged(self) -> None:
        """Resources keep their previous state when their create fails."""
        calls: list[str] = []
        a = RecordingNetwork("a", calls)
        b = RecordingNetwork("b", calls, fail_create=True)
        manager = _manager(a, b)

        with pytest.raises(DeploymentError):
            manager.create_all(inputs=None)

        assert a.state == NetworkState(name="net-a")
        assert b.state == NetworkState()


class TestDestroyAll:
    """Tests for reverse-order teardown."""

    def test_destroys_in_reverse_order(self) -> None:
        """Resources are destroyed last-created first."""
        calls: list[str] = []
        manager = _manager(
            RecordingNetwork("a", calls),
            RecordingNetwork("b", calls),
            RecordingContainer("c", calls),
        )

        manager.destroy_all()

        assert calls == ["destroy:c", "destroy:b", "destroy:a"]

    def test_attempts_every_resource_after_failure(self) -> None:
        """A failing destroy does not stop the remaining destroys."""
        calls: list[str] = []
        manager = _manager(
            RecordingNetwork("a", calls),
            RecordingNetwork("b", calls, fail_destroy=True),
            RecordingContainer("c", calls),
        )

        with pytest.raises(ResourceDestroyError) as exc_info:
            manager.destroy_all()

        assert calls == ["destroy:c", "destroy:b", "destroy:a"]
        assert [name for name, _ in exc_info.value.failures] == ["b"]
        assert "b failed" in str(exc_info.value)

    def test_default_destroy_is_noop(self) -> None:
        """Resources without a destroy hook succeed."""
        manager = _manager(NoopResource("noop"))

        manager.destroy_all()


class TestSnapshot:
    """Tests for state serialization and restore."""

    def test_state_round_trip(self) -> None:
        """A snapshot restores the same states into a fresh manager."""
        original = _manager(RecordingNetwork("net", []), RecordingContainer("app", []))
        original.create_all(inputs=None)

        restored = _manager(RecordingNetwork("net", []), RecordingContainer("app", []))
        restored.load_state(original.state())

        assert restored.resource("net").state == NetworkState(name="net-net")
        assert restored.resource("app").state == ContainerState(
            id="id-app", name="app"
        )

    def test_state_round_trip_through_json(self) -> None:
        """Snapshot JSON text is accepted by load_state."""
        original = _manager(RecordingNetwork("net", []), RecordingContainer("app", []))
        original.create_all(inputs=None)
        payload = original.state().model_dump_json()

        restored = _manager(RecordingNetwork("net", []), RecordingContainer("app", []))
        restored.load_state(payload)

        assert restored.state() == original.state()

    def test_snapshot_preserves_order(self) -> None:
        """Snapshot entries follow registration order."""
        manager = _manager(RecordingContainer("app", []), RecordingNetwork("net", []))

        assert manager.state().names() == ["app", "net"]

    def test_snapshot_is_independent_copy(self) -> None:
        """Changing a snapshot does not change the resource state."""
        manager = _manager(RecordingContainer("app", []))
        snapshot = manager.state()

        snapshot.resources[0].state.id = "changed"  # type: ignore[union-attr]

        assert manager.resource("app").state.id == ""

    def test_snapshot_tags_states_by_kind(self) -> None:
        """Serialized states carry their kind tag."""
        manager = _manager(RecordingNetwork("net", []), RecordingContainer("app", []))

        data = json.loads(manager.state().model_dump_json())

        assert [entry["state"]["kind"] for entry in data["resources"]] == [
            "network",
            "container",
        ]

    def test_load_state_rejects_unknown_name(self) -> None:
        """Snapshots naming unregistered resources are rejected."""
        manager = _manager(RecordingNetwork("net", []))
        snapshot = {
            "resources": [
                {"name": "net", "state": {"kind": "network", "name": "n"}},
                {"name": "ghost", "state": {"kind": "network", "name": "g"}},
            ]
        }

        with pytest.raises(ResourceStateError, match="ghost"):
            manager.load_state(snapshot)

        assert manager.resource("net").state == NetworkState()

    def test_load_state_rejects_mismatched_kind(self) -> None:
        """A container state cannot be restored into a network resource."""
        manager = _manager(RecordingNetwork("net", []))
        snapshot = {
            "resources": [
                {"name": "net", "state": {"kind": "container", "id": "abc"}},
            ]
        }

        with pytest.raises(ResourceStateError, match="expected NetworkState"):
            manager.load_state(snapshot)

    def test_load_state_rejects_malformed_payload(self) -> None:
        """Undecodable snapshots raise ResourceStateError."""
        manager = _manager(RecordingNetwork("net", []))

        with pytest.raises(ResourceStateError, match="invalid resource snapshot"):
            manager.load_state("{not json")

    def test_load_state_with_subset_keeps_empty_states(self) -> None:
        """Resources missing from the snapshot keep their empty state."""
        manager = _manager(RecordingNetwork("net", []), RecordingContainer("app", []))
        snapshot = ResourceManagerSnapshot.model_validate(
            {"resources": [{"name": "net", "state": {"kind": "network", "name": "w"}}]}
        )

        manager.load_state(snapshot)

        assert manager.resource("net").state == NetworkState(name="w")
        assert manager.resource("app").state == ContainerState()

    def test_set_state_rejects_wrong_type(self) -> None:
        """Resources only accept their own state type."""
        resource = RecordingNetwork("net", [])

        with pytest.raises(ResourceStateError, match="NetworkState"):
            resource.set_state(ContainerState(id="x"))


class TestStatusReport:
    """Tests for status collection and aggregation."""

    def test_collects_in_registration_order(self) -> None:
        """Report entries follow resource order."""
        manager = _manager(RecordingNetwork("net", []), RecordingContainer("app", []))

        report = manager.status_report()

        assert [r.name for r in report.resources] == ["net", "app"]
        assert report.health == Health.READY

    def test_mixed_health_is_partial(self) -> None:
        """Differing resource health aggregates to PARTIAL."""
        manager = _manager(
            RecordingNetwork("net", []),
            RecordingContainer("app", [], health=Health.MISSING),
        )

        report = manager.status_report()

        assert report.health == Health.PARTIAL
        assert "1 READY" in report.health_message
        assert "1 MISSING" in report.health_message

    def test_default_status_reports_nothing(self) -> None:
        """Resources without a status hook add no entries."""
        manager = _manager(NoopResource("noop"))

        report = manager.status_report()

        assert report.resources == []
        assert report.health == Health.UNKNOWN

    def test_status_failure_propagates(self) -> None:
        """A failing status hook aborts the report."""

        class Broken(NoopResource):
            def status(self, ctx, report):  # type: ignore[no-untyped-def]
                raise DeploymentError("test.status", "engine unreachable")

        manager = _manager(RecordingNetwork("net", []), Broken("broken"))

        with pytest.raises(DeploymentError, match="engine unreachable"):
            manager.status_report()


class TestAggregateHealth:
    """Tests for aggregate_health."""

    @pytest.mark.parametrize(
        ("healths", "expected"),
        [
            ([Health.READY, Health.READY], Health.READY),
            ([Health.DOWN, Health.DOWN], Health.DOWN),
            ([Health.MISSING], Health.MISSING),
            ([Health.READY, Health.MISSING], Health.PARTIAL),
            ([Health.ALIVE, Health.READY, Health.READY], Health.PARTIAL),
            ([], Health.UNKNOWN),
        ],
    )
    def test_aggregate(self, healths: list[Health], expected: Health) -> None:
        """Uniform health is passed through, anything mixed is PARTIAL."""
        statuses = [ResourceStatus(health=health) for health in healths]

        health, message = aggregate_health(statuses)

        assert health == expected
        assert message

    def test_uniform_message_names_health(self) -> None:
        """The message for uniform health names the value."""
        _, message = aggregate_health([ResourceStatus(health=Health.READY)])

        assert message == "All resources are reported as READY"
