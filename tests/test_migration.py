"""Tests for the Migration descriptor and its apply protocol."""

import pytest

from schema_upgrader.errors import MigrationActionFailed, PersistFailed, UpgradeError
from schema_upgrader.migrations import Migration, UpgradeContext

from conftest import RecordingCache, RecordingMaintenance


class FailingVersionStore:
    """Version store whose writes always fail."""

    def get_current_version(self) -> str:
        return "1"

    def set_current_version(self, version: str) -> None:
        raise OSError("disk full")


class TestMigrationDescriptor:
    """Tests for Migration construction and matching."""

    def test_can_upgrade_uses_membership(self) -> None:
        """Test only exact members of accepted_versions match."""
        migration = Migration(
            accepted_versions=frozenset({"2.5.10", "2.5.11"}),
            target_version="2.5.12",
            action=lambda _ctx: None,
        )

        assert migration.can_upgrade("2.5.10")
        assert migration.can_upgrade("2.5.11")
        assert not migration.can_upgrade("2.5.1")
        assert not migration.can_upgrade("2.5.12")

    def test_accepted_versions_coerced_to_frozenset(self) -> None:
        """Test any iterable of versions is stored as a frozenset."""
        migration = Migration(
            accepted_versions=["1", "1", "2"],  # type: ignore[arg-type]
            target_version="3",
            action=lambda _ctx: None,
        )

        assert migration.accepted_versions == frozenset({"1", "2"})

    def test_is_immutable(self) -> None:
        """Test migrations cannot be modified after construction."""
        migration = Migration(accepted_versions=frozenset({"1"}), target_version="2", action=lambda _ctx: None)

        with pytest.raises(AttributeError):
            migration.target_version = "3"  # type: ignore[misc]


class TestApply:
    """Tests for Migration.apply."""

    def test_success_sequence(self, context, version_store, events) -> None:
        """Test cache and maintenance calls surround the action and the version is recorded."""

        def action(_ctx) -> None:
            events.append("action")

        migration = Migration(accepted_versions=frozenset({"1"}), target_version="2", action=action)
        migration.apply(context)

        assert events == ["cache", "maintenance on", "cache", "action", "cache", "maintenance off"]
        assert version_store.version == "2"

    def test_action_failure_keeps_version(self, context, version_store, events) -> None:
        """Test a failing action leaves the version alone and still leaves maintenance mode."""

        def action(_ctx) -> None:
            raise RuntimeError("psql exploded")

        migration = Migration(accepted_versions=frozenset({"1"}), target_version="2", action=action)

        with pytest.raises(MigrationActionFailed) as exc_info:
            migration.apply(context)

        assert isinstance(exc_info.value.__cause__, RuntimeError)
        assert "psql exploded" in str(exc_info.value)
        assert version_store.version == "1"
        assert version_store.writes == []
        assert events[-1] == "maintenance off"

    def test_upgrade_errors_pass_through(self, context) -> None:
        """Test an UpgradeError raised by the action is not wrapped again."""
        original = PersistFailed("9", "nested")

        def action(_ctx) -> None:
            raise original

        migration = Migration(accepted_versions=frozenset({"1"}), target_version="2", action=action)

        with pytest.raises(UpgradeError) as exc_info:
            migration.apply(context)

        assert exc_info.value is original

    def test_maintenance_errors_swallowed(self, version_store, events) -> None:
        """Test a failing maintenance signal does not affect the migration."""
        context = UpgradeContext(
            config=None,
            version_store=version_store,
            cache=RecordingCache(events),
            maintenance=RecordingMaintenance(events, fail=True),
        )
        migration = Migration(accepted_versions=frozenset({"1"}), target_version="2", action=lambda _ctx: None)

        migration.apply(context)

        assert version_store.version == "2"
        assert "maintenance on" in events
        assert events[-1] == "maintenance off"

    def test_persist_failure(self, events) -> None:
        """Test a failed version write surfaces as PersistFailed."""
        context = UpgradeContext(
            config=None,
            version_store=FailingVersionStore(),
            cache=RecordingCache(events),
            maintenance=RecordingMaintenance(events),
        )
        migration = Migration(accepted_versions=frozenset({"1"}), target_version="2", action=lambda _ctx: None)

        with pytest.raises(PersistFailed) as exc_info:
            migration.apply(context)

        assert exc_info.value.target_version == "2"
        assert "disk full" in str(exc_info.value)
        assert events[-1] == "maintenance off"


class TestTransactionalApply:
    """Tests for migrations wrapped in a state transaction."""

    def _context(self, state, events) -> UpgradeContext:
        return UpgradeContext(
            config=None,
            version_store=state,
            cache=RecordingCache(events),
            maintenance=RecordingMaintenance(events),
            state=state,
        )

    def test_failure_restores_state(self, state, events) -> None:
        """Test changes made before the failure are rolled back."""
        state.set_current_version("1")
        state.set_preference("disk_usage", 10)

        def action(ctx: UpgradeContext) -> None:
            ctx.state.set_preference("disk_usage", 999)
            raise RuntimeError("script failed")

        migration = Migration(
            accepted_versions=frozenset({"1"}), target_version="2", action=action, transactional=True
        )

        with pytest.raises(MigrationActionFailed):
            migration.apply(self._context(state, events))

        assert state.get_preference("disk_usage") == 10
        assert state.get_current_version() == "1"

    def test_success_keeps_changes(self, state, events) -> None:
        """Test a successful transactional action keeps its changes."""
        state.set_current_version("1")

        def action(ctx: UpgradeContext) -> None:
            ctx.state.set_preference("disk_usage", 42)

        migration = Migration(
            accepted_versions=frozenset({"1"}), target_version="2", action=action, transactional=True
        )
        migration.apply(self._context(state, events))

        assert state.get_preference("disk_usage") == 42
        assert state.get_current_version() == "2"

    def test_non_transactional_failure_keeps_partial_changes(self, state, events) -> None:
        """Test without a transaction partial changes survive the failure."""
        state.set_current_version("1")

        def action(ctx: UpgradeContext) -> None:
            ctx.state.set_preference("disk_usage", 999)
            raise RuntimeError("script failed")

        migration = Migration(accepted_versions=frozenset({"1"}), target_version="2", action=action)

        with pytest.raises(MigrationActionFailed):
            migration.apply(self._context(state, events))

        assert state.get_preference("disk_usage") == 999
        assert state.get_current_version() == "1"
