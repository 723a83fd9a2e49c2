"""Migration descriptors and the per-migration apply protocol."""

import logging
from collections.abc import Callable
from contextlib import nullcontext
from dataclasses import dataclass, field

from ..cache import CacheInvalidator
from ..config import Config
from ..errors import MigrationActionFailed, PersistFailed, UpgradeError
from ..maintenance import MaintenanceSignal
from ..state import StateStore, VersionStore

logger = logging.getLogger(__name__)


@dataclass
class UpgradeContext:
    """Collaborators handed to every migration action."""

    config: Config | None
    version_store: VersionStore
    cache: CacheInvalidator
    maintenance: MaintenanceSignal
    state: StateStore | None = None


MigrationAction = Callable[[UpgradeContext], None]


@dataclass(frozen=True)
class Migration:
    """
    One step of the upgrade chain.

    A migration may run whenever the recorded schema version is one of
    accepted_versions, and records target_version once its action succeeded.

    Attributes:
        accepted_versions: Schema versions this step upgrades from
        target_version: Schema version recorded after a successful run
        action: Version-specific change, raises on failure
        description: Human-readable summary
        transactional: Restore the state database if the action fails
    """

    accepted_versions: frozenset[str]
    target_version: str
    action: MigrationAction = field(compare=False)
    description: str = ""
    transactional: bool = False

    def __post_init__(self) -> None:
        # Allow any iterable of versions at construction time
        object.__setattr__(self, "accepted_versions", frozenset(self.accepted_versions))

    def can_upgrade(self, current_version: str) -> bool:
        """Whether this migration accepts the given schema version."""
        return current_version in self.accepted_versions

    def apply(self, context: UpgradeContext) -> None:
        """
        Run the migration and record its target version.

        The cache is cleared before and after the action, and maintenance mode
        is held for the duration. On failure the version is left untouched.

        Args:
            context: Upgrade collaborators

        Raises:
            MigrationActionFailed: If the action fails
            PersistFailed: If the new version could not be recorded
        """
        context.cache.clear_all()
        _toggle_maintenance(context.maintenance, True)
        try:
            context.cache.clear_all()
            self._run_action(context)

            try:
                context.version_store.set_current_version(self.target_version)
            except Exception as e:
                raise PersistFailed(self.target_version, str(e)) from e

            context.cache.clear_all()
        finally:
            _toggle_maintenance(context.maintenance, False)

    def _run_action(self, context: UpgradeContext) -> None:
        if self.transactional and context.state is not None:
            guard = context.state.transaction()
        else:
            guard = nullcontext()

        try:
            with guard:
                self.action(context)
        except UpgradeError:
            raise
        except Exception as e:
            raise MigrationActionFailed(self.target_version, str(e) or type(e).__name__) from e


def _toggle_maintenance(signal: MaintenanceSignal, enabled: bool) -> None:
    """Set maintenance mode, logging and discarding any error."""
    try:
        signal.set_enabled(enabled)
    except Exception as e:
        logger.warning(f"Ignoring maintenance toggle failure (enabled={enabled}): {e}")
