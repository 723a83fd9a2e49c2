"""Migration runner driving the upgrade chain to a fixpoint."""

import logging
import time
from collections.abc import Iterable, Sequence

from pydantic import BaseModel

from ..errors import UnsupportedCurrentVersion
from ..state import VersionStore
from .base import Migration, UpgradeContext

logger = logging.getLogger(__name__)


class UpgradeResult(BaseModel):
    """Record of one applied migration."""

    from_version: str
    to_version: str
    description: str
    elapsed_ms: int


class MigrationRunner:
    """
    Applies migrations until none accepts the recorded schema version.

    Registration order does not have to follow the upgrade order: after every
    applied migration the scan restarts from the first registered migration,
    so a step unlocked by a later-registered one is still found. The chain must
    be acyclic, otherwise run_all never terminates.
    """

    def __init__(self, version_store: VersionStore, supported_versions: Iterable[str]):
        """
        Initialize migration runner.

        Args:
            version_store: Source and sink of the recorded schema version
            supported_versions: Versions the codebase runs against without upgrading
        """
        self.version_store = version_store
        self.supported_versions = frozenset(supported_versions)
        self.results: list[UpgradeResult] = []

    def current_version(self) -> str:
        """Recorded schema version."""
        return self.version_store.get_current_version()

    def needs_upgrade(self) -> bool:
        """
        Check if the recorded version is outside the supported set.

        Returns:
            True if an upgrade is required
        """
        return self.current_version() not in self.supported_versions

    def run_all(self, migrations: Sequence[Migration], context: UpgradeContext) -> bool:
        """
        Apply migrations until a full pass finds none to run.

        Args:
            migrations: Registered migrations, in registration order
            context: Upgrade collaborators passed to each migration

        Returns:
            True if at least one migration was applied

        Raises:
            UpgradeError: As soon as any migration fails; later passes are skipped
        """
        performed_any = False
        i = 0
        while i < len(migrations):
            migration = migrations[i]
            current = self.current_version()
            if migration.can_upgrade(current):
                logger.info(f"Upgrading schema {current} -> {migration.target_version}")
                start_time = time.monotonic()
                migration.apply(context)
                elapsed_ms = int((time.monotonic() - start_time) * 1000)

                self.results.append(
                    UpgradeResult(
                        from_version=current,
                        to_version=migration.target_version,
                        description=migration.description,
                        elapsed_ms=elapsed_ms,
                    )
                )
                logger.info(f"Schema is now at {migration.target_version} ({elapsed_ms} ms)")
                performed_any = True
                # Start over, registration order need not match upgrade order
                i = 0
            else:
                i += 1

        return performed_any

    def plan(self, migrations: Sequence[Migration]) -> list[Migration]:
        """
        Predict which migrations run_all would apply, without applying any.

        Args:
            migrations: Registered migrations, in registration order

        Returns:
            Migrations in the order they would run
        """
        planned: list[Migration] = []
        version = self.current_version()
        i = 0
        while i < len(migrations):
            if migrations[i].can_upgrade(version):
                planned.append(migrations[i])
                version = migrations[i].target_version
                i = 0
            else:
                i += 1
        return planned

    def check_if_upgrade_is_needed(self, migrations: Sequence[Migration], context: UpgradeContext) -> bool:
        """
        Upgrade the schema if this codebase does not support the recorded version.

        Args:
            migrations: Registered migrations, in registration order
            context: Upgrade collaborators

        Returns:
            True if any migration was applied

        Raises:
            UnsupportedCurrentVersion: If the chain ends on an unsupported version
            UpgradeError: If a migration fails
        """
        if not self.needs_upgrade():
            return False

        performed = self.run_all(migrations, context)

        if self.needs_upgrade():
            raise UnsupportedCurrentVersion(self.current_version(), self.supported_versions)

        return performed
