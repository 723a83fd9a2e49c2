"""Exceptions raised while upgrading the schema."""

from collections.abc import Iterable


class UpgradeError(Exception):
    """Base class for schema upgrade failures."""

    pass


class UnsupportedCurrentVersion(UpgradeError):
    """
    Raised when no registered migration accepts the recorded version.

    The chain is stuck: the version is not supported by this codebase and no
    migration path leads away from it.
    """

    def __init__(self, version: str, supported: Iterable[str]):
        self.version = version
        self.supported = sorted(supported)
        super().__init__(
            f"Schema version '{version or '<unset>'}' is not supported and no migration accepts it "
            f"(supported: {', '.join(self.supported)})"
        )


class MigrationActionFailed(UpgradeError):
    """Raised when the version-specific action of a migration fails."""

    def __init__(self, target_version: str, message: str):
        self.target_version = target_version
        super().__init__(f"Upgrade to {target_version} failed: {message}")


class PersistFailed(UpgradeError):
    """
    Raised when the new schema version could not be written.

    The migration action has already run at this point, so the next upgrade
    attempt will execute it again.
    """

    def __init__(self, target_version: str, message: str):
        self.target_version = target_version
        super().__init__(f"Could not record schema version {target_version}: {message}")
