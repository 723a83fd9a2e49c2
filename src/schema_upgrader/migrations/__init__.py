"""Schema migration chain and runner."""

from .base import Migration, MigrationAction, UpgradeContext
from .registry import default_migrations
from .runner import MigrationRunner, UpgradeResult

__all__ = [
    "Migration",
    "MigrationAction",
    "MigrationRunner",
    "UpgradeContext",
    "UpgradeResult",
    "default_migrations",
]
