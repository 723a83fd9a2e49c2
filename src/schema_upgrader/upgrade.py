"""Startup entry point wiring the upgrade chain to configuration."""

import logging
from collections.abc import Iterable, Iterator, Sequence
from contextlib import contextmanager

from .cache import DirectoryCache
from .config import Config
from .constants import SUPPORTED_SCHEMA_VERSIONS
from .maintenance import maintenance_from_config
from .migrations import Migration, MigrationRunner, UpgradeContext, UpgradeResult, default_migrations
from .state import StateStore

logger = logging.getLogger(__name__)


@contextmanager
def upgrade_session(
    config: Config,
    supported_versions: Iterable[str] = SUPPORTED_SCHEMA_VERSIONS,
) -> Iterator[tuple[MigrationRunner, UpgradeContext]]:
    """
    Open the state database and build the runner and its collaborators.

    The state database is closed on exit, whether or not the body raised.

    Args:
        config: Application configuration
        supported_versions: Versions the codebase runs against without upgrading

    Yields:
        Tuple of (runner, context)
    """
    state = StateStore(config.state_file)
    try:
        context = UpgradeContext(
            config=config,
            version_store=state,
            cache=DirectoryCache(config.cache_dir),
            maintenance=maintenance_from_config(config),
            state=state,
        )
        yield MigrationRunner(state, supported_versions), context
    finally:
        state.close()


def check_if_upgrade_is_needed(
    config: Config,
    migrations: Sequence[Migration] | None = None,
) -> list[UpgradeResult]:
    """
    Upgrade the schema at startup when the recorded version is unsupported.

    Args:
        config: Application configuration
        migrations: Upgrade chain, defaults to the registered one

    Returns:
        Applied upgrades in order (empty if none was needed)

    Raises:
        UpgradeError: If the chain fails or ends on an unsupported version
    """
    if migrations is None:
        migrations = default_migrations()

    with upgrade_session(config) as (runner, context):
        if runner.check_if_upgrade_is_needed(migrations, context):
            logger.info(f"Schema upgraded to {runner.current_version()}")
        return list(runner.results)
