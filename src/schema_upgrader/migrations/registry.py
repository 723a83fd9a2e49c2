"""Registered upgrade chain."""

from .actions import (
    chain,
    promote_super_admin,
    record_file_table_disk_usage,
    record_storage_disk_usage,
    run_sql_script,
)
from .base import Migration


def default_migrations() -> list[Migration]:
    """
    Upgrade steps known to this codebase, in registration order.

    The runner restarts its scan after every applied step, so this list does
    not need to be sorted by version.
    """
    return [
        Migration(
            accepted_versions=frozenset({"2.5.1", "2.5.2"}),
            target_version="2.5.3",
            action=chain(record_storage_disk_usage, run_sql_script("2.5.3")),
            description="Record storage disk usage and update file columns",
            transactional=True,
        ),
        Migration(
            accepted_versions=frozenset({"2.5.3"}),
            target_version="2.5.4",
            action=promote_super_admin,
            description="Promote an admin to super admin",
        ),
        Migration(
            accepted_versions=frozenset({"2.5.4"}),
            target_version="2.5.5",
            action=run_sql_script("2.5.5"),
            description="Apply 2.5.5 SQL upgrade script",
        ),
        Migration(
            accepted_versions=frozenset({"2.5.5"}),
            target_version="2.5.9",
            action=run_sql_script("2.5.9"),
            description="Apply 2.5.9 SQL upgrade script",
        ),
        Migration(
            accepted_versions=frozenset({"2.5.9"}),
            target_version="2.5.10",
            action=run_sql_script("2.5.10"),
            description="Apply 2.5.10 SQL upgrade script",
        ),
        Migration(
            accepted_versions=frozenset({"2.5.10"}),
            target_version="2.5.11",
            action=record_file_table_disk_usage,
            description="Recompute disk usage from file sizes",
        ),
        Migration(
            accepted_versions=frozenset({"2.5.10", "2.5.11"}),
            target_version="2.5.12",
            action=run_sql_script("2.5.12"),
            description="Apply 2.5.12 SQL upgrade script",
        ),
    ]
