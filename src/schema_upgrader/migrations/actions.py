"""Version-specific actions plugged into migrations."""

import logging
import subprocess
from pathlib import Path

from tinydb import Query

from ..config import Config
from ..constants import (
    ADMIN_LOGIN,
    DB_TABLE_FILES,
    DB_TABLE_USERS,
    PREF_DISK_USAGE,
    PSQL_IGNORED_NOTICES,
    PSQL_WARNING_PREFIXES,
    SOURCEFABRIC_ADMIN_LOGIN,
    SQL_SCRIPT_DIR_PREFIX,
    SQL_SCRIPT_FILENAME,
    USER_TYPE_ADMIN,
    USER_TYPE_SUPERADMIN,
)
from ..state import StateStore
from ..utils import check_command_exists, directory_size, run_command
from .base import MigrationAction, UpgradeContext

logger = logging.getLogger(__name__)


class SqlScriptError(Exception):
    """
    Raised when an SQL upgrade script cannot be executed.

    Covers a missing psql binary, a missing script file, a non-zero psql exit
    status and a psql timeout. The message includes psql's output when there is any.
    """

    pass


class NoAdminUserError(Exception):
    """Raised when no user can be promoted to super admin."""

    pass


def _require_config(context: UpgradeContext) -> Config:
    if context.config is None:
        raise ValueError("This upgrade step needs a configuration")
    return context.config


def _require_state(context: UpgradeContext) -> StateStore:
    if context.state is None:
        raise ValueError("This upgrade step needs the state database")
    return context.state


def sql_script_path(sql_dir: Path, version: str) -> Path:
    """Location of the SQL script upgrading the schema to version."""
    return sql_dir / f"{SQL_SCRIPT_DIR_PREFIX}{version}" / SQL_SCRIPT_FILENAME


def filter_psql_output(output: str) -> list[str]:
    """Drop blank lines and benign implicit sequence/index notices."""
    return [
        line
        for line in output.splitlines()
        if line.strip() and not any(notice in line for notice in PSQL_IGNORED_NOTICES)
    ]


def log_psql_output(output: str) -> None:
    """Log filtered psql output, errors and warnings at warning level."""
    for line in filter_psql_output(output):
        if line.lstrip().startswith(PSQL_WARNING_PREFIXES):
            logger.warning(f"psql: {line}")
        else:
            logger.info(f"psql: {line}")


def run_sql_script(version: str) -> MigrationAction:
    """
    Build an action running the SQL upgrade script for version through psql.

    Args:
        version: Schema version whose script directory is used

    Returns:
        Migration action
    """

    def action(context: UpgradeContext) -> None:
        config = _require_config(context)
        db = config.database
        script = sql_script_path(config.sql_dir, version)

        if not script.is_file():
            raise SqlScriptError(f"SQL upgrade script not found: {script}")
        if not check_command_exists(db.psql_binary):
            raise SqlScriptError(f"'{db.psql_binary}' not found in PATH")

        # Without ON_ERROR_STOP psql exits 0 after a failed statement in a -f script
        cmd = [
            db.psql_binary,
            "-h", db.host,
            "-U", db.user,
            "-v", "ON_ERROR_STOP=1",
            "-q",
            "-f", str(script),
            db.name,
        ]
        logger.info(f"Running {script} against {db.user}@{db.host}/{db.name}")

        try:
            # Password goes through the environment, never the command line
            result = run_command(cmd, env={"PGPASSWORD": db.password}, timeout=db.timeout or None)
        except subprocess.CalledProcessError as e:
            details = "\n".join(filter_psql_output(f"{e.stdout or ''}\n{e.stderr or ''}"))
            raise SqlScriptError(f"psql exited with status {e.returncode}: {details}") from e
        except subprocess.TimeoutExpired as e:
            raise SqlScriptError(f"psql did not finish within {db.timeout} seconds") from e

        log_psql_output(f"{result.stdout}\n{result.stderr}")

    action.__name__ = f"run_sql_script_{version}"
    return action


def record_storage_disk_usage(context: UpgradeContext) -> None:
    """Measure the media storage directory and store it as disk usage."""
    config = _require_config(context)
    state = _require_state(context)

    usage = directory_size(config.storage_dir)
    state.set_preference(PREF_DISK_USAGE, usage)
    logger.info(f"Disk usage of {config.storage_dir}: {usage} bytes")


def record_file_table_disk_usage(context: UpgradeContext) -> None:
    """Sum the recorded file sizes and store the total as disk usage."""
    state = _require_state(context)

    usage = 0
    for doc in state.table(DB_TABLE_FILES).all():
        usage += int(doc.get("filesize") or 0)

    state.set_preference(PREF_DISK_USAGE, usage)
    logger.info(f"Disk usage from file records: {usage} bytes")


def promote_super_admin(context: UpgradeContext) -> None:
    """
    Make sure at least one super admin exists.

    Nothing happens if a super admin other than sourcefabric_admin exists.
    Otherwise the user logged in as "admin" is promoted, falling back to the
    admin with the lowest id. sourcefabric_admin is promoted alongside.

    Raises:
        NoAdminUserError: If no admin user exists to promote
    """
    state = _require_state(context)
    users = state.table(DB_TABLE_USERS)
    User = Query()

    existing = users.search(
        (User.type == USER_TYPE_SUPERADMIN) & (User.login != SOURCEFABRIC_ADMIN_LOGIN)
    )
    if existing:
        return

    admin = users.get(User.login == ADMIN_LOGIN)
    if admin is None:
        admins = sorted(users.search(User.type == USER_TYPE_ADMIN), key=lambda doc: doc.doc_id)
        if not admins:
            raise NoAdminUserError("Failed to find any users of type 'admin' ('A')")
        admin = admins[0]

    users.update({"type": USER_TYPE_SUPERADMIN}, doc_ids=[admin.doc_id])
    logger.info(f"Promoted user {admin.get('login')} to be a Super Admin")

    sofab_admin = users.get(User.login == SOURCEFABRIC_ADMIN_LOGIN)
    if sofab_admin is not None:
        users.update({"type": USER_TYPE_SUPERADMIN}, doc_ids=[sofab_admin.doc_id])
        logger.info(f"Promoted user {SOURCEFABRIC_ADMIN_LOGIN} to be a Super Admin")


def chain(*actions: MigrationAction) -> MigrationAction:
    """Compose actions into one that runs them in order."""

    def action(context: UpgradeContext) -> None:
        for step in actions:
            step(context)

    action.__name__ = "+".join(getattr(step, "__name__", "action") for step in actions)
    return action
