"""Actionable error guidance for common upgrade failures."""

import platform
from dataclasses import dataclass
from pathlib import Path

from .config import Config
from .errors import MigrationActionFailed, PersistFailed, UnsupportedCurrentVersion, UpgradeError
from .migrations.actions import NoAdminUserError, SqlScriptError, sql_script_path


@dataclass
class ErrorGuidance:
    """Structured error guidance with checks and suggestions."""

    title: str
    checks: list[str]  # Things to check
    fixes: list[str]  # How to fix
    examples: list[str] | None = None  # Example commands


class GuidanceProvider:
    """Provides context-aware guidance for errors."""

    @staticmethod
    def get_psql_not_found(binary: str) -> ErrorGuidance:
        """Guidance when the PostgreSQL client is not installed."""
        os_name = platform.system()

        fixes = {
            "Linux": [
                "Debian/Ubuntu: sudo apt-get install postgresql-client",
                "RHEL/CentOS: sudo yum install postgresql",
                "Arch: sudo pacman -S postgresql-libs",
            ],
            "Darwin": ["Homebrew: brew install libpq && brew link --force libpq"],
        }.get(os_name, ["Download from: https://www.postgresql.org/download/"])

        return ErrorGuidance(
            title=f"{binary} is not installed or not in PATH",
            checks=[f"Verify psql is installed: which {binary}", "Check PATH environment variable"],
            fixes=fixes + ["Or point database.psql_binary at the client in your config"],
            examples=[f"{binary} --version"],
        )

    @staticmethod
    def get_sql_script_missing(script: Path) -> ErrorGuidance:
        """Guidance when an SQL upgrade script is absent."""
        return ErrorGuidance(
            title=f"SQL upgrade script not found: {script}",
            checks=[
                f"List available scripts: ls {script.parent.parent}",
                "Verify paths.sql_dir in your config",
            ],
            fixes=[
                "Reinstall the application package to restore upgrade_sql/",
                "Set paths.sql_dir to the directory containing airtime_<version>/upgrade.sql",
            ],
            examples=[f"ls -l {script}"],
        )

    @staticmethod
    def get_sql_script_failed(message: str, config: Config) -> ErrorGuidance:
        """Guidance when psql ran but the script failed."""
        db = config.database
        checks = [
            f"Database server reachable: pg_isready -h {db.host}",
            f"Credentials valid for user '{db.user}' on database '{db.name}'",
        ]

        if "timeout" in message.lower() or "did not finish" in message.lower():
            fixes = [
                "Increase database.timeout in your config",
                "Check for long-running locks: SELECT * FROM pg_locks;",
            ]
        elif "authentication" in message.lower() or "password" in message.lower():
            fixes = [
                "Verify database.user and database.password in your config",
                "Check pg_hba.conf allows password logins from this host",
            ]
        else:
            fixes = [
                "Read the psql output above for the failing statement",
                "Restore a database backup before retrying if the script partially applied",
            ]

        return ErrorGuidance(
            title="SQL upgrade script failed",
            checks=checks,
            fixes=fixes,
            examples=[f"psql -h {db.host} -U {db.user} {db.name} -c 'SELECT 1'"],
        )

    @staticmethod
    def get_unsupported_version(version: str) -> ErrorGuidance:
        """Guidance when no migration path leads away from the recorded version."""
        return ErrorGuidance(
            title=f"No upgrade path from schema version '{version or '<unset>'}'",
            checks=[
                "Compare the recorded version with the registered chain: schema-upgrader list",
                "Check whether the database was created by a newer release",
            ],
            fixes=[
                "Upgrade through an intermediate release that supports this version",
                "If the schema is known to be current, record it manually: schema-upgrader set-version",
            ],
            examples=["schema-upgrader status"],
        )

    @staticmethod
    def get_persist_failed(version: str, state_file: Path) -> ErrorGuidance:
        """Guidance when the new schema version could not be recorded."""
        return ErrorGuidance(
            title=f"Upgrade to {version} ran but the version was not recorded",
            checks=[
                f"Check file permissions: ls -l {state_file}",
                "Check disk space: df -h",
            ],
            fixes=[
                "Fix the state file problem, then record the version so the step is not repeated:",
                f"  schema-upgrader set-version {version}",
            ],
        )

    @staticmethod
    def get_no_admin_user() -> ErrorGuidance:
        """Guidance when no admin exists for super admin promotion."""
        return ErrorGuidance(
            title="No admin user available to promote to super admin",
            checks=["Check the users table contains at least one user of type 'A'"],
            fixes=["Create an admin user, then rerun: schema-upgrader upgrade"],
        )

    @staticmethod
    def get_corrupt_state(state_file: Path) -> ErrorGuidance:
        """Guidance when the state file cannot be parsed."""
        return ErrorGuidance(
            title=f"State file is corrupt: {state_file}",
            checks=[
                f"Inspect the file: less {state_file}",
                "Look for a backup or an interrupted write",
            ],
            fixes=[
                "Restore the state file from a backup",
                "Or move it aside and record the schema version again: schema-upgrader set-version",
            ],
        )

    @staticmethod
    def for_error(error: UpgradeError, config: Config) -> ErrorGuidance | None:
        """
        Pick guidance matching an upgrade error.

        Args:
            error: Raised upgrade error
            config: Application configuration

        Returns:
            Matching guidance, or None if there is nothing useful to add
        """
        if isinstance(error, UnsupportedCurrentVersion):
            return GuidanceProvider.get_unsupported_version(error.version)

        if isinstance(error, PersistFailed):
            return GuidanceProvider.get_persist_failed(error.target_version, config.state_file)

        if isinstance(error, MigrationActionFailed):
            cause = error.__cause__
            if isinstance(cause, NoAdminUserError):
                return GuidanceProvider.get_no_admin_user()
            if isinstance(cause, SqlScriptError):
                message = str(cause)
                if "not found in PATH" in message:
                    return GuidanceProvider.get_psql_not_found(config.database.psql_binary)
                if "script not found" in message:
                    return GuidanceProvider.get_sql_script_missing(
                        sql_script_path(config.sql_dir, error.target_version)
                    )
                return GuidanceProvider.get_sql_script_failed(message, config)

        return None

    @staticmethod
    def format_guidance(guidance: ErrorGuidance) -> str:
        """Format guidance as rich-compatible string."""
        lines = [f"[bold yellow]{guidance.title}[/bold yellow]\n"]

        if guidance.checks:
            lines.append("[cyan]Checks:[/cyan]")
            for check in guidance.checks:
                lines.append(f"  • {check}")
            lines.append("")

        if guidance.fixes:
            lines.append("[cyan]How to fix:[/cyan]")
            for fix in guidance.fixes:
                lines.append(f"  • {fix}")
            lines.append("")

        if guidance.examples:
            lines.append("[cyan]Try these commands:[/cyan]")
            for example in guidance.examples:
                lines.append(f"  $ {example}")

        return "\n".join(lines)
