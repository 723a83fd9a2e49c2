"""Utility functions for Schema-Upgrader."""

import logging
import os
import shutil
import subprocess
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.prompt import Confirm

logger = logging.getLogger(__name__)


def ensure_dir(path: Path) -> Path:
    """
    Create directory if it doesn't exist.

    Args:
        path: Directory path to create

    Returns:
        The created/existing directory path
    """
    path.mkdir(parents=True, exist_ok=True)
    return path


def expand_path(path: str) -> Path:
    """
    Expand ~ and environment variables in path.

    Args:
        path: Path string to expand

    Returns:
        Expanded Path object
    """
    return Path(os.path.expanduser(os.path.expandvars(path))).resolve()


def check_command_exists(cmd: str) -> bool:
    """
    Check if a command exists in PATH.

    Args:
        cmd: Command name to check

    Returns:
        True if command exists, False otherwise
    """
    return shutil.which(cmd) is not None


def run_command(
    cmd: list[str],
    cwd: Path | None = None,
    env: dict[str, str] | None = None,
    capture_output: bool = True,
    check: bool = True,
    timeout: float | None = None,
) -> subprocess.CompletedProcess:
    """
    Run a command without a shell.

    Args:
        cmd: Command and arguments as list
        cwd: Working directory for command
        env: Extra environment variables, merged over the current environment
        capture_output: Whether to capture stdout/stderr
        check: Whether to raise exception on non-zero exit
        timeout: Timeout in seconds (None for no timeout)

    Returns:
        CompletedProcess instance

    Raises:
        subprocess.CalledProcessError: If command fails and check=True
        subprocess.TimeoutExpired: If command times out
    """
    full_env = None
    if env:
        full_env = {**os.environ, **env}

    return subprocess.run(
        cmd,
        cwd=cwd,
        env=full_env,
        capture_output=capture_output,
        text=True,
        check=check,
        timeout=timeout,
    )


def directory_size(path: Path) -> int:
    """
    Total size in bytes of all regular files below a directory.

    Symlinks are not followed, so a link pointing outside the tree is not counted.

    Args:
        path: Directory to measure

    Returns:
        Size in bytes (0 if the directory does not exist)
    """
    if not path.is_dir():
        return 0

    total = 0
    for root, _dirs, files in os.walk(path):
        for name in files:
            file_path = Path(root) / name
            if file_path.is_symlink():
                continue
            try:
                total += file_path.stat().st_size
            except OSError as e:
                # File vanished between listing and stat
                logger.debug(f"Skipping {file_path}: {e}")
    return total


def clear_directory(path: Path) -> None:
    """
    Remove everything inside a directory, keeping the directory itself.

    Refuses to operate on a symlinked directory.

    Args:
        path: Directory to empty

    Raises:
        ValueError: If path is a symlink
        OSError: If removal fails
    """
    if path.is_symlink():
        raise ValueError(f"Refusing to clear symlinked directory: {path}")

    if not path.is_dir():
        return

    for item in path.iterdir():
        if item.is_dir() and not item.is_symlink():
            shutil.rmtree(item)
        else:
            item.unlink()


@contextmanager
def progress_spinner(description: str, console: Console) -> Iterator[tuple[Progress, int]]:
    """
    Create a progress spinner context manager.

    Args:
        description: Task description to display
        console: Rich console for output

    Yields:
        Tuple of (progress, task_id)
    """
    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console,
        transient=True,
    ) as progress:
        task = progress.add_task(description, total=None)
        yield progress, task


def prompt_confirm(message: str, default: bool = False) -> bool:
    """
    Prompt user for confirmation.

    Args:
        message: Confirmation message
        default: Default value if user just presses Enter

    Returns:
        True if confirmed, False otherwise
    """
    return Confirm.ask(message, default=default)
