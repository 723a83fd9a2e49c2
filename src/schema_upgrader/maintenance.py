"""Maintenance mode signalling during upgrades.

Enabling maintenance creates a marker file; a host application that sees the
file redirects requests to its maintenance page with a 503 status. Toggling is
best effort: failures are logged and never reach the caller.
"""

import logging
from pathlib import Path
from typing import Protocol

from .config import Config
from .utils import ensure_dir

logger = logging.getLogger(__name__)


class MaintenanceSignal(Protocol):
    """Best-effort switch telling the rest of the system an upgrade is running."""

    def set_enabled(self, enabled: bool) -> None: ...


class NullMaintenance:
    """Maintenance signal that does nothing."""

    def set_enabled(self, enabled: bool) -> None:
        logger.debug(f"Maintenance signalling disabled, ignoring set_enabled({enabled})")


class MaintenanceFile:
    """Maintenance signal backed by a marker file."""

    def __init__(self, marker_file: Path):
        self.marker_file = marker_file

    def set_enabled(self, enabled: bool) -> None:
        """
        Create or remove the marker file.

        Args:
            enabled: True to enter maintenance mode, False to leave it
        """
        try:
            if enabled:
                ensure_dir(self.marker_file.parent)
                self.marker_file.touch()
            else:
                self.marker_file.unlink(missing_ok=True)
        except OSError as e:
            state = "enable" if enabled else "disable"
            logger.warning(f"Could not {state} maintenance mode via {self.marker_file}: {e}")


def maintenance_from_config(config: Config) -> MaintenanceSignal:
    """Build the maintenance signal selected by configuration."""
    if config.maintenance.enabled:
        return MaintenanceFile(config.maintenance.marker_file)
    return NullMaintenance()
