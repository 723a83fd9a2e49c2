"""Configuration management for Schema-Upgrader."""

import logging
import os
import shutil
import tomllib
from pathlib import Path
from typing import Any

import tomli_w
from pydantic import BaseModel, ConfigDict, Field, field_validator

from .constants import CONFIG_ENV_VAR, DEFAULT_CONFIG_PATH, PSQL_DEFAULT_TIMEOUT
from .utils import ensure_dir, expand_path

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_TEMPLATE_PATH = Path(__file__).with_name("config.toml")


def _load_default_template() -> dict[str, Any]:
    """Load the packaged default config template."""
    with open(DEFAULT_CONFIG_TEMPLATE_PATH, "rb") as f:
        return tomllib.load(f)


def _merge_config_data(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Merge config dictionaries recursively."""
    merged = dict(base)
    for key, value in override.items():
        base_value = merged.get(key)
        if isinstance(base_value, dict) and isinstance(value, dict):
            merged[key] = _merge_config_data(base_value, value)
        else:
            merged[key] = value
    return merged


def _copy_default_config(config_path: Path) -> None:
    """Copy packaged template to the user config path."""
    ensure_dir(config_path.parent)
    shutil.copyfile(DEFAULT_CONFIG_TEMPLATE_PATH, config_path)


class PathsConfig(BaseModel):
    """Filesystem locations used by upgrades."""

    state_file: Path
    sql_dir: Path
    storage_dir: Path
    cache_dir: Path

    @field_validator("state_file", "sql_dir", "storage_dir", "cache_dir", mode="before")
    @classmethod
    def expand_paths(cls, v: str | Path) -> Path:
        """Expand path strings with ~ and environment variables."""
        if isinstance(v, str):
            return expand_path(v)
        return v


class DatabaseConfig(BaseModel):
    """Connection parameters handed to psql for SQL upgrade scripts."""

    host: str = "localhost"
    user: str
    password: str = ""
    name: str
    psql_binary: str = "psql"
    # Seconds, 0 means no timeout
    timeout: float = Field(default=PSQL_DEFAULT_TIMEOUT, ge=0)


class MaintenanceConfig(BaseModel):
    """Maintenance marker configuration."""

    enabled: bool = False
    marker_file: Path = Path("/tmp/maintenance.txt")

    @field_validator("marker_file", mode="before")
    @classmethod
    def expand_marker(cls, v: str | Path) -> Path:
        """Expand marker path with ~ and environment variables."""
        if isinstance(v, str):
            return expand_path(v)
        return v


class Config(BaseModel):
    """Configuration for Schema-Upgrader."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    paths: PathsConfig
    database: DatabaseConfig
    maintenance: MaintenanceConfig = Field(default_factory=MaintenanceConfig)

    @property
    def state_file(self) -> Path:
        """Path to the state database holding the schema version."""
        return self.paths.state_file

    @property
    def sql_dir(self) -> Path:
        """Directory containing per-version SQL upgrade scripts."""
        return self.paths.sql_dir

    @property
    def storage_dir(self) -> Path:
        """Media storage directory measured for disk usage."""
        return self.paths.storage_dir

    @property
    def cache_dir(self) -> Path:
        """Application cache directory cleared around each upgrade."""
        return self.paths.cache_dir

    def save(self, config_path: Path) -> None:
        """
        Write configuration to a TOML file.

        Args:
            config_path: Destination path, parent directories are created
        """
        ensure_dir(config_path.parent)
        data = self.model_dump(mode="json", exclude_none=True)
        with open(config_path, "wb") as f:
            tomli_w.dump(data, f)


def get_config_path() -> Path:
    """
    Get configuration file path.

    Priority:
    1. SCHEMA_UPGRADER_CONFIG environment variable
    2. Default: ~/.config/schema-upgrader/config.toml

    Returns:
        Path to config file
    """
    env_config = os.environ.get(CONFIG_ENV_VAR)
    if env_config:
        return expand_path(env_config)

    return expand_path(DEFAULT_CONFIG_PATH)


def create_default_config() -> Config:
    """Create default configuration from packaged template."""
    return Config.model_validate(_load_default_template())


def load_config(config_path: Path | None = None) -> Config:
    """
    Load configuration from TOML file using Pydantic validation.

    Values missing from the user file fall back to the packaged template.

    Args:
        config_path: Optional custom config path

    Returns:
        Config instance with validated values

    Raises:
        ValueError: If config validation fails
    """
    if config_path is None:
        config_path = get_config_path()

    defaults = _load_default_template()

    if not config_path.exists():
        try:
            _copy_default_config(config_path)
        except (OSError, PermissionError) as e:
            logger.warning(f"Could not copy default config to {config_path}: {e}")

    if config_path.exists():
        with open(config_path, "rb") as f:
            data = tomllib.load(f)
        return Config.model_validate(_merge_config_data(defaults, data))

    return Config.model_validate(defaults)
