"""Cache invalidation around schema upgrades."""

import logging
from pathlib import Path
from typing import Protocol

from .utils import clear_directory

logger = logging.getLogger(__name__)


class CacheInvalidator(Protocol):
    """Clears externally visible caches. Never raises."""

    def clear_all(self) -> None: ...


class NullCache:
    """Cache invalidator for applications without a cache."""

    def clear_all(self) -> None:
        pass


class DirectoryCache:
    """Cache stored as files below a single directory."""

    def __init__(self, cache_dir: Path):
        self.cache_dir = cache_dir

    def clear_all(self) -> None:
        """Remove every cached entry, logging instead of raising on failure."""
        try:
            clear_directory(self.cache_dir)
        except (OSError, ValueError) as e:
            logger.warning(f"Could not clear cache directory {self.cache_dir}: {e}")
        else:
            logger.debug(f"Cleared cache directory {self.cache_dir}")
