"""Tests for cache invalidation and maintenance signalling."""

import logging
from pathlib import Path

from schema_upgrader.cache import DirectoryCache, NullCache
from schema_upgrader.maintenance import MaintenanceFile, NullMaintenance


class TestDirectoryCache:
    """Tests for DirectoryCache."""

    def test_clears_entries(self, tmp_path: Path) -> None:
        """Test files and subdirectories are removed, the directory is kept."""
        cache_dir = tmp_path / "cache"
        (cache_dir / "pages").mkdir(parents=True)
        (cache_dir / "pages" / "home.html").write_text("<html/>", encoding="utf-8")
        (cache_dir / "prefs.json").write_text("{}", encoding="utf-8")

        DirectoryCache(cache_dir).clear_all()

        assert cache_dir.is_dir()
        assert list(cache_dir.iterdir()) == []

    def test_missing_directory(self, tmp_path: Path) -> None:
        """Test clearing a cache that was never created is a no-op."""
        DirectoryCache(tmp_path / "absent").clear_all()

    def test_symlinked_directory_is_logged(self, tmp_path: Path, caplog) -> None:
        """Test a symlinked cache directory is refused without raising."""
        target = tmp_path / "elsewhere"
        target.mkdir()
        (target / "keep.txt").write_text("x", encoding="utf-8")
        link = tmp_path / "cache"
        link.symlink_to(target)

        with caplog.at_level(logging.WARNING):
            DirectoryCache(link).clear_all()

        assert (target / "keep.txt").exists()
        assert "Could not clear cache" in caplog.text

    def test_null_cache(self) -> None:
        """Test the null cache accepts clear_all."""
        NullCache().clear_all()


class TestMaintenanceFile:
    """Tests for MaintenanceFile."""

    def test_toggle(self, tmp_path: Path) -> None:
        """Test enabling creates the marker and disabling removes it."""
        marker = tmp_path / "run" / "maintenance.txt"
        signal = MaintenanceFile(marker)

        signal.set_enabled(True)
        assert marker.exists()

        signal.set_enabled(False)
        assert not marker.exists()

    def test_disable_without_marker(self, tmp_path: Path) -> None:
        """Test disabling when not in maintenance mode is harmless."""
        MaintenanceFile(tmp_path / "maintenance.txt").set_enabled(False)

    def test_failure_swallowed(self, tmp_path: Path, caplog) -> None:
        """Test an unwritable marker location is logged, not raised."""
        blocker = tmp_path / "not-a-dir"
        blocker.write_text("", encoding="utf-8")
        signal = MaintenanceFile(blocker / "maintenance.txt")

        with caplog.at_level(logging.WARNING):
            signal.set_enabled(True)

        assert "Could not enable maintenance mode" in caplog.text

    def test_null_maintenance(self) -> None:
        """Test the null signal accepts both states."""
        signal = NullMaintenance()
        signal.set_enabled(True)
        signal.set_enabled(False)
