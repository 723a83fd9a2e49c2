"""Persisted application state for Schema-Upgrader."""

import copy
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator, Protocol

from tinydb import Query, TinyDB
from tinydb.table import Table

from .constants import (
    DB_METADATA_DOC_ID,
    DB_TABLE_METADATA,
    DB_TABLE_PREFERENCES,
    METADATA_KEY_SCHEMA_VERSION,
)
from .utils import ensure_dir


class VersionStore(Protocol):
    """Reads and writes the single persisted schema version."""

    def get_current_version(self) -> str: ...

    def set_current_version(self, version: str) -> None: ...


class StateStore:
    """
    TinyDB-backed key-value state.

    Holds the schema version record, application preferences, and the tables
    that data-fixup migrations operate on.
    """

    def __init__(self, state_file: Path | None = None, db: TinyDB | None = None):
        """
        Open the state database.

        Args:
            state_file: Path to the JSON state file (created if missing)
            db: Already opened TinyDB instance, used instead of state_file
        """
        if db is None:
            if state_file is None:
                raise ValueError("Either state_file or db is required")
            ensure_dir(state_file.parent)
            db = TinyDB(state_file)

        self.state_file = state_file
        self.db = db
        # Metadata table stores the schema version as a single document with a
        # fixed doc_id, so reads and writes always hit the same record.
        self.metadata = db.table(DB_TABLE_METADATA)
        self.preferences = db.table(DB_TABLE_PREFERENCES)

    def __enter__(self) -> "StateStore":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        """Close the underlying database."""
        self.db.close()

    def table(self, name: str) -> Table:
        """Return a named table of the state database."""
        return self.db.table(name)

    def get_current_version(self) -> str:
        """
        Get current schema version.

        Returns:
            Recorded version, or "" if none was ever recorded
        """
        result = self.metadata.get(doc_id=DB_METADATA_DOC_ID)
        if result and isinstance(result, dict):
            return str(result.get(METADATA_KEY_SCHEMA_VERSION, ""))
        return ""

    def set_current_version(self, version: str) -> None:
        """
        Record a new schema version.

        Args:
            version: Schema version to store
        """
        # Use update if doc exists, otherwise insert
        if self.metadata.get(doc_id=DB_METADATA_DOC_ID):
            self.metadata.update({METADATA_KEY_SCHEMA_VERSION: version}, doc_ids=[DB_METADATA_DOC_ID])
        else:
            self.metadata.insert({METADATA_KEY_SCHEMA_VERSION: version})

    def get_preference(self, key: str, default: Any = None) -> Any:
        """Get a preference value by key."""
        Pref = Query()
        result = self.preferences.get(Pref.key == key)
        if result and isinstance(result, dict):
            return result.get("value", default)
        return default

    def set_preference(self, key: str, value: Any) -> None:
        """Set a preference value, replacing any previous one."""
        Pref = Query()
        self.preferences.upsert({"key": key, "value": value}, Pref.key == key)

    @contextmanager
    def transaction(self) -> Iterator["StateStore"]:
        """
        Restore the whole database if the body raises.

        TinyDB has no transactions, so the storage content is snapshotted on
        entry and written back on failure.
        """
        snapshot = copy.deepcopy(self.db.storage.read() or {})
        try:
            yield self
        except BaseException:
            self.db.storage.write(snapshot)
            self.db.clear_cache()
            raise
