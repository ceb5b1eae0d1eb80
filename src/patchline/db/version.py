"""Read and write the schema version kept in ``PRAGMA user_version``."""

from __future__ import annotations

import sqlite3
from pathlib import Path

from patchline.errors import VersionStoreError


def connect(db_path: Path | str) -> sqlite3.Connection:
    """Open a connection to the (migrated) database file."""
    conn = sqlite3.connect(str(db_path))
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    conn.execute("PRAGMA busy_timeout = 5000")
    return conn


class VersionStore:
    """Owns the on-disk schema version of one SQLite file.

    Every call opens a fresh connection and closes it again, so no handle
    is held while patches run in child processes.
    """

    def __init__(self, db_path: Path | str) -> None:
        self._db_path = str(db_path)

    @property
    def db_path(self) -> str:
        return self._db_path

    def read(self) -> int:
        """Return the stored version (0 for a fresh database)."""
        try:
            conn = sqlite3.connect(self._db_path)
            try:
                row = conn.execute("PRAGMA user_version").fetchone()
            finally:
                conn.close()
        except sqlite3.Error as e:
            raise VersionStoreError(
                f"Cannot read schema version from {self._db_path}: {e}"
            ) from e
        version = row[0]
        if version < 0:
            raise VersionStoreError(f"Invalid schema version {version} in {self._db_path}")
        return version

    def write(self, version: int) -> None:
        """Persist *version*. Only called after a plan completes."""
        if isinstance(version, bool) or not isinstance(version, int) or version < 0:
            raise ValueError(f"Schema version must be a non-negative int, got {version!r}")

        try:
            conn = sqlite3.connect(self._db_path)
            try:
                # PRAGMA does not accept bound parameters.
                conn.execute(f"PRAGMA user_version = {version:d}")
                conn.commit()
            finally:
                conn.close()
        except sqlite3.Error as e:
            raise VersionStoreError(
                f"Cannot write schema version {version} to {self._db_path}: {e}"
            ) from e
