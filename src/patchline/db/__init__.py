"""Access to the schema version stored inside the database file."""

from patchline.db.version import VersionStore, connect

__all__ = ["VersionStore", "connect"]
