"""patchline — forward-only schema migrations for SQLite."""

from patchline.config import MigrateConfig
from patchline.errors import (
    ConfigurationError,
    DestinationMismatchError,
    DiscoveryError,
    DuplicatePatchError,
    MigrationError,
    PatchExecutionError,
    VersionStoreError,
)
from patchline.migrate import MigrationResult, Migrator, migrate

__version__ = "0.1.0"

__all__ = [
    "ConfigurationError",
    "DestinationMismatchError",
    "DiscoveryError",
    "DuplicatePatchError",
    "MigrateConfig",
    "MigrationError",
    "MigrationResult",
    "Migrator",
    "PatchExecutionError",
    "VersionStoreError",
    "migrate",
]
