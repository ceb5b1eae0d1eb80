"""Exceptions raised while planning and applying a migration."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from patchline.timeline.catalog import Patch


class MigrationError(Exception):
    """Base class for every failure of a migration run."""


class ConfigurationError(MigrationError):
    """Raised when the caller's parameters are missing or invalid."""


class DiscoveryError(MigrationError):
    """Raised when the timeline directory cannot be listed."""


class DuplicatePatchError(DiscoveryError):
    """Raised when two timeline files claim the same version."""

    def __init__(self, version: int, first: Path, second: Path) -> None:
        self.version = version
        self.first = first
        self.second = second
        super().__init__(
            f"Duplicate patches for version {version}: "
            f"{first.name} and {second.name}"
        )


class DestinationMismatchError(MigrationError):
    """Raised before execution when the plan ends at the wrong version."""

    def __init__(self, got: int, wanted: int) -> None:
        self.got = got
        self.wanted = wanted
        super().__init__(
            "Schema migration destination user_version mismatch "
            f"(got {got}, wanted {wanted})"
        )


class PatchExecutionError(MigrationError):
    """Raised when a patch process fails.

    The database is left partially migrated. The stored version is not
    advanced, so the next run starts again from the pre-failure version.
    """

    def __init__(
        self,
        patch: Patch,
        returncode: int | None,
        stderr: str | None = None,
        reason: str | None = None,
    ) -> None:
        self.patch = patch
        self.returncode = returncode
        self.stderr = stderr
        message = f"Migration patch {patch.name} failed, database in unknown state"
        if reason:
            message += f" ({reason})"
        elif returncode is not None:
            message += f" (exit status {returncode})"
        if stderr:
            message += f"\n{stderr.rstrip()}"
        super().__init__(message)


class VersionStoreError(MigrationError):
    """Raised when the schema version cannot be read or written."""
