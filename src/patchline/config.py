"""Configuration for a migration run."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from patchline.errors import ConfigurationError

_TRUTHY = ("1", "true", "yes")


@dataclass
class MigrateConfig:
    file: Path | None = None
    timeline: Path | None = None
    create: bool = False
    readonly: bool | None = None
    user_version: int | None = None
    debug: bool = False

    def __post_init__(self) -> None:
        self.file = Path(self.file) if self.file else None
        self.timeline = Path(self.timeline) if self.timeline else None
        self.create = bool(self.create)

    @property
    def database(self) -> Path:
        """Absolute path of the database file."""
        if self.file is None:
            raise ConfigurationError("Missing or invalid file param")
        return self.file.expanduser().resolve()

    def is_readonly(self) -> bool:
        if self.readonly is not None:
            return self.readonly
        if self.create:
            return False
        return not os.access(self.database, os.W_OK)

    def validate(self, allow_readonly: bool = False) -> None:
        """Check every parameter before anything touches the filesystem.

        *allow_readonly* is for callers that only inspect the database.
        """
        if self.file is None or self.database.is_dir():
            raise ConfigurationError(f"Missing or invalid file param: {self.file}")
        if not self.create and not self.database.is_file():
            raise ConfigurationError(
                f"Missing or invalid file param: {self.file} does not exist"
            )

        timeline = self.timeline
        if (
            timeline is None
            or not timeline.is_dir()
            or not os.access(timeline, os.R_OK)
        ):
            raise ConfigurationError(
                f"Missing or invalid timeline directory: {timeline}"
            )

        if self.user_version is not None and self.user_version < 0:
            raise ConfigurationError(
                f"Invalid user_version {self.user_version}: must be non-negative"
            )

        if not allow_readonly and self.is_readonly():
            raise ConfigurationError("patchline does not support readonly databases")

    @classmethod
    def from_env(cls) -> MigrateConfig:
        """Load config from environment variables."""
        config = cls()
        if db := os.environ.get("PATCHLINE_DB"):
            config.file = Path(db)
        if timeline := os.environ.get("PATCHLINE_TIMELINE"):
            config.timeline = Path(timeline)
        config.create = os.environ.get("PATCHLINE_CREATE", "").lower() in _TRUTHY
        config.debug = os.environ.get("PATCHLINE_DEBUG", "").lower() in _TRUTHY
        if version := os.environ.get("PATCHLINE_USER_VERSION"):
            try:
                config.user_version = int(version)
            except ValueError as e:
                raise ConfigurationError(
                    f"PATCHLINE_USER_VERSION must be an integer, got {version!r}"
                ) from e
        return config
