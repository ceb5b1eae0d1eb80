"""Migration orchestrator: read version, plan, check, execute, commit."""

from __future__ import annotations

import logging
import sqlite3
from dataclasses import dataclass, field
from pathlib import Path

from patchline.config import MigrateConfig
from patchline.db.version import VersionStore, connect
from patchline.errors import ConfigurationError, DestinationMismatchError
from patchline.timeline.catalog import Patch, scan_timeline
from patchline.timeline.executor import PatchExecutor
from patchline.timeline.plan import MigrationPlan, build_plan

logger = logging.getLogger("patchline.migrate")


@dataclass
class MigrationResult:
    database: Path
    start_version: int
    destination: int
    applied: list[Patch] = field(default_factory=list)
    created: bool = False

    @property
    def changed(self) -> bool:
        return self.destination != self.start_version


class Migrator:
    """Bring one SQLite file forward through its patch timeline.

    A run either commits the plan's destination version or leaves the
    stored version untouched. A failed patch is never rolled back, so the
    file may hold a partially migrated schema afterwards.
    """

    def __init__(self, config: MigrateConfig) -> None:
        self.config = config

    def _build(self, current: int) -> MigrationPlan:
        catalog = scan_timeline(self.config.timeline)
        plan = build_plan(catalog, current)
        logger.debug(
            f"Plan built: {len(plan)} patch(es) from version {current} "
            f"(catalog holds {len(catalog)})"
        )
        return plan

    def _preflight(self, plan: MigrationPlan) -> None:
        wanted = self.config.user_version
        if plan.empty or wanted is None:
            return
        if plan.destination != wanted:
            raise DestinationMismatchError(plan.destination, wanted)
        logger.debug(f"Pre-flight check passed: destination {wanted}")

    def plan(self) -> MigrationPlan:
        """Work out what run() would do, without touching the database.

        A file that does not exist yet is reported at version 0.
        """
        self.config.validate(allow_readonly=True)
        database = self.config.database
        current = VersionStore(database).read() if database.is_file() else 0
        return self._build(current)

    def run(self) -> MigrationResult:
        """Execute the migration. Raises a MigrationError subclass on failure."""
        self.config.validate()
        database = self.config.database

        created = not database.is_file()
        if created:
            try:
                database.parent.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                raise ConfigurationError(
                    f"Cannot create directory for {database}: {e}"
                ) from e
            logger.info(f"Creating database {database}")

        store = VersionStore(database)
        current = store.read()
        logger.debug(f"Database {database} is at version {current}")

        plan = self._build(current)
        self._preflight(plan)

        applied: list[Patch] = []
        if not plan.empty:
            logger.info(
                f"Migrating {database.name} from version {current} "
                f"to {plan.destination} ({len(plan)} patch(es))"
            )
            executor = PatchExecutor(self.config.timeline, debug=self.config.debug)
            applied = executor.run(plan, database)

        store.write(plan.destination)
        if applied:
            logger.info(f"Schema version committed: {plan.destination}")
        else:
            logger.debug(f"Schema already current at version {current}")

        return MigrationResult(
            database=database,
            start_version=current,
            destination=plan.destination,
            applied=applied,
            created=created,
        )


def migrate(config: MigrateConfig) -> sqlite3.Connection:
    """Migrate the configured database and return a connection to it."""
    result = Migrator(config).run()
    return connect(result.database)
