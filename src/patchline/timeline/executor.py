"""Run planned patches as isolated child processes."""

from __future__ import annotations

import logging
import subprocess
import sys
from pathlib import Path

from patchline.errors import PatchExecutionError
from patchline.timeline.catalog import Patch
from patchline.timeline.plan import MigrationPlan

logger = logging.getLogger("patchline.timeline.executor")

# Keep error messages readable when a patch dumps a traceback.
_STDERR_TAIL = 2000


class PatchExecutor:
    """Apply each patch in turn, stopping at the first failure.

    Each patch gets the absolute database path as a single line on stdin
    and runs with the timeline directory as its working directory. Nothing
    is rolled back when a patch fails.
    """

    def __init__(self, timeline: Path, debug: bool = False) -> None:
        self._timeline = Path(timeline).resolve()
        self._debug = debug

    def run_patch(self, patch: Patch, database: Path) -> None:
        """Run one patch. Raises PatchExecutionError on failure."""
        if self._debug:
            print(f"Applying schema patch {patch.name}...", file=sys.stderr, flush=True)
        logger.debug(f"Running {patch.interpreter} {patch.path}")

        try:
            result = subprocess.run(
                [patch.interpreter, str(patch.path)],
                input=f"{database}\n",
                stdout=subprocess.DEVNULL,
                stderr=None if self._debug else subprocess.PIPE,
                text=True,
                errors="replace",
                cwd=str(self._timeline),
            )
        except OSError as e:
            raise PatchExecutionError(patch, None, reason=str(e)) from e

        if result.returncode != 0:
            stderr = result.stderr[-_STDERR_TAIL:] if result.stderr else None
            raise PatchExecutionError(patch, result.returncode, stderr)

        logger.info(f"Applied {patch.name} (version {patch.version})")

    def run(self, plan: MigrationPlan, database: Path | str) -> list[Patch]:
        """Run every patch in *plan* against *database*.

        Returns the applied patches. The first failure propagates and the
        remaining patches are never started.
        """
        database = Path(database).resolve()
        applied: list[Patch] = []
        for i, patch in enumerate(plan, start=1):
            logger.debug(f"Executing patch {i}/{len(plan)}: {patch.name}")
            self.run_patch(patch, database)
            applied.append(patch)
        return applied
