"""Patch discovery, planning and execution."""

from patchline.timeline.catalog import Patch, PatchCatalog, scan_timeline
from patchline.timeline.executor import PatchExecutor
from patchline.timeline.plan import MigrationPlan, build_plan

__all__ = [
    "MigrationPlan",
    "Patch",
    "PatchCatalog",
    "PatchExecutor",
    "build_plan",
    "scan_timeline",
]
