"""Compute the contiguous run of patches a database still needs."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass

from patchline.timeline.catalog import Patch, PatchCatalog


@dataclass(frozen=True)
class MigrationPlan:
    start_version: int
    patches: tuple[Patch, ...] = ()

    @property
    def destination(self) -> int:
        return self.start_version + len(self.patches)

    @property
    def empty(self) -> bool:
        return not self.patches

    def __len__(self) -> int:
        return len(self.patches)

    def __iter__(self) -> Iterator[Patch]:
        return iter(self.patches)


def build_plan(catalog: PatchCatalog, current_version: int) -> MigrationPlan:
    """Step forward from *current_version* until the timeline runs out.

    The first missing version ends the plan, even when the catalog holds
    higher-numbered patches past the gap.
    """
    if current_version < 0:
        raise ValueError(f"current_version must be non-negative, got {current_version}")

    patches: list[Patch] = []
    version = current_version + 1
    while (patch := catalog.get(version)) is not None:
        patches.append(patch)
        version += 1

    return MigrationPlan(start_version=current_version, patches=tuple(patches))
