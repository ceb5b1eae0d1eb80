"""Tests for migration planning."""

from __future__ import annotations

from pathlib import Path

import pytest

from patchline.timeline.catalog import Patch, PatchCatalog
from patchline.timeline.plan import MigrationPlan, build_plan


def _catalog(*versions: int) -> PatchCatalog:
    return PatchCatalog({
        v: Patch(v, Path(f"/timeline/migrate-{v}.pl")) for v in versions
    })


class TestBuildPlan:
    def test_gap_ends_plan(self) -> None:
        plan = build_plan(_catalog(1, 2, 4), 0)
        assert [p.version for p in plan] == [1, 2]
        assert plan.destination == 2

    def test_stuck_at_gap(self) -> None:
        plan = build_plan(_catalog(1, 2, 4), 2)
        assert plan.empty
        assert plan.destination == 2

    def test_resumes_past_gap_when_current(self) -> None:
        plan = build_plan(_catalog(1, 2, 4), 3)
        assert [p.version for p in plan] == [4]
        assert plan.destination == 4

    def test_empty_catalog(self) -> None:
        plan = build_plan(_catalog(), 0)
        assert plan.empty
        assert len(plan) == 0
        assert plan.destination == 0

    def test_starts_from_current_version(self) -> None:
        plan = build_plan(_catalog(1, 2, 3, 4, 5), 3)
        assert plan.start_version == 3
        assert [p.version for p in plan] == [4, 5]

    def test_current_beyond_catalog(self) -> None:
        assert build_plan(_catalog(1, 2), 7).empty

    def test_negative_version_rejected(self) -> None:
        with pytest.raises(ValueError):
            build_plan(_catalog(1), -1)

    @pytest.mark.parametrize("versions,current", [
        ((), 0),
        ((1,), 0),
        ((2, 3), 0),
        ((1, 2, 3), 1),
        ((1, 3, 4, 5), 1),
        ((1, 2, 3), 3),
        ((5, 6, 7, 20), 4),
        ((100,), 99),
    ])
    def test_empty_iff_next_version_missing(self, versions: tuple[int, ...],
                                            current: int) -> None:
        plan = build_plan(_catalog(*versions), current)
        assert plan.empty == ((current + 1) not in versions)

    @pytest.mark.parametrize("versions,current", [
        ((1, 2, 3, 4), 0),
        ((1, 2, 3, 7, 8), 0),
        ((5, 6, 7, 20), 4),
        ((2, 3, 4, 6), 1),
    ])
    def test_plan_is_contiguous(self, versions: tuple[int, ...],
                                current: int) -> None:
        plan = build_plan(_catalog(*versions), current)
        for i, patch in enumerate(plan, start=1):
            assert patch.version == current + i
        assert plan.destination == current + len(plan)
        assert plan.destination + 1 not in versions


class TestMigrationPlan:
    def test_destination(self) -> None:
        patches = tuple(Patch(v, Path(f"migrate-{v}.pl")) for v in (3, 4))
        plan = MigrationPlan(start_version=2, patches=patches)
        assert plan.destination == 4
        assert not plan.empty
        assert list(plan) == list(patches)
