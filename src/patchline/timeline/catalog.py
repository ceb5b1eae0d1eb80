"""Discover the migration scripts held in a timeline directory."""

from __future__ import annotations

import logging
import os
import re
import sys
from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import Path

from patchline.errors import DiscoveryError, DuplicatePatchError

logger = logging.getLogger("patchline.timeline.catalog")

PATCH_PATTERN = re.compile(r"^migrate-(\d+)\.(pl|py)$", re.ASCII)


def _interpreter_for(suffix: str) -> str:
    if suffix == ".py":
        return sys.executable
    return os.environ.get("PATCHLINE_PERL", "perl")


@dataclass(frozen=True)
class Patch:
    """A script that moves the schema from ``version - 1`` to ``version``."""

    version: int
    path: Path

    @property
    def name(self) -> str:
        return self.path.name

    @property
    def interpreter(self) -> str:
        return _interpreter_for(self.path.suffix)


class PatchCatalog:
    """Sparse mapping of target version to patch."""

    def __init__(self, patches: dict[int, Patch] | None = None) -> None:
        self._patches: dict[int, Patch] = dict(patches or {})

    def add(self, patch: Patch) -> None:
        existing = self._patches.get(patch.version)
        if existing is not None:
            raise DuplicatePatchError(patch.version, existing.path, patch.path)
        self._patches[patch.version] = patch

    def get(self, version: int) -> Patch | None:
        return self._patches.get(version)

    def versions(self) -> list[int]:
        return sorted(self._patches)

    def latest(self) -> int:
        """Highest version any patch claims, or 0 for an empty catalog."""
        return max(self._patches, default=0)

    def __contains__(self, version: object) -> bool:
        return version in self._patches

    def __len__(self) -> int:
        return len(self._patches)

    def __iter__(self) -> Iterator[Patch]:
        for version in self.versions():
            yield self._patches[version]


def parse_version(filename: str) -> int | None:
    """Return the target version encoded in a patch filename, if any."""
    match = PATCH_PATTERN.match(filename)
    if match is None:
        return None
    return int(match.group(1))


def scan_timeline(directory: Path | str) -> PatchCatalog:
    """Build a catalog from the immediate entries of *directory*.

    Entries are visited in lexical order. Non-matching names are ignored.
    Two files claiming one version raise DuplicatePatchError.
    """
    directory = Path(directory).resolve()
    try:
        with os.scandir(directory) as it:
            entries = sorted(it, key=lambda e: e.name)
            files = [e.name for e in entries if e.is_file()]
    except OSError as e:
        raise DiscoveryError(f"Cannot read timeline directory {directory}: {e}") from e

    catalog = PatchCatalog()
    for filename in files:
        version = parse_version(filename)
        if version is None:
            continue
        patch = Patch(version=version, path=directory / filename)
        catalog.add(patch)
        logger.debug(f"Found patch {filename} for version {version}")

    return catalog
