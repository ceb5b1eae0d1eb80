"""Shared test fixtures."""

from __future__ import annotations

import logging
import textwrap
from collections.abc import Callable, Iterator
from pathlib import Path

import pytest

from patchline.config import MigrateConfig

# Every generated patch appends "<filename>\t<stdin path>\t<cwd>" here,
# relative to its working directory (the timeline).
RUN_LOG = "ran.log"

PATCH_TEMPLATE = """\
import os
import sqlite3
import sys

path = sys.stdin.readline().rstrip("\\n")
with open({run_log!r}, "a", encoding="utf-8") as log:
    log.write(f"{{os.path.basename(__file__)}}\\t{{path}}\\t{{os.getcwd()}}\\n")

print("noise on stdout")
sys.stderr.write({stderr!r})

conn = sqlite3.connect(path)
conn.executescript({sql!r})
conn.commit()
conn.close()

sys.exit({exit_code})
"""

MakePatch = Callable[..., Path]


@pytest.fixture(autouse=True)
def _reset_patchline_logger() -> Iterator[None]:
    yield
    logger = logging.getLogger("patchline")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def timeline(tmp_path: Path) -> Path:
    path = tmp_path / "timeline"
    path.mkdir()
    return path


@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    return tmp_path / "data" / "app.db"


@pytest.fixture
def make_patch(timeline: Path) -> MakePatch:
    """Write a Python patch script into the timeline."""

    def _make(
        version: int,
        sql: str = "",
        exit_code: int = 0,
        stderr: str = "",
        name: str | None = None,
    ) -> Path:
        if not sql:
            sql = f"CREATE TABLE IF NOT EXISTS t{version} (id INTEGER PRIMARY KEY);"
        path = timeline / (name or f"migrate-{version:02d}.py")
        path.write_text(
            PATCH_TEMPLATE.format(
                run_log=RUN_LOG,
                sql=textwrap.dedent(sql),
                exit_code=exit_code,
                stderr=stderr,
            ),
            encoding="utf-8",
        )
        return path

    return _make


@pytest.fixture
def ran(timeline: Path) -> Callable[[], list[tuple[str, str, str]]]:
    """Return the (patch, db path, cwd) triples recorded by generated patches."""

    def _read() -> list[tuple[str, str, str]]:
        log = timeline / RUN_LOG
        if not log.exists():
            return []
        return [
            tuple(line.split("\t"))  # type: ignore[misc]
            for line in log.read_text(encoding="utf-8").splitlines()
        ]

    return _read


@pytest.fixture
def config(db_path: Path, timeline: Path) -> MigrateConfig:
    return MigrateConfig(file=db_path, timeline=timeline, create=True)
