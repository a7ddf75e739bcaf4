# asnmap/fetch/cache.py

from __future__ import annotations

from pathlib import Path

from asnmap.datasources.base import PathLike
from asnmap.utils.logging import get_logger

log = get_logger(__name__)


class SnapshotCache:
    """
    Working-directory cache of downloaded and derived files.

    Source file names carry their snapshot date (or "latest"), so a file
    name is the cache key. An entry counts as present only if it is
    non-empty; partial downloads never get a final name.
    """

    def __init__(self, workdir: PathLike = "."):
        self.workdir = Path(workdir)

    def path(self, name: str) -> Path:
        return self.workdir / name

    def has(self, name: str) -> bool:
        p = self.path(name)
        return p.is_file() and p.stat().st_size > 0

    def ensure_dir(self) -> Path:
        self.workdir.mkdir(parents=True, exist_ok=True)
        return self.workdir
