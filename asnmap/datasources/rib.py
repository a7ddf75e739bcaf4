# asnmap/datasources/rib.py
"""
Routes from ``bgpdump -m`` text output.

    TABLE_DUMP2|1704067200|B|187.16.216.23|263075|1.0.0.0/24|263075 13335|IGP|...

Fields (0-based): 3 peer IP, 4 peer AS, 5 prefix, 6 AS path. The origin is
the last token of the path, taken as-is: prepending is not collapsed and the
path is not otherwise validated. A path ending in an AS_SET
(``{64500,64501}``) still yields an announcement, with no origin ASN.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Iterator, Optional

from asnmap.datasources.base import PathLike, iter_lines
from asnmap.models import Announcement
from asnmap.utils.logging import get_logger

log = get_logger(__name__)

RECORD_TYPE = "TABLE_DUMP2"
PREFIX_FIELD = 5
AS_PATH_FIELD = 6


def _announcement(prefix: str, origin: str) -> Announcement:
    origin_asn = int(origin) if origin.isdigit() else None
    return Announcement(prefix=prefix, origin_asn=origin_asn, origin=origin)


def parse_rib_line(line: str) -> Optional[Announcement]:
    """Announcement for a TABLE_DUMP2 line, None for anything else."""
    if not line.startswith(RECORD_TYPE):
        return None
    parts = line.split("|")
    if parts[0] != RECORD_TYPE or len(parts) <= AS_PATH_FIELD:
        return None

    prefix = parts[PREFIX_FIELD].strip()
    hops = parts[AS_PATH_FIELD].split()
    if not prefix or not hops:
        return None
    return _announcement(prefix, hops[-1])


@dataclass
class ExtractStats:
    lines_read: int = 0
    announcements: int = 0
    unresolvable: int = 0       # origin is not a single ASN (AS_SET)
    malformed: int = 0          # TABLE_DUMP2 lines that could not be used


def iter_announcements(lines: Iterable[str], stats: Optional[ExtractStats] = None) -> Iterator[Announcement]:
    """
    Stream announcements out of dump lines.

    Multi-origin prefixes come out once per line; nothing is deduplicated
    here.
    """
    stats = stats if stats is not None else ExtractStats()
    for line in lines:
        stats.lines_read += 1
        ann = parse_rib_line(line)
        if ann is None:
            if line.startswith(RECORD_TYPE):
                stats.malformed += 1
                log.debug("Skipping malformed RIB line: %r", line[:200])
            continue
        stats.announcements += 1
        if ann.origin_asn is None:
            stats.unresolvable += 1
        yield ann


class RibDumpSource:
    """A decoded RIB dump (``bgpdump -v -m`` output) on disk."""

    def __init__(self, path: PathLike):
        self.path = Path(path)
        self.stats = ExtractStats()

    def iter_records(self) -> Iterator[Announcement]:
        self.stats = ExtractStats()
        yield from iter_announcements(iter_lines(self.path), self.stats)


def write_announcements(announcements: Iterable[Announcement], path: PathLike) -> int:
    """Stream ``<prefix> <origin>`` lines to ``path`` in dump order."""
    out_path = Path(path)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    count = 0
    with open(out_path, "w", encoding="utf-8", newline="\n") as f:
        for ann in announcements:
            f.write(f"{ann.prefix} {ann.origin}\n")
            count += 1
    log.info("Wrote %d prefix->ASN rows to %s", count, out_path)
    return count


def read_announcements(path: PathLike) -> Iterator[Announcement]:
    """Stream announcements back out of a prefix->ASN table."""
    for line in iter_lines(path):
        parts = line.split()
        if len(parts) != 2:
            continue
        yield _announcement(parts[0], parts[1])
