# asnmap/pipeline.py
"""
End-to-end table build.

    registry feeds --parse--> asn2country.txt ---------------+
                   +--cidr--> prefix2countrydelegated.txt     |
    RIB snapshot --bgpdump--> bgp.out --> prefix2asn.txt --join--> prefix2country.txt

Every stage takes and returns explicit tables or paths; nothing is shared
between stages through module state. Two builds must not share a working
directory at the same time, since intermediate file names are fixed.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Sequence

import requests

from asnmap.datasources.base import PathLike
from asnmap.datasources.delegation import DelegationTables, parse_delegation_files
from asnmap.datasources.rib import RibDumpSource, write_announcements
from asnmap.fetch.archive import compress_bz2, decompress
from asnmap.fetch.bgpdump import decode_rib
from asnmap.fetch.cache import SnapshotCache
from asnmap.fetch.download import fetch
from asnmap.fetch.registries import registry_sources, rib_source
from asnmap.processing.join import join_files
from asnmap.processing.normalize import (
    asn_frame,
    normalize_asn_table,
    normalize_prefix_table,
    pairs_frame,
    prefix_frame,
    write_table,
)
from asnmap.utils.date_detection import resolve_snapshot_date
from asnmap.utils.logging import get_logger

log = get_logger(__name__)

ASN2COUNTRY = "asn2country.txt"
PREFIX2ASN = "prefix2asn.txt"
PREFIX2COUNTRY = "prefix2country.txt"
DELEGATED_PREFIX_COUNTRY = "prefix2countrydelegated.txt"
RIB_TXT = "bgp.out"

OUTPUTS = (ASN2COUNTRY, PREFIX2ASN, PREFIX2COUNTRY, DELEGATED_PREFIX_COUNTRY)


@dataclass
class BuildConfig:
    snapshot_date: Optional[str] = None     # YYYYMMDD; None means yesterday
    latest: bool = False                    # use the -latest registry feeds
    workdir: Path = Path(".")
    registries: Optional[Sequence[str]] = None
    compress: bool = False
    bgpdump: str = "bgpdump"


@dataclass
class BuildResult:
    snapshot_date: str
    outputs: Dict[str, Path] = field(default_factory=dict)
    rows: Dict[str, int] = field(default_factory=dict)


# ---------------------------------------------------------------------------
# Stages
# ---------------------------------------------------------------------------

def build_asn_table(feed_paths: Sequence[PathLike], out_path: PathLike) -> DelegationTables:
    """
    Parse feeds (in the given order) and write the normalized ASN table.

    The join reads the written file, not the returned tables, so a repeated
    ASN resolves the same way here as in a standalone ``join``.
    """
    log.info("Parsing %d registry feed(s) into %s...", len(feed_paths), out_path)
    tables = parse_delegation_files(feed_paths)
    write_table(normalize_asn_table(asn_frame(tables.asn_countries)), out_path)
    return tables


def build_delegated_table(tables: DelegationTables, out_path: PathLike) -> int:
    """
    Write power-of-two IPv4/IPv6 delegations as ``<prefix> <cc>``.

    With no rows at all the file is not written and any stale copy is
    removed.
    """
    out = Path(out_path)
    if not tables.delegated:
        log.warning("No valid prefix lines found in delegated files.")
        out.unlink(missing_ok=True)
        return 0

    df = normalize_prefix_table(prefix_frame(tables.delegated))
    write_table(df, out)
    if tables.blocks_dropped:
        log.info("Dropped %d non-power-of-two blocks", tables.blocks_dropped)
    return len(df)


def build_prefix_asn_table(dump_path: PathLike, out_path: PathLike) -> int:
    log.info("Building %s (prefix -> origin ASN)...", out_path)
    source = RibDumpSource(dump_path)
    count = write_announcements(source.iter_records(), out_path)
    if source.stats.unresolvable:
        log.info("%d announcements end in an AS_SET (origin unresolvable)", source.stats.unresolvable)
    if source.stats.malformed:
        log.info("Skipped %d malformed TABLE_DUMP2 lines", source.stats.malformed)
    return count


def build_prefix_country_table(asn_table_path: PathLike, prefix_asn_path: PathLike, out_path: PathLike) -> int:
    """
    Join the ASN->country and prefix->ASN files into the prefix->country table.

    ``build`` and the ``join`` command both come through here, so a given
    pair of intermediate files always gives the same output.
    """
    log.info("Combining %s + %s -> %s...", prefix_asn_path, asn_table_path, out_path)
    pairs = join_files(asn_table_path, prefix_asn_path)
    df = normalize_prefix_table(pairs_frame(pairs))
    write_table(df, out_path)
    return len(df)


def compress_outputs(paths: Sequence[Path]) -> List[Path]:
    """Replace each output with its .bz2, dropping compressed copies from earlier runs."""
    compressed = []
    for p in paths:
        old = p.with_name(p.name + ".bz2")
        old.unlink(missing_ok=True)
        if p.is_file():
            compressed.append(compress_bz2(p))
    return compressed


# ---------------------------------------------------------------------------
# Collaborator steps
# ---------------------------------------------------------------------------

def fetch_registry_feeds(config: BuildConfig, snapshot: str, cache: SnapshotCache,
                         session: Optional[requests.Session] = None) -> List[Path]:
    """Download and decompress every selected feed; returns text paths in parse order."""
    feeds = []
    for source in registry_sources(snapshot, config.latest, config.registries):
        path = fetch(source, cache, session=session)
        feeds.append(decompress(path))
    return feeds


def fetch_rib_dump(config: BuildConfig, snapshot: str, cache: SnapshotCache,
                   session: Optional[requests.Session] = None) -> Path:
    source = rib_source(snapshot)
    log.info("Checking for RouteViews RIB dump: %s", source.filename)
    path = fetch(source, cache, session=session)
    return decode_rib(decompress(path), cache.path(RIB_TXT), binary=config.bgpdump)


def build(config: BuildConfig, session: Optional[requests.Session] = None) -> BuildResult:
    snapshot = resolve_snapshot_date(config.snapshot_date)
    cache = SnapshotCache(config.workdir)
    cache.ensure_dir()
    result = BuildResult(snapshot_date=snapshot)
    out = {name: cache.path(name) for name in OUTPUTS}

    mode = "latest" if config.latest else f"date={snapshot}"
    log.info("=== Downloading RIR data (%s) ===", mode)
    feeds = fetch_registry_feeds(config, snapshot, cache, session)

    log.info("=== Parsing RIR data into %s ===", ASN2COUNTRY)
    tables = build_asn_table(feeds, out[ASN2COUNTRY])
    result.rows[ASN2COUNTRY] = len(set(tables.asn_countries))

    log.info("=== Downloading & parsing RIB dump ===")
    dump = fetch_rib_dump(config, snapshot, cache, session)
    result.rows[PREFIX2ASN] = build_prefix_asn_table(dump, out[PREFIX2ASN])

    log.info("=== Building prefix->Country mapping ===")
    result.rows[PREFIX2COUNTRY] = build_prefix_country_table(
        out[ASN2COUNTRY], out[PREFIX2ASN], out[PREFIX2COUNTRY]
    )

    log.info("=== Building delegated prefix->Country mapping ===")
    result.rows[DELEGATED_PREFIX_COUNTRY] = build_delegated_table(tables, out[DELEGATED_PREFIX_COUNTRY])

    written = [p for p in out.values() if p.is_file()]
    if config.compress:
        log.info("=== Compressing files ===")
        written = compress_outputs(written)

    result.outputs = {p.name: p for p in written}
    return result
