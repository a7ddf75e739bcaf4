# asnmap/datasources/delegation.py
"""
Registry delegation feeds ("delegated-<rir>-extended-<date>").

Each usable line looks like::

    registry|cc|type|start|value|date|status[|opaque-id|...]

``asn`` lines expand into one ASN->country entry per number in the block;
``ipv4``/``ipv6`` lines become delegated prefixes when the block size is a
power of two. Comment, header and summary lines are skipped.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Optional, Sequence

from asnmap.datasources.base import PathLike, iter_lines
from asnmap.models import (
    AsnCountry,
    DelegatedPrefix,
    DelegationRecord,
    RecordKind,
)
from asnmap.processing.cidr import delegated_prefix
from asnmap.utils.logging import get_logger

log = get_logger(__name__)

MIN_FIELDS = 7


def parse_delegation_line(line: str) -> Optional[DelegationRecord]:
    """Parse one feed line, or return None if the line is to be skipped."""
    if not line or line.startswith("#"):
        return None
    parts = line.strip().split("|")
    if len(parts) < MIN_FIELDS:
        return None
    registry, cc, kind, start, value, date, status = parts[:MIN_FIELDS]
    return DelegationRecord(
        registry=registry,
        country_code=cc,
        kind=RecordKind.parse(kind),
        start=start,
        value=value,
        date=date,
        status=status,
    )


def expand_asn_record(record: DelegationRecord) -> List[AsnCountry]:
    """
    One entry per ASN in ``[start, start + value)``.

    Wildcard-country records, non-numeric fields and empty or negative
    blocks expand to nothing.
    """
    if record.kind is not RecordKind.ASN or record.is_wildcard:
        return []
    try:
        first = int(record.start)
        count = int(record.value)
    except ValueError:
        return []
    if first < 0 or count <= 0:
        return []
    return [AsnCountry(asn=asn, country_code=record.country_code)
            for asn in range(first, first + count)]


@dataclass
class DelegationTables:
    """Result of parsing one or more feeds, in processing order."""

    asn_countries: List[AsnCountry] = field(default_factory=list)
    delegated: List[DelegatedPrefix] = field(default_factory=list)
    lines_read: int = 0
    lines_skipped: int = 0
    blocks_dropped: int = 0     # ipv4/ipv6 blocks with no single CIDR

    def extend(self, other: "DelegationTables") -> None:
        self.asn_countries.extend(other.asn_countries)
        self.delegated.extend(other.delegated)
        self.lines_read += other.lines_read
        self.lines_skipped += other.lines_skipped
        self.blocks_dropped += other.blocks_dropped


def parse_delegation_lines(lines: Iterable[str]) -> DelegationTables:
    tables = DelegationTables()
    for line in lines:
        tables.lines_read += 1
        record = parse_delegation_line(line)
        if record is None:
            tables.lines_skipped += 1
            continue
        if record.is_wildcard:
            continue
        if record.kind is RecordKind.ASN:
            tables.asn_countries.extend(expand_asn_record(record))
        elif record.kind in (RecordKind.IPV4, RecordKind.IPV6):
            row = delegated_prefix(record)
            if row is None:
                tables.blocks_dropped += 1
            else:
                tables.delegated.append(row)
    return tables


class DelegationSource:
    """A single delegation feed file on disk."""

    def __init__(self, path: PathLike):
        self.path = Path(path)

    def parse(self) -> DelegationTables:
        log.info("Processing %s", self.path)
        tables = parse_delegation_lines(iter_lines(self.path))
        log.debug(
            "%s: %d lines, %d skipped, %d ASN entries, %d prefixes, "
            "%d non-power-of-two blocks dropped",
            self.path.name,
            tables.lines_read,
            tables.lines_skipped,
            len(tables.asn_countries),
            len(tables.delegated),
            tables.blocks_dropped,
        )
        return tables


def parse_delegation_files(paths: Sequence[PathLike]) -> DelegationTables:
    """
    Parse feeds one after another and concatenate their tables.

    Later feeds never override earlier ones. Entries are kept in the order
    of ``paths``; the written ASN table is re-sorted, so feed order does not
    decide which country a repeated ASN resolves to.
    """
    combined = DelegationTables()
    for path in paths:
        combined.extend(DelegationSource(path).parse())

    if not combined.asn_countries:
        log.warning("No ASN->country entries parsed from %d feed(s)", len(paths))
    return combined
