# asnmap/processing/join.py
"""
Prefix -> country join.

The ASN table is loaded into a dict first; announcements are then streamed
against it one at a time and only the distinct (prefix, country) pairs are
kept, so peak memory follows the ASN table and the output rather than the
(much larger) routing table.
"""

from __future__ import annotations

from pathlib import Path
from typing import Dict, Iterable, Iterator, Set, Tuple, Union

import pandas as pd

from asnmap.datasources.base import PathLike
from asnmap.datasources.rib import read_announcements
from asnmap.errors import EmptyInputError
from asnmap.models import UNKNOWN_COUNTRY, Announcement, AsnCountry, PrefixCountry
from asnmap.processing.normalize import read_table
from asnmap.utils.logging import get_logger

log = get_logger(__name__)

AsnTable = Union[Iterable[AsnCountry], pd.DataFrame]
PrefixCountryPairs = Set[Tuple[str, str]]


def build_asn_lookup(table: AsnTable) -> Dict[int, str]:
    """
    Map ASN -> country, first entry wins.

    When an ASN appears with more than one country, the country from the
    entry that comes first in ``table`` is kept; later ones are counted and
    ignored. For the normalized ASN table (sorted by ASN, then country)
    that is the lowest country code.
    """
    if isinstance(table, pd.DataFrame):
        pairs = zip(table["asn"].astype("int64").tolist(), table["country_code"].tolist())
    else:
        pairs = ((e.asn, e.country_code) for e in table)

    lookup: Dict[int, str] = {}
    conflicts = 0
    for asn, cc in pairs:
        seen = lookup.get(asn)
        if seen is None:
            lookup[asn] = cc
        elif seen != cc:
            conflicts += 1

    if conflicts:
        log.info("%d ASN entries disagree with an earlier country; first kept", conflicts)
    return lookup


def join_announcements(lookup: Dict[int, str], announcements: Iterable[Announcement]) -> Iterator[PrefixCountry]:
    """One row per announcement; unknown or unresolvable origins become "Unknown"."""
    for ann in announcements:
        cc = lookup.get(ann.origin_asn) if ann.origin_asn is not None else None
        yield PrefixCountry(prefix=ann.prefix, country_code=cc or UNKNOWN_COUNTRY)


def _require_rows(path: Path, what: str) -> None:
    if not path.exists() or path.stat().st_size == 0:
        log.error("%s %s missing or empty.", what, path)
        raise EmptyInputError(f"{what} {path} missing or empty")


def join_prefix_countries(asn_table: AsnTable, announcements_path: PathLike) -> PrefixCountryPairs:
    """
    Join an ASN->country table with a prefix->ASN file.

    Returns the distinct (prefix, country) pairs. Both inputs must have
    content; an empty join input aborts the stage rather than producing an
    all-"Unknown" table.
    """
    ann_path = Path(announcements_path)
    _require_rows(ann_path, "Prefix->ASN table")

    lookup = build_asn_lookup(asn_table)
    if not lookup:
        log.error("ASN->country table is empty.")
        raise EmptyInputError("ASN->country table is empty")

    pairs: PrefixCountryPairs = set()
    joined = unknown = 0
    for row in join_announcements(lookup, read_announcements(ann_path)):
        joined += 1
        if row.country_code == UNKNOWN_COUNTRY:
            unknown += 1
        pairs.add((row.prefix, row.country_code))

    log.info(
        "Joined %d announcements against %d ASNs (%d unresolved, %d distinct rows)",
        joined,
        len(lookup),
        unknown,
        len(pairs),
    )
    return pairs


def join_files(asn_table_path: PathLike, announcements_path: PathLike) -> PrefixCountryPairs:
    """Same as :func:`join_prefix_countries`, with the ASN table read from a file."""
    asn_path = Path(asn_table_path)
    _require_rows(Path(announcements_path), "Prefix->ASN table")
    _require_rows(asn_path, "ASN->country table")
    return join_prefix_countries(read_table(asn_path, "asn"), announcements_path)
