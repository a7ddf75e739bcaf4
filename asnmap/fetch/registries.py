# asnmap/fetch/registries.py
"""Where the registry feeds and RouteViews RIB snapshots live."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

from asnmap.utils.date_detection import split_date


@dataclass(frozen=True)
class SourceFile:
    url: str
    filename: str           # name as downloaded
    text_name: str          # name once decompressed (== filename if plain text)

    @property
    def is_archive(self) -> bool:
        return self.filename != self.text_name


@dataclass(frozen=True)
class RegistryFeed:
    name: str
    dated_url: str          # formatted with year, date
    latest_url: str
    dated_suffix: str = ""  # archive suffix of the dated file, if any

    def source(self, snapshot: Optional[str], latest: bool = False) -> SourceFile:
        if latest or not snapshot:
            url = self.latest_url
            return SourceFile(url=url, filename=url.rsplit("/", 1)[-1], text_name=url.rsplit("/", 1)[-1])

        year, _, _ = split_date(snapshot)
        url = self.dated_url.format(year=year, date=snapshot) + self.dated_suffix
        filename = url.rsplit("/", 1)[-1]
        text_name = filename[: -len(self.dated_suffix)] if self.dated_suffix else filename
        return SourceFile(url=url, filename=filename, text_name=text_name)


REGISTRIES: Dict[str, RegistryFeed] = {
    "afrinic": RegistryFeed(
        name="afrinic",
        dated_url="https://ftp.afrinic.net/pub/stats/afrinic/{year}/delegated-afrinic-extended-{date}",
        latest_url="https://ftp.afrinic.net/pub/stats/afrinic/delegated-afrinic-extended-latest",
    ),
    "apnic": RegistryFeed(
        name="apnic",
        dated_url="https://ftp.apnic.net/apnic/stats/apnic/{year}/delegated-apnic-extended-{date}",
        latest_url="https://ftp.apnic.net/apnic/stats/apnic/delegated-apnic-extended-latest",
        dated_suffix=".gz",
    ),
    "arin": RegistryFeed(
        name="arin",
        dated_url="https://ftp.arin.net/pub/stats/arin/delegated-arin-extended-{date}",
        latest_url="https://ftp.arin.net/pub/stats/arin/delegated-arin-extended-latest",
    ),
    "lacnic": RegistryFeed(
        name="lacnic",
        dated_url="https://ftp.lacnic.net/pub/stats/lacnic/delegated-lacnic-extended-{date}",
        latest_url="https://ftp.lacnic.net/pub/stats/lacnic/delegated-lacnic-extended-latest",
    ),
    "ripencc": RegistryFeed(
        name="ripencc",
        dated_url="https://ftp.ripe.net/ripe/stats/{year}/delegated-ripencc-extended-{date}",
        latest_url="https://ftp.ripe.net/ripe/stats/delegated-ripencc-extended-latest",
        dated_suffix=".bz2",
    ),
}

RIB_URL = "http://routeviews.org/bgpdata/{year}.{month}/RIBS/rib.{date}.0000.bz2"


def registry_sources(snapshot: Optional[str], latest: bool = False,
                     names: Optional[Sequence[str]] = None) -> List[SourceFile]:
    """
    Feed files to fetch, ordered by registry name.

    The order matters: it is the order feeds are parsed in, and therefore
    which registry's country wins when two disagree about an ASN.
    """
    selected = sorted(names) if names else sorted(REGISTRIES)
    unknown = [n for n in selected if n not in REGISTRIES]
    if unknown:
        raise ValueError(f"Unknown registry: {', '.join(unknown)}")
    return [REGISTRIES[n].source(snapshot, latest) for n in selected]


def rib_source(snapshot: str) -> SourceFile:
    """The midnight RouteViews RIB snapshot for ``snapshot`` (YYYYMMDD)."""
    year, month, _ = split_date(snapshot)
    url = RIB_URL.format(year=year, month=month, date=snapshot)
    filename = url.rsplit("/", 1)[-1]
    return SourceFile(url=url, filename=filename, text_name=filename[: -len(".bz2")])
