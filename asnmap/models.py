# asnmap/models.py
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

WILDCARD_COUNTRY = "*"
UNKNOWN_COUNTRY = "Unknown"


class RecordKind(str, Enum):
    ASN = "asn"
    IPV4 = "ipv4"
    IPV6 = "ipv6"
    OTHER = "other"

    @classmethod
    def parse(cls, value: str) -> "RecordKind":
        try:
            return cls(value.strip().lower())
        except ValueError:
            return cls.OTHER


@dataclass(frozen=True)
class DelegationRecord:
    registry: str           # "arin", "ripencc", ...
    country_code: str       # "US", or "*" for reserved/available space
    kind: RecordKind
    start: str              # first ASN, or dotted/hex start address
    value: str              # block size as published (may not fit 64 bits)
    date: str
    status: str             # "allocated", "assigned", ...

    @property
    def is_wildcard(self) -> bool:
        return self.country_code == WILDCARD_COUNTRY


@dataclass(frozen=True)
class AsnCountry:
    asn: int
    country_code: str


@dataclass(frozen=True)
class DelegatedPrefix:
    prefix: str             # "192.0.2.0/24"
    country_code: str


@dataclass(frozen=True)
class Announcement:
    prefix: str
    origin_asn: Optional[int]   # last hop of the AS path; None for an AS_SET
    origin: str = field(default="", compare=False)     # last hop as written

    def __post_init__(self):
        if not self.origin and self.origin_asn is not None:
            object.__setattr__(self, "origin", str(self.origin_asn))


@dataclass(frozen=True)
class PrefixCountry:
    prefix: str
    country_code: str       # or UNKNOWN_COUNTRY
