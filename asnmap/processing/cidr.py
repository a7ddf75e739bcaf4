# asnmap/processing/cidr.py

from __future__ import annotations

from typing import Literal, Optional

from asnmap.models import DelegatedPrefix, DelegationRecord, RecordKind

AddressFamily = Literal["v4", "v6"]

ADDRESS_BITS = {"v4": 32, "v6": 128}

_FAMILY_BY_KIND = {RecordKind.IPV4: "v4", RecordKind.IPV6: "v6"}


def is_power_of_two(n: int) -> bool:
    return n > 0 and n & (n - 1) == 0


def _parse_block_size(text: str, family: AddressFamily) -> Optional[int]:
    """
    Parse a published block size.

    IPv6 sizes must survive a round trip through the integer parse
    (``"0256"`` or ``"1e3"`` are rejected) so that a huge or oddly written
    value never turns into a different, silently truncated, prefix.
    """
    text = text.strip()
    try:
        size = int(text)
    except ValueError:
        return None
    if family == "v6" and str(size) != text:
        return None
    return size


def prefix_length(size: int, family: AddressFamily) -> Optional[int]:
    """
    Prefix length covering exactly ``size`` addresses, or None.

    Returns None when ``size`` is not a power of two or is larger than the
    whole address space of the family.
    """
    if not is_power_of_two(size):
        return None
    bits = ADDRESS_BITS[family]
    log2 = size.bit_length() - 1
    if log2 > bits:
        return None
    return bits - log2


def derive_cidr(start: str, block_size: str, family: AddressFamily) -> Optional[str]:
    """
    Turn an allocation (start address, block size) into ``start/len``.

    Non-power-of-two blocks are not subdivided; they yield None.
    """
    size = _parse_block_size(block_size, family)
    if size is None:
        return None
    length = prefix_length(size, family)
    if length is None:
        return None
    return f"{start.strip()}/{length}"


def delegated_prefix(record: DelegationRecord) -> Optional[DelegatedPrefix]:
    """CIDR row for an ipv4/ipv6 delegation record, if it has one."""
    family = _FAMILY_BY_KIND.get(record.kind)
    if family is None or record.is_wildcard:
        return None
    prefix = derive_cidr(record.start, record.value, family)
    if prefix is None:
        return None
    return DelegatedPrefix(prefix=prefix, country_code=record.country_code)
