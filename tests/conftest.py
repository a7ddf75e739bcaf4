import logging
from pathlib import Path

import pytest

ARIN_FEED = """\
2|arin|20240101|6|19830705|20240101|-0500
arin|*|asn|*|3|summary
arin|*|ipv4|*|2|summary
# comment line
arin|US|asn|64500|1|20100101|allocated|abc123
arin|US|asn|64510|3|20100101|assigned|abc124
arin|US|ipv4|192.0.2.0|256|20100101|allocated|abc125
arin|CA|ipv4|198.51.100.0|100|20100101|allocated|abc126
arin|*|ipv4|10.0.0.0|65536|20240101|reserved|
arin|US|ipv6|2001:db8::|79228162514264337593543950336|20100101|allocated|abc127
arin|US|asn|broken
"""

RIPE_FEED = """\
2|ripencc|20240101|4|19830705|20240101|+0100
ripencc|*|asn|*|2|summary
ripencc|DE|asn|64500|1|20100101|allocated
ripencc|NL|asn|64520|2|20100101|allocated
ripencc|NL|ipv4|203.0.113.0|128|20100101|allocated
ripencc|*|asn|64600|10|20240101|available
"""

RIB_DUMP = """\
TABLE_DUMP2|1704067200|B|187.16.216.23|263075|192.0.2.0/24|263075 64500|IGP|187.16.216.23|0|0||NAG||
TABLE_DUMP2|1704067200|B|187.16.216.23|263075|198.51.100.0/24|263075 64520 64520|IGP|187.16.216.23|0|0||NAG||
TABLE_DUMP2|1704067200|B|187.16.216.23|263075|198.51.100.0/24|263075 64511|IGP|187.16.216.23|0|0||NAG||
TABLE_DUMP2|1704067200|B|187.16.216.23|263075|203.0.113.0/24|263075 64999|IGP|187.16.216.23|0|0||NAG||
TABLE_DUMP2|1704067200|B|187.16.216.23|263075|203.0.113.128/25|263075 {64500,64501}|IGP|187.16.216.23|0|0||NAG||
BGP4MP|1704067200|A|187.16.216.23|263075|100.64.0.0/10|263075 64500|IGP
TABLE_DUMP2|1704067200|B
"""


@pytest.fixture(autouse=True)
def _reset_asnmap_logging():
    yield
    root = logging.getLogger("asnmap")
    for handler in list(root.handlers):
        if getattr(handler, "_asnmap", False):
            root.removeHandler(handler)


@pytest.fixture
def arin_feed(tmp_path: Path) -> Path:
    p = tmp_path / "delegated-arin-extended-20240101"
    p.write_text(ARIN_FEED)
    return p


@pytest.fixture
def ripe_feed(tmp_path: Path) -> Path:
    p = tmp_path / "delegated-ripencc-extended-20240101"
    p.write_text(RIPE_FEED)
    return p


@pytest.fixture
def rib_dump(tmp_path: Path) -> Path:
    p = tmp_path / "bgp.out"
    p.write_text(RIB_DUMP)
    return p
