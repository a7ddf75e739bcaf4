from asnmap.datasources.rib import (
    ExtractStats,
    RibDumpSource,
    iter_announcements,
    parse_rib_line,
    read_announcements,
    write_announcements,
)
from asnmap.models import Announcement

LINE = "TABLE_DUMP2|1704067200|B|187.16.216.23|263075|1.0.0.0/24|263075 13335|IGP|187.16.216.23|0|0||NAG||"


def test_origin_is_last_path_hop():
    assert parse_rib_line(LINE) == Announcement("1.0.0.0/24", 13335)


def test_peer_as_column_is_not_the_origin():
    # peer AS 65001 sits in field 4; the path in field 6 ends in 13335
    line = "TABLE_DUMP2|1704067200|B|10.0.0.1|65001|1.0.0.0/24|174 3356 13335|IGP|10.0.0.1|0|0||NAG||"
    ann = parse_rib_line(line)
    assert ann.prefix == "1.0.0.0/24"
    assert ann.origin_asn == 13335


def test_prepending_is_taken_as_is():
    line = "TABLE_DUMP2|1|B|10.0.0.1|65001|2001:db8::/32|65001 64500 64501 64501 64501|IGP"
    assert parse_rib_line(line) == Announcement("2001:db8::/32", 64501)


def test_other_record_types_ignored():
    assert parse_rib_line("TABLE_DUMP|1|B|10.0.0.1|65001|1.0.0.0/24|65001 13335|IGP") is None
    assert parse_rib_line("BGP4MP|1|A|10.0.0.1|65001|1.0.0.0/24|65001 13335|IGP") is None
    assert parse_rib_line("TABLE_DUMP2X|1|B|10.0.0.1|65001|1.0.0.0/24|65001 13335|IGP") is None


def test_malformed_lines_skipped():
    assert parse_rib_line("TABLE_DUMP2|1|B") is None
    assert parse_rib_line("TABLE_DUMP2|1|B|10.0.0.1|65001|1.0.0.0/24") is None
    assert parse_rib_line("TABLE_DUMP2|1|B|10.0.0.1|65001|1.0.0.0/24||IGP") is None
    assert parse_rib_line("TABLE_DUMP2|1|B|10.0.0.1|65001||65001|IGP") is None


def test_as_set_origin_kept_without_asn():
    ann = parse_rib_line("TABLE_DUMP2|1|B|10.0.0.1|65001|1.0.0.0/24|65001 {64500,64501}|IGP")
    assert ann == Announcement("1.0.0.0/24", None)
    assert ann.origin == "{64500,64501}"


def test_moas_lines_all_emitted(rib_dump):
    stats = ExtractStats()
    with open(rib_dump) as f:
        anns = list(iter_announcements((l.rstrip("\n") for l in f), stats))
    assert [a for a in anns if a.prefix == "198.51.100.0/24"] == [
        Announcement("198.51.100.0/24", 64520),
        Announcement("198.51.100.0/24", 64511),
    ]
    assert stats.announcements == 5
    assert stats.unresolvable == 1
    assert stats.malformed == 1
    assert stats.lines_read == 7


def test_source_stats_reset_per_pass(rib_dump):
    source = RibDumpSource(rib_dump)
    list(source.iter_records())
    list(source.iter_records())
    assert source.stats.lines_read == 7
    assert source.stats.announcements == 5


def test_prefix_asn_file_round_trip(tmp_path, rib_dump):
    out = tmp_path / "prefix2asn.txt"
    source = RibDumpSource(rib_dump)
    assert write_announcements(source.iter_records(), out) == 5
    lines = out.read_text().splitlines()
    assert lines[0] == "192.0.2.0/24 64500"
    assert lines[-1] == "203.0.113.128/25 {64500,64501}"

    back = list(read_announcements(out))
    assert back == list(RibDumpSource(rib_dump).iter_records())
    assert back[-1].origin_asn is None
    assert back[-1].origin == "{64500,64501}"
