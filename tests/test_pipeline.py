import bz2
import warnings
from pathlib import Path
from unittest import mock

import pytest
from typer.testing import CliRunner

import asnmap.pipeline
from asnmap.cli import app
from asnmap.errors import EmptyInputError
from asnmap.pipeline import (
    ASN2COUNTRY,
    DELEGATED_PREFIX_COUNTRY,
    PREFIX2ASN,
    PREFIX2COUNTRY,
    BuildConfig,
    build,
    build_asn_table,
    build_delegated_table,
    build_prefix_country_table,
)

DATE = "20240101"

runner = CliRunner()


@pytest.fixture
def workdir(tmp_path, arin_feed, ripe_feed, rib_dump):
    """A working directory where every source is already cached."""
    (tmp_path / f"rib.{DATE}.0000").write_bytes(b"\x00mrt")
    return tmp_path


def _config(workdir, **kw):
    return BuildConfig(snapshot_date=DATE, workdir=workdir, registries=["ripencc", "arin"], **kw)


def test_full_build(workdir):
    session = mock.MagicMock()
    result = build(_config(workdir), session=session)
    session.get.assert_not_called()

    assert result.snapshot_date == DATE
    assert (workdir / ASN2COUNTRY).read_text().splitlines() == [
        "64500 DE",
        "64500 US",
        "64510 US",
        "64511 US",
        "64512 US",
        "64520 NL",
        "64521 NL",
    ]
    assert (workdir / PREFIX2ASN).read_text().splitlines() == [
        "192.0.2.0/24 64500",
        "198.51.100.0/24 64520",
        "198.51.100.0/24 64511",
        "203.0.113.0/24 64999",
        "203.0.113.128/25 {64500,64501}",
    ]
    # AS64500 is listed by arin (US) and ripencc (DE); the lowest code wins
    assert (workdir / PREFIX2COUNTRY).read_text().splitlines() == [
        "192.0.2.0/24 DE",
        "198.51.100.0/24 NL",
        "198.51.100.0/24 US",
        "203.0.113.0/24 Unknown",
        "203.0.113.128/25 Unknown",
    ]
    assert (workdir / DELEGATED_PREFIX_COUNTRY).read_text().splitlines() == [
        "192.0.2.0/24 US",
        "2001:db8::/32 US",
        "203.0.113.0/25 NL",
    ]
    assert result.rows == {
        ASN2COUNTRY: 7,
        PREFIX2ASN: 5,
        PREFIX2COUNTRY: 5,
        DELEGATED_PREFIX_COUNTRY: 3,
    }
    assert set(result.outputs) == {ASN2COUNTRY, PREFIX2ASN, PREFIX2COUNTRY, DELEGATED_PREFIX_COUNTRY}


def test_build_compresses_outputs(workdir):
    (workdir / f"{ASN2COUNTRY}.bz2").write_bytes(b"stale")
    result = build(_config(workdir, compress=True), session=mock.MagicMock())
    assert set(result.outputs) == {
        f"{ASN2COUNTRY}.bz2",
        f"{PREFIX2ASN}.bz2",
        f"{PREFIX2COUNTRY}.bz2",
        f"{DELEGATED_PREFIX_COUNTRY}.bz2",
    }
    assert not (workdir / ASN2COUNTRY).exists()
    with bz2.open(workdir / f"{ASN2COUNTRY}.bz2", "rt") as f:
        assert f.readline() == "64500 DE\n"


def test_build_aborts_without_asn_data(workdir):
    (workdir / f"delegated-arin-extended-{DATE}").write_text("# empty\n")
    (workdir / f"delegated-ripencc-extended-{DATE}").write_text("ripencc|*|asn|*|0|summary\n")
    with pytest.raises(EmptyInputError):
        build(_config(workdir), session=mock.MagicMock())
    assert (workdir / ASN2COUNTRY).read_text() == ""
    assert not (workdir / PREFIX2COUNTRY).exists()


def test_delegated_table_not_written_when_empty(tmp_path, arin_feed):
    out = tmp_path / DELEGATED_PREFIX_COUNTRY
    out.write_text("stale 00\n")
    tables = build_asn_table([arin_feed], tmp_path / ASN2COUNTRY)
    tables.delegated.clear()
    assert build_delegated_table(tables, out) == 0
    assert not out.exists()


def test_build_matches_standalone_join(workdir, tmp_path_factory):
    build(_config(workdir), session=mock.MagicMock())
    out = tmp_path_factory.mktemp("join") / PREFIX2COUNTRY
    result = runner.invoke(app, [
        "join",
        "--asn-table", str(workdir / ASN2COUNTRY),
        "--announcements", str(workdir / PREFIX2ASN),
        "-o", str(out),
    ])
    assert result.exit_code == 0, result.output
    assert out.read_text() == (workdir / PREFIX2COUNTRY).read_text()


def test_scenario_known_and_unknown_asn(tmp_path):
    asn = tmp_path / ASN2COUNTRY
    asn.write_text("64500 US\n")
    ann = tmp_path / PREFIX2ASN
    ann.write_text("203.0.113.0/24 64999\n198.51.100.0/24 64500\n")
    out = tmp_path / PREFIX2COUNTRY
    assert build_prefix_country_table(asn, ann, out) == 2
    assert out.read_text() == "198.51.100.0/24 US\n203.0.113.0/24 Unknown\n"


def test_module_compiles_without_escape_warnings():
    source = Path(asnmap.pipeline.__file__).read_text()
    with warnings.catch_warnings():
        warnings.simplefilter("error")
        compile(source, asnmap.pipeline.__file__, "exec")
