from __future__ import annotations

import sys
from enum import Enum
from pathlib import Path
from typing import List, NoReturn, Optional

import typer

from asnmap.errors import AsnmapError
from asnmap.fetch.registries import REGISTRIES
from asnmap.pipeline import (
    ASN2COUNTRY,
    DELEGATED_PREFIX_COUNTRY,
    PREFIX2ASN,
    PREFIX2COUNTRY,
    BuildConfig,
    build,
    build_asn_table,
    build_delegated_table,
    build_prefix_asn_table,
    build_prefix_country_table,
)
from asnmap.processing.normalize import normalize_file
from asnmap.utils.logging import configure_logging, get_logger

app = typer.Typer(help="Offline ASN -> country and prefix -> country tables from RIR feeds and RIB dumps.")

log = get_logger(__name__)


class TableKind(str, Enum):
    asn = "asn"
    prefix = "prefix"


def _fail(err: AsnmapError) -> NoReturn:
    typer.echo(f"Error: {err}", err=True)
    raise typer.Exit(code=1)


@app.callback()
def _main(
        verbose: bool = typer.Option(
            False,
            "--verbose",
            "-v",
            help="Log debug detail (skipped lines, per-feed counts).",
        ),
):
    configure_logging(verbose)


@app.command("build")
def build_cmd(
        date: Optional[str] = typer.Option(
            None,
            "--date",
            "-d",
            envvar="RIR_DATE",
            help="Snapshot date YYYYMMDD (default: yesterday, UTC).",
        ),
        latest: bool = typer.Option(
            False,
            "--latest/--dated",
            envvar="ASNMAP_LATEST",
            help="Use the -latest registry feeds instead of the dated ones. The RIB is always dated.",
        ),
        workdir: Path = typer.Option(
            Path("."),
            "--workdir",
            "-w",
            envvar="ASNMAP_WORKDIR",
            help="Directory for downloads, intermediates and outputs.",
        ),
        registry: Optional[List[str]] = typer.Option(
            None,
            "--registry",
            "-r",
            help="Restrict to these registries (afrinic, apnic, arin, lacnic, ripencc). Repeatable.",
        ),
        compress: bool = typer.Option(
            False,
            "--compress/--no-compress",
            help="bzip2 the output tables after building them.",
        ),
        bgpdump: str = typer.Option(
            "bgpdump",
            "--bgpdump",
            envvar="ASNMAP_BGPDUMP",
            help="bgpdump executable used to decode the RIB snapshot.",
        ),
):
    """
    Download sources and build all four tables.

    Example:

        asnmap build --date 20250110 --workdir data/
        RIR_DATE=20250110 asnmap build --latest --compress
    """
    for name in registry or []:
        if name not in REGISTRIES:
            raise typer.BadParameter(f"Unsupported registry: {name}", param_hint="--registry")

    config = BuildConfig(
        snapshot_date=date,
        latest=latest,
        workdir=workdir.expanduser().resolve(),
        registries=registry or None,
        compress=compress,
        bgpdump=bgpdump,
    )
    try:
        result = build(config)
    except AsnmapError as e:
        _fail(e)

    log.info("Build for %s finished", result.snapshot_date)
    typer.echo("All done! Key outputs:")
    for name, path in result.outputs.items():
        rows = result.rows.get(name.removesuffix(".bz2"))
        suffix = f" ({rows} rows)" if rows is not None else ""
        typer.echo(f"  - {path}{suffix}")


@app.command("parse-rir")
def parse_rir_cmd(
        feeds: List[Path] = typer.Argument(
            ...,
            exists=True,
            dir_okay=False,
            help="Delegation feed files, parsed in the order given.",
        ),
        output: Path = typer.Option(
            Path(ASN2COUNTRY),
            "--output",
            "-o",
            help="ASN -> country output file.",
        ),
        delegated_output: Optional[Path] = typer.Option(
            None,
            "--delegated-output",
            help=f"Also write power-of-two delegations here (e.g. {DELEGATED_PREFIX_COUNTRY}).",
        ),
):
    """Parse registry delegation feeds into the ASN -> country table."""
    tables = build_asn_table(feeds, output)
    typer.echo(f"Wrote ASN->Country mappings to {output}")
    if delegated_output is not None:
        n = build_delegated_table(tables, delegated_output)
        if n:
            typer.echo(f"Wrote {n} delegated prefixes to {delegated_output}")


@app.command("parse-rib")
def parse_rib_cmd(
        dump: Path = typer.Argument(
            ...,
            exists=True,
            dir_okay=False,
            help="Text output of `bgpdump -v -m`.",
        ),
        output: Path = typer.Option(
            Path(PREFIX2ASN),
            "--output",
            "-o",
            help="Prefix -> origin ASN output file.",
        ),
):
    """Extract (prefix, origin ASN) pairs from a decoded RIB dump."""
    n = build_prefix_asn_table(dump, output)
    typer.echo(f"Wrote {n} prefix->ASN mappings to {output}")


@app.command("join")
def join_cmd(
        asn_table: Path = typer.Option(
            Path(ASN2COUNTRY),
            "--asn-table",
            help="ASN -> country table; a repeated ASN resolves to its lowest country code.",
        ),
        announcements: Path = typer.Option(
            Path(PREFIX2ASN),
            "--announcements",
            help="Prefix -> origin ASN table.",
        ),
        output: Path = typer.Option(
            Path(PREFIX2COUNTRY),
            "--output",
            "-o",
            help="Prefix -> country output file.",
        ),
):
    """Join prefix -> ASN with ASN -> country; unknown ASNs map to "Unknown"."""
    try:
        n = build_prefix_country_table(asn_table, announcements, output)
    except AsnmapError as e:
        _fail(e)
    typer.echo(f"Wrote {n} prefix->Country mappings to {output}")


@app.command("normalize")
def normalize_cmd(
        table: Path = typer.Argument(..., exists=True, dir_okay=False),
        kind: TableKind = typer.Option(
            ...,
            "--kind",
            "-k",
            help="asn: numeric sort by ASN | prefix: lexicographic sort",
        ),
):
    """Sort and deduplicate a table file in place."""
    normalize_file(table, kind.value)
    typer.echo(f"Normalized {table}")


def main() -> None:
    """Entry point for console_scripts."""
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Interrupted by user.", err=True)
        sys.exit(130)


if __name__ == "__main__":
    main()
