# asnmap/processing/normalize.py

from __future__ import annotations

from pathlib import Path
from typing import Iterable, Literal, Tuple

import pandas as pd

from asnmap.datasources.base import PathLike, records_to_dataframe
from asnmap.models import AsnCountry, PrefixCountry
from asnmap.utils.logging import get_logger

log = get_logger(__name__)

TableKind = Literal["asn", "prefix"]

ASN_COLUMNS = ["asn", "country_code"]
PREFIX_COLUMNS = ["prefix", "country_code"]


def asn_frame(entries: Iterable[AsnCountry]) -> pd.DataFrame:
    return records_to_dataframe(entries, AsnCountry)


def prefix_frame(rows: Iterable) -> pd.DataFrame:
    """Frame for any (prefix, country_code) records."""
    df = records_to_dataframe(rows, PrefixCountry)
    return df[PREFIX_COLUMNS]


def pairs_frame(pairs: Iterable[Tuple[str, str]]) -> pd.DataFrame:
    """Frame for (prefix, country_code) tuples, e.g. the distinct join output."""
    return pd.DataFrame(sorted(pairs), columns=PREFIX_COLUMNS)


def normalize_asn_table(df: pd.DataFrame) -> pd.DataFrame:
    """
    Sort numerically by ASN and drop exact (asn, country) duplicates.

    An ASN listed with two different countries keeps both rows.
    """
    out = df[ASN_COLUMNS].astype({"asn": "int64", "country_code": str})
    out = out.sort_values(ASN_COLUMNS, kind="mergesort")
    out = out.drop_duplicates(ignore_index=True)
    log.debug("ASN table: %d rows -> %d after dedup", len(df), len(out))
    return out


def normalize_prefix_table(df: pd.DataFrame) -> pd.DataFrame:
    """
    Sort lexicographically and drop exact duplicate rows.

    Same ordering as ``sort -u`` in the C locale: ordering by the two
    columns equals ordering by the joined line, because the separator
    sorts before every character a prefix can contain.
    """
    out = df[PREFIX_COLUMNS].astype(str)
    out = out.sort_values(PREFIX_COLUMNS, kind="mergesort")
    out = out.drop_duplicates(ignore_index=True)
    log.debug("Prefix table: %d rows -> %d after dedup", len(df), len(out))
    return out


def normalize_dataframe(df: pd.DataFrame, kind: TableKind) -> pd.DataFrame:
    if kind == "asn":
        return normalize_asn_table(df)
    if kind == "prefix":
        return normalize_prefix_table(df)
    raise ValueError(f"Unsupported table kind: {kind}")


def write_table(df: pd.DataFrame, path: PathLike) -> Path:
    """Write a table as space-separated lines, no header."""
    out_path = Path(path)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    df.to_csv(out_path, sep=" ", header=False, index=False, lineterminator="\n")
    log.info("Wrote %d rows to %s", len(df), out_path)
    return out_path


def read_table(path: PathLike, kind: TableKind) -> pd.DataFrame:
    """
    Read a space-separated table written by :func:`write_table`.

    Rows with the wrong number of fields are skipped. Country codes are
    kept as text ("NA" is Namibia, not a missing value).
    """
    in_path = Path(path)
    columns = ASN_COLUMNS if kind == "asn" else PREFIX_COLUMNS
    if in_path.stat().st_size == 0:
        return pd.DataFrame(columns=columns)

    df = pd.read_csv(
        in_path,
        sep=" ",
        header=None,
        names=columns,
        dtype=str,
        keep_default_na=False,
        on_bad_lines="skip",
    )
    if kind == "asn":
        numeric = pd.to_numeric(df["asn"], errors="coerce")
        df = df[numeric.notna()].copy()
        df["asn"] = numeric[numeric.notna()].astype("int64")
    return df.reset_index(drop=True)


def normalize_file(path: PathLike, kind: TableKind) -> Path:
    """Normalize a table file in place."""
    df = read_table(path, kind)
    return write_table(normalize_dataframe(df, kind), path)
