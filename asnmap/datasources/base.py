# asnmap/datasources/base.py

from __future__ import annotations

from dataclasses import asdict, fields
from pathlib import Path
from typing import Iterable, Iterator, Type, Union

import pandas as pd

PathLike = Union[str, Path]


def iter_lines(path: PathLike) -> Iterator[str]:
    """Yield lines of a text file without their trailing newline."""
    with open(path, "r", encoding="utf-8", errors="replace") as f:
        for line in f:
            yield line.rstrip("\r\n")


def records_to_dataframe(records: Iterable, record_type: Type) -> pd.DataFrame:
    """
    Build a DataFrame from dataclass records.

    The column set comes from ``record_type`` so that an empty input still
    produces a frame with the right columns.
    """
    columns = [f.name for f in fields(record_type)]
    rows = [asdict(r) for r in records]
    return pd.DataFrame(rows, columns=columns)
