# asnmap/utils/date_detection.py

from __future__ import annotations

import re
from datetime import date, datetime, timedelta, timezone
from typing import Optional

import pandas as pd

from asnmap.errors import InvalidDateError
from asnmap.utils.logging import get_logger

log = get_logger(__name__)

# Accepted spellings of a snapshot day
_DATE_PATTERNS = [
    r'^\d{8}$',                     # YYYYMMDD (registry and RouteViews file names)
    r'^\d{4}-\d{2}-\d{2}$',         # YYYY-MM-DD
    r'^\d{4}/\d{2}/\d{2}$',         # YYYY/MM/DD
]


def yesterday(today: Optional[date] = None) -> str:
    """Yesterday in UTC as YYYYMMDD; registries publish the previous day's file."""
    today = today or datetime.now(timezone.utc).date()
    return (today - timedelta(days=1)).strftime("%Y%m%d")


def normalize_snapshot_date(value: str) -> str:
    """
    Validate a snapshot date and return it as YYYYMMDD.

    Raises InvalidDateError for anything that is not a real calendar day
    in one of the accepted spellings.
    """
    val = value.strip()
    if not any(re.match(p, val) for p in _DATE_PATTERNS):
        raise InvalidDateError(f"Unrecognized snapshot date: {value!r} (expected YYYYMMDD)")

    compact = re.sub(r'[-/]', '', val)
    parsed = pd.to_datetime(compact, format="%Y%m%d", errors="coerce")
    if pd.isna(parsed):
        raise InvalidDateError(f"Not a calendar date: {value!r}")
    return parsed.strftime("%Y%m%d")


def resolve_snapshot_date(value: Optional[str], today: Optional[date] = None) -> str:
    """
    The date to build for: ``value`` when given, else yesterday.
    """
    if value:
        resolved = normalize_snapshot_date(value)
        log.info("Using date: %s", resolved)
        return resolved

    resolved = yesterday(today)
    log.info("Using date: %s (yesterday)", resolved)
    return resolved


def split_date(snapshot: str) -> tuple[str, str, str]:
    """YYYYMMDD -> (YYYY, MM, DD)."""
    return snapshot[:4], snapshot[4:6], snapshot[6:8]
