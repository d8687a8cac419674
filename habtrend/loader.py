"""
Dataset loader (event table -> BloomEvent list)
===============================================

This module reads the bloom event table and converts each row into a
`BloomEvent` object.

Key ideas:
- We try multiple spellings of each column name because exports vary
  (`eventYear`, `event_year`, `Event Year` are the same column).
- Only `eventYear` is required. Coordinates and the toxin flag may be
  absent or blank; they become None.
- Years up to 1989 are dropped here, so every later stage sees the
  filtered set only.
"""

from __future__ import annotations
import csv
import logging
import math
import os
import re
from typing import List, Optional

import pandas as pd

from .errors import DataFormatError
from .models import BloomEvent

logger = logging.getLogger(__name__)

_TRUE = {"1", "true", "t", "yes", "y"}
_FALSE = {"0", "false", "f", "no", "n"}


def _norm(s: str) -> str:
    return re.sub(r"[^a-z0-9]+", "", str(s).lower())


def _find_col(df: pd.DataFrame, *names: str) -> Optional[str]:
    cols = list(df.columns)
    for n in names:
        if n in cols:
            return n
    norm_map = {_norm(c): c for c in cols}
    for n in names:
        nn = _norm(n)
        if nn in norm_map:
            return norm_map[nn]
    return None


def _to_year(x, row: int) -> int:
    """Parse a year cell; blanks and text are errors (the column is required)."""
    if pd.isna(x):
        raise DataFormatError("Missing eventYear", row=row, column="eventYear")
    try:
        v = float(x)
    except (TypeError, ValueError):
        raise DataFormatError(f"Unparseable eventYear {x!r}", row=row, column="eventYear") from None
    if not math.isfinite(v) or v != int(v):
        raise DataFormatError(f"eventYear is not a whole year: {x!r}", row=row, column="eventYear")
    return int(v)


def _to_coord(x, row: int, column: str) -> Optional[float]:
    """Convert a coordinate cell to float, returning None if blank."""
    if pd.isna(x):
        return None
    try:
        return float(x)
    except (TypeError, ValueError):
        raise DataFormatError(f"Unparseable {column} {x!r}", row=row, column=column) from None


def _to_flag(x, row: int) -> Optional[bool]:
    """Convert a 0/1 (or true/false, yes/no) cell to bool, None if blank."""
    if pd.isna(x):
        return None
    if isinstance(x, bool):
        return x
    s = str(x).strip().lower()
    if s.endswith(".0"):
        s = s[:-2]
    if s == "":
        return None
    if s in _TRUE:
        return True
    if s in _FALSE:
        return False
    raise DataFormatError(f"Unparseable seafoodToxin flag {x!r}", row=row, column="seafoodToxin")


def _delimiter(path: str, ext: str) -> str:
    """Comma for .csv, tab for .tsv; other text files are sniffed among , tab ;"""
    if ext == ".csv":
        return ","
    if ext in (".tsv", ".tab"):
        return "\t"
    with open(path, newline="", encoding="utf-8") as f:
        sample = f.read(4096)
    try:
        return csv.Sniffer().sniff(sample, delimiters=",\t;").delimiter
    except csv.Error:
        # single-column table
        return ","


def read_table(path: str) -> pd.DataFrame:
    """Read a delimited text file or an Excel export into a DataFrame."""
    ext = os.path.splitext(path)[1].lower()
    if ext in (".xlsx", ".xlsm"):
        df = pd.read_excel(path, engine="openpyxl")
    else:
        df = pd.read_csv(path, sep=_delimiter(path, ext))
    df.rename(columns={c: str(c).strip() for c in df.columns}, inplace=True)
    return df


def events_from_frame(df: pd.DataFrame, *, min_year: int = 1990) -> List[BloomEvent]:
    """Convert a raw table into BloomEvents, keeping years >= min_year."""
    year_col = _find_col(df, "eventYear", "event_year", "Event Year", "Year")
    if year_col is None:
        raise DataFormatError(
            f"Missing required column 'eventYear'. Available={list(df.columns)}",
            column="eventYear",
        )
    lat_col = _find_col(df, "latitude", "lat")
    lon_col = _find_col(df, "longitude", "lon", "long")
    tox_col = _find_col(df, "seafoodToxin", "seafood_toxin", "Seafood Toxin")

    events: List[BloomEvent] = []
    dropped = 0
    for i, values in enumerate(df.to_dict("records")):
        year = _to_year(values[year_col], i)
        if year < min_year:
            dropped += 1
            continue
        events.append(BloomEvent(
            event_id=i,
            event_year=year,
            latitude=_to_coord(values[lat_col], i, "latitude") if lat_col else None,
            longitude=_to_coord(values[lon_col], i, "longitude") if lon_col else None,
            seafood_toxin=_to_flag(values[tox_col], i) if tox_col else None,
        ))

    logger.info("Loaded %d events (%d dropped before %d)", len(events), dropped, min_year)
    return events


def load_events(path: str, *, min_year: int = 1990) -> List[BloomEvent]:
    """
    Load the bloom event table from `path`.

    Rows with eventYear < min_year (i.e. <= 1989 by default) are dropped.
    Raises DataFormatError when eventYear is absent or unparseable.
    """
    return events_from_frame(read_table(path), min_year=min_year)
