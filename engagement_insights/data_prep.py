"""
CSV ingestion and row normalisation for video-engagement tracking exports.

Pipeline:
  raw CSV text -> rows (header name -> text-or-number)
               -> RawRecord (fixed schema, validated columns)
               -> processed DataFrame (UTC timestamps, float counts)
"""
from __future__ import annotations

import csv
import io
import logging
import re
from dataclasses import asdict, dataclass
from typing import Any, Iterable, List, Mapping, Union

import numpy as np
import pandas as pd

logger = logging.getLogger(__name__)

# CSV header -> record field
COLUMN_MAP = {
    "Tracking Date Formatted": "tracking_date",
    "Invites": "invites",
    "Clicks": "clicks",
    "Plays": "plays",
    "Play Time (Min)": "play_time_minutes",
    "Automation Stage": "automation_stage",
    "Community": "community",
}
REQUIRED_COLUMNS = tuple(COLUMN_MAP)
RECORD_FIELDS = tuple(COLUMN_MAP.values())
NUMERIC_FIELDS = ("invites", "clicks", "plays", "play_time_minutes")

UNKNOWN_MONTH = "unknown"

_INVISIBLE_RX = re.compile(r"[\u200b\u200e\ufeff]")
# plain decimal / exponent notation only: no "1_000", "nan", "inf", "0x1f"
_NUMBER_RX = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")


class MissingColumnsError(ValueError):
    """Raised when the header row lacks one or more required columns."""

    def __init__(self, missing: List[str], found: Iterable[str] = ()):
        self.missing = sorted(missing)
        self.found = list(found)
        super().__init__(
            f"CSV is missing required columns: {self.missing}. Found: {self.found}"
        )


@dataclass(frozen=True)
class RawRecord:
    tracking_date: Any
    invites: Any
    clicks: Any
    plays: Any
    play_time_minutes: Any
    automation_stage: Any
    community: Any

    @classmethod
    def from_mapping(cls, row: Mapping[str, Any]) -> "RawRecord":
        """Build a record from a header-indexed row; extra keys are ignored."""
        validate_columns(row.keys())
        return cls(**{field: row[col] for col, field in COLUMN_MAP.items()})


@dataclass(frozen=True)
class ProcessedRecord:
    tracking_date: pd.Timestamp  # UTC, NaT when unparsable
    invites: float
    clicks: float
    plays: float
    play_time_minutes: float
    automation_stage: str
    community: str


def validate_columns(columns: Iterable[str]) -> None:
    columns = list(columns)
    present = set(columns)
    missing = [c for c in REQUIRED_COLUMNS if c not in present]
    if missing:
        raise MissingColumnsError(missing, found=columns)


def _clean_text(s: Any) -> str:
    s = _INVISIBLE_RX.sub("", str(s))
    return s.strip().strip('"').strip()


def coerce_field(value: Any) -> Union[int, float, str]:
    """
    Return a number when the whole field parses as one, else the text unchanged.
    Empty fields stay as "".
    """
    if not isinstance(value, str):
        return value
    if not _NUMBER_RX.fullmatch(value):
        return value
    num = float(value)
    # "1e3" and "2.0" read as whole numbers, as in the dashboard export
    return int(num) if num.is_integer() else num


def _frame_to_rows(df: pd.DataFrame) -> List[dict]:
    df = df.copy()
    df.columns = [_clean_text(c) for c in df.columns]
    df = df.fillna("").astype(str).apply(lambda col: col.map(_clean_text))
    # whitespace-only lines come through as all-blank rows
    blank = (df == "").all(axis=1)
    df = df.loc[~blank]
    return [
        {k: coerce_field(v) for k, v in row.items()}
        for row in df.to_dict(orient="records")
    ]


def read_csv_text(text: str) -> List[dict]:
    """
    Parse CSV text into rows keyed by header name.
    Quoted fields follow the standard CSV grammar (embedded commas are kept).
    """
    n_headers = len(next(csv.reader(io.StringIO(text)), []))
    truncated = []

    def _truncate(fields: List[str]) -> List[str]:
        # extra trailing fields are dropped; values stay zipped by position
        truncated.append(len(fields))
        return fields[:n_headers]

    df = pd.read_csv(
        io.StringIO(text),
        dtype=str,
        keep_default_na=False,
        skip_blank_lines=True,
        skipinitialspace=True,
        index_col=False,
        engine="python",
        on_bad_lines=_truncate,
    )
    if truncated:
        logger.warning(
            "%d row(s) had more than %d fields; extra values ignored", len(truncated), n_headers
        )
    rows = _frame_to_rows(df)
    logger.debug("Parsed %d rows with headers %s", len(rows), list(df.columns))
    return rows


def load_csv(path: str) -> List[dict]:
    with open(path, "r", encoding="utf-8-sig") as f:
        return read_csv_text(f.read())


def to_raw_records(rows) -> List[RawRecord]:
    """
    Accept RawRecords, header-indexed mappings, or a DataFrame with CSV headers.
    Raises MissingColumnsError before building anything if a column is absent.
    """
    if isinstance(rows, pd.DataFrame):
        validate_columns(rows.columns)
        rows = rows.to_dict(orient="records")
    out = []
    for row in rows:
        if isinstance(row, RawRecord):
            out.append(row)
        else:
            out.append(RawRecord.from_mapping(row))
    return out


def preprocess(records: List[RawRecord]) -> pd.DataFrame:
    """
    Normalise raw records:
      tracking_date -> tz-aware UTC timestamp (NaT if unparsable)
      counts        -> float, 0.0 for blanks / text / non-finite values
      stage, community -> str
    """
    df = pd.DataFrame([asdict(r) for r in records], columns=list(RECORD_FIELDS))
    out = df.copy()

    ts = out["tracking_date"].astype(str).map(_clean_text)
    out["tracking_date"] = pd.to_datetime(ts, errors="coerce", utc=True, format="mixed")

    for col in NUMERIC_FIELDS:
        vals = pd.to_numeric(out[col], errors="coerce")
        out[col] = vals.replace([np.inf, -np.inf], np.nan).fillna(0.0).astype(float)

    out["automation_stage"] = out["automation_stage"].astype(str)
    out["community"] = out["community"].astype(str)
    return out


def processed_records(df: pd.DataFrame) -> List[ProcessedRecord]:
    return [ProcessedRecord(**row) for row in df[list(RECORD_FIELDS)].to_dict(orient="records")]


def month_key(ts) -> str:
    """'YYYY-MM' of a UTC timestamp; UNKNOWN_MONTH for NaT."""
    if pd.isna(ts):
        return UNKNOWN_MONTH
    return ts.strftime("%Y-%m")
