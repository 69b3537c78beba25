"""
Cell Normalization — Tagged Values for Loosely-Typed Rows

Rows arrive from an external CSV parser with values that are already
numbers where the parser could type them and strings everywhere else.
Every value is normalized exactly once, at ingestion, into a ``Cell``
tagged as number, text or missing. Downstream components branch on the
tag instead of re-checking Python types.
"""

import hashlib
import json
import logging
import math
import re
import warnings
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

import pandas as pd

logger = logging.getLogger("csvinsight.values")


class CellKind(str, Enum):
    """Tag of a normalized cell value."""
    NUMBER = "number"
    TEXT = "text"
    MISSING = "missing"


_DECIMAL_PATTERN = re.compile(r"^[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?$")
_DIGIT_PATTERN = re.compile(r"\d")
# year-first (2024-01-15, 2024/1/5) or day/month-first with a 2-4 digit year
_NUMERIC_DATE_PATTERN = re.compile(
    r"(?<!\d)(\d{4}[-/.]\d{1,2}[-/.]\d{1,2}|\d{1,2}[-/.]\d{1,2}[-/.]\d{2,4})(?!\d)"
)
_MONTH_NAME_PATTERN = re.compile(
    r"\b(jan|feb|mar|apr|may|jun|jul|aug|sep|sept|oct|nov|dec)[a-z]*\.?\b",
    re.IGNORECASE,
)


@dataclass(frozen=True)
class Cell:
    """A single normalized value. ``raw`` keeps the value as it was received."""
    kind: CellKind
    raw: Any = None
    number: Optional[float] = None
    text: Optional[str] = None

    @property
    def is_missing(self) -> bool:
        return self.kind is CellKind.MISSING

    @property
    def is_number(self) -> bool:
        return self.kind is CellKind.NUMBER

    def label(self) -> Optional[str]:
        """String form used for grouping and axis labels."""
        if self.kind is CellKind.MISSING:
            return None
        if self.kind is CellKind.NUMBER:
            if isinstance(self.raw, str):
                return self.raw
            return format_number(self.number)
        return self.text


MISSING = Cell(CellKind.MISSING)


def format_number(value: float) -> str:
    """Render a number without a trailing ``.0`` when it is integral."""
    if math.isfinite(value) and value == int(value):
        return str(int(value))
    return repr(value)


def normalize_value(value: Any) -> Cell:
    """Normalize one raw value into a tagged ``Cell``."""
    if value is None:
        return MISSING

    if isinstance(value, bool):
        return Cell(CellKind.NUMBER, raw=value, number=1.0 if value else 0.0)

    if isinstance(value, (int, float)):
        try:
            number = float(value)
        except OverflowError:
            return Cell(CellKind.TEXT, raw=value, text=str(value))
        if math.isnan(number):
            return MISSING
        if math.isinf(number):
            return Cell(CellKind.TEXT, raw=value, text=str(value))
        return Cell(CellKind.NUMBER, raw=value, number=number)

    if isinstance(value, str):
        if value == "":
            return MISSING
        stripped = value.strip()
        if stripped and _DECIMAL_PATTERN.match(stripped):
            number = float(stripped)
            if math.isfinite(number):
                return Cell(CellKind.NUMBER, raw=value, number=number, text=value)
        return Cell(CellKind.TEXT, raw=value, text=value)

    # numpy scalars and anything else exposing __float__
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        return Cell(CellKind.TEXT, raw=value, text=str(value))
    if math.isnan(number):
        return MISSING
    if math.isinf(number):
        return Cell(CellKind.TEXT, raw=value, text=str(value))
    return Cell(CellKind.NUMBER, raw=value, number=number)


def looks_like_date(text: str) -> bool:
    """
    True when ``text`` parses as a calendar date.

    The text must carry a full numeric date (``2024-01-15``, ``01/15/2024``)
    or a month name together with a digit. Bare times, ordinals and codes
    such as "3pm", "1st" or "T10" are rejected even though pandas would
    parse them against today's date.
    """
    if not text or not _DIGIT_PATTERN.search(text):
        return False
    if not (_NUMERIC_DATE_PATTERN.search(text) or _MONTH_NAME_PATTERN.search(text)):
        return False
    try:
        with warnings.catch_warnings():
            warnings.simplefilter("ignore")
            parsed = pd.to_datetime(text.strip(), errors="coerce")
    except (ValueError, TypeError, OverflowError):
        return False
    return parsed is not None and not pd.isna(parsed)


@dataclass(frozen=True)
class Dataset:
    """
    An ordered, immutable table of normalized rows.

    ``columns`` follows the key order of the first record. ``revision`` is a
    content fingerprint: two datasets built from identical records share it,
    which makes it usable as a memoization key.
    """
    name: str
    columns: Tuple[str, ...]
    rows: Tuple[Dict[str, Cell], ...]
    revision: str

    @classmethod
    def from_records(cls, records: Sequence[Mapping[str, Any]], name: str = "dataset") -> "Dataset":
        records = tuple(records or ())
        columns: Tuple[str, ...] = tuple(records[0].keys()) if records else ()

        rows = []
        for record in records:
            rows.append({col: normalize_value(record.get(col)) for col in columns})

        revision = _fingerprint(columns, records)
        logger.debug(
            "Dataset.from_records: name=%s rows=%d cols=%d revision=%s",
            name, len(rows), len(columns), revision[:12],
        )
        return cls(name=name, columns=columns, rows=tuple(rows), revision=revision)

    @property
    def row_count(self) -> int:
        return len(self.rows)

    @property
    def column_count(self) -> int:
        return len(self.columns)

    @property
    def is_empty(self) -> bool:
        return not self.rows

    def column(self, name: str) -> List[Cell]:
        """All cells of one column in row order (``MISSING`` when absent)."""
        return [row.get(name, MISSING) for row in self.rows]


def as_dataset(data: Any, name: str = "dataset") -> Dataset:
    """Accept either a ``Dataset`` or a sequence of raw records."""
    if isinstance(data, Dataset):
        return data
    return Dataset.from_records(list(data or []), name=name)


def _fingerprint(columns: Iterable[str], records: Sequence[Mapping[str, Any]]) -> str:
    digest = hashlib.sha1()
    digest.update(json.dumps(list(columns), default=str).encode("utf-8"))
    for record in records:
        digest.update(b"\n")
        digest.update(json.dumps(list(record.items()), default=str).encode("utf-8"))
    return digest.hexdigest()
