"""
CSV export of a derived row list.

Stateless formatting only: header row, then every value double-quoted.
"""

import csv
import io
import math
from typing import Any, Mapping, Optional, Sequence

from .values import Cell, CellKind, format_number


def rows_to_csv(rows: Sequence[Mapping[str, Any]], columns: Optional[Sequence[str]] = None) -> str:
    """
    Serialize ``rows`` to comma-separated text.

    Columns default to the keys of the first row. Missing values become
    ``""``. There is no trailing newline.
    """
    if not rows:
        return ""
    columns = list(columns) if columns is not None else list(rows[0].keys())

    buffer = io.StringIO()
    csv.writer(buffer, lineterminator="\n").writerow(columns)
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    for row in rows:
        writer.writerow([format_value(row.get(col)) for col in columns])
    return buffer.getvalue().rstrip("\n")


def format_value(value: Any) -> str:
    if isinstance(value, Cell):
        if value.kind is CellKind.MISSING:
            return ""
        value = value.raw
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        if math.isnan(value):
            return ""
        return format_number(value)
    return str(value)


def export_filename(prefix: str, identifier: str) -> str:
    return f"{prefix}_{identifier}.csv"
