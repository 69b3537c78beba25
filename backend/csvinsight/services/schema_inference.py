"""
Schema Inferencer — Column Type Voting

Classifies every column as numeric, date or text from a bounded sample of
leading rows and counts missing values in that same sample.

Runs entirely locally on already-parsed rows, with no file or network access.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from ..core.config import Settings, get_settings
from .values import CellKind, as_dataset, looks_like_date

logger = logging.getLogger("csvinsight.schema")


class ColumnType(str, Enum):
    """Inferred semantic kind of a column."""
    NUMERIC = "numeric"
    DATE = "date"
    TEXT = "text"


@dataclass
class ColumnVotes:
    """Per-column tallies collected over the sample."""
    missing: int = 0
    numeric: int = 0
    date: int = 0


@dataclass
class SchemaResult:
    """Column types and sample-based null counts for one dataset snapshot."""
    columns: List[str] = field(default_factory=list)
    column_types: Dict[str, ColumnType] = field(default_factory=dict)
    null_counts: Dict[str, int] = field(default_factory=dict)
    sample_size: int = 0
    row_count: int = 0

    @property
    def is_empty(self) -> bool:
        return not self.columns

    def columns_of(self, column_type: ColumnType) -> List[str]:
        return [c for c in self.columns if self.column_types.get(c) is column_type]

    @property
    def numeric_columns(self) -> List[str]:
        return self.columns_of(ColumnType.NUMERIC)

    @property
    def text_columns(self) -> List[str]:
        return self.columns_of(ColumnType.TEXT)

    @property
    def date_columns(self) -> List[str]:
        return self.columns_of(ColumnType.DATE)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "columns": list(self.columns),
            "column_types": {c: t.value for c, t in self.column_types.items()},
            "null_counts": dict(self.null_counts),
            "sample_size": self.sample_size,
            "row_count": self.row_count,
            "numeric_columns": self.numeric_columns,
            "text_columns": self.text_columns,
            "date_columns": self.date_columns,
        }


def infer_schema(data: Any, settings: Optional[Settings] = None) -> SchemaResult:
    """
    Infer a ColumnType and a missing-value count for every column.

    Only the first ``SCHEMA_SAMPLE_SIZE`` rows are inspected, so for large
    datasets both the type votes and the null counts are sample-based.
    The vote thresholds are compared against the sample size by default;
    ``THRESHOLD_BASIS="dataset"`` compares them against the full row count.
    """
    settings = settings or get_settings()
    dataset = as_dataset(data)

    if dataset.is_empty:
        logger.info("infer_schema: empty dataset, returning empty schema")
        return SchemaResult()

    sample = dataset.rows[: min(settings.SCHEMA_SAMPLE_SIZE, dataset.row_count)]
    basis = len(sample) if settings.THRESHOLD_BASIS == "sample" else dataset.row_count

    result = SchemaResult(
        columns=list(dataset.columns),
        sample_size=len(sample),
        row_count=dataset.row_count,
    )

    for col in dataset.columns:
        votes = _tally(col, sample)
        column_type = classify(votes, basis, settings)
        result.column_types[col] = column_type
        result.null_counts[col] = votes.missing
        logger.debug(
            "  column '%s' → %s (numeric=%d date=%d missing=%d of %d)",
            col, column_type.value, votes.numeric, votes.date, votes.missing, len(sample),
        )

    logger.info(
        "infer_schema: %d rows, %d sampled, %d numeric / %d date / %d text columns",
        dataset.row_count, len(sample),
        len(result.numeric_columns), len(result.date_columns), len(result.text_columns),
    )
    return result


def classify(votes: ColumnVotes, basis: int, settings: Optional[Settings] = None) -> ColumnType:
    """Apply the numeric-then-date-then-text priority to a column's votes."""
    settings = settings or get_settings()
    if votes.numeric > basis * settings.NUMERIC_VOTE_RATIO:
        return ColumnType.NUMERIC
    if votes.date > basis * settings.DATE_VOTE_RATIO:
        return ColumnType.DATE
    return ColumnType.TEXT


def _tally(col: str, sample) -> ColumnVotes:
    votes = ColumnVotes()
    for row in sample:
        cell = row.get(col)
        if cell is None or cell.kind is CellKind.MISSING:
            votes.missing += 1
        elif cell.kind is CellKind.NUMBER:
            votes.numeric += 1
        elif isinstance(cell.raw, str) and looks_like_date(cell.text):
            votes.date += 1
    return votes
