"""
Statistical Profiler — Descriptive Statistics & Completeness

Builds the dataset overview shown next to an uploaded table:
  - min / max / mean / median / count for every numeric column,
    computed over the entire dataset (not the inference sample)
  - per-column and overall completeness from the inferred null counts
  - a small preview of the leading rows and columns

Pure computation over rows already in memory.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

import numpy as np

from ..core.config import Settings, get_settings
from .schema_inference import ColumnType, SchemaResult, infer_schema
from .values import Dataset, as_dataset

logger = logging.getLogger("csvinsight.profiler")

PREVIEW_PLACEHOLDER = "\u2014"


@dataclass
class NumericStats:
    min: float
    max: float
    mean: float
    median: float
    count: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "min": _safe(self.min),
            "max": _safe(self.max),
            "mean": _safe(self.mean),
            "median": _safe(self.median),
            "count": self.count,
        }


@dataclass
class ColumnProfile:
    name: str
    type: ColumnType
    null_count: int
    completeness: float
    stats: Optional[NumericStats] = None

    @property
    def non_null_count(self) -> Optional[int]:
        return self.stats.count if self.stats else None

    def to_dict(self) -> Dict[str, Any]:
        profile: Dict[str, Any] = {
            "name": self.name,
            "type": self.type.value,
            "null_count": self.null_count,
            "completeness": self.completeness,
        }
        if self.type is ColumnType.NUMERIC:
            profile["non_null_count"] = self.non_null_count
            profile["stats"] = self.stats.to_dict() if self.stats else None
        return profile


@dataclass
class DatasetProfile:
    name: str
    row_count: int
    column_count: int
    completeness: float
    columns: List[ColumnProfile] = field(default_factory=list)
    numeric_columns: List[str] = field(default_factory=list)
    text_columns: List[str] = field(default_factory=list)
    date_columns: List[str] = field(default_factory=list)
    preview: List[Dict[str, Any]] = field(default_factory=list)

    def column(self, name: str) -> Optional[ColumnProfile]:
        return next((c for c in self.columns if c.name == name), None)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "row_count": self.row_count,
            "column_count": self.column_count,
            "completeness": self.completeness,
            "columns": [c.to_dict() for c in self.columns],
            "numeric_columns": list(self.numeric_columns),
            "text_columns": list(self.text_columns),
            "date_columns": list(self.date_columns),
            "preview": [dict(r) for r in self.preview],
        }


def build_profile(
    data: Any,
    schema: Optional[SchemaResult] = None,
    settings: Optional[Settings] = None,
) -> Optional[DatasetProfile]:
    """
    Build the dataset profile.

    Returns ``None`` for an empty dataset. Numeric statistics use every
    row; null counts (and therefore completeness) come from the schema,
    which is sample-based.
    """
    settings = settings or get_settings()
    dataset = as_dataset(data)
    logger.info("build_profile: %d records", dataset.row_count)

    if dataset.is_empty:
        logger.warning("build_profile: no records, returning None")
        return None

    if schema is None:
        schema = infer_schema(dataset, settings=settings)

    profiles: List[ColumnProfile] = []
    for col in schema.columns:
        column_type = schema.column_types[col]
        null_count = schema.null_counts.get(col, 0)
        stats = None
        if column_type is ColumnType.NUMERIC:
            stats = compute_numeric_stats(_numeric_values(dataset, col))
            if stats is None:
                logger.debug("  numeric column '%s' has no parseable values", col)
        profiles.append(ColumnProfile(
            name=col,
            type=column_type,
            null_count=null_count,
            completeness=column_completeness(null_count, dataset.row_count),
            stats=stats,
        ))

    profile = DatasetProfile(
        name=dataset.name,
        row_count=dataset.row_count,
        column_count=dataset.column_count,
        completeness=overall_completeness(
            dataset.row_count, dataset.column_count, schema.null_counts.values()
        ),
        columns=profiles,
        numeric_columns=schema.numeric_columns,
        text_columns=schema.text_columns,
        date_columns=schema.date_columns,
        preview=build_preview(dataset, settings.PREVIEW_ROWS, settings.PREVIEW_COLUMNS),
    )
    logger.info(
        "build_profile: done, %d columns, %.1f%% complete",
        profile.column_count, profile.completeness,
    )
    return profile


def compute_numeric_stats(values: Sequence[float]) -> Optional[NumericStats]:
    """
    Descriptive statistics of a list of numbers, or ``None`` when empty.

    The median is the element at index ``count // 2`` of the sorted values;
    even-length inputs are not averaged.
    """
    if len(values) == 0:
        return None
    vals = np.sort(np.asarray(values, dtype=float))
    return NumericStats(
        min=float(vals[0]),
        max=float(vals[-1]),
        mean=float(np.mean(vals)),
        median=float(vals[len(vals) // 2]),
        count=int(len(vals)),
    )


def overall_completeness(row_count: int, column_count: int, null_counts) -> float:
    """Percentage of non-missing cells, rounded to one decimal place."""
    total_cells = row_count * column_count
    if total_cells == 0:
        return 0.0
    total_nulls = sum(null_counts)
    pct = (total_cells - total_nulls) / total_cells * 100
    return round(min(max(pct, 0.0), 100.0), 1)


def column_completeness(null_count: int, row_count: int) -> float:
    if row_count == 0:
        return 0.0
    return round(100 - null_count / row_count * 100, 1)


def build_preview(dataset: Dataset, max_rows: int, max_columns: int) -> List[Dict[str, Any]]:
    """Leading rows restricted to the leading columns, missing cells as a placeholder."""
    columns = dataset.columns[:max_columns]
    preview = []
    for row in dataset.rows[:max_rows]:
        preview.append({
            col: PREVIEW_PLACEHOLDER if row[col].is_missing else row[col].raw
            for col in columns
        })
    return preview


# ─── Internal helpers ────────────────────────────────────────────────────


def _numeric_values(dataset: Dataset, col: str) -> List[float]:
    return [cell.number for cell in dataset.column(col) if cell.is_number]


def _safe(value: float) -> Optional[float]:
    """Convert to float, returning None for NaN/inf."""
    if value is None:
        return None
    try:
        f = float(value)
        if np.isnan(f) or np.isinf(f):
            return None
        return round(f, 6)
    except (TypeError, ValueError):
        return None
