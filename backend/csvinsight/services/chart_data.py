"""
Chart Data Transformer — Render-Ready Series

Turns rows plus a user-selected chart specification into a compact, ordered
list of plottable points:

  pie       count rows per x value, top slices by count
  scatter   numeric (x, y) pairs in row order, capped for rendering cost
  bar/line  either raw (label, value) pairs in row order, or one
            aggregated value per group-by bucket, largest first

Missing selections never raise; they produce an empty series.
"""

import logging
import math
import threading
from collections import OrderedDict
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Tuple

import numpy as np

from ..core.config import Settings, get_settings
from .schema_inference import SchemaResult
from .values import MISSING, Cell, Dataset, as_dataset

logger = logging.getLogger("csvinsight.charts")

UNKNOWN_LABEL = "Unknown"
DEFAULT_POINT_LABEL = "Data Point"


class ChartKind(str, Enum):
    BAR = "bar"
    LINE = "line"
    SCATTER = "scatter"
    PIE = "pie"


class Aggregation(str, Enum):
    SUM = "sum"
    AVG = "avg"
    COUNT = "count"
    MAX = "max"
    MIN = "min"


@dataclass(frozen=True)
class ChartSpec:
    """What to plot. Hashable so it can key the series cache."""
    chart_kind: ChartKind = ChartKind.BAR
    x_column: Optional[str] = None
    y_column: Optional[str] = None
    group_by_column: Optional[str] = None
    aggregation: Aggregation = Aggregation.SUM

    def __post_init__(self):
        object.__setattr__(self, "chart_kind", ChartKind(self.chart_kind))
        object.__setattr__(self, "aggregation", Aggregation(self.aggregation))
        for name in ("x_column", "y_column", "group_by_column"):
            if getattr(self, name) == "":
                object.__setattr__(self, name, None)


@dataclass
class ChartPoint:
    label: str
    value: Optional[float] = None
    x: Optional[float] = None
    y: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        if self.x is not None or self.y is not None:
            return {"x": self.x, "y": self.y, "label": self.label}
        return {"label": self.label, "value": _json_number(self.value)}


@dataclass
class ChartSeries:
    chart_kind: ChartKind
    points: List[ChartPoint] = field(default_factory=list)
    truncated: bool = False

    def __len__(self) -> int:
        return len(self.points)

    @property
    def is_empty(self) -> bool:
        return not self.points

    def copy(self) -> "ChartSeries":
        """Independent copy; changing its points leaves this series untouched."""
        return ChartSeries(self.chart_kind, [replace(p) for p in self.points], self.truncated)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "chart_kind": self.chart_kind.value,
            "points": [p.to_dict() for p in self.points],
            "truncated": self.truncated,
        }


@dataclass
class AxisOptions:
    chart_kind: ChartKind
    x_columns: List[str] = field(default_factory=list)
    y_columns: List[str] = field(default_factory=list)
    group_by_columns: List[str] = field(default_factory=list)
    aggregations: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "chart_kind": self.chart_kind.value,
            "x_columns": list(self.x_columns),
            "y_columns": list(self.y_columns),
            "group_by_columns": list(self.group_by_columns),
            "aggregations": list(self.aggregations),
        }


# ═══════════════════════════════════════════════════════════════════════════
# Aggregation
# ═══════════════════════════════════════════════════════════════════════════


def _mean(values: List[float]) -> float:
    return float(np.mean(values)) if values else math.nan


def _max(values: List[float]) -> float:
    return float(np.max(values)) if values else math.nan


def _min(values: List[float]) -> float:
    return float(np.min(values)) if values else math.nan


AGGREGATORS: Dict[Aggregation, Callable[[List[float]], float]] = {
    Aggregation.SUM: lambda values: float(sum(values)),
    Aggregation.AVG: _mean,
    Aggregation.COUNT: lambda values: len(values),
    Aggregation.MAX: _max,
    Aggregation.MIN: _min,
}


def aggregate(values: List[float], aggregation: Aggregation) -> float:
    """
    Reduce one bucket. Empty buckets give 0 for sum and count and NaN for
    avg, max and min.
    Counts stay integers.
    """
    return AGGREGATORS[Aggregation(aggregation)](values)


def _descending_key(point: ChartPoint) -> Tuple[int, float]:
    # NaN sorts after every real value
    if point.value is None or math.isnan(point.value):
        return (1, 0.0)
    return (0, -point.value)


# ═══════════════════════════════════════════════════════════════════════════
# Series builders
# ═══════════════════════════════════════════════════════════════════════════


def build_chart_series(
    data: Any,
    spec: ChartSpec,
    settings: Optional[Settings] = None,
) -> ChartSeries:
    """Build the series for ``spec``; never mutates the input rows."""
    settings = settings or get_settings()
    dataset = as_dataset(data)
    kind = ChartKind(spec.chart_kind)

    if dataset.is_empty or not spec.x_column:
        logger.debug("build_chart_series: nothing to plot (rows=%d, x=%r)", dataset.row_count, spec.x_column)
        return ChartSeries(chart_kind=kind)

    if kind is ChartKind.PIE:
        series = _pie_series(dataset, spec, settings.PIE_MAX_SLICES)
    elif not spec.y_column:
        series = ChartSeries(chart_kind=kind)
    elif kind is ChartKind.SCATTER:
        series = _scatter_series(dataset, spec, settings.SCATTER_MAX_POINTS)
    elif spec.group_by_column:
        series = _grouped_series(dataset, spec, settings.GROUPED_MAX_POINTS)
    else:
        series = _direct_series(dataset, spec, settings.SERIES_MAX_POINTS)

    logger.info(
        "build_chart_series: %s x=%s y=%s group=%s agg=%s -> %d points%s",
        kind.value, spec.x_column, spec.y_column, spec.group_by_column,
        Aggregation(spec.aggregation).value, len(series),
        " (truncated)" if series.truncated else "",
    )
    return series


def _cell(row: Dict[str, Cell], column: Optional[str]) -> Cell:
    if not column:
        return MISSING
    return row.get(column, MISSING)


def _group_label(cell: Cell) -> str:
    label = cell.label()
    return label if label else UNKNOWN_LABEL


def _truncate(kind: ChartKind, points: List[ChartPoint], limit: int) -> ChartSeries:
    return ChartSeries(chart_kind=kind, points=points[:limit], truncated=len(points) > limit)


def _pie_series(dataset: Dataset, spec: ChartSpec, limit: int) -> ChartSeries:
    counts: Dict[str, int] = {}
    for row in dataset.rows:
        key = _group_label(_cell(row, spec.x_column))
        counts[key] = counts.get(key, 0) + 1

    points = [ChartPoint(label=name, value=count) for name, count in counts.items()]
    points.sort(key=_descending_key)
    return _truncate(ChartKind.PIE, points, limit)


def _scatter_series(dataset: Dataset, spec: ChartSpec, limit: int) -> ChartSeries:
    points: List[ChartPoint] = []
    for row in dataset.rows:
        x_cell = _cell(row, spec.x_column)
        y_cell = _cell(row, spec.y_column)
        if not (x_cell.is_number and y_cell.is_number):
            continue
        label = _cell(row, spec.group_by_column).label() or DEFAULT_POINT_LABEL
        points.append(ChartPoint(label=label, x=x_cell.number, y=y_cell.number))
    return _truncate(ChartKind.SCATTER, points, limit)


def _direct_series(dataset: Dataset, spec: ChartSpec, limit: int) -> ChartSeries:
    kind = ChartKind(spec.chart_kind)
    points: List[ChartPoint] = []
    for row in dataset.rows:
        x_cell = _cell(row, spec.x_column)
        y_cell = _cell(row, spec.y_column)
        if x_cell.is_missing or not y_cell.is_number:
            continue
        points.append(ChartPoint(label=x_cell.label(), value=y_cell.number))
    return _truncate(kind, points, limit)


def _grouped_series(dataset: Dataset, spec: ChartSpec, limit: int) -> ChartSeries:
    kind = ChartKind(spec.chart_kind)
    aggregation = Aggregation(spec.aggregation)

    buckets: Dict[str, List[float]] = {}
    for row in dataset.rows:
        key = _group_label(_cell(row, spec.group_by_column))
        bucket = buckets.setdefault(key, [])
        y_cell = _cell(row, spec.y_column)
        if y_cell.is_number:
            bucket.append(y_cell.number)

    points = [
        ChartPoint(label=name, value=aggregate(values, aggregation))
        for name, values in buckets.items()
    ]
    empty = sum(1 for values in buckets.values() if not values)
    if empty:
        logger.debug("  %d bucket(s) have no numeric '%s' values", empty, spec.y_column)
    points.sort(key=_descending_key)
    return _truncate(kind, points, limit)


# ═══════════════════════════════════════════════════════════════════════════
# Column pickers
# ═══════════════════════════════════════════════════════════════════════════


def axis_options(schema: SchemaResult, chart_kind: ChartKind) -> AxisOptions:
    """
    Columns offered for each axis of ``chart_kind``.

    Scatter plots need numeric x values; every other kind accepts any
    column on x. Y is always numeric and absent for pie. Grouping is only
    offered for bar and line charts and uses text columns.
    """
    kind = ChartKind(chart_kind)
    options = AxisOptions(chart_kind=kind)
    if schema.is_empty:
        return options

    options.x_columns = schema.numeric_columns if kind is ChartKind.SCATTER else list(schema.columns)
    if kind is not ChartKind.PIE:
        options.y_columns = schema.numeric_columns
    if kind in (ChartKind.BAR, ChartKind.LINE):
        options.group_by_columns = schema.text_columns
        options.aggregations = [a.value for a in Aggregation]
    return options


# ═══════════════════════════════════════════════════════════════════════════
# Memoization
# ═══════════════════════════════════════════════════════════════════════════


class ChartSeriesCache:
    """
    LRU memo of built series keyed on ``(dataset.revision, spec)``.

    Thread-safe. A new dataset revision or a different spec always misses,
    so stale series are never served. Callers get a copy of the stored
    series, never the stored object.
    """

    def __init__(self, max_entries: Optional[int] = None, settings: Optional[Settings] = None):
        self._settings = settings or get_settings()
        self.max_entries = max_entries if max_entries is not None else self._settings.CHART_CACHE_SIZE
        self._entries: "OrderedDict[Tuple[str, ChartSpec], ChartSeries]" = OrderedDict()
        self._lock = threading.RLock()
        self.hits = 0
        self.misses = 0

    def get_or_build(self, dataset: Dataset, spec: ChartSpec) -> ChartSeries:
        key = (dataset.revision, spec)
        with self._lock:
            cached = self._entries.get(key)
            if cached is not None:
                self._entries.move_to_end(key)
                self.hits += 1
                return cached.copy()
            self.misses += 1

        series = build_chart_series(dataset, spec, settings=self._settings)

        with self._lock:
            self._entries[key] = series
            self._entries.move_to_end(key)
            while len(self._entries) > self.max_entries:
                self._entries.popitem(last=False)
        return series.copy()

    def invalidate(self, revision: str) -> int:
        """Drop every entry built from ``revision``; returns how many were removed."""
        with self._lock:
            stale = [k for k in self._entries if k[0] == revision]
            for key in stale:
                del self._entries[key]
            return len(stale)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self.hits = 0
            self.misses = 0

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def stats(self) -> Dict[str, int]:
        with self._lock:
            return {"entries": len(self._entries), "hits": self.hits, "misses": self.misses}


def _json_number(value: Optional[float]) -> Optional[float]:
    if value is None or math.isnan(value) or math.isinf(value):
        return None
    return value
