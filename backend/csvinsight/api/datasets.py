"""
Datasets API Endpoints

Registers already-parsed rows and exposes schema inference, profiling,
chart series and CSV export over them.
"""

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, HTTPException, Query
from fastapi.responses import Response
from pydantic import BaseModel, Field

from ..services.chart_data import (
    Aggregation,
    ChartKind,
    ChartSeriesCache,
    ChartSpec,
    axis_options,
)
from ..services.csv_export import export_filename, rows_to_csv
from ..services.dataset_registry import dataset_registry
from ..services.schema_inference import infer_schema
from ..services.statistical_profiler import build_profile
from ..services.values import Dataset

logger = logging.getLogger("csvinsight.api.datasets")

router = APIRouter(prefix="/datasets", tags=["Datasets"])

chart_cache = ChartSeriesCache()


# Pydantic models for API
class DatasetCreate(BaseModel):
    name: str = Field("dataset", description="Display name of the source file")
    rows: List[Dict[str, Any]] = Field(default_factory=list)


class DatasetSummary(BaseModel):
    id: str
    name: str
    revision: str
    row_count: int
    column_count: int
    columns: List[str]
    registered_at: Optional[str] = None


class ChartRequest(BaseModel):
    chart_kind: ChartKind = ChartKind.BAR
    x_column: Optional[str] = None
    y_column: Optional[str] = None
    group_by_column: Optional[str] = None
    aggregation: Aggregation = Aggregation.SUM

    def to_spec(self) -> ChartSpec:
        return ChartSpec(
            chart_kind=self.chart_kind,
            x_column=self.x_column,
            y_column=self.y_column,
            group_by_column=self.group_by_column,
            aggregation=self.aggregation,
        )


def _get_dataset(dataset_id: str) -> Dataset:
    dataset = dataset_registry.get(dataset_id)
    if dataset is None:
        raise HTTPException(status_code=404, detail="Dataset not found")
    return dataset


@router.post("", response_model=DatasetSummary, status_code=201)
async def create_dataset(payload: DatasetCreate):
    """Register a parsed table for analysis."""
    return dataset_registry.register(payload.rows, name=payload.name)


@router.get("", response_model=List[DatasetSummary])
async def list_datasets():
    return dataset_registry.list()


@router.get("/{dataset_id}", response_model=DatasetSummary)
async def get_dataset(dataset_id: str):
    summary = dataset_registry.get_summary(dataset_id)
    if summary is None:
        raise HTTPException(status_code=404, detail="Dataset not found")
    return summary


@router.delete("/{dataset_id}")
async def delete_dataset(dataset_id: str):
    dataset = dataset_registry.remove(dataset_id)
    if dataset is None:
        raise HTTPException(status_code=404, detail="Dataset not found")
    dropped = chart_cache.invalidate(dataset.revision)
    logger.info("Deleted dataset %s (%d cached series dropped)", dataset_id, dropped)
    return {"status": "deleted", "id": dataset_id}


@router.get("/{dataset_id}/schema")
async def get_schema(dataset_id: str):
    """Inferred column types and sample-based null counts."""
    return infer_schema(_get_dataset(dataset_id)).to_dict()


@router.get("/{dataset_id}/profile")
async def get_profile(dataset_id: str):
    """Descriptive statistics and completeness; ``null`` for an empty dataset."""
    profile = build_profile(_get_dataset(dataset_id))
    return profile.to_dict() if profile else None


@router.get("/{dataset_id}/axis-options")
async def get_axis_options(dataset_id: str, chart_kind: ChartKind = Query(ChartKind.BAR)):
    """Columns that may be picked for each axis of ``chart_kind``."""
    schema = infer_schema(_get_dataset(dataset_id))
    return axis_options(schema, chart_kind).to_dict()


@router.post("/{dataset_id}/chart")
async def build_chart(dataset_id: str, request: ChartRequest):
    """Render-ready series for a chart specification."""
    dataset = _get_dataset(dataset_id)
    series = chart_cache.get_or_build(dataset, request.to_spec())
    return series.to_dict()


@router.get("/{dataset_id}/export")
async def export_dataset(dataset_id: str):
    """Download the dataset rows as CSV text."""
    dataset = _get_dataset(dataset_id)
    content = rows_to_csv(list(dataset.rows), columns=dataset.columns)
    filename = export_filename("query_result", dataset_id)
    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
