"""
Tests for Datasets API endpoints.
"""

import uuid

import pytest
from httpx import AsyncClient


async def _create(test_client: AsyncClient, rows, name="test.csv") -> str:
    response = await test_client.post("/api/v1/datasets", json={"name": name, "rows": rows})
    assert response.status_code == 201
    return response.json()["id"]


@pytest.mark.asyncio
async def test_create_dataset(test_client: AsyncClient, sales_records):
    """Test POST /api/v1/datasets registers rows."""
    response = await test_client.post("/api/v1/datasets", json={"name": "sales.csv", "rows": sales_records})

    assert response.status_code == 201
    data = response.json()
    assert data["name"] == "sales.csv"
    assert data["row_count"] == 3
    assert data["columns"] == ["city", "sales"]
    assert "id" in data
    assert "revision" in data


@pytest.mark.asyncio
async def test_list_datasets(test_client: AsyncClient, sales_records):
    dataset_id = await _create(test_client, sales_records, name="List Test")

    response = await test_client.get("/api/v1/datasets")

    assert response.status_code == 200
    assert any(d["id"] == dataset_id for d in response.json())


@pytest.mark.asyncio
async def test_get_dataset_nonexistent(test_client: AsyncClient):
    """Test unknown dataset ids return 404 on every endpoint."""
    missing = str(uuid.uuid4())

    assert (await test_client.get(f"/api/v1/datasets/{missing}")).status_code == 404
    assert (await test_client.get(f"/api/v1/datasets/{missing}/schema")).status_code == 404
    assert (await test_client.get(f"/api/v1/datasets/{missing}/profile")).status_code == 404
    assert (await test_client.post(f"/api/v1/datasets/{missing}/chart", json={})).status_code == 404
    assert (await test_client.delete(f"/api/v1/datasets/{missing}")).status_code == 404


@pytest.mark.asyncio
async def test_schema_endpoint(test_client: AsyncClient, mixed_records):
    dataset_id = await _create(test_client, mixed_records)

    response = await test_client.get(f"/api/v1/datasets/{dataset_id}/schema")

    assert response.status_code == 200
    data = response.json()
    assert data["column_types"]["revenue"] == "numeric"
    assert data["column_types"]["date"] == "date"
    assert data["null_counts"]["note"] == 3
    assert data["numeric_columns"] == ["id", "revenue"]


@pytest.mark.asyncio
async def test_profile_endpoint(test_client: AsyncClient, mixed_records):
    dataset_id = await _create(test_client, mixed_records)

    response = await test_client.get(f"/api/v1/datasets/{dataset_id}/profile")

    assert response.status_code == 200
    data = response.json()
    assert data["row_count"] == 4
    assert data["column_count"] == 5
    assert data["completeness"] == 80.0
    revenue = next(c for c in data["columns"] if c["name"] == "revenue")
    assert revenue["stats"]["median"] == 120.5
    assert len(data["preview"]) == 4


@pytest.mark.asyncio
async def test_profile_endpoint_empty_dataset(test_client: AsyncClient):
    dataset_id = await _create(test_client, [])

    response = await test_client.get(f"/api/v1/datasets/{dataset_id}/profile")

    assert response.status_code == 200
    assert response.json() is None


@pytest.mark.asyncio
async def test_chart_endpoint_grouped_sum(test_client: AsyncClient, sales_records):
    dataset_id = await _create(test_client, sales_records)
    spec = {
        "chart_kind": "bar",
        "x_column": "city",
        "y_column": "sales",
        "group_by_column": "city",
        "aggregation": "sum",
    }

    response = await test_client.post(f"/api/v1/datasets/{dataset_id}/chart", json=spec)

    assert response.status_code == 200
    data = response.json()
    assert data["chart_kind"] == "bar"
    assert data["points"] == [{"label": "A", "value": 17.0}, {"label": "B", "value": 5.0}]
    assert data["truncated"] is False


@pytest.mark.asyncio
async def test_chart_endpoint_nan_serialized_as_null(test_client: AsyncClient):
    rows = [{"g": "a", "v": 2}, {"g": "b", "v": "none"}]
    dataset_id = await _create(test_client, rows)
    spec = {"chart_kind": "line", "x_column": "g", "y_column": "v", "group_by_column": "g", "aggregation": "avg"}

    response = await test_client.post(f"/api/v1/datasets/{dataset_id}/chart", json=spec)

    assert response.status_code == 200
    assert response.json()["points"] == [{"label": "a", "value": 2.0}, {"label": "b", "value": None}]


@pytest.mark.asyncio
async def test_chart_endpoint_missing_selection(test_client: AsyncClient, sales_records):
    dataset_id = await _create(test_client, sales_records)

    response = await test_client.post(f"/api/v1/datasets/{dataset_id}/chart", json={"chart_kind": "scatter"})

    assert response.status_code == 200
    assert response.json()["points"] == []


@pytest.mark.asyncio
async def test_chart_endpoint_rejects_unknown_kind(test_client: AsyncClient, sales_records):
    dataset_id = await _create(test_client, sales_records)

    response = await test_client.post(f"/api/v1/datasets/{dataset_id}/chart", json={"chart_kind": "radar"})

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_axis_options_endpoint(test_client: AsyncClient, mixed_records):
    dataset_id = await _create(test_client, mixed_records)

    response = await test_client.get(
        f"/api/v1/datasets/{dataset_id}/axis-options", params={"chart_kind": "scatter"}
    )

    assert response.status_code == 200
    data = response.json()
    assert data["x_columns"] == ["id", "revenue"]
    assert data["group_by_columns"] == []


@pytest.mark.asyncio
async def test_export_endpoint(test_client: AsyncClient, sales_records):
    dataset_id = await _create(test_client, sales_records)

    response = await test_client.get(f"/api/v1/datasets/{dataset_id}/export")

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    assert f"query_result_{dataset_id}.csv" in response.headers["content-disposition"]
    assert response.text == 'city,sales\n"A","10"\n"B","5"\n"A","7"'


@pytest.mark.asyncio
async def test_dataset_roundtrip(test_client: AsyncClient, sales_records):
    """Test creating, charting and deleting a dataset (full roundtrip)."""
    dataset_id = await _create(test_client, sales_records)

    chart = await test_client.post(
        f"/api/v1/datasets/{dataset_id}/chart", json={"chart_kind": "pie", "x_column": "city"}
    )
    assert chart.json()["points"] == [{"label": "A", "value": 2.0}, {"label": "B", "value": 1.0}]

    delete_response = await test_client.delete(f"/api/v1/datasets/{dataset_id}")
    assert delete_response.status_code == 200
    assert delete_response.json()["status"] == "deleted"

    final_get = await test_client.get(f"/api/v1/datasets/{dataset_id}")
    assert final_get.status_code == 404
