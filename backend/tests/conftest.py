"""
Shared pytest fixtures for the CSV Insight test suite.
"""

import pytest
from typing import AsyncGenerator, Any, Dict, List

from httpx import AsyncClient, ASGITransport
from csvinsight.main import app
from csvinsight.core.config import Settings
from csvinsight.services.dataset_registry import DatasetRegistry
from csvinsight.services.values import Dataset


@pytest.fixture
def settings() -> Settings:
    """Provide default settings independent of the environment."""
    return Settings(_env_file=None)


@pytest.fixture
def sales_records() -> List[Dict[str, Any]]:
    """Provide the small city/sales table used across chart tests."""
    return [
        {"city": "A", "sales": 10},
        {"city": "B", "sales": 5},
        {"city": "A", "sales": 7},
    ]


@pytest.fixture
def sales_dataset(sales_records) -> Dataset:
    return Dataset.from_records(sales_records, name="sales.csv")


@pytest.fixture
def mixed_records() -> List[Dict[str, Any]]:
    """Provide rows mixing numbers, dates, text and missing values."""
    return [
        {"id": 1, "date": "2024-01-01", "region": "north", "revenue": 120.5, "note": ""},
        {"id": 2, "date": "2024-01-02", "region": "south", "revenue": "98", "note": None},
        {"id": 3, "date": "2024-01-03", "region": "north", "revenue": None, "note": "late"},
        {"id": 4, "date": "2024-01-04", "region": "east", "revenue": 143.0, "note": ""},
    ]


@pytest.fixture
def mixed_dataset(mixed_records) -> Dataset:
    return Dataset.from_records(mixed_records, name="mixed.csv")


@pytest.fixture
def registry() -> DatasetRegistry:
    """Provide an empty registry."""
    return DatasetRegistry()


@pytest.fixture
async def test_client() -> AsyncGenerator[AsyncClient, None]:
    """Provide an async HTTP client for testing FastAPI endpoints."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
