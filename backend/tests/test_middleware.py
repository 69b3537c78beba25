"""
Tests for the HTTP middleware.
"""

import pytest
from fastapi import FastAPI
from httpx import AsyncClient, ASGITransport

from csvinsight.middleware import ErrorHandlerMiddleware, RequestLoggerMiddleware


@pytest.fixture
async def failing_client():
    app = FastAPI()

    @app.get("/boom")
    async def boom():
        raise RuntimeError("kaboom")

    @app.get("/ok")
    async def ok():
        return {"ok": True}

    app.add_middleware(ErrorHandlerMiddleware)
    app.add_middleware(RequestLoggerMiddleware)

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.mark.asyncio
async def test_unhandled_exception_becomes_json_500(failing_client: AsyncClient):
    response = await failing_client.get("/boom")

    assert response.status_code == 500
    data = response.json()
    assert data["error"] == "internal_server_error"
    assert data["path"] == "/boom"
    assert data["method"] == "GET"
    assert "kaboom" not in response.text


@pytest.mark.asyncio
async def test_request_logger_adds_timing_header(failing_client: AsyncClient, caplog):
    with caplog.at_level("INFO", logger="csvinsight.middleware.request_logger"):
        response = await failing_client.get("/ok")

    assert response.status_code == 200
    assert float(response.headers["x-response-time-ms"]) >= 0
    assert any("GET /ok -> 200" in r.getMessage() for r in caplog.records)
