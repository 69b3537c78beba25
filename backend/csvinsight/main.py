"""
CSV Insight API

FastAPI application exposing schema inference, profiling, chart series and
CSV export over in-memory datasets.
"""

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api import datasets
from .core.config import settings
from .middleware import ErrorHandlerMiddleware, RequestLoggerMiddleware
from .services.dataset_registry import dataset_registry

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger("csvinsight")

app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    debug=settings.DEBUG,
)

# Last added runs outermost: CORS, request logging, then error handling
app.add_middleware(ErrorHandlerMiddleware)
app.add_middleware(RequestLoggerMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in settings.CORS_ORIGINS.split(",") if o.strip()],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(datasets.router, prefix=settings.API_PREFIX)


@app.get("/health")
async def health_check():
    return {
        "status": "healthy",
        "version": settings.APP_VERSION,
        "datasets": len(dataset_registry),
        "chart_cache": datasets.chart_cache.stats(),
    }


logger.info("%s v%s ready (api prefix %s)", settings.APP_NAME, settings.APP_VERSION, settings.API_PREFIX)
