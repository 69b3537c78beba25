from pydantic_settings import BaseSettings
from typing import Literal
from functools import lru_cache


class Settings(BaseSettings):
    """Application configuration settings."""

    # Application
    APP_NAME: str = "CSV Insight - Schema Profiling & Chart Data Service"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = False
    API_PREFIX: str = "/api/v1"
    LOG_LEVEL: str = "INFO"

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    CORS_ORIGINS: str = "http://localhost:3000,http://localhost:5173"

    # Schema inference
    SCHEMA_SAMPLE_SIZE: int = 100  # Rows sampled for type votes and null counts
    NUMERIC_VOTE_RATIO: float = 0.7
    DATE_VOTE_RATIO: float = 0.5
    # "sample": votes compared against the sample size
    # "dataset": votes compared against the full row count (historical behaviour)
    THRESHOLD_BASIS: Literal["sample", "dataset"] = "sample"

    # Profiling
    PREVIEW_ROWS: int = 5
    PREVIEW_COLUMNS: int = 8

    # Chart caps
    PIE_MAX_SLICES: int = 10
    SCATTER_MAX_POINTS: int = 1000
    SERIES_MAX_POINTS: int = 50
    GROUPED_MAX_POINTS: int = 20

    # Chart memoization
    CHART_CACHE_SIZE: int = 128

    class Config:
        env_file = ".env"
        case_sensitive = True


@lru_cache()
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
