"""FastAPI application settings."""

from pathlib import Path

from pydantic_settings import BaseSettings

from backend.etl.config import DATABASE_URL, RAW_DATA_PATH


class Settings(BaseSettings):
    database_url: str = DATABASE_URL
    cors_origins: list[str] = [
        "http://localhost:5173",
        "http://127.0.0.1:5173",
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]
    api_prefix: str = "/api/v1"
    log_level: str = "INFO"

    # "database" queries campaign_data; "csv" loads csv_path into memory
    record_source: str = "database"
    csv_path: Path = RAW_DATA_PATH

    page_size: int = 100
    aggregation_timeout_seconds: float = 30.0
    # A *_min of 0 means "no lower bound" (legacy dashboard links rely on it)
    zero_min_is_unbounded: bool = True

    upload_max_bytes: int = 200 * 1024 * 1024
    upload_sample_rows: int = 5000

    class Config:
        env_file = ".env"


settings = Settings()
