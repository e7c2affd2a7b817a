"""Database connection and record source wiring for FastAPI."""

from functools import lru_cache
from pathlib import Path

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine

from backend.app.config import settings
from backend.app.record_source import InMemoryRecordSource, RecordSource, SqlRecordSource

engine: Engine = create_engine(settings.database_url, pool_pre_ping=True)


@lru_cache(maxsize=4)
def _csv_source(path: Path) -> InMemoryRecordSource:
    return InMemoryRecordSource.from_csv(path)


def get_record_source() -> RecordSource:
    """Dependency: the configured source of campaign records."""
    if settings.record_source == "csv":
        return _csv_source(Path(settings.csv_path))
    return SqlRecordSource(engine)
