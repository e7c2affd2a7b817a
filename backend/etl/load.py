"""Loader: writes cleaned campaign records into the campaign table.

The schema file is applied first (CREATE ... IF NOT EXISTS), then the table
contents are replaced inside one transaction, so a failed load leaves the
previous rows in place.
"""

from pathlib import Path

import pandas as pd
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine

from backend.etl.config import ETLConfig, ROW_ID, SQL_DIR

SCHEMA_FILE = SQL_DIR / "schema.sql"


class Loader:
    """Owns the SQLAlchemy engine used by the ETL run."""

    def __init__(self, config: ETLConfig):
        self._config = config
        self._engine: Engine = create_engine(config.database_url)

    @property
    def engine(self) -> Engine:
        return self._engine

    def execute_sql_file(self, filepath: str | Path = SCHEMA_FILE) -> None:
        """Run every ;-separated statement of a SQL file in one transaction."""
        filepath = Path(filepath)
        if not filepath.exists():
            raise FileNotFoundError(f"SQL file not found: {filepath}")

        statements = [s.strip() for s in filepath.read_text().split(";") if s.strip()]
        with self._engine.begin() as conn:
            for stmt in statements:
                conn.execute(text(stmt))

        print(f"  Applied {filepath.name} ({len(statements)} statements)")

    def load_table(self, df: pd.DataFrame, table_name: str | None = None) -> int:
        """Replace all rows of table_name with df. Returns rows written.

        DELETE + append rather than if_exists="replace" so the indexes and
        column types from schema.sql survive the reload. Rows get an id
        (1..n, in DataFrame order) that paged queries use to break age ties.
        """
        table_name = table_name or self._config.table_name
        rows = df.reset_index(drop=True)
        rows.insert(0, ROW_ID, range(1, len(rows) + 1))
        with self._engine.begin() as conn:
            conn.execute(text(f"DELETE FROM {table_name}"))
            rows.to_sql(
                name=table_name,
                con=conn,
                if_exists="append",
                index=False,
                chunksize=self._config.batch_size,
            )

        print(f"  Wrote {len(df):,} rows into {table_name}")
        return len(df)

    def verify_row_count(self, table_name: str | None = None) -> int:
        table_name = table_name or self._config.table_name
        with self._engine.connect() as conn:
            return int(conn.execute(text(f"SELECT COUNT(*) FROM {table_name}")).scalar())

    def count_invalid_targets(self, table_name: str | None = None) -> int:
        """Rows whose outcome is neither yes nor no after trimming."""
        table_name = table_name or self._config.table_name
        sql = (f"SELECT COUNT(*) FROM {table_name} "
               f"WHERE LOWER(TRIM(COALESCE(y, ''))) NOT IN ('yes', 'no')")
        with self._engine.connect() as conn:
            return int(conn.execute(text(sql)).scalar())
