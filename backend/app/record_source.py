"""Record sources: where campaign records come from.

Both implementations accept a FilterSpecification as the predicate and
translate it themselves. SqlRecordSource pushes it into a WHERE clause;
InMemoryRecordSource evaluates it as a pandas boolean mask. Either way the
rows returned are exactly those for which filters.matches() is true.
"""

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Protocol

import pandas as pd
from pandas.errors import DatabaseError
from sqlalchemy import bindparam, text
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import DBAPIError

from backend.analysis.errors import SourceUnavailable
from backend.analysis.filters import FilterSpecification
from backend.analysis.models import (
    CATEGORICAL_FIELDS, COLUMN_DTYPES, RECORD_COLUMNS, TARGET_FIELD,
    CampaignRecord, normalize, records_to_frame,
)
from backend.etl.config import ROW_ID

logger = logging.getLogger(__name__)

DEFAULT_TABLE = "campaign_data"
DEFAULT_ORDER_BY = "age"


class RecordSource(Protocol):
    def count(self, spec: FilterSpecification) -> int: ...

    def filter(self, spec: FilterSpecification) -> pd.DataFrame: ...

    def average(self, spec: FilterSpecification, column: str) -> float | None: ...

    def group_counts(self, spec: FilterSpecification, column: str) -> dict[str, int]: ...

    def page(self, spec: FilterSpecification, offset: int, limit: int,
             order_by: str = DEFAULT_ORDER_BY) -> pd.DataFrame: ...


def _quote(column: str) -> str:
    # "default" is a reserved word
    if column not in RECORD_COLUMNS:
        raise ValueError(f"Unknown column: {column}")
    return f'"{column}"'


class SqlRecordSource:
    """Campaign records stored in a SQL table, filtered in the database."""

    def __init__(self, engine: Engine, table: str = DEFAULT_TABLE):
        self._engine = engine
        self._table = table

    @contextmanager
    def _connect(self) -> Iterator[Connection]:
        try:
            with self._engine.connect() as conn:
                yield conn
        # pd.read_sql re-raises driver errors as pandas DatabaseError
        except (DBAPIError, DatabaseError) as exc:
            logger.error("Record source query failed: %s", exc)
            raise SourceUnavailable(f"Database unavailable: {exc}") from exc

    def _where(self, spec: FilterSpecification) -> tuple[str, dict, list[str]]:
        """Translate a spec into (where_sql, params, expanding_param_names)."""
        where_clauses = ["1 = 1"]
        params: dict = {}
        expanding: list[str] = []

        for column, values in spec.active_categorical.items():
            name = f"in_{column}"
            where_clauses.append(
                f"LOWER(TRIM(COALESCE({_quote(column)}, ''))) IN :{name}"
            )
            params[name] = sorted(values)
            expanding.append(name)

        for column, bounds in spec.active_ranges.items():
            if bounds.minimum is not None:
                where_clauses.append(f"{_quote(column)} >= :min_{column}")
                params[f"min_{column}"] = bounds.minimum
            if bounds.maximum is not None:
                where_clauses.append(f"{_quote(column)} <= :max_{column}")
                params[f"max_{column}"] = bounds.maximum

        return " AND ".join(where_clauses), params, expanding

    def _statement(self, sql: str, expanding: list[str]):
        stmt = text(sql)
        if expanding:
            stmt = stmt.bindparams(*[bindparam(n, expanding=True) for n in expanding])
        return stmt

    def count(self, spec: FilterSpecification) -> int:
        where_sql, params, expanding = self._where(spec)
        sql = f"SELECT COUNT(*) FROM {self._table} WHERE {where_sql}"
        with self._connect() as conn:
            return int(conn.execute(self._statement(sql, expanding), params).scalar())

    def filter(self, spec: FilterSpecification) -> pd.DataFrame:
        where_sql, params, expanding = self._where(spec)
        columns = ", ".join(_quote(c) for c in RECORD_COLUMNS)
        sql = f"SELECT {columns} FROM {self._table} WHERE {where_sql}"
        with self._connect() as conn:
            return pd.read_sql(self._statement(sql, expanding), conn, params=params,
                               dtype=COLUMN_DTYPES)

    def average(self, spec: FilterSpecification, column: str) -> float | None:
        where_sql, params, expanding = self._where(spec)
        sql = f"SELECT AVG({_quote(column)}) FROM {self._table} WHERE {where_sql}"
        with self._connect() as conn:
            value = conn.execute(self._statement(sql, expanding), params).scalar()
        return float(value) if value is not None else None

    def group_counts(self, spec: FilterSpecification, column: str) -> dict[str, int]:
        where_sql, params, expanding = self._where(spec)
        col = _quote(column)
        sql = (f"SELECT {col}, COUNT(*) FROM {self._table} "
               f"WHERE {where_sql} GROUP BY {col}")
        with self._connect() as conn:
            rows = conn.execute(self._statement(sql, expanding), params).fetchall()
        return {r[0]: int(r[1]) for r in rows}

    def page(self, spec: FilterSpecification, offset: int, limit: int,
             order_by: str = DEFAULT_ORDER_BY) -> pd.DataFrame:
        where_sql, params, expanding = self._where(spec)
        columns = ", ".join(_quote(c) for c in RECORD_COLUMNS)
        sql = (f"SELECT {columns} FROM {self._table} WHERE {where_sql} "
               f"ORDER BY {_quote(order_by)}, {ROW_ID} LIMIT :limit OFFSET :offset")
        params = {**params, "limit": limit, "offset": offset}
        with self._connect() as conn:
            return pd.read_sql(self._statement(sql, expanding), conn, params=params,
                               dtype=COLUMN_DTYPES)


class InMemoryRecordSource:
    """Campaign records held in a DataFrame, filtered with a boolean mask."""

    def __init__(self, frame: pd.DataFrame):
        missing = set(RECORD_COLUMNS) - set(frame.columns)
        if missing:
            raise ValueError(f"Missing record columns: {sorted(missing)}")
        self._frame = frame[RECORD_COLUMNS].reset_index(drop=True)
        # Same normalization as filters.matches and the SQL LOWER(TRIM(...))
        self._normalized = {
            col: self._frame[col].map(normalize)
            for col in CATEGORICAL_FIELDS + [TARGET_FIELD]
        }

    @classmethod
    def from_records(cls, records: list[CampaignRecord]) -> "InMemoryRecordSource":
        return cls(records_to_frame(records))

    @classmethod
    def from_csv(cls, path: str | Path) -> "InMemoryRecordSource":
        """Load and clean the raw semicolon-separated dataset file."""
        from backend.etl.clean import Cleaner
        from backend.etl.config import ETLConfig
        from backend.etl.extract import Extractor

        config = ETLConfig(raw_data_path=Path(path))
        try:
            raw_df = Extractor(config).extract_campaigns()
        except (FileNotFoundError, ValueError) as exc:
            logger.error("Could not load records from %s: %s", path, exc)
            raise SourceUnavailable(str(exc)) from exc
        return cls(Cleaner(config).clean_campaigns(raw_df))

    def _mask(self, spec: FilterSpecification) -> pd.Series:
        mask = pd.Series(True, index=self._frame.index)
        for column, values in spec.active_categorical.items():
            mask &= self._normalized[column].isin(values)
        for column, bounds in spec.active_ranges.items():
            if bounds.minimum is not None:
                mask &= self._frame[column] >= bounds.minimum
            if bounds.maximum is not None:
                mask &= self._frame[column] <= bounds.maximum
        return mask

    def count(self, spec: FilterSpecification) -> int:
        return int(self._mask(spec).sum())

    def filter(self, spec: FilterSpecification) -> pd.DataFrame:
        return self._frame[self._mask(spec)].reset_index(drop=True)

    def average(self, spec: FilterSpecification, column: str) -> float | None:
        selected = self._frame.loc[self._mask(spec), column]
        return float(selected.mean()) if len(selected) else None

    def group_counts(self, spec: FilterSpecification, column: str) -> dict[str, int]:
        selected = self._frame.loc[self._mask(spec), column]
        return {k: int(v) for k, v in selected.value_counts(dropna=False, sort=False).items()}

    def page(self, spec: FilterSpecification, offset: int, limit: int,
             order_by: str = DEFAULT_ORDER_BY) -> pd.DataFrame:
        selected = self._frame[self._mask(spec)].sort_values(order_by, kind="stable")
        return selected.iloc[offset:offset + limit].reset_index(drop=True)
