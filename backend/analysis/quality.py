"""Quick structural quality scan of an uploaded CSV file.

The file is read with pandas in chunks of CHUNK_ROWS lines. The first
sample_rows_limit data rows are examined in detail (column stats, duplicate
detection, samples); rows past the limit are only counted. Problems with the
file itself are reported in DataQualityReport.error rather than raised.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import BinaryIO

import pandas as pd

logger = logging.getLogger(__name__)

SAMPLE_ROWS_LIMIT = 5000
CHUNK_ROWS = 1000
MAX_SAMPLE_RECORDS = 10
MAX_SAMPLE_VALUES = 10
MAX_DISTINCT_VALUES = 1000


@dataclass
class ColumnStats:
    name: str
    null_count: int = 0
    non_null_count: int = 0
    numeric_count: int = 0
    date_count: int = 0
    string_count: int = 0
    distinct_count: int = 0
    sample_values: list[str] = field(default_factory=list)
    inferred_type: str = "empty"
    _distinct: set[str] = field(default_factory=set, repr=False)

    def observe(self, values: pd.Series) -> None:
        """Fold one chunk of a column's raw values into the counters."""
        present = values[~blank_mask(values)]
        self.null_count += len(values) - len(present)
        self.non_null_count += len(present)
        if present.empty:
            return

        room = MAX_SAMPLE_VALUES - len(self.sample_values)
        if room > 0:
            self.sample_values.extend(present.head(room).tolist())

        numeric = numeric_mask(present)
        dates = date_mask(present[~numeric])
        self.numeric_count += int(numeric.sum())
        self.date_count += int(dates.sum())
        self.string_count += int((~dates).sum())

        for value in present.drop_duplicates():
            if len(self._distinct) >= MAX_DISTINCT_VALUES:
                break
            self._distinct.add(value)

    def finalize(self) -> None:
        self.distinct_count = len(self._distinct)
        self.inferred_type = infer_column_type(self)


@dataclass
class DataQualityReport:
    file_name: str | None
    detected_at: datetime
    row_count: int = 0
    column_count: int = 0
    columns: list[ColumnStats] = field(default_factory=list)
    duplicate_rows: int = 0
    sample_records: list[list[str | None]] = field(default_factory=list)
    error: str | None = None


def blank_mask(values: pd.Series) -> pd.Series:
    """Missing cells and cells holding only whitespace."""
    return values.fillna("").astype(str).str.strip() == ""


def numeric_mask(values: pd.Series) -> pd.Series:
    return pd.to_numeric(values.str.strip(), errors="coerce").notna()


def date_mask(values: pd.Series) -> pd.Series:
    """Values pandas can parse as a date or timestamp.

    A value needs at least one digit: the parser alone would read bare month
    or weekday names ("may", "mon") as dates in the current year.
    """
    has_digit = values.str.contains(r"\d", regex=True)
    candidates = values[has_digit].str.strip()
    parsed = pd.to_datetime(candidates, errors="coerce", format="mixed", utc=True)
    return parsed.notna().reindex(values.index, fill_value=False)


def infer_column_type(col: ColumnStats) -> str:
    """Pick numeric, date, string or empty from the per-column counters."""
    if col.non_null_count == 0:
        return "empty"
    if (col.numeric_count > 0
            and col.numeric_count >= col.date_count
            and col.numeric_count >= col.string_count):
        return "numeric"
    if col.date_count > 0 and col.date_count >= col.string_count:
        return "date"
    return "string"


class DataValidator:
    """Reads a CSV once and builds a DataQualityReport."""

    def __init__(self, sample_rows_limit: int = SAMPLE_ROWS_LIMIT, encoding: str = "utf-8-sig"):
        self._sample_rows_limit = sample_rows_limit
        self._encoding = encoding

    def validate(self, stream: BinaryIO, file_name: str | None = None) -> DataQualityReport:
        report = DataQualityReport(file_name=file_name, detected_at=datetime.now(timezone.utc))
        try:
            # header=None keeps header cells verbatim (no "Unnamed: 1" or "a.1")
            reader = pd.read_csv(
                stream,
                header=None,
                dtype=str,
                keep_default_na=False,
                na_values=[""],
                skip_blank_lines=True,
                encoding=self._encoding,
                chunksize=CHUNK_ROWS,
            )
            with reader:
                self._scan(reader, report)
        except pd.errors.EmptyDataError:
            report.error = "Empty file or no header line found."
        except (UnicodeDecodeError, pd.errors.ParserError) as exc:
            logger.warning("CSV validation of %s failed: %s", file_name, exc)
            report.error = f"Validation failed: {type(exc).__name__}: {exc}"
        return report

    def _scan(self, chunks, report: DataQualityReport) -> None:
        seen_rows: set[int] = set()
        for chunk in chunks:
            if not report.columns:
                header = chunk.iloc[0]
                chunk = chunk.iloc[1:]
                report.column_count = len(header)
                report.columns = [
                    ColumnStats(name=_column_name(h, i)) for i, h in enumerate(header)
                ]

            detail = chunk.iloc[:max(self._sample_rows_limit - report.row_count, 0)]
            report.row_count += len(chunk)
            if detail.empty:
                continue

            room = MAX_SAMPLE_RECORDS - len(report.sample_records)
            for row in detail.head(max(room, 0)).itertuples(index=False):
                report.sample_records.append([None if pd.isna(v) else v for v in row])

            # Missing and empty cells compare equal, as in the raw text
            hashes = pd.util.hash_pandas_object(detail.fillna(""), index=False)
            for row_hash in hashes.tolist():
                if row_hash in seen_rows:
                    report.duplicate_rows += 1
                else:
                    seen_rows.add(row_hash)

            for col, (_, values) in zip(report.columns, detail.items()):
                col.observe(values)

        for col in report.columns:
            col.finalize()

        logger.info(
            "Validated %s: %d rows, %d columns, %d duplicates",
            report.file_name, report.row_count, report.column_count, report.duplicate_rows,
        )


def _column_name(header, position: int) -> str:
    if pd.isna(header) or not str(header).strip():
        return f"Column{position + 1}"
    return str(header).strip()
