"""Cleaner: turns raw campaign rows into typed records.

Steps run in a fixed order and each one that can drop rows leaves an entry
in the cleaning report, so the difference between the raw file and the
campaign_data table can be accounted for row by row.
"""

import pandas as pd

from backend.analysis.models import (
    CATEGORICAL_FIELDS, FLOAT_FIELDS, INT_FIELDS, RECORD_COLUMNS, TARGET_FIELD,
)
from backend.etl.config import ETLConfig, PDAYS_NEVER, RAW_COLUMNS

NUMERIC_FIELDS = INT_FIELDS + FLOAT_FIELDS
TEXT_FIELDS = CATEGORICAL_FIELDS + [TARGET_FIELD]


class Cleaner:
    """Renames, trims, de-duplicates and types raw campaign rows."""

    def __init__(self, config: ETLConfig):
        self._config = config
        self._report: dict = {}

    def clean_campaigns(self, raw: pd.DataFrame) -> pd.DataFrame:
        """Return a DataFrame with RECORD_COLUMNS, typed, pdays never = -1.

        Text columns keep their case; only surrounding whitespace is removed.
        Matching is case-insensitive downstream.
        """
        self._report = {"steps": [], "initial_rows": len(raw)}

        df = raw.rename(columns={v: k for k, v in RAW_COLUMNS.items()})
        for col in TEXT_FIELDS:
            df[col] = df[col].fillna("").astype(str).str.strip()

        df = self._drop_duplicates(df)
        df = self._coerce_numbers(df)
        df = self._rewrite_pdays(df)

        self._summarize(df)
        return df[RECORD_COLUMNS].reset_index(drop=True)

    def get_cleaning_report(self) -> dict:
        """Statistics from the last clean_campaigns() call."""
        return self._report

    # ── Steps ──────────────────────────────────────────────────

    def _drop_duplicates(self, df: pd.DataFrame) -> pd.DataFrame:
        before = len(df)
        df = df.drop_duplicates()
        self._record("drop_duplicates", before, len(df), "identical rows after trimming")
        return df

    def _coerce_numbers(self, df: pd.DataFrame) -> pd.DataFrame:
        # A record without all numeric fields can't take part in range filters
        before = len(df)
        numbers = df[NUMERIC_FIELDS].apply(pd.to_numeric, errors="coerce")
        keep = numbers.notna().all(axis=1)
        df = df[keep].copy()
        df[INT_FIELDS] = numbers.loc[keep, INT_FIELDS].astype("int64")
        df[FLOAT_FIELDS] = numbers.loc[keep, FLOAT_FIELDS].astype("float64")
        self._record("drop_unparseable_numbers", before, len(df), "numeric field not a number")
        return df

    def _rewrite_pdays(self, df: pd.DataFrame) -> pd.DataFrame:
        never = df["pdays"] == self._config.raw_pdays_never
        df.loc[never, "pdays"] = PDAYS_NEVER
        self._report["pdays_never_rewritten"] = int(never.sum())
        print(f"    pdays {self._config.raw_pdays_never} -> {PDAYS_NEVER}: {int(never.sum()):,} rows")
        return df

    # ── Reporting ──────────────────────────────────────────────

    def _record(self, step: str, before: int, after: int, reason: str) -> None:
        removed = before - after
        self._report["steps"].append({
            "step": step,
            "rows_before": before,
            "rows_after": after,
            "rows_removed": removed,
            "reason": reason,
        })
        print(f"    {step}: -{removed:,} rows ({reason})")

    def _summarize(self, df: pd.DataFrame) -> None:
        initial = self._report["initial_rows"]
        self._report["final_rows"] = len(df)
        self._report["subscribed_rows"] = int((df[TARGET_FIELD].str.lower() == "yes").sum())
        self._report["pct_dropped"] = (
            round((1 - len(df) / initial) * 100, 2) if initial else 0.0
        )
        print(f"  Cleaned {initial:,} raw rows into {len(df):,} records "
              f"({self._report['pct_dropped']}% dropped, "
              f"{self._report['subscribed_rows']:,} subscribed)")
