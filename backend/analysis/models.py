"""Domain types for campaign records and dashboard aggregation results.

Column names match the campaign_data table (see backend/sql/schema.sql), so a
DataFrame read from the database or from the cleaned CSV can be turned into
CampaignRecord instances without renaming.
"""

from dataclasses import dataclass, field, fields

import pandas as pd


# ── Record schema ─────────────────────────────────────────────

CATEGORICAL_FIELDS = [
    "job", "marital", "education", "default", "housing", "loan",
    "contact", "month", "day_of_week", "poutcome",
]

INT_FIELDS = ["age", "duration", "campaign", "pdays", "previous"]

FLOAT_FIELDS = [
    "emp_var_rate", "cons_price_idx", "cons_conf_idx", "euribor3m", "nr_employed",
]

TARGET_FIELD = "y"

# Column order of the campaign_data table and of exports
RECORD_COLUMNS = [
    "age", "job", "marital", "education", "default", "housing", "loan",
    "contact", "month", "day_of_week", "duration", "campaign", "pdays",
    "previous", "poutcome", "emp_var_rate", "cons_price_idx", "cons_conf_idx",
    "euribor3m", "nr_employed", "y",
]

# pandas dtypes for numeric columns, so empty query results keep numeric types
COLUMN_DTYPES = {
    **{col: "int64" for col in INT_FIELDS},
    **{col: "float64" for col in FLOAT_FIELDS},
}

# ── Canonical label orders ────────────────────────────────────

MONTHS = ["jan", "feb", "mar", "apr", "may", "jun",
          "jul", "aug", "sep", "oct", "nov", "dec"]
WEEKDAYS = ["mon", "tue", "wed", "thu", "fri"]

PDAYS_NEVER = -1  # "never previously contacted"

# Characters removed by normalize(); the same set SQL TRIM() removes by default
TRIM_CHARS = " "


def normalize(value: object) -> str:
    """Trim spaces and lower-case a categorical value; None becomes ''."""
    if value is None:
        return ""
    try:
        if pd.isna(value):
            return ""
    except (TypeError, ValueError):
        pass
    return str(value).strip(TRIM_CHARS).lower()


@dataclass(frozen=True)
class CampaignRecord:
    """One contact event from the bank marketing campaign."""
    age: int
    job: str
    marital: str
    education: str
    default: str
    housing: str
    loan: str
    contact: str
    month: str
    day_of_week: str
    duration: int
    campaign: int
    pdays: int
    previous: int
    poutcome: str
    emp_var_rate: float
    cons_price_idx: float
    cons_conf_idx: float
    euribor3m: float
    nr_employed: float
    y: str

    @property
    def subscribed(self) -> bool:
        return normalize(self.y) == "yes"


def records_to_frame(records: list[CampaignRecord]) -> pd.DataFrame:
    """Build a DataFrame with RECORD_COLUMNS from CampaignRecord instances."""
    return pd.DataFrame(
        [[getattr(r, col) for col in RECORD_COLUMNS] for r in records],
        columns=RECORD_COLUMNS,
    )


def frame_to_records(df: pd.DataFrame) -> list[CampaignRecord]:
    """Inverse of records_to_frame. Missing strings become ''."""
    names = [f.name for f in fields(CampaignRecord)]
    out: list[CampaignRecord] = []
    for row in df[names].itertuples(index=False, name=None):
        values = dict(zip(names, row))
        for col in INT_FIELDS:
            values[col] = int(values[col])
        for col in FLOAT_FIELDS:
            values[col] = float(values[col])
        for col in CATEGORICAL_FIELDS + [TARGET_FIELD]:
            v = values[col]
            values[col] = "" if v is None or pd.isna(v) else str(v)
        out.append(CampaignRecord(**values))
    return out


# ── Aggregation output ────────────────────────────────────────

@dataclass(frozen=True)
class LabelValue:
    label: str
    value: float


@dataclass(frozen=True)
class StackedPoint:
    label: str
    yes_count: int
    no_count: int


@dataclass(frozen=True)
class FiveNumberSummary:
    label: str
    min: float
    q1: float
    median: float
    q3: float
    max: float


@dataclass(frozen=True)
class ScatterPoint:
    x: float
    y: float
    total: int


@dataclass(frozen=True)
class Kpis:
    total_records: int
    converted_count: int
    conversion_rate: float
    avg_duration: float


@dataclass(frozen=True)
class AggregationResult:
    """Everything the dashboard renders for one filtered view."""
    kpis: Kpis
    category_counts: dict[str, list[LabelValue]] = field(default_factory=dict)
    month_conversion: list[LabelValue] = field(default_factory=list)
    weekday_conversion: list[LabelValue] = field(default_factory=list)
    age_bucket_counts: list[LabelValue] = field(default_factory=list)
    age_bucket_conversion: list[LabelValue] = field(default_factory=list)
    pdays_histogram: list[LabelValue] = field(default_factory=list)
    previous_conversion: list[LabelValue] = field(default_factory=list)
    duration_boxplot: list[FiveNumberSummary] = field(default_factory=list)
    poutcome_stacked: list[StackedPoint] = field(default_factory=list)
    scatter: dict[str, list[ScatterPoint]] = field(default_factory=dict)
    scatter_mode: str = "rate"
    target_distribution: list[LabelValue] = field(default_factory=list)
