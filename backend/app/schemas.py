"""Pydantic response models. These define the exact JSON shape
the frontend receives. Frontend TypeScript types mirror these."""

from datetime import datetime

from pydantic import BaseModel


class KPISummary(BaseModel):
    total_records: int
    converted_count: int
    conversion_rate: float
    avg_duration: float


class LabelValue(BaseModel):
    label: str
    value: float


class StackedPoint(BaseModel):
    label: str
    yes_count: int
    no_count: int


class BoxplotPoint(BaseModel):
    label: str
    min: float
    q1: float
    median: float
    q3: float
    max: float


class ScatterPoint(BaseModel):
    x: float
    y: float
    total: int


class DashboardResponse(BaseModel):
    kpis: KPISummary
    category_counts: dict[str, list[LabelValue]]
    month_conversion: list[LabelValue]
    weekday_conversion: list[LabelValue]
    age_bucket_counts: list[LabelValue]
    age_bucket_conversion: list[LabelValue]
    pdays_histogram: list[LabelValue]
    previous_conversion: list[LabelValue]
    duration_boxplot: list[BoxplotPoint]
    poutcome_stacked: list[StackedPoint]
    scatter: dict[str, list[ScatterPoint]]
    scatter_mode: str
    target_distribution: list[LabelValue]
    filters: dict[str, list[str]] = {}


class CampaignRecordOut(BaseModel):
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


class PaginatedRecords(BaseModel):
    items: list[CampaignRecordOut]
    total: int
    page: int
    page_size: int
    total_pages: int
    filters: dict[str, list[str]] = {}


class ColumnStats(BaseModel):
    name: str
    null_count: int
    non_null_count: int
    numeric_count: int
    date_count: int
    string_count: int
    distinct_count: int
    sample_values: list[str]
    inferred_type: str


class DataQualityReport(BaseModel):
    file_name: str | None = None
    detected_at: datetime
    row_count: int
    column_count: int
    columns: list[ColumnStats]
    duplicate_rows: int
    sample_records: list[list[str | None]]
    error: str | None = None


class UploadReceipt(BaseModel):
    ok: bool
    file_name: str | None = None
    size: int
