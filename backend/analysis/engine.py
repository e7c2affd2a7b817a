"""Filter engine: applies a FilterSpecification to a record source."""

import math
from dataclasses import dataclass

import pandas as pd

from backend.analysis.aggregation import conversion_rate, round_half_up
from backend.analysis.filters import FilterSpecification
from backend.analysis.models import TARGET_FIELD, Kpis, normalize


@dataclass(frozen=True)
class RecordPage:
    """One page of filtered records, ordered by age."""
    records: pd.DataFrame
    total: int
    page: int
    page_size: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.page_size) if self.page_size else 0


class FilterEngine:
    """Runs filter specifications against a record source.

    Holds no state beyond the source reference, so one instance can serve
    concurrent requests. Failures from the source (SourceUnavailable)
    propagate unchanged.
    """

    def __init__(self, source):
        self._source = source

    def apply(self, spec: FilterSpecification) -> pd.DataFrame:
        """Return the filtered view as a DataFrame with RECORD_COLUMNS."""
        return self._source.filter(spec)

    def count(self, spec: FilterSpecification) -> int:
        return self._source.count(spec)

    def page(self, spec: FilterSpecification, page: int, page_size: int) -> RecordPage:
        page = max(page, 1)
        total = self._source.count(spec)
        records = self._source.page(spec, offset=(page - 1) * page_size, limit=page_size)
        return RecordPage(records=records, total=total, page=page, page_size=page_size)

    def kpis(self, spec: FilterSpecification) -> Kpis:
        """Top-line KPIs using only count/average/grouping on the source."""
        total = self._source.count(spec)
        by_target = self._source.group_counts(spec, TARGET_FIELD)
        converted = sum(n for label, n in by_target.items() if normalize(label) == "yes")
        avg = self._source.average(spec, "duration") if total else None
        return Kpis(
            total_records=total,
            converted_count=converted,
            conversion_rate=conversion_rate(converted, total),
            avg_duration=round_half_up(avg, 2) if avg is not None else 0.0,
        )
