"""Aggregation engine: KPIs and chart series for a filtered set of campaign records.

Every method works off the same filtered DataFrame and returns fixed-shape
series (see backend.analysis.models). Groups with no records report a rate of
0.0; an empty input degrades to zeros and empty series, never an error.

Usage:
    frame = FilterEngine(source).apply(spec)
    result = DashboardAggregator(frame, spec.subscription_filter).compute()
"""

import logging
import threading
import time
from decimal import ROUND_HALF_UP, Decimal

import pandas as pd

from backend.analysis.errors import AggregationCancelled
from backend.analysis.filters import SubscriptionFilter
from backend.analysis.models import (
    MONTHS, PDAYS_NEVER, TARGET_FIELD, WEEKDAYS,
    AggregationResult, FiveNumberSummary, Kpis, LabelValue, ScatterPoint,
    StackedPoint, normalize,
)
from backend.analysis.percentile import percentile

logger = logging.getLogger(__name__)


# ── Bucket definitions ────────────────────────────────────────

# (label, low, high), both ends inclusive
AGE_BUCKETS = [
    ("17-30", 17, 30),
    ("31-45", 31, 45),
    ("46-60", 46, 60),
    ("61-98", 61, 98),
]

# high=None means open-ended
PDAYS_BUCKETS = [
    ("never", PDAYS_NEVER, PDAYS_NEVER),
    ("0-5", 0, 5),
    ("6-15", 6, 15),
    ("16-30", 16, 30),
    ("31+", 31, None),
]

PREVIOUS_CAP = 5

CATEGORY_COUNT_FIELDS = ["job", "marital", "education", "default", "housing", "loan", "contact"]
UNKNOWN_LABEL = "Unknown"

# Economic indicator -> decimals used to bucket it on the scatter charts
SCATTER_PRECISION = {
    "emp_var_rate": 2,
    "cons_price_idx": 2,
    "cons_conf_idx": 2,
    "euribor3m": 3,
    "nr_employed": 0,
}


def round_half_up(value: float, ndigits: int = 0) -> float:
    """Round half away from zero (2.345 -> 2.35, -2.345 -> -2.35)."""
    q = Decimal(10) ** -ndigits
    return float(Decimal(str(value)).quantize(q, rounding=ROUND_HALF_UP))


def conversion_rate(converted: int, total: int) -> float:
    """Percentage of converted records, 2 decimals. 0.0 when total is 0."""
    if total <= 0:
        return 0.0
    return round_half_up(converted * 100 / total, 2)


class DashboardAggregator:
    """Computes the full AggregationResult for one filtered record set."""

    def __init__(
        self,
        frame: pd.DataFrame,
        subscription_filter: SubscriptionFilter = SubscriptionFilter.NONE,
    ):
        self._df = frame.reset_index(drop=True)
        self._converted = self._df[TARGET_FIELD].map(normalize).eq("yes").astype(bool)
        self._subscription_filter = subscription_filter

    @property
    def scatter_mode(self) -> str:
        """'count' once the data is narrowed to one outcome, else 'rate'."""
        if self._subscription_filter == SubscriptionFilter.NONE:
            return "rate"
        return "count"

    def compute(
        self,
        deadline: float | None = None,
        cancel_event: threading.Event | None = None,
    ) -> AggregationResult:
        """Run every aggregation step.

        Args:
            deadline: time.monotonic() value after which to stop.
            cancel_event: Set by the caller to stop early.

        Raises:
            AggregationCancelled: Checked between steps.
        """
        steps = [
            ("kpis", self.kpis),
            ("category_counts", self.category_counts),
            ("month_conversion", self.month_conversion),
            ("weekday_conversion", self.weekday_conversion),
            ("age_bucket_counts", self.age_bucket_counts),
            ("age_bucket_conversion", self.age_bucket_conversion),
            ("pdays_histogram", self.pdays_histogram),
            ("previous_conversion", self.previous_conversion),
            ("duration_boxplot", self.duration_boxplot),
            ("poutcome_stacked", self.poutcome_stacked),
            ("scatter", self.scatter_series),
            ("target_distribution", self.target_distribution),
        ]

        results = {}
        for name, step in steps:
            _check_cancelled(name, deadline, cancel_event)
            results[name] = step()

        return AggregationResult(**results, scatter_mode=self.scatter_mode)

    # ── Scalar KPIs ───────────────────────────────────────────

    def kpis(self) -> Kpis:
        total = len(self._df)
        converted = int(self._converted.sum())
        avg_duration = round_half_up(self._df["duration"].mean(), 2) if total else 0.0
        return Kpis(
            total_records=total,
            converted_count=converted,
            conversion_rate=conversion_rate(converted, total),
            avg_duration=avg_duration,
        )

    def target_distribution(self) -> list[LabelValue]:
        converted = int(self._converted.sum())
        return [
            LabelValue("yes", converted),
            LabelValue("no", len(self._df) - converted),
        ]

    # ── Categorical counts ────────────────────────────────────

    def category_counts(self) -> dict[str, list[LabelValue]]:
        """Record count per raw value for each profile field, in first-seen order."""
        out: dict[str, list[LabelValue]] = {}
        for column in CATEGORY_COUNT_FIELDS:
            labels = self._labels(column, UNKNOWN_LABEL)
            sizes = labels.groupby(labels, sort=False).size()
            out[column] = [LabelValue(str(label), int(n)) for label, n in sizes.items()]
        return out

    # ── Fixed-order rate series ───────────────────────────────

    def month_conversion(self) -> list[LabelValue]:
        return self._fixed_order_rates("month", MONTHS)

    def weekday_conversion(self) -> list[LabelValue]:
        return self._fixed_order_rates("day_of_week", WEEKDAYS)

    def age_bucket_counts(self) -> list[LabelValue]:
        ages = self._df["age"]
        return [
            LabelValue(label, int(ages.between(low, high).sum()))
            for label, low, high in AGE_BUCKETS
        ]

    def age_bucket_conversion(self) -> list[LabelValue]:
        ages = self._df["age"]
        series = []
        for label, low, high in AGE_BUCKETS:
            in_bucket = ages.between(low, high)
            series.append(LabelValue(label, conversion_rate(
                int((in_bucket & self._converted).sum()), int(in_bucket.sum()),
            )))
        return series

    def pdays_histogram(self) -> list[LabelValue]:
        pdays = self._df["pdays"]
        series = []
        for label, low, high in PDAYS_BUCKETS:
            in_bucket = pdays >= low if high is None else pdays.between(low, high)
            series.append(LabelValue(label, int(in_bucket.sum())))
        return series

    def previous_conversion(self) -> list[LabelValue]:
        capped = self._df["previous"].clip(upper=PREVIOUS_CAP)
        stats = self._group_stats(capped, sort=True)
        return [
            LabelValue(
                f"{PREVIOUS_CAP}+" if key >= PREVIOUS_CAP else str(int(key)),
                conversion_rate(int(row.converted), int(row.total)),
            )
            for key, row in zip(stats.index, stats.itertuples(index=False))
        ]

    # ── Distribution and stacked series ───────────────────────

    def duration_boxplot(self) -> list[FiveNumberSummary]:
        """Five-number summary of call duration for subscribers vs. the rest."""
        durations = self._df["duration"]
        out = []
        for label, part in (("yes", self._converted), ("no", ~self._converted)):
            values = sorted(durations[part].tolist())
            if not values:
                out.append(FiveNumberSummary(label, 0.0, 0.0, 0.0, 0.0, 0.0))
                continue
            out.append(FiveNumberSummary(
                label=label,
                min=float(values[0]),
                q1=percentile(values, 25),
                median=percentile(values, 50),
                q3=percentile(values, 75),
                max=float(values[-1]),
            ))
        return out

    def poutcome_stacked(self) -> list[StackedPoint]:
        labels = self._labels("poutcome", "unknown")
        stats = self._group_stats(labels, sort=False)
        return [
            StackedPoint(str(key), int(row.converted), int(row.total - row.converted))
            for key, row in zip(stats.index, stats.itertuples(index=False))
        ]

    # ── Scatter series ────────────────────────────────────────

    def scatter_series(self) -> dict[str, list[ScatterPoint]]:
        """Rate (or count) per distinct x-value, ascending by x.

        campaign uses the raw contact count; the economic indicators are
        rounded to SCATTER_PRECISION before grouping.
        """
        out = {"campaign": self._scatter(self._df["campaign"])}
        for column, ndigits in SCATTER_PRECISION.items():
            keys = self._df[column].map(lambda v, nd=ndigits: round_half_up(v, nd))
            out[column] = self._scatter(keys)
        return out

    def _scatter(self, keys: pd.Series) -> list[ScatterPoint]:
        stats = self._group_stats(keys, sort=True)
        count_mode = self.scatter_mode == "count"
        points = []
        for key, row in zip(stats.index, stats.itertuples(index=False)):
            total = int(row.total)
            y = float(total) if count_mode else conversion_rate(int(row.converted), total)
            points.append(ScatterPoint(x=key.item() if hasattr(key, "item") else key, y=y, total=total))
        return points

    # ── Helpers ───────────────────────────────────────────────

    def _labels(self, column: str, missing_label: str) -> pd.Series:
        """Raw values with null/blank replaced by missing_label."""
        values = self._df[column]
        blank = values.map(normalize).eq("")
        return values.where(~blank, missing_label).astype(str)

    def _group_stats(self, keys: pd.Series, sort: bool) -> pd.DataFrame:
        """Per-key total and converted counts, indexed by key."""
        frame = pd.DataFrame({
            "key": keys.to_numpy(),
            "converted": self._converted.to_numpy(),
        })
        return frame.groupby("key", sort=sort).agg(
            total=("converted", "size"),
            converted=("converted", "sum"),
        )

    def _fixed_order_rates(self, column: str, labels: list[str]) -> list[LabelValue]:
        stats = self._group_stats(self._df[column].map(normalize), sort=False)
        series = []
        for label in labels:
            if label in stats.index:
                total = int(stats.at[label, "total"])
                converted = int(stats.at[label, "converted"])
            else:
                total = converted = 0
            series.append(LabelValue(label, conversion_rate(converted, total)))
        return series


def _check_cancelled(
    step: str,
    deadline: float | None,
    cancel_event: threading.Event | None,
) -> None:
    if cancel_event is not None and cancel_event.is_set():
        logger.warning("Aggregation cancelled before step %s", step)
        raise AggregationCancelled(f"Aggregation cancelled before {step}")
    if deadline is not None and time.monotonic() > deadline:
        logger.warning("Aggregation deadline exceeded before step %s", step)
        raise AggregationCancelled(f"Aggregation deadline exceeded before {step}")
