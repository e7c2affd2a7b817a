"""Tests for DashboardAggregator series and KPI computations.

Expected values are worked out by hand from the sample table in conftest.py.
"""

import threading
import time

import pytest

from backend.analysis.aggregation import (
    DashboardAggregator,
    conversion_rate,
    round_half_up,
)
from backend.analysis.errors import AggregationCancelled
from backend.analysis.filters import FilterSpecification, SubscriptionFilter
from backend.analysis.models import (
    MONTHS, WEEKDAYS, FiveNumberSummary, LabelValue, ScatterPoint, StackedPoint,
    records_to_frame,
)


def as_pairs(series):
    return [(p.label, p.value) for p in series]


@pytest.fixture
def aggregator(sample_frame):
    return DashboardAggregator(sample_frame)


class TestRounding:

    def test_half_rounds_away_from_zero(self):
        assert round_half_up(2.345, 2) == 2.35
        assert round_half_up(-2.345, 2) == -2.35
        assert round_half_up(0.125, 2) == 0.13

    def test_conversion_rate_zero_total(self):
        assert conversion_rate(0, 0) == 0.0

    def test_conversion_rate_two_decimals(self):
        assert conversion_rate(2, 3) == 66.67
        assert conversion_rate(1, 3) == 33.33


class TestKpis:

    def test_sample_kpis(self, aggregator):
        kpis = aggregator.kpis()
        assert kpis.total_records == 8
        assert kpis.converted_count == 3
        assert kpis.conversion_rate == 37.5
        assert kpis.avg_duration == 218.75

    def test_converted_never_exceeds_total(self, aggregator):
        kpis = aggregator.kpis()
        assert kpis.converted_count <= kpis.total_records
        assert kpis.conversion_rate == round_half_up(
            kpis.converted_count * 100 / kpis.total_records, 2
        )

    def test_scenario_four_records(self, record_factory):
        records = [
            record_factory(age=25, y="yes"),
            record_factory(age=35, y="no"),
            record_factory(age=55, y="yes"),
            record_factory(age=70, y="no"),
        ]
        agg = DashboardAggregator(records_to_frame(records))
        kpis = agg.kpis()
        assert (kpis.total_records, kpis.converted_count, kpis.conversion_rate) == (4, 2, 50.0)
        assert as_pairs(agg.age_bucket_counts()) == [
            ("17-30", 1), ("31-45", 1), ("46-60", 1), ("61-98", 1),
        ]

    def test_target_distribution(self, aggregator):
        assert as_pairs(aggregator.target_distribution()) == [("yes", 3), ("no", 5)]


class TestCategorySeries:

    def test_raw_values_grouped_in_first_seen_order(self, aggregator):
        counts = aggregator.category_counts()
        assert as_pairs(counts["marital"]) == [
            ("married", 3), ("single", 3), ("Married", 1), ("divorced", 1),
        ]

    def test_blank_values_become_unknown(self, aggregator):
        counts = aggregator.category_counts()
        assert as_pairs(counts["job"]) == [
            ("admin.", 1), ("blue-collar", 2), ("Admin.", 1), ("retired", 1),
            ("technician", 1), ("Unknown", 1), ("student", 1),
        ]

    def test_all_profile_fields_present(self, aggregator):
        assert set(aggregator.category_counts()) == {
            "job", "marital", "education", "default", "housing", "loan", "contact",
        }


class TestFixedOrderSeries:

    def test_month_series_has_all_twelve_months(self, aggregator):
        series = aggregator.month_conversion()
        assert [p.label for p in series] == MONTHS
        rates = dict(as_pairs(series))
        assert rates["may"] == 33.33
        assert rates["jun"] == 50.0
        assert rates["jul"] == 0.0
        assert rates["aug"] == 50.0
        assert rates["jan"] == 0.0

    def test_weekday_series(self, aggregator):
        assert as_pairs(aggregator.weekday_conversion()) == [
            ("mon", 100.0), ("tue", 0.0), ("wed", 100.0), ("thu", 0.0), ("fri", 0.0),
        ]
        assert [p.label for p in aggregator.weekday_conversion()] == WEEKDAYS

    def test_age_buckets(self, aggregator):
        assert as_pairs(aggregator.age_bucket_counts()) == [
            ("17-30", 3), ("31-45", 2), ("46-60", 1), ("61-98", 2),
        ]
        assert as_pairs(aggregator.age_bucket_conversion()) == [
            ("17-30", 66.67), ("31-45", 0.0), ("46-60", 100.0), ("61-98", 0.0),
        ]

    def test_out_of_range_age_excluded_from_buckets(self, record_factory):
        agg = DashboardAggregator(records_to_frame([record_factory(age=16), record_factory(age=99)]))
        assert sum(p.value for p in agg.age_bucket_counts()) == 0

    def test_pdays_histogram(self, aggregator):
        assert as_pairs(aggregator.pdays_histogram()) == [
            ("never", 3), ("0-5", 2), ("6-15", 1), ("16-30", 1), ("31+", 1),
        ]

    def test_previous_contacts_capped_at_five(self, aggregator):
        assert as_pairs(aggregator.previous_conversion()) == [
            ("0", 25.0), ("1", 0.0), ("2", 100.0), ("5+", 50.0),
        ]


class TestDistributionSeries:

    def test_duration_boxplot(self, aggregator):
        yes, no = aggregator.duration_boxplot()
        assert yes == FiveNumberSummary("yes", 100.0, 250.0, 400.0, 450.0, 500.0)
        assert no == FiveNumberSummary("no", 0.0, 50.0, 150.0, 250.0, 300.0)

    def test_boxplot_exact_ranks(self, record_factory):
        records = [record_factory(duration=d, y="yes") for d in (300, 100, 500, 200, 400)]
        yes, no = DashboardAggregator(records_to_frame(records)).duration_boxplot()
        assert (yes.min, yes.q1, yes.median, yes.q3, yes.max) == (100, 200, 300, 400, 500)
        assert no == FiveNumberSummary("no", 0.0, 0.0, 0.0, 0.0, 0.0)

    def test_poutcome_stacked(self, aggregator):
        assert aggregator.poutcome_stacked() == [
            StackedPoint("nonexistent", 1, 3),
            StackedPoint("success", 0, 1),
            StackedPoint("failure", 2, 0),
            StackedPoint("unknown", 0, 1),
        ]


class TestScatterSeries:

    def test_campaign_rates_ascending(self, aggregator):
        assert aggregator.scatter_series()["campaign"] == [
            ScatterPoint(1, 75.0, 4),
            ScatterPoint(2, 0.0, 2),
            ScatterPoint(3, 0.0, 1),
            ScatterPoint(4, 0.0, 1),
        ]

    def test_indicator_rounding_buckets(self, aggregator):
        scatter = aggregator.scatter_series()
        assert scatter["euribor3m"] == [
            ScatterPoint(1.299, 0.0, 1),
            ScatterPoint(4.857, 42.86, 7),
        ]
        assert [p.x for p in scatter["nr_employed"]] == [5191.0]
        assert set(scatter) == {
            "campaign", "emp_var_rate", "cons_price_idx", "cons_conf_idx",
            "euribor3m", "nr_employed",
        }

    def test_rate_mode_stays_within_percent_range(self, aggregator):
        assert aggregator.scatter_mode == "rate"
        for points in aggregator.scatter_series().values():
            assert all(0.0 <= p.y <= 100.0 for p in points)

    def test_single_outcome_filter_switches_to_counts(self, sample_records):
        spec = FilterSpecification.from_params({"y": ["yes"]})
        frame = records_to_frame([r for r in sample_records if spec.matches(r)])
        agg = DashboardAggregator(frame, spec.subscription_filter)
        assert agg.scatter_mode == "count"
        for points in agg.scatter_series().values():
            assert all(p.y == p.total for p in points)
        assert agg.scatter_series()["campaign"] == [ScatterPoint(1, 3.0, 3)]


class TestEmptyInput:

    @pytest.fixture
    def empty(self, sample_frame):
        return DashboardAggregator(sample_frame.iloc[0:0])

    def test_kpis_are_zero(self, empty):
        kpis = empty.kpis()
        assert (kpis.total_records, kpis.converted_count) == (0, 0)
        assert (kpis.conversion_rate, kpis.avg_duration) == (0.0, 0.0)

    def test_every_series_degrades_gracefully(self, empty):
        result = empty.compute()
        assert all(p.value == 0.0 for p in result.month_conversion)
        assert len(result.month_conversion) == 12
        assert all(p.value == 0 for p in result.age_bucket_counts)
        assert result.previous_conversion == []
        assert result.poutcome_stacked == []
        assert all(points == [] for points in result.scatter.values())
        assert [b.median for b in result.duration_boxplot] == [0.0, 0.0]
        assert as_pairs(result.target_distribution) == [("yes", 0), ("no", 0)]


class TestCompute:

    def test_bundle_contains_every_series(self, aggregator):
        result = aggregator.compute()
        assert result.kpis.total_records == 8
        assert len(result.weekday_conversion) == 5
        assert result.scatter_mode == "rate"
        assert result.target_distribution[0] == LabelValue("yes", 3)

    def test_cancel_event_stops_aggregation(self, aggregator):
        event = threading.Event()
        event.set()
        with pytest.raises(AggregationCancelled):
            aggregator.compute(cancel_event=event)

    def test_expired_deadline_stops_aggregation(self, aggregator):
        with pytest.raises(AggregationCancelled):
            aggregator.compute(deadline=time.monotonic() - 1)

    def test_subscription_filter_default_is_none(self, sample_frame):
        assert DashboardAggregator(sample_frame).scatter_mode == "rate"
        agg = DashboardAggregator(sample_frame, SubscriptionFilter.ONLY_NO)
        assert agg.scatter_mode == "count"
