"""
Shared fixtures for the dashboard backend tests.

The same eight campaign records back both record sources:
- memory_source: InMemoryRecordSource (pandas mask)
- sql_source: SqlRecordSource over a SQLite file loaded through the ETL Loader

so filter results can be compared across execution strategies.

Sample records (conv = counts as subscribed):

    #  age job          marital   month day dur  camp pdays prev poutcome     y        conv
    1  25  admin.       married   may   mon 100  1    -1    0    nonexistent  yes      Y
    2  35  blue-collar  single    may   tue 300  2    3     1    success      no
    3  55  Admin.       Married   jun   wed 500  1    10    2    failure      " YES "  Y
    4  70  retired      divorced  jun   thu 150  3    20    6    ""           no
    5  45  technician   married   aug   fri 250  2    40    0    nonexistent  no
    6  30  blue-collar  single    aug   mon 400  1    -1    5    failure      yes      Y
    7  61  ""           married   may   fri 50   4    0     0    nonexistent  maybe
    8  17  student      single    jul   tue 0    1    -1    0    nonexistent  no
"""

from typing import List

import pytest

from backend.analysis.models import CampaignRecord, records_to_frame
from backend.app.record_source import InMemoryRecordSource, SqlRecordSource
from backend.etl.config import ETLConfig
from backend.etl.load import Loader


# ============================================================
# RECORD FACTORY
# ============================================================

RECORD_DEFAULTS = dict(
    age=40, job="admin.", marital="married", education="university.degree",
    default="no", housing="yes", loan="no", contact="cellular",
    month="may", day_of_week="mon", duration=200, campaign=1, pdays=-1,
    previous=0, poutcome="nonexistent", emp_var_rate=1.1,
    cons_price_idx=93.994, cons_conf_idx=-36.4, euribor3m=4.857,
    nr_employed=5191.0, y="no",
)


def make_record(**overrides) -> CampaignRecord:
    """Build a CampaignRecord with realistic defaults."""
    return CampaignRecord(**{**RECORD_DEFAULTS, **overrides})


@pytest.fixture
def record_factory():
    return make_record


# ============================================================
# SAMPLE DATA
# ============================================================

@pytest.fixture
def sample_records() -> List[CampaignRecord]:
    return [
        make_record(age=25, job="admin.", marital="married", month="may", day_of_week="mon",
                    duration=100, campaign=1, pdays=-1, previous=0, poutcome="nonexistent", y="yes"),
        make_record(age=35, job="blue-collar", marital="single", month="may", day_of_week="tue",
                    duration=300, campaign=2, pdays=3, previous=1, poutcome="success", y="no"),
        make_record(age=55, job="Admin.", marital="Married", month="jun", day_of_week="wed",
                    duration=500, campaign=1, pdays=10, previous=2, poutcome="failure", y=" YES "),
        make_record(age=70, job="retired", marital="divorced", month="jun", day_of_week="thu",
                    duration=150, campaign=3, pdays=20, previous=6, poutcome="", y="no"),
        make_record(age=45, job="technician", marital="married", month="aug", day_of_week="fri",
                    duration=250, campaign=2, pdays=40, previous=0, poutcome="nonexistent", y="no",
                    emp_var_rate=-1.8, euribor3m=1.299),
        make_record(age=30, job="blue-collar", marital="single", month="aug", day_of_week="mon",
                    duration=400, campaign=1, pdays=-1, previous=5, poutcome="failure", y="yes"),
        make_record(age=61, job="", marital="married", month="may", day_of_week="fri",
                    duration=50, campaign=4, pdays=0, previous=0, poutcome="nonexistent", y="maybe"),
        make_record(age=17, job="student", marital="single", month="jul", day_of_week="tue",
                    duration=0, campaign=1, pdays=-1, previous=0, poutcome="nonexistent", y="no"),
    ]


@pytest.fixture
def sample_frame(sample_records):
    return records_to_frame(sample_records)


# ============================================================
# RECORD SOURCES
# ============================================================

@pytest.fixture
def memory_source(sample_records) -> InMemoryRecordSource:
    return InMemoryRecordSource.from_records(sample_records)


@pytest.fixture
def sqlite_config(tmp_path) -> ETLConfig:
    return ETLConfig(
        raw_data_path=tmp_path / "bank-additional-full.csv",
        database_url=f"sqlite:///{tmp_path / 'campaign.db'}",
    )


@pytest.fixture
def sql_source(sample_records, sqlite_config) -> SqlRecordSource:
    loader = Loader(sqlite_config)
    loader.execute_sql_file()
    loader.load_table(records_to_frame(sample_records))
    return SqlRecordSource(loader.engine)


@pytest.fixture(params=["memory", "sql"])
def any_source(request, memory_source, sql_source):
    """Runs a test once per record source implementation."""
    return memory_source if request.param == "memory" else sql_source
