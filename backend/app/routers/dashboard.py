"""Dashboard endpoints: KPIs and chart series for the filtered campaign data."""

import time
from dataclasses import asdict

from fastapi import APIRouter, Depends

from backend.analysis.aggregation import DashboardAggregator
from backend.analysis.engine import FilterEngine
from backend.analysis.filters import FilterSpecification
from backend.app.config import settings
from backend.app.database import get_record_source
from backend.app.dependencies import get_filter_spec
from backend.app.record_source import RecordSource
from backend.app.schemas import DashboardResponse, KPISummary

router = APIRouter(prefix="/dashboard", tags=["Dashboard"])


@router.get("", response_model=DashboardResponse)
def get_dashboard(
    spec: FilterSpecification = Depends(get_filter_spec),
    source: RecordSource = Depends(get_record_source),
):
    deadline = time.monotonic() + settings.aggregation_timeout_seconds
    frame = FilterEngine(source).apply(spec)
    result = DashboardAggregator(frame, spec.subscription_filter).compute(deadline=deadline)
    return DashboardResponse(**asdict(result), filters=spec.to_query_params())


@router.get("/kpis", response_model=KPISummary)
def get_kpis(
    spec: FilterSpecification = Depends(get_filter_spec),
    source: RecordSource = Depends(get_record_source),
):
    return KPISummary(**asdict(FilterEngine(source).kpis(spec)))
