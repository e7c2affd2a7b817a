"""Record endpoints: paginated interactive table and filtered exports."""

from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response

from backend.analysis.engine import FilterEngine
from backend.analysis.filters import FilterSpecification
from backend.analysis.models import frame_to_records
from backend.app.config import settings
from backend.app.database import get_record_source
from backend.app.dependencies import get_filter_spec
from backend.app.exporters import EXPORT_BASENAME, to_csv_bytes, to_xlsx_bytes
from backend.app.record_source import RecordSource
from backend.app.schemas import CampaignRecordOut, PaginatedRecords

router = APIRouter(prefix="/records", tags=["Records"])

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


@router.get("", response_model=PaginatedRecords)
def get_records(
    page: int = Query(1),
    spec: FilterSpecification = Depends(get_filter_spec),
    source: RecordSource = Depends(get_record_source),
):
    result = FilterEngine(source).page(spec, page=page, page_size=settings.page_size)
    items = [
        CampaignRecordOut(**vars(r)) for r in frame_to_records(result.records)
    ]
    return PaginatedRecords(
        items=items, total=result.total, page=result.page,
        page_size=result.page_size, total_pages=result.total_pages,
        filters=spec.to_query_params(),
    )


@router.get("/export.csv")
def export_csv(
    spec: FilterSpecification = Depends(get_filter_spec),
    source: RecordSource = Depends(get_record_source),
):
    frame = FilterEngine(source).apply(spec)
    return Response(
        content=to_csv_bytes(frame),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{EXPORT_BASENAME}.csv"'},
    )


@router.get("/export.xlsx")
def export_xlsx(
    spec: FilterSpecification = Depends(get_filter_spec),
    source: RecordSource = Depends(get_record_source),
):
    frame = FilterEngine(source).apply(spec)
    return Response(
        content=to_xlsx_bytes(frame),
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{EXPORT_BASENAME}.xlsx"'},
    )
