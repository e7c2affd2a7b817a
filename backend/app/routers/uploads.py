"""Upload endpoints: structural quality scan of a user-supplied CSV."""

import logging
from dataclasses import asdict
from pathlib import Path

from fastapi import APIRouter, File, HTTPException, Query, UploadFile

from backend.analysis.quality import DataValidator
from backend.app.config import settings
from backend.app.schemas import DataQualityReport, UploadReceipt

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/uploads", tags=["Uploads"])


@router.post("/validate", response_model=DataQualityReport | UploadReceipt)
def validate_upload(
    file: UploadFile = File(...),
    test: str | None = Query(None),
):
    stream = file.file
    stream.seek(0, 2)
    size = stream.tell()
    stream.seek(0)

    if size == 0:
        raise HTTPException(status_code=400, detail="No file provided.")
    if size > settings.upload_max_bytes:
        raise HTTPException(status_code=413, detail="File too large.")

    file_name = Path(file.filename).name if file.filename else None

    # Upload smoke test: skip parsing
    if test is not None:
        return UploadReceipt(ok=True, file_name=file_name, size=size)

    logger.info("Validating upload %s (%d bytes)", file_name, size)
    report = DataValidator(sample_rows_limit=settings.upload_sample_rows).validate(stream, file_name)
    return DataQualityReport.model_validate(asdict(report))
