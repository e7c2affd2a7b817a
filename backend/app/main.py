"""Bank Marketing Dashboard FastAPI application.

Serves filtered campaign data, chart series, exports and upload checks
to the dashboard frontend.

Usage:
    uvicorn backend.app.main:app --host 0.0.0.0 --port 8001 --reload
"""

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from backend.analysis.errors import AggregationCancelled, SourceUnavailable
from backend.app.config import settings
from backend.app.routers import dashboard, records, uploads

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Bank Marketing Dashboard API",
    description="Campaign filtering, conversion analytics and data quality checks",
    version="1.0.0",
)

# The dashboard frontend runs on a separate dev server origin
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Mount routers
app.include_router(dashboard.router, prefix=settings.api_prefix)
app.include_router(records.router, prefix=settings.api_prefix)
app.include_router(uploads.router, prefix=settings.api_prefix)


@app.exception_handler(SourceUnavailable)
def source_unavailable_handler(request: Request, exc: SourceUnavailable):
    logger.error("Record source unavailable for %s: %s", request.url.path, exc)
    return JSONResponse(status_code=503, content={"detail": "Campaign data is currently unavailable."})


@app.exception_handler(AggregationCancelled)
def aggregation_cancelled_handler(request: Request, exc: AggregationCancelled):
    return JSONResponse(status_code=504, content={"detail": str(exc)})


@app.get("/")
def root():
    return {"status": "ok", "app": "Bank Marketing Dashboard API", "docs": "/docs"}


@app.get("/health")
def health():
    return {"status": "healthy"}
