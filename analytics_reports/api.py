#!/usr/bin/env python3
"""
Simplified REST API for Google Analytics named reports
Exposes the report table and a generic query over HTTP.
"""

import argparse
import logging
from functools import lru_cache

import uvicorn
from fastapi import Depends, FastAPI
from fastapi.responses import JSONResponse

from .analytics import Analytics
from .config import AnalyticsSettings, configure_logging
from .exceptions import (
    CacheBackendError,
    EmptyMetricsError,
    InvalidLimitError,
    InvalidRangeError,
    RemoteQueryError,
    UnknownReportError,
)
from .google_service import create_analytics
from .period import Period
from .query_models import (
    DateRange,
    ErrorResponse,
    QueryRequest,
    QueryResponse,
    ReportRequest,
    ReportResponse,
    split_names,
)

logger = logging.getLogger(__name__)

app = FastAPI(
    title="Analytics Reports API",
    description="Named Google Analytics reports as flat JSON records",
    version="1.0.0"
)


@lru_cache()
def get_analytics() -> Analytics:
    """Analytics handle built once from environment settings"""
    return create_analytics(AnalyticsSettings.from_env())


def _error(status_code: int, message: str, details: str = None) -> JSONResponse:
    return JSONResponse(status_code=status_code,
                        content=ErrorResponse(message=message, details=details).model_dump())


@app.exception_handler(InvalidRangeError)
async def invalid_range_handler(request, exc: InvalidRangeError):
    return _error(400, "Invalid date range", str(exc))


@app.exception_handler(EmptyMetricsError)
async def empty_metrics_handler(request, exc: EmptyMetricsError):
    return _error(400, "No metrics requested", str(exc))


@app.exception_handler(InvalidLimitError)
async def invalid_limit_handler(request, exc: InvalidLimitError):
    return _error(400, "Invalid result limit", str(exc))


@app.exception_handler(UnknownReportError)
async def unknown_report_handler(request, exc: UnknownReportError):
    return _error(404, "Unknown report", str(exc))


@app.exception_handler(RemoteQueryError)
async def remote_query_handler(request, exc: RemoteQueryError):
    # client errors from the provider (bad field, no access) keep their status
    status_code = exc.status_code if exc.status_code and 400 <= exc.status_code < 500 else 502
    logger.error(f"Remote query failed (provider status {exc.status_code}): {exc}")
    return _error(status_code, "Google Analytics query failed", str(exc))


@app.exception_handler(CacheBackendError)
async def cache_backend_handler(request, exc: CacheBackendError):
    logger.error(f"Cache backend failure: {exc}")
    return _error(503, "Report cache unavailable", str(exc))


def _period(date_range: DateRange) -> Period:
    return Period.create(date_range.start_date, date_range.end_date)


def _for_view(analytics: Analytics, view_id: str = None) -> Analytics:
    # per-request view without mutating the shared handle
    if view_id and view_id != analytics.view_id:
        return Analytics(analytics.client, view_id)
    return analytics


@app.get("/")
def root():
    """Root endpoint with API information"""
    return {
        "message": "Analytics Reports API",
        "version": "1.0.0",
        "endpoints": {
            "reports": "/reports - List named reports",
            "report": "/reports/{name} - Run a named report",
            "query": "/query - Run a custom metrics/dimensions query",
        },
        "docs": "/docs"
    }


@app.get("/reports")
def list_reports():
    return {"status": "success", "reports": Analytics.available_reports()}


@app.post("/reports/{name}", response_model=ReportResponse)
def run_report(name: str, request: ReportRequest, analytics: Analytics = Depends(get_analytics)):
    """Run one named report for the requested date range"""
    if name not in Analytics.available_reports():
        raise UnknownReportError(f"Unknown report '{name}'")

    data = _for_view(analytics, request.view_id).run(name, _period(request.date_range), request.max_results)
    if isinstance(data, dict):
        row_count = sum(len(hours) for hours in data.values())
    else:
        row_count = len(data)
    return ReportResponse(status="success", report=name, data=data, row_count=row_count)


@app.post("/query", response_model=QueryResponse)
def run_query(request: QueryRequest, analytics: Analytics = Depends(get_analytics)):
    """Run a custom query and return the flattened rows"""
    metrics = split_names(request.metrics)
    dimensions = split_names(request.dimensions)
    rows = _for_view(analytics, request.view_id).perform_query(
        _period(request.date_range),
        metrics,
        dimensions,
        request.sort_by_field,
        request.max_results,
    )
    return QueryResponse(status="success", columns=dimensions + metrics, rows=rows, row_count=len(rows))


def main(argv=None):
    parser = argparse.ArgumentParser(description="Serve named Google Analytics reports over HTTP.")
    parser.add_argument("--host", default="127.0.0.1", help="Host to bind")
    parser.add_argument("--port", type=int, default=8000, help="Port to bind")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    args = parser.parse_args(argv)

    configure_logging(args.debug or None)
    uvicorn.run(app, host=args.host, port=args.port)


if __name__ == "__main__":
    main()
