"""
Query models for Reporting API requests and the HTTP surface
"""
from datetime import date
from typing import Any, Dict, List, Optional, Sequence, Tuple

from pydantic import BaseModel, ConfigDict, Field

from .exceptions import EmptyMetricsError, InvalidLimitError
from .period import Period


class QueryDescriptor(BaseModel):
    """Normalized description of a single report request"""
    model_config = ConfigDict(frozen=True)

    view_id: str
    start_date: date
    end_date: date
    metrics: Tuple[str, ...]
    dimensions: Tuple[str, ...] = ()
    sort_by_field: Optional[str] = None
    max_results: Optional[int] = None
    extra: Dict[str, Any] = Field(default_factory=dict)

    def cache_args(self) -> List[Any]:
        """Positional query arguments in API argument order, absent optionals as None"""
        return [
            self.view_id,
            self.start_date.isoformat(),
            self.end_date.isoformat(),
            list(self.metrics),
            list(self.dimensions),
            self.sort_by_field,
            self.max_results,
            dict(self.extra),
        ]


def build_query(view_id: str, period: Period, metrics: Sequence[str],
                dimensions: Sequence[str] = (), sort_by_field: Optional[str] = None,
                max_results: Optional[int] = None,
                extra: Optional[Dict[str, Any]] = None) -> QueryDescriptor:
    """
    Build a query descriptor for a period.

    Metric and dimension names are passed through as given; unknown names are
    only reported by the API.

    Raises:
        EmptyMetricsError: if no metric is requested
        InvalidLimitError: if max_results is given but not positive
    """
    if not metrics:
        raise EmptyMetricsError()
    if max_results is not None and max_results < 1:
        raise InvalidLimitError(f"max_results must be at least 1, got {max_results}")

    return QueryDescriptor(
        view_id=str(view_id),
        start_date=period.start_date,
        end_date=period.end_date,
        metrics=tuple(metrics),
        dimensions=tuple(dimensions or ()),
        sort_by_field=sort_by_field or None,
        max_results=max_results,
        extra=dict(extra or {}),
    )


def split_names(value: Optional[str]) -> List[str]:
    """Split a comma-separated list of metric or dimension names"""
    if not value:
        return []
    return [name.strip() for name in value.split(',') if name.strip()]


# Pydantic models for the HTTP surface
class DateRange(BaseModel):
    start_date: str = Field(..., description="Start date in YYYY-MM-DD format")
    end_date: str = Field(..., description="End date in YYYY-MM-DD format")


class ReportRequest(BaseModel):
    date_range: DateRange
    view_id: Optional[str] = Field(None, description="Analytics view ID (defaults to the configured view)")
    max_results: Optional[int] = Field(None, ge=1, description="Maximum number of rows")


class QueryRequest(BaseModel):
    date_range: DateRange
    view_id: Optional[str] = Field(None, description="Analytics view ID (defaults to the configured view)")
    metrics: str = Field(..., description="Comma-separated metrics, e.g. 'users,pageviews'")
    dimensions: str = Field("", description="Comma-separated dimensions, e.g. 'date,pagePath'")
    sort_by_field: Optional[str] = Field(None, description="Field to sort on, descending by value")
    max_results: Optional[int] = Field(None, ge=1, description="Maximum number of rows")


class ReportResponse(BaseModel):
    status: str
    report: str
    data: Any
    row_count: int


class QueryResponse(BaseModel):
    status: str
    columns: List[str]
    rows: List[List[str]]
    row_count: int


class ErrorResponse(BaseModel):
    status: str = "error"
    message: str
    details: Optional[str] = None
