"""
Reporting API v4 client: builds batchGet requests, flattens the responses and
reads them through the report cache.
"""
import logging
from datetime import date
from typing import Any, Dict, List, Optional, Protocol, Sequence

import httplib2
from google.auth.exceptions import GoogleAuthError
from googleapiclient.errors import HttpError

from .cache_utils import ReportCache, generate_cache_key
from .exceptions import AuthenticationError, RemoteQueryError
from .period import Period
from .query_models import QueryDescriptor, build_query

logger = logging.getLogger(__name__)

# Namespace token the Reporting API expects on metric and dimension names
FIELD_NAMESPACE = "ga"

FlatRow = List[str]


class ReportingService(Protocol):
    """
    The part of the ``analyticsreporting`` v4 discovery service this package uses.

    ``service.reports().batchGet(body=...).execute()`` returns the raw response
    dict. Callers can use the same handle for anything else the API offers.
    """

    def reports(self) -> Any:
        ...


def namespaced(name: str) -> str:
    return f"{FIELD_NAMESPACE}:{name}"


def build_report_request(descriptor: QueryDescriptor) -> Dict[str, Any]:
    """Build the batchGet body for a single report request"""
    request: Dict[str, Any] = {
        'viewId': descriptor.view_id,
        'dateRanges': [{
            'startDate': descriptor.start_date.strftime('%Y-%m-%d'),
            'endDate': descriptor.end_date.strftime('%Y-%m-%d'),
        }],
        'metrics': [{'expression': namespaced(metric), 'alias': metric} for metric in descriptor.metrics],
        'dimensions': [{'name': namespaced(dimension)} for dimension in descriptor.dimensions],
    }

    if descriptor.sort_by_field:
        request['orderBys'] = [{
            'fieldName': namespaced(descriptor.sort_by_field),
            'orderType': 'VALUE',
            'sortOrder': 'DESCENDING',
        }]

    if descriptor.max_results:
        request['pageSize'] = descriptor.max_results

    request.update(descriptor.extra)

    return {'reportRequests': [request]}


def flatten_reports(response: Optional[Dict[str, Any]]) -> List[FlatRow]:
    """
    Flatten a batchGet response into rows of dimension values followed by
    metric values.

    Only the first report is read since each request holds a single report
    request. A missing report or a report without rows gives an empty list.
    """
    reports = (response or {}).get('reports') or []
    if not reports:
        return []

    report = reports[0]
    header = report.get('columnHeader', {})
    dimension_headers = header.get('dimensions', [])
    rows = report.get('data', {}).get('rows', [])

    results = []
    for row in rows:
        dimensions = row.get('dimensions', [])
        flat_row = list(dimensions[:min(len(dimension_headers), len(dimensions))])
        for metric_group in row.get('metrics', []):
            flat_row.extend(metric_group.get('values', []))
        results.append(flat_row)

    return results


class AnalyticsClient:
    """Runs report queries against the Reporting API through the report cache"""

    def __init__(self, service: ReportingService, cache: ReportCache, cache_lifetime_in_minutes: int = 0):
        self.service = service
        self.cache = cache
        self.cache_lifetime_in_minutes = cache_lifetime_in_minutes

    def set_cache_lifetime_in_minutes(self, cache_lifetime_in_minutes: int) -> "AnalyticsClient":
        self.cache_lifetime_in_minutes = cache_lifetime_in_minutes
        return self

    def perform_query(self, view_id: str, start_date: date, end_date: date, metrics: Sequence[str],
                      dimensions: Sequence[str] = (), sort_by_field: Optional[str] = None,
                      max_results: Optional[int] = None,
                      extra: Optional[Dict[str, Any]] = None) -> List[FlatRow]:
        """
        Query the Reporting API with the given parameters.

        ``max_results`` is sent as the report's ``pageSize``, so the rows are
        truncated to that many. ``extra`` keys are merged into the report
        request as-is.
        """
        descriptor = build_query(view_id, Period(start_date, end_date), metrics, dimensions,
                                 sort_by_field, max_results, extra)
        return self.fetch(descriptor)

    def fetch(self, descriptor: QueryDescriptor) -> List[FlatRow]:
        """
        Return the flattened rows for a query, from the cache when possible.

        With a cache lifetime of 0 the cached entry is dropped first, so every
        call goes to the API.

        Raises:
            RemoteQueryError: the API call failed
            CacheBackendError: the cache store failed
        """
        cache_key = generate_cache_key(descriptor.cache_args())

        if self.cache_lifetime_in_minutes == 0:
            self.cache.forget(cache_key)

        return self.cache.remember(
            cache_key,
            self.cache_lifetime_in_minutes,
            lambda: flatten_reports(self._run_report(descriptor)),
        )

    def _run_report(self, descriptor: QueryDescriptor) -> Dict[str, Any]:
        body = build_report_request(descriptor)
        logger.info(
            f"Querying view {descriptor.view_id} from {descriptor.start_date} to {descriptor.end_date}: "
            f"metrics={','.join(descriptor.metrics)} dimensions={','.join(descriptor.dimensions)}"
        )
        try:
            return self.service.reports().batchGet(body=body).execute()
        except HttpError as e:
            status = e.resp.status if e.resp is not None else None
            logger.error(f"Reporting API error for view {descriptor.view_id} (HTTP {status}): {e}")
            raise RemoteQueryError(f"Reporting API request failed: {e}", status_code=status) from e
        except GoogleAuthError as e:
            logger.error(f"Authentication failed for view {descriptor.view_id}: {e}")
            raise AuthenticationError(f"Google authentication failed: {e}") from e
        except (httplib2.HttpLib2Error, OSError) as e:
            logger.error(f"Network error querying view {descriptor.view_id}: {e}")
            raise RemoteQueryError(f"Could not reach the Reporting API: {e}") from e

    def get_analytics_service(self) -> ReportingService:
        return self.service
