"""
Analytics facade: one call per named report plus a generic query.
"""
import logging
from typing import Any, Dict, List, Optional, Sequence

from .client import AnalyticsClient, FlatRow, ReportingService
from .exceptions import InvalidLimitError
from .period import Period
from .query_models import build_query
from .reports import (
    DEFAULT_TOP_BROWSERS,
    REPORTS,
    Record,
    get_report_spec,
    group_by_weekday,
    summarize_top_browsers,
)

logger = logging.getLogger(__name__)


class Analytics:
    """Runs named reports for one Analytics view"""

    def __init__(self, client: AnalyticsClient, view_id: str):
        self.client = client
        self.view_id = view_id

    def set_view_id(self, view_id: str) -> "Analytics":
        self.view_id = view_id
        return self

    @staticmethod
    def available_reports() -> Dict[str, str]:
        return {name: spec.description for name, spec in REPORTS.items()}

    def fetch_report(self, name: str, period: Period, max_results: Optional[int] = None) -> List[Record]:
        """
        Run a named report from the report table.

        ``max_results`` is sent as the page size for reports that take a limit
        and ignored by the others.
        """
        spec = get_report_spec(name)
        rows = self.perform_query(
            period,
            spec.metrics,
            spec.dimensions,
            spec.sort_by_field,
            max_results if spec.uses_max_results else None,
        )
        records = spec.present(rows)
        logger.debug(f"Report {name} for {period}: {len(records)} records")
        return records

    def fetch_visitors_and_page_views(self, period: Period, max_results: Optional[int] = None) -> List[Record]:
        return self.fetch_report('visitors_and_page_views', period, max_results)

    def fetch_total_visitors_and_page_views(self, period: Period, max_results: Optional[int] = None) -> List[Record]:
        return self.fetch_report('total_visitors_and_page_views', period, max_results)

    def fetch_most_visited_pages(self, period: Period, max_results: Optional[int] = None) -> List[Record]:
        return self.fetch_report('most_visited_pages', period, max_results)

    def fetch_top_referrers(self, period: Period, max_results: Optional[int] = None) -> List[Record]:
        return self.fetch_report('top_referrers', period, max_results)

    def fetch_top_browsers(self, period: Period, max_results: int = DEFAULT_TOP_BROWSERS) -> List[Record]:
        if max_results < 1:
            raise InvalidLimitError(f"max_results must be at least 1, got {max_results}")
        return summarize_top_browsers(self.fetch_report('top_browsers', period), max_results)

    def fetch_demographics(self, period: Period, max_results: Optional[int] = None) -> List[Record]:
        return self.fetch_report('demographics', period, max_results)

    def fetch_geo(self, period: Period, max_results: Optional[int] = None) -> List[Record]:
        return self.fetch_report('geo', period, max_results)

    def fetch_languages(self, period: Period, max_results: Optional[int] = None) -> List[Record]:
        return self.fetch_report('languages', period, max_results)

    def fetch_cities(self, period: Period, max_results: Optional[int] = None) -> List[Record]:
        return self.fetch_report('cities', period, max_results)

    def fetch_countries(self, period: Period, max_results: Optional[int] = None) -> List[Record]:
        return self.fetch_report('countries', period, max_results)

    def fetch_traffic_summary(self, period: Period) -> List[Record]:
        return self.fetch_report('traffic_summary', period)

    def fetch_traffic_by_day_hour(self, period: Period) -> Dict[str, List[Record]]:
        return group_by_weekday(self.fetch_report('traffic_by_day_hour', period))

    def run(self, name: str, period: Period, max_results: Optional[int] = None) -> Any:
        """Dispatch to the named report, including its post-processing"""
        if name == 'top_browsers':
            return self.fetch_top_browsers(period, max_results or DEFAULT_TOP_BROWSERS)
        if name == 'traffic_by_day_hour':
            return self.fetch_traffic_by_day_hour(period)
        return self.fetch_report(name, period, max_results)

    def perform_query(self, period: Period, metrics: Sequence[str], dimensions: Sequence[str] = (),
                      sort_by_field: Optional[str] = None, max_results: Optional[int] = None,
                      extra: Optional[Dict[str, Any]] = None) -> List[FlatRow]:
        """
        Run an arbitrary query for the current view and return the flattened rows.

        ``max_results`` becomes the page size of the request, so at most that
        many rows come back.
        """
        descriptor = build_query(self.view_id, period, metrics, dimensions, sort_by_field, max_results, extra)
        return self.client.fetch(descriptor)

    def get_analytics_service(self) -> ReportingService:
        """
        The underlying ``analyticsreporting`` v4 service, for requests the
        named reports do not cover.
        """
        return self.client.get_analytics_service()
